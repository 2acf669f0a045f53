"""bplist00 error codes and exception classes.

Every failure raised by the decoder is a ``BplistError`` subclass carrying
a ``.code`` string.  The class tells you the kind of failure (malformed
input, resource ceiling, cycle); the code tells you exactly which check
fired, and is what the conformance vectors compare against.
"""

from __future__ import annotations

# ── Error codes ──────────────────────────────────────────────
# Grep-friendly; the conformance vectors use these exact strings.

# FormatError
ERR_HEADER: str = "ERR_HEADER"            # too short, or bad "bplist" magic
ERR_TRAILER: str = "ERR_TRAILER"          # impossible trailer fields
ERR_TRUNCATED: str = "ERR_TRUNCATED"      # read past end of buffer
ERR_BAD_REF: str = "ERR_BAD_REF"          # object index outside offset table
ERR_TAG: str = "ERR_TAG"                  # unknown marker / simple value
ERR_REAL: str = "ERR_REAL"                # real that is not 4 or 8 bytes
ERR_LENGTH: str = "ERR_LENGTH"            # malformed length-extension marker
ERR_KEY_TYPE: str = "ERR_KEY_TYPE"        # dictionary key is not a string

# LimitExceeded
ERR_LIMIT_COUNT: str = "ERR_LIMIT_COUNT"  # num_objects over max_object_count
ERR_LIMIT_SIZE: str = "ERR_LIMIT_SIZE"    # declared payload over max_payload_size
ERR_LIMIT_DEPTH: str = "ERR_LIMIT_DEPTH"  # nesting over max_depth

# CyclicReferenceError
ERR_CYCLE: str = "ERR_CYCLE"              # container references an ancestor

# PointerError
ERR_POINTER: str = "ERR_POINTER"          # bad or unmatched JSON pointer


class BplistError(Exception):
    """Base class for every bplist00 failure.

    The `.code` attribute is one of the ERR_* strings above.
    """

    def __init__(self, code: str, msg: str = "") -> None:
        super().__init__(msg or code)
        self.code = code


class FormatError(BplistError):
    """The buffer is not a structurally valid binary plist."""


class LimitExceeded(BplistError):
    """A declared count, size or nesting depth is over the configured ceiling.

    Always raised before the corresponding slice or allocation happens.
    """


class CyclicReferenceError(BplistError):
    """A container references one of its own ancestors."""

    def __init__(self, index: int) -> None:
        super().__init__(ERR_CYCLE,
                         "object #{} references one of its ancestors".format(index))
        self.index = index


class PointerError(BplistError):
    """A JSON pointer is malformed or does not match the decoded tree."""

    def __init__(self, msg: str) -> None:
        super().__init__(ERR_POINTER, msg)
