"""Shared low-level readers: bounded slicing, big-endian unsigned integers,
the length-extension rule, and UTF-16BE text.

Every function here takes the whole buffer plus absolute offsets and checks
bounds itself, so callers never see an IndexError or a short slice.
"""

from __future__ import annotations

import logging
from typing import Tuple

from ._constants import LENGTH_EXTENDED, TYPE_INT
from ._errors import (
    ERR_LENGTH,
    ERR_LIMIT_SIZE,
    ERR_TRUNCATED,
    FormatError,
    LimitExceeded,
)

logger = logging.getLogger(__name__)


def check_payload_size(size: int, max_payload_size: int, what: str) -> None:
    """Refuse a declared payload before anything proportional to it is read."""
    if size > max_payload_size:
        raise LimitExceeded(
            ERR_LIMIT_SIZE,
            "{} of {} bytes exceeds max_payload_size {}".format(
                what, size, max_payload_size),
        )


def read_bytes(buf: bytes, start: int, size: int) -> bytes:
    """Return ``buf[start:start + size]``, failing if it would run short."""
    end = start + size
    if start < 0 or end > len(buf):
        raise FormatError(
            ERR_TRUNCATED,
            "need bytes {}..{} but buffer is {} bytes".format(start, end, len(buf)),
        )
    return buf[start:end]


def read_uint_be(buf: bytes, start: int, width: int) -> int:
    """Fold `width` bytes at `start` into an unsigned int, MSB first.

    Width is unrestricted: a 16-byte field is an unsigned 128-bit magnitude,
    never sign-extended.
    """
    return int.from_bytes(read_bytes(buf, start, width), "big")


# ── Length-extension rule ────────────────────────────────────
# Data, strings, arrays and dictionaries put their length in the low nibble
# of the marker when it fits (0..14).  Otherwise the nibble is 0xF and an
# integer object follows: marker 0x1N, then 2^N bytes of big-endian length.
#
#   [0x5F] [0x10] [0x0F]  ...15 bytes...     ASCII string, length 15
#   [0xAE]  ...14 refs...                    array, length 14

def read_length(buf: bytes, offset: int, info: int) -> Tuple[int, int]:
    """Decode the length of the object whose marker byte is at `offset`.

    Returns ``(length, payload_start)`` where payload_start is the absolute
    offset of the first payload byte.
    """
    if info != LENGTH_EXTENDED:
        return info, offset + 1

    marker = read_bytes(buf, offset + 1, 1)[0]
    int_type = (marker & 0xF0) >> 4
    if int_type != TYPE_INT:
        # CoreFoundation only looks at the low nibble.
        logger.warning("unexpected length marker 0x%02x at offset %d; "
                       "reading it as an integer anyway", marker, offset + 1)
    exponent = marker & 0x0F
    if exponent > 3:
        raise FormatError(
            ERR_LENGTH,
            "length integer at offset {} is {} bytes wide".format(
                offset + 1, 1 << exponent),
        )
    width = 1 << exponent
    length = read_uint_be(buf, offset + 2, width)
    return length, offset + 2 + width


# ── Text ─────────────────────────────────────────────────────

def decode_ascii(raw: bytes) -> str:
    """One byte per character.  Latin-1 maps every byte, so this never fails."""
    return raw.decode("latin-1")


def decode_utf16be(raw: bytes) -> str:
    """Decode big-endian UTF-16 code units.

    The byte order is handled by the codec itself; `raw` is an immutable
    copy, so the caller's buffer is never touched.  Unpaired surrogates are
    kept as lone code points rather than rejected, matching what
    CoreFoundation accepts.
    """
    return raw.decode("utf-16-be", errors="surrogatepass")
