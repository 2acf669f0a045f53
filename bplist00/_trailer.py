"""Trailer and offset table.

The trailer is the fixed 32-byte footer; it says how wide offsets and
object references are, how many objects there are, which one is the root,
and where the offset table starts.  The offset table maps object index to
absolute byte offset.  Both are built once per decode and never changed.
"""

from __future__ import annotations

import logging
from typing import List, NamedTuple

from ._constants import (
    MAGIC,
    MAGIC_LEN,
    MAX_DEPTH,
    MAX_OBJECT_COUNT,
    MAX_PAYLOAD_SIZE,
    MIN_BUFFER_SIZE,
    TRAILER_SIZE,
)
from ._errors import (
    ERR_HEADER,
    ERR_LIMIT_COUNT,
    ERR_TRAILER,
    FormatError,
    LimitExceeded,
)
from ._primitives import check_payload_size, read_uint_be

logger = logging.getLogger(__name__)


class Limits(NamedTuple):
    """Admission-control ceilings for a single decode."""

    max_object_count: int = MAX_OBJECT_COUNT
    max_payload_size: int = MAX_PAYLOAD_SIZE
    max_depth: int = MAX_DEPTH


DEFAULT_LIMITS = Limits()


class Trailer(NamedTuple):
    sort_version: int
    offset_size: int
    object_ref_size: int
    num_objects: int
    top_object: int
    offset_table_offset: int


def read_trailer(buf: bytes, limits: Limits = DEFAULT_LIMITS,
                 verbose: bool = False) -> Trailer:
    """Check the magic and parse the last 32 bytes of `buf`.

    Fails with FormatError(ERR_HEADER) on short input or bad magic, with
    LimitExceeded(ERR_LIMIT_COUNT) when the object count is over the
    ceiling, and with FormatError(ERR_TRAILER) on field values no writer
    could have produced.
    """
    if len(buf) < MIN_BUFFER_SIZE:
        raise FormatError(
            ERR_HEADER,
            "buffer is {} bytes; a binary plist needs at least {}".format(
                len(buf), MIN_BUFFER_SIZE),
        )
    if buf[:MAGIC_LEN] != MAGIC:
        raise FormatError(ERR_HEADER, "expected 'bplist' at offset 0")

    base = len(buf) - TRAILER_SIZE
    trailer = Trailer(
        sort_version=buf[base + 5],
        offset_size=buf[base + 6],
        object_ref_size=buf[base + 7],
        num_objects=read_uint_be(buf, base + 8, 8),
        top_object=read_uint_be(buf, base + 16, 8),
        offset_table_offset=read_uint_be(buf, base + 24, 8),
    )
    if verbose:
        logger.debug("trailer: %r", trailer)

    if trailer.num_objects > limits.max_object_count:
        raise LimitExceeded(
            ERR_LIMIT_COUNT,
            "trailer declares {} objects; max_object_count is {}".format(
                trailer.num_objects, limits.max_object_count),
        )
    if not 1 <= trailer.offset_size <= 8:
        raise FormatError(ERR_TRAILER,
                          "offset size {} not in 1..8".format(trailer.offset_size))
    if not 1 <= trailer.object_ref_size <= 8:
        raise FormatError(ERR_TRAILER,
                          "object ref size {} not in 1..8".format(trailer.object_ref_size))
    if trailer.top_object >= trailer.num_objects:
        raise FormatError(
            ERR_TRAILER,
            "top object {} outside {} objects".format(
                trailer.top_object, trailer.num_objects),
        )
    return trailer


def read_offset_table(buf: bytes, trailer: Trailer,
                      limits: Limits = DEFAULT_LIMITS,
                      verbose: bool = False) -> List[int]:
    """Read `num_objects` big-endian offsets of `offset_size` bytes each.

    The offsets themselves are not checked against the buffer length; the
    object decoder faults on the first one it cannot follow.
    """
    size = trailer.num_objects * trailer.offset_size
    check_payload_size(size, limits.max_payload_size, "offset table")

    start = trailer.offset_table_offset
    if start < MAGIC_LEN or start + size > len(buf) - TRAILER_SIZE:
        raise FormatError(
            ERR_TRAILER,
            "offset table at {} ({} bytes) overlaps header or trailer".format(
                start, size),
        )

    width = trailer.offset_size
    offsets = [
        read_uint_be(buf, start + i * width, width)
        for i in range(trailer.num_objects)
    ]
    if verbose:
        for index, offset in enumerate(offsets):
            logger.debug("object #%d at offset %d [0x%x]", index, offset, offset)
    return offsets
