"""bplist00 core — buffer in, value tree out.

`decode_buffer` is the only entry point that does any parsing; the path
based helpers in the package root read a file and hand the bytes here.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from ._decoder import ObjectDecoder
from ._errors import ERR_LIMIT_DEPTH, LimitExceeded
from ._trailer import DEFAULT_LIMITS, Limits, read_offset_table, read_trailer
from ._types import Value

logger = logging.getLogger(__name__)

BufferLike = Union[bytes, bytearray, memoryview]


def decode_buffer(data: BufferLike, limits: Optional[Limits] = None,
                  verbose: bool = False) -> Value:
    """Decode a complete binary plist and return its top object.

    `bytearray` and `memoryview` inputs are copied once up front, so the
    caller may reuse or mutate their buffer as soon as this returns (or
    even concurrently, from another thread).  `bytes` are used directly.
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(
            "expected bytes, bytearray or memoryview, got {}".format(type(data).__name__))
    buf = bytes(data)
    limits = limits or DEFAULT_LIMITS

    trailer = read_trailer(buf, limits, verbose)
    offsets = read_offset_table(buf, trailer, limits, verbose)
    if verbose:
        logger.debug("decoding top object #%d of %d", trailer.top_object,
                     trailer.num_objects)
    decoder = ObjectDecoder(buf, trailer, offsets, limits, verbose)
    try:
        return decoder.decode(trailer.top_object)
    except RecursionError as e:
        # max_depth set above what the interpreter stack can hold
        raise LimitExceeded(
            ERR_LIMIT_DEPTH,
            "nesting exhausted the interpreter stack before max_depth {}".format(
                limits.max_depth),
        ) from e
