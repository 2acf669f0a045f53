"""bplist00 — decoder for Apple binary property lists.

Turns a ``bplist00`` buffer into plain Python values (plus `UID` and
`Date`, which have no builtin counterpart).

Quick start:
    >>> from bplist00 import parse_buffer
    >>> parse_buffer(open("Info.plist", "rb").read())["CFBundleIdentifier"]
    'com.example.app'

Three entry points, all ending up in the same core decoder:

    parse_buffer(data)        bytes already in memory
    parse_file(path)          blocking file read
    parse_file_async(path)    awaitable; reads and decodes in a worker thread

Limits guard against hostile or corrupt input and are checked before
anything proportional to a declared size is read:
    >>> parse_buffer(data, max_object_count=1000, max_payload_size=1 << 20)
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Union

from ._constants import (
    COCOA_EPOCH,
    MAX_DEPTH,
    MAX_OBJECT_COUNT,
    MAX_PAYLOAD_SIZE,
)
from ._core import BufferLike, decode_buffer
from ._errors import (
    ERR_BAD_REF,
    ERR_CYCLE,
    ERR_HEADER,
    ERR_KEY_TYPE,
    ERR_LENGTH,
    ERR_LIMIT_COUNT,
    ERR_LIMIT_DEPTH,
    ERR_LIMIT_SIZE,
    ERR_POINTER,
    ERR_REAL,
    ERR_TAG,
    ERR_TRAILER,
    ERR_TRUNCATED,
    BplistError,
    CyclicReferenceError,
    FormatError,
    LimitExceeded,
    PointerError,
)
from ._json_adapter import dumps_json, to_json_value
from ._projection import resolve_pointer
from ._trailer import DEFAULT_LIMITS, Limits
from ._types import UID, Date, Value

__version__ = "1.0.0"

__all__ = [
    # Entry points
    "parse_buffer",
    "parse_file",
    "parse_file_async",
    # Value types
    "Value",
    "UID",
    "Date",
    "COCOA_EPOCH",
    # Configuration
    "Limits",
    "DEFAULT_LIMITS",
    # Helpers
    "to_json_value",
    "dumps_json",
    "resolve_pointer",
    # Exceptions
    "BplistError",
    "FormatError",
    "LimitExceeded",
    "CyclicReferenceError",
    "PointerError",
    # Error codes
    "ERR_HEADER",
    "ERR_TRAILER",
    "ERR_TRUNCATED",
    "ERR_BAD_REF",
    "ERR_TAG",
    "ERR_REAL",
    "ERR_LENGTH",
    "ERR_KEY_TYPE",
    "ERR_LIMIT_COUNT",
    "ERR_LIMIT_SIZE",
    "ERR_LIMIT_DEPTH",
    "ERR_CYCLE",
    "ERR_POINTER",
]

logging.getLogger(__name__).addHandler(logging.NullHandler())

PathLike = Union[str, "os.PathLike[str]"]


# ── Core API ──────────────────────────────────────────────────

def parse_buffer(data: BufferLike, *,
                 max_object_count: int = MAX_OBJECT_COUNT,
                 max_payload_size: int = MAX_PAYLOAD_SIZE,
                 max_depth: int = MAX_DEPTH,
                 verbose: bool = False) -> Value:
    """Decode an in-memory binary plist and return its top object.

    Raises FormatError for malformed input, LimitExceeded when a declared
    count, size or depth is over its ceiling, and CyclicReferenceError when
    a container contains itself.  `verbose` turns on DEBUG tracing of the
    trailer, offsets and dictionary entries for this call only.
    """
    limits = Limits(max_object_count, max_payload_size, max_depth)
    return decode_buffer(data, limits, verbose)


# ── File API ──────────────────────────────────────────────────
# OSError from reading is propagated unchanged.

def _read_file(path: PathLike) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def parse_file(path: PathLike, **options) -> Value:
    """Read `path` and decode it.  Keyword options as for parse_buffer()."""
    return parse_buffer(_read_file(path), **options)


async def parse_file_async(path: PathLike, **options) -> Value:
    """Awaitable parse_file(); the read and the decode run in a worker thread."""
    return await asyncio.to_thread(parse_file, path, **options)
