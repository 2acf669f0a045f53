"""bplist00 object decoder — recursive walk over the index-addressed object table.

Each object starts with a marker byte: the high nibble selects the type,
the low nibble is type-specific (a value, a log2 width, or an inline
length).  Containers hold object *indices*, never offsets; every child is
resolved through the offset table and decoded by the same `decode()` call.

    0x00 null   0x08 false   0x09 true   0x0F fill
    0x1N int      2^N bytes
    0x2N real     2^N bytes (4 or 8)
    0x33 date     8-byte float, seconds since 2001-01-01
    0x4N data     length rule, raw bytes
    0x5N ascii    length rule, 1 byte per char
    0x6N utf16    length rule, 2 bytes per code unit
    0x8N uid      N+1 bytes
    0xAN array    length rule, N refs
    0xDN dict     length rule, N key refs then N value refs

For the format itself see CoreFoundation's CFBinaryPList.c.
"""

from __future__ import annotations

import logging
import struct
from typing import Callable, Dict, List, Set

from ._constants import (
    DATE_INFO,
    SIMPLE_FALSE,
    SIMPLE_FILL,
    SIMPLE_NULL,
    SIMPLE_TRUE,
    TYPE_ARRAY,
    TYPE_ASCII,
    TYPE_DATA,
    TYPE_DATE,
    TYPE_DICT,
    TYPE_INT,
    TYPE_REAL,
    TYPE_SIMPLE,
    TYPE_UID,
    TYPE_UTF16,
)
from ._errors import (
    ERR_BAD_REF,
    ERR_KEY_TYPE,
    ERR_LIMIT_DEPTH,
    ERR_REAL,
    ERR_TAG,
    CyclicReferenceError,
    FormatError,
    LimitExceeded,
)
from ._primitives import (
    check_payload_size,
    decode_ascii,
    decode_utf16be,
    read_bytes,
    read_length,
)
from ._trailer import DEFAULT_LIMITS, Limits, Trailer
from ._types import UID, Date, Value

logger = logging.getLogger(__name__)


class ObjectDecoder:
    """Decodes objects of one buffer by index.

    One instance per decode call.  The only mutable state is the set of
    indices on the current recursion path, used to reject cycles.
    """

    def __init__(self, buf: bytes, trailer: Trailer, offsets: List[int],
                 limits: Limits = DEFAULT_LIMITS, verbose: bool = False) -> None:
        self._buf = buf
        self._ref_size = trailer.object_ref_size
        self._offsets = offsets
        self._limits = limits
        self._verbose = verbose
        self._path: Set[int] = set()
        self._dispatch: Dict[int, Callable[[int, int], Value]] = {
            TYPE_SIMPLE: self._read_simple,
            TYPE_INT: self._read_int,
            TYPE_REAL: self._read_real,
            TYPE_DATE: self._read_date,
            TYPE_DATA: self._read_data,
            TYPE_ASCII: self._read_ascii,
            TYPE_UTF16: self._read_utf16,
            TYPE_UID: self._read_uid,
            TYPE_ARRAY: self._read_array,
            TYPE_DICT: self._read_dict,
        }

    def decode(self, index: int) -> Value:
        """Decode object `index` and, recursively, everything it references."""
        if not 0 <= index < len(self._offsets):
            raise FormatError(
                ERR_BAD_REF,
                "object ref {} outside {} objects".format(index, len(self._offsets)),
            )
        if index in self._path:
            raise CyclicReferenceError(index)
        if len(self._path) >= self._limits.max_depth:
            raise LimitExceeded(
                ERR_LIMIT_DEPTH,
                "nesting deeper than max_depth {}".format(self._limits.max_depth),
            )

        offset = self._offsets[index]
        marker = read_bytes(self._buf, offset, 1)[0]
        obj_type = (marker & 0xF0) >> 4
        obj_info = marker & 0x0F

        reader = self._dispatch.get(obj_type)
        if reader is None:
            raise FormatError(
                ERR_TAG,
                "unhandled type 0x{:x} (marker 0x{:02x}) at offset {}".format(
                    obj_type, marker, offset),
            )

        self._path.add(index)
        try:
            return reader(offset, obj_info)
        finally:
            self._path.discard(index)

    # ── Helpers ──────────────────────────────────────────────

    def _payload(self, start: int, size: int, what: str) -> bytes:
        check_payload_size(size, self._limits.max_payload_size, what)
        return read_bytes(self._buf, start, size)

    def _read_refs(self, start: int, count: int) -> List[int]:
        size = self._ref_size
        raw = self._payload(start, count * size, "reference list")
        return [int.from_bytes(raw[i:i + size], "big")
                for i in range(0, count * size, size)]

    # ── Scalars ──────────────────────────────────────────────

    def _read_simple(self, offset: int, info: int) -> Value:
        if info == SIMPLE_NULL or info == SIMPLE_FILL:
            return None
        if info == SIMPLE_FALSE:
            return False
        if info == SIMPLE_TRUE:
            return True
        raise FormatError(
            ERR_TAG, "unhandled simple value 0x{:02x} at offset {}".format(info, offset))

    def _read_int(self, offset: int, info: int) -> int:
        width = 1 << info
        raw = self._payload(offset + 1, width, "integer")
        # 1, 2 and 4 byte integers are unsigned; 8 byte ones are signed
        # two's complement; 16 byte ones are an unsigned 128-bit magnitude.
        return int.from_bytes(raw, "big", signed=(width == 8))

    def _read_uid(self, offset: int, info: int) -> UID:
        return UID(int.from_bytes(self._payload(offset + 1, info + 1, "UID"), "big"))

    def _read_real(self, offset: int, info: int) -> float:
        width = 1 << info
        if width == 4:
            return struct.unpack(">f", read_bytes(self._buf, offset + 1, 4))[0]
        if width == 8:
            return struct.unpack(">d", read_bytes(self._buf, offset + 1, 8))[0]
        raise FormatError(
            ERR_REAL, "real at offset {} is {} bytes; expected 4 or 8".format(offset, width))

    def _read_date(self, offset: int, info: int) -> Date:
        if info != DATE_INFO:
            logger.warning("unknown date type 0x%x at offset %d; parsing anyway",
                           info, offset)
        return Date(struct.unpack(">d", read_bytes(self._buf, offset + 1, 8))[0])

    # ── Length-prefixed ──────────────────────────────────────

    def _read_data(self, offset: int, info: int) -> bytes:
        length, start = read_length(self._buf, offset, info)
        return self._payload(start, length, "data")

    def _read_ascii(self, offset: int, info: int) -> str:
        length, start = read_length(self._buf, offset, info)
        return decode_ascii(self._payload(start, length, "string"))

    def _read_utf16(self, offset: int, info: int) -> str:
        length, start = read_length(self._buf, offset, info)
        # length counts UTF-16 code units, not bytes
        return decode_utf16be(self._payload(start, length * 2, "string"))

    # ── Containers ───────────────────────────────────────────

    def _read_array(self, offset: int, info: int) -> List[Value]:
        count, start = read_length(self._buf, offset, info)
        return [self.decode(ref) for ref in self._read_refs(start, count)]

    def _read_dict(self, offset: int, info: int) -> Dict[str, Value]:
        count, start = read_length(self._buf, offset, info)
        check_payload_size(2 * count * self._ref_size,
                           self._limits.max_payload_size, "dictionary")
        key_refs = self._read_refs(start, count)
        value_refs = self._read_refs(start + count * self._ref_size, count)

        result: Dict[str, Value] = {}
        for key_ref, value_ref in zip(key_refs, value_refs):
            key = self.decode(key_ref)
            if not isinstance(key, str):
                raise FormatError(
                    ERR_KEY_TYPE,
                    "dictionary at offset {} has a {} key (object #{}); "
                    "keys must be strings".format(offset, type(key).__name__, key_ref),
                )
            value = self.decode(value_ref)
            if self._verbose:
                logger.debug("dict at offset %d: %r -> %r", offset, key, value)
            result[key] = value
        return result
