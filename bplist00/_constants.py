"""bplist00 constants — magic, trailer layout, object markers, default limits.

The binary format is defined by Apple's CoreFoundation (CFBinaryPList.c);
nothing in this module is under our design control except the limits.
"""

from __future__ import annotations

from datetime import datetime, timezone

# 6-byte magic.  The 2-byte version that follows ("00") is not checked;
# CoreFoundation itself only looks at the first byte of it.
MAGIC = b"bplist"
MAGIC_LEN: int = 6

# ── Trailer (last 32 bytes of the buffer) ────────────────────
#   [0:5]   unused
#   [5]     sort version
#   [6]     offset int size
#   [7]     object ref size
#   [8:16]  number of objects       (uint64be)
#   [16:24] top object index        (uint64be)
#   [24:32] offset table offset     (uint64be)
TRAILER_SIZE: int = 32
MIN_BUFFER_SIZE: int = MAGIC_LEN + TRAILER_SIZE

# ── Object markers (high nibble of the marker byte) ──────────
TYPE_SIMPLE: int = 0x0
TYPE_INT: int = 0x1
TYPE_REAL: int = 0x2
TYPE_DATE: int = 0x3
TYPE_DATA: int = 0x4
TYPE_ASCII: int = 0x5
TYPE_UTF16: int = 0x6
TYPE_UID: int = 0x8
TYPE_ARRAY: int = 0xA
TYPE_DICT: int = 0xD

# Low-nibble values for TYPE_SIMPLE.
SIMPLE_NULL: int = 0x0
SIMPLE_FALSE: int = 0x8
SIMPLE_TRUE: int = 0x9
SIMPLE_FILL: int = 0xF

# Dates are always written with info 0x3 (2^3 = 8 byte float).
DATE_INFO: int = 0x3

# Info nibble meaning "length follows as an integer object".
LENGTH_EXTENDED: int = 0xF

# ── Dates ────────────────────────────────────────────────────
# Cocoa reference date.  978307200 is its Unix timestamp.
COCOA_EPOCH = datetime(2001, 1, 1, tzinfo=timezone.utc)
COCOA_EPOCH_UNIX: float = 978307200.0

# ── Default safety limits ────────────────────────────────────
# Checked before anything proportional to the declared size is sliced or
# allocated.
MAX_OBJECT_COUNT: int = 32_768
MAX_PAYLOAD_SIZE: int = 100_000_000
# Each nesting level costs two Python frames (decode + container reader),
# so this stays well clear of the default recursion limit.
MAX_DEPTH: int = 256
