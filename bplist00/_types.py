"""Value types that have no native Python counterpart: ``UID`` and ``Date``.

Everything else in a decoded tree is a builtin:

    null        -> None
    bool        -> bool
    integer     -> int      (arbitrary precision; 128-bit values are lossless)
    real        -> float    (float32 widened to double)
    date        -> Date
    data        -> bytes
    string      -> str
    UID         -> UID
    array       -> list
    dictionary  -> dict     (str keys, file order)
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Union

from ._constants import COCOA_EPOCH, COCOA_EPOCH_UNIX


class UID:
    """Keyed-archiver object reference.

    Deliberately not an ``int`` subclass: ``UID(1) != 1``.
    """

    __slots__ = ("value",)

    def __init__(self, value: int) -> None:
        if value < 0:
            raise ValueError("UID must be non-negative")
        self.value = value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UID):
            return NotImplemented
        return self.value == other.value

    def __hash__(self) -> int:
        return hash((UID, self.value))

    def __repr__(self) -> str:
        return "UID({})".format(self.value)


class Date:
    """Absolute time stored as seconds since 2001-01-01T00:00:00Z.

    The raw float is kept as-is so nothing is lost to datetime's
    microsecond resolution; convert with `to_datetime()` or `to_unix()`.
    """

    __slots__ = ("seconds",)

    def __init__(self, seconds: float) -> None:
        self.seconds = float(seconds)

    @classmethod
    def from_unix(cls, timestamp: float) -> "Date":
        return cls(timestamp - COCOA_EPOCH_UNIX)

    @classmethod
    def from_datetime(cls, dt: datetime) -> "Date":
        """Build from a datetime.  Naive datetimes are taken to be UTC."""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return cls((dt - COCOA_EPOCH).total_seconds())

    def to_unix(self) -> float:
        return self.seconds + COCOA_EPOCH_UNIX

    def to_datetime(self) -> datetime:
        """Return an aware UTC datetime.

        Raises OverflowError for offsets outside datetime's year 1..9999.
        """
        return COCOA_EPOCH + timedelta(seconds=self.seconds)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Date):
            return NotImplemented
        return self.seconds == other.seconds

    def __hash__(self) -> int:
        return hash((Date, self.seconds))

    def __repr__(self) -> str:
        return "Date({!r})".format(self.seconds)


# The closed set of things `parse_buffer` can return.
Value = Union[
    None,
    bool,
    int,
    float,
    Date,
    bytes,
    str,
    UID,
    List["Value"],
    Dict[str, "Value"],
]
