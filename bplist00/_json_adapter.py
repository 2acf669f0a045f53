"""JSON projection of decoded values.

Used by the CLI and the conformance vectors.  Type mapping:

    None, bool, int, str         -> as-is
    float                        -> as-is, or {"$real": "nan" | "inf" | "-inf"}
    list / dict                  -> list / object
    bytes                        -> {"$data": "<base64>"}
    UID                          -> {"CF$UID": n}        (same shape as XML plists)
    Date                         -> "YYYY-MM-DDTHH:MM:SS[.ffffff]Z"
                                    or {"$date": seconds} outside year 1..9999
                                    (seconds as "nan" / "inf" / "-inf" if not finite)

Integers are left as Python ints, so 128-bit values survive json.dumps
unchanged.  The output never contains the non-standard NaN / Infinity
tokens, and `dumps_json` can escape everything outside ASCII (lone
surrogates from UTF-16 strings included) so the text always encodes.
"""

from __future__ import annotations

import base64
import json
import math
from typing import Any, Optional, Union

from ._types import UID, Date, Value


def _finite_or_name(x: float) -> Union[float, str]:
    if math.isnan(x):
        return "nan"
    if math.isinf(x):
        return "inf" if x > 0 else "-inf"
    return x


def _date_to_json(d: Date) -> Any:
    try:
        dt = d.to_datetime()
    except (OverflowError, ValueError):
        return {"$date": _finite_or_name(d.seconds)}
    return dt.isoformat().replace("+00:00", "Z")


def to_json_value(value: Value) -> Any:
    """Convert a decoded tree into something json.dumps accepts."""
    if isinstance(value, float):
        named = _finite_or_name(value)
        return named if named is value else {"$real": named}

    if value is None or isinstance(value, (bool, int, str)):
        return value

    if isinstance(value, bytes):
        return {"$data": base64.b64encode(value).decode("ascii")}

    if isinstance(value, UID):
        return {"CF$UID": value.value}

    if isinstance(value, Date):
        return _date_to_json(value)

    if isinstance(value, list):
        return [to_json_value(item) for item in value]

    if isinstance(value, dict):
        return {k: to_json_value(v) for k, v in value.items()}

    raise TypeError("not a decoded plist value: {}".format(type(value).__name__))


def dumps_json(value: Value, indent: Optional[int] = 2,
               ensure_ascii: bool = False) -> str:
    """Serialize a decoded tree as strict JSON text.

    With ensure_ascii=False non-ASCII is kept literal; pass True when the
    text must encode cleanly whatever the tree holds (lone surrogates).
    """
    return json.dumps(to_json_value(value), indent=indent,
                      ensure_ascii=ensure_ascii, allow_nan=False)
