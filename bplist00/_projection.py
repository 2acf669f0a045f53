"""RFC 6901 JSON Pointer lookup into a decoded tree.

Lets callers (and the CLI's ``--pointer``) pull one value out of a large
plist, e.g. ``/$objects/1/NS.keys/0`` in a keyed archive.

Dictionary keys match plist strings exactly and array indices are plain
decimal tokens.  UIDs are *not* followed.  Anything that does not match
raises PointerError.
"""

from __future__ import annotations

import re
from typing import List

from ._errors import PointerError
from ._types import Value

# "0", or a decimal without a leading zero.
_INDEX = re.compile(r"^(0|[1-9][0-9]*)$")
_BAD_ESCAPE = re.compile(r"~(?![01])")


def parse_pointer(pointer: str) -> List[str]:
    """Split a pointer into unescaped reference tokens.

    "" is the whole document and yields [].
    """
    if pointer == "":
        return []
    if not pointer.startswith("/"):
        raise PointerError("pointer must be empty or start with '/': {!r}".format(pointer))

    tokens: List[str] = []
    for raw in pointer[1:].split("/"):
        if _BAD_ESCAPE.search(raw):
            raise PointerError("bad '~' escape in pointer token {!r}".format(raw))
        # ~1 first: "~01" is a literal "~1", not "/".
        tokens.append(raw.replace("~1", "/").replace("~0", "~"))
    return tokens


def resolve_pointer(value: Value, pointer: str) -> Value:
    """Return the value `pointer` refers to inside `value`."""
    current = value
    walked = ""
    for token in parse_pointer(pointer):
        if isinstance(current, dict):
            if token not in current:
                raise PointerError("no key {!r} at {!r}".format(token, walked or "/"))
            current = current[token]
        elif isinstance(current, list):
            if not _INDEX.match(token):
                raise PointerError("{!r} is not an array index at {!r}".format(
                    token, walked or "/"))
            idx = int(token)
            if idx >= len(current):
                raise PointerError("index {} out of range at {!r} ({} items)".format(
                    idx, walked or "/", len(current)))
            current = current[idx]
        else:
            raise PointerError("cannot descend into {} at {!r}".format(
                type(current).__name__, walked or "/"))
        walked += "/" + token
    return current
