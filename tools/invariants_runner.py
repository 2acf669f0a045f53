#!/usr/bin/env python3
# tools/invariants_runner.py
#
# Decoder invariants (property tests) over random plistlib-written trees.
#
# For every generated plist this runner checks:
# - determinism: two decodes of the same bytes are equal
# - input kinds: bytes, bytearray and memoryview decode identically
# - non-mutation: the caller's bytearray is byte-for-byte unchanged
# - independence: scribbling over the bytearray afterwards changes nothing
# - length encodings: re-encoding every short length in extended form
#   (hand-rolled below for single-level arrays of strings) decodes the same
#
# Exit code:
#   0 -> all checks passed
#   1 -> invariant violation

import os, sys, json, copy, random, plistlib, struct
from typing import Any, List

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

import bplist00

SEED = int(os.environ.get("BPLIST_SEED", "1337"))
TRIALS = int(os.environ.get("BPLIST_TRIALS", "2000"))
MAX_GEN_DEPTH = int(os.environ.get("BPLIST_GEN_MAX_DEPTH", "6"))
MAX_KEYS = int(os.environ.get("BPLIST_GEN_MAX_KEYS", "18"))
MAX_LIST = int(os.environ.get("BPLIST_GEN_MAX_LIST", "18"))
MAX_STR = int(os.environ.get("BPLIST_GEN_MAX_STR", "24"))

random.seed(SEED)

def fail(msg: str, ctx: Any) -> None:
    print("INVARIANT VIOLATION:", msg)
    print("CTX:", json.dumps(ctx, ensure_ascii=False, default=repr)[:4000])
    raise SystemExit(1)

def rand_string() -> str:
    n = random.randint(0, MAX_STR)
    out = []
    for _ in range(n):
        r = random.random()
        if r < 0.75:
            out.append(chr(random.randint(0x20, 0x7E)))
        elif r < 0.95:
            out.append(chr(random.randint(0x00A0, 0x07FF)))
        else:
            out.append(chr(random.randint(0x10000, 0x10FFFF)))
    return "".join(out)

def rand_tree(depth: int = 0) -> Any:
    if depth >= MAX_GEN_DEPTH or random.random() < 0.35:
        r = random.random()
        if r < 0.5:
            return rand_string()
        if r < 0.7:
            return random.randint(-(2**63), 2**64 - 1)
        if r < 0.85:
            return bytes(random.getrandbits(8) for _ in range(random.randint(0, 32)))
        return random.choice([True, False, 0.25, -1e100])
    if random.random() < 0.5:
        return {rand_string(): rand_tree(depth + 1) for _ in range(random.randint(0, MAX_KEYS))}
    return [rand_tree(depth + 1) for _ in range(random.randint(0, MAX_LIST))]

def ascii_strings_array(strings: List[str], extended: bool) -> bytes:
    """Array of ASCII strings, lengths inline or all forced to 0xF form."""
    def marker(obj_type: int, n: int) -> bytes:
        if n < 15 and not extended:
            return bytes([(obj_type << 4) | n])
        return bytes([(obj_type << 4) | 0xF, 0x11]) + struct.pack(">H", n)

    objects = [marker(0xA, len(strings)) + struct.pack(">%dH" % len(strings),
                                                      *range(1, len(strings) + 1))]
    objects += [marker(0x5, len(s)) + s.encode("ascii") for s in strings]
    body = bytearray(b"bplist00")
    offsets = []
    for obj in objects:
        offsets.append(len(body))
        body += obj
    table = len(body)
    for off in offsets:
        body += struct.pack(">I", off)
    body += bytes(6) + bytes([4, 2]) + struct.pack(">QQQ", len(objects), 0, table)
    return bytes(body)

def main() -> int:
    for t in range(TRIALS):
        tree = rand_tree()
        buf = plistlib.dumps(tree, fmt=plistlib.FMT_BINARY)

        first = bplist00.parse_buffer(buf)
        if bplist00.parse_buffer(buf) != first:
            fail("decode not deterministic", {"trial": t, "hex": buf.hex()})

        scratch = bytearray(buf)
        from_array = bplist00.parse_buffer(scratch)
        if bytes(scratch) != buf:
            fail("caller bytearray mutated", {"trial": t, "hex": buf.hex()})
        if from_array != first or bplist00.parse_buffer(memoryview(buf)) != first:
            fail("input kind changed result", {"trial": t, "hex": buf.hex()})

        snapshot = copy.deepcopy(from_array)
        for i in range(len(scratch)):
            scratch[i] = 0
        if from_array != snapshot:
            fail("result aliases caller buffer", {"trial": t, "hex": buf.hex()})

        strings = ["".join(chr(random.randint(0x20, 0x7E)) for _ in range(random.randint(0, 30)))
                   for _ in range(random.randint(0, 30))]
        inline = bplist00.parse_buffer(ascii_strings_array(strings, extended=False))
        extended = bplist00.parse_buffer(ascii_strings_array(strings, extended=True))
        if inline != strings or extended != strings:
            fail("length encodings disagree", {"trial": t, "strings": strings})

    print(f"OK: invariants trials={TRIALS} seed={SEED}")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
