#!/usr/bin/env python3
# tools/fuzz_runner.py
#
# Differential and mutation fuzzing (bplist00 vs plistlib).
#
# Two fuzz categories:
#   A) random VALID trees -> plistlib binary writer -> both decoders, compare
#   B) valid plists with random byte flips / truncation -> bplist00 must
#      either decode or raise BplistError; anything else is a bug
#
# Any mismatch prints a minimal repro payload and exits non-zero.

import os, sys, json, random, plistlib, datetime
from typing import Any, Dict

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

import bplist00
from bplist00 import UID, Date, BplistError

SEED = int(os.environ.get("BPLIST_SEED", "4242"))
ROUNDS = int(os.environ.get("BPLIST_FUZZ_ROUNDS", "5000"))

random.seed(SEED)

def mismatch(label: str, ctx: Dict[str, Any]) -> None:
    print("MISMATCH:", label)
    print("CTX:", json.dumps(ctx, ensure_ascii=False, default=repr)[:4000])
    raise SystemExit(1)

# --- generators ---

def rand_text(nmax: int) -> str:
    n = random.randint(0, nmax)
    if random.random() < 0.7:
        return "".join(chr(random.randint(0x20, 0x7E)) for _ in range(n))
    return "".join(chr(random.choice([random.randint(0xA0, 0xD7FF),
                                      random.randint(0xE000, 0xFFFD),
                                      random.randint(0x10000, 0x10FFFF)]))
                   for _ in range(n))

def rand_int() -> int:
    return random.choice([
        random.randint(0, 0xFF),
        random.randint(0, 0xFFFF),
        random.randint(0, 0xFFFFFFFF),
        random.randint(-(2**63), 2**63 - 1),
        random.randint(2**63, 2**64 - 1),
    ])

def rand_scalar() -> Any:
    r = random.random()
    if r < 0.15:
        return random.choice([True, False])
    if r < 0.35:
        return rand_int()
    if r < 0.45:
        return random.uniform(-1e12, 1e12)
    if r < 0.55:
        return bytes(random.getrandbits(8) for _ in range(random.randint(0, 40)))
    if r < 0.62:
        return plistlib.UID(random.randint(0, 2**32))
    if r < 0.70:
        return datetime.datetime(2001, 1, 1) + datetime.timedelta(
            seconds=random.randint(-2**31, 2**31))
    return rand_text(40)

def rand_tree() -> Any:
    def gen(depth: int):
        if depth > 5 or random.random() < 0.4:
            return rand_scalar()
        if random.random() < 0.5:
            return {rand_text(12): gen(depth + 1) for _ in range(random.randint(0, 20))}
        return [gen(depth + 1) for _ in range(random.randint(0, 20))]
    return gen(0)

# --- normalisation: plistlib's model -> bplist00's model ---

def normalise(value: Any) -> Any:
    if isinstance(value, plistlib.UID):
        return UID(value.data)
    if isinstance(value, datetime.datetime):
        return Date.from_datetime(value)
    if isinstance(value, list):
        return [normalise(v) for v in value]
    if isinstance(value, dict):
        return {k: normalise(v) for k, v in value.items()}
    return value

def mutate(buf: bytes) -> bytes:
    b = bytearray(buf)
    r = random.random()
    if r < 0.2:
        return bytes(b[:random.randint(0, len(b))])
    for _ in range(random.randint(1, 4)):
        i = random.randrange(len(b))
        b[i] = random.getrandbits(8)
    return bytes(b)

def main() -> int:
    for i in range(ROUNDS):
        tree = rand_tree()
        buf = plistlib.dumps(tree, fmt=plistlib.FMT_BINARY, sort_keys=False)

        # A) differential
        if random.random() < 0.5:
            expected = normalise(plistlib.loads(buf))
            try:
                got = bplist00.parse_buffer(buf)
            except BplistError as e:
                mismatch("A decode failed", {"round": i, "err": e.code, "hex": buf.hex()})
            if got != expected:
                mismatch("A value differs", {"round": i, "hex": buf.hex()})
            continue

        # B) mutation: only BplistError may escape
        bad = mutate(buf)
        try:
            bplist00.parse_buffer(bad, max_payload_size=1 << 20)
        except BplistError:
            pass
        except Exception as e:
            mismatch("B unexpected exception", {"round": i, "exc": repr(e), "hex": bad.hex()})

    print(f"OK: fuzz rounds={ROUNDS} seed={SEED} (no mismatches)")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
