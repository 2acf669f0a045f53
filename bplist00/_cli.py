"""bplist00 command-line interface.

Usage:
    python3 -m bplist00 dump Info.plist
    python3 -m bplist00 dump Info.plist --pointer /CFBundleIdentifier
    cat some.bplist | python3 -m bplist00 dump -
    python3 -m bplist00 version
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from . import (
    BplistError,
    __version__,
    dumps_json,
    parse_buffer,
    resolve_pointer,
)
from ._constants import MAX_DEPTH, MAX_OBJECT_COUNT, MAX_PAYLOAD_SIZE

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bplist00",
        description="bplist00 — decode Apple binary property lists",
    )
    sub = parser.add_subparsers(dest="command")

    # ── dump ──
    dump_p = sub.add_parser("dump", help="Decode a binary plist and print it as JSON")
    dump_p.add_argument("input", metavar="FILE",
                        help="Binary plist to read, or '-' for stdin")
    dump_p.add_argument("--pointer", "-p", metavar="PTR", default="",
                        help="Print only the value at this JSON pointer")
    dump_p.add_argument("--indent", type=int, default=2,
                        help="JSON indent (default 2; negative for one line)")
    dump_p.add_argument("--max-objects", type=int, default=MAX_OBJECT_COUNT,
                        help="Reject plists with more objects (default %(default)s)")
    dump_p.add_argument("--max-payload", type=int, default=MAX_PAYLOAD_SIZE,
                        help="Reject any single payload larger than this many bytes "
                             "(default %(default)s)")
    dump_p.add_argument("--max-depth", type=int, default=MAX_DEPTH,
                        help="Reject nesting deeper than this (default %(default)s)")
    dump_p.add_argument("--verbose", "-v", action="store_true",
                        help="Trace the decode on stderr")

    # ── version ──
    sub.add_parser("version", help="Print version and exit")

    return parser


def _read_input(filepath: str) -> bytes:
    """Read plist bytes from a file or stdin."""
    if filepath != "-":
        with open(filepath, "rb") as f:
            return f.read()
    if sys.stdin.isatty():
        print("bplist00: reading from stdin (Ctrl-D to end)...", file=sys.stderr)
    return sys.stdin.buffer.read()


def _cmd_dump(args: argparse.Namespace) -> None:
    raw = _read_input(args.input)
    value = parse_buffer(
        raw,
        max_object_count=args.max_objects,
        max_payload_size=args.max_payload,
        max_depth=args.max_depth,
        verbose=args.verbose,
    )
    value = resolve_pointer(value, args.pointer)
    indent = args.indent if args.indent >= 0 else None
    print(dumps_json(value, indent=indent, ensure_ascii=True))


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "version":
        print(f"bplist00 {__version__}")
        return

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )

    try:
        if args.command == "dump":
            _cmd_dump(args)
    except BplistError as e:
        print(f"bplist00: error [{e.code}]: {e}", file=sys.stderr)
        sys.exit(2)
    except OSError as e:
        print(f"bplist00: cannot read input: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
