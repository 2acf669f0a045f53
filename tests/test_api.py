"""Unit tests for the bplist00 public API.

Organized by value type and failure mode.  Fixtures are either assembled
by hand (plist_builder) when the exact encoding matters, or written by
plistlib as an independent cross-check.  Vector-driven tests live in
test_conformance.py.
"""

from __future__ import annotations

import asyncio
import os
import plistlib
import sys
import tempfile
import unittest
from datetime import datetime, timezone
from unittest import mock

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.dirname(__file__))

from bplist00 import (
    COCOA_EPOCH,
    ERR_BAD_REF,
    ERR_CYCLE,
    ERR_HEADER,
    ERR_KEY_TYPE,
    ERR_LENGTH,
    ERR_LIMIT_COUNT,
    ERR_LIMIT_DEPTH,
    ERR_LIMIT_SIZE,
    ERR_REAL,
    ERR_TAG,
    ERR_TRUNCATED,
    UID,
    BplistError,
    CyclicReferenceError,
    Date,
    FormatError,
    LimitExceeded,
    parse_buffer,
    parse_file,
    parse_file_async,
)
from bplist00 import _primitives
from plist_builder import (
    array_obj,
    ascii_obj,
    build,
    data_obj,
    dict_obj,
    int_obj,
    length_marker,
    trailer,
    utf16_obj,
)


def _binary(value) -> bytes:
    return plistlib.dumps(value, fmt=plistlib.FMT_BINARY)


# ── End-to-end ────────────────────────────────────────────────

class TestEndToEnd(unittest.TestCase):
    def test_single_key_dict(self):
        buf = build([dict_obj([1], [2]), ascii_obj("A"), b"\x09"])
        result = parse_buffer(buf)
        self.assertEqual(result, {"A": True})
        self.assertIs(result["A"], True)
        self.assertIsInstance(list(result)[0], str)

    def test_array_of_twenty_integers(self):
        """20 > 14, so the count goes through the extended length marker."""
        objects = [array_obj(list(range(1, 21)))]
        objects += [int_obj(n * 7) for n in range(20)]
        buf = build(objects)
        self.assertEqual(buf[8:10], b"\xaf\x10")
        self.assertEqual(parse_buffer(buf), [n * 7 for n in range(20)])

    def test_nested_containers(self):
        buf = build([
            dict_obj([1, 2], [3, 4]),
            ascii_obj("list"),
            ascii_obj("map"),
            array_obj([5, 6]),
            dict_obj([5], [6]),
            ascii_obj("k"),
            b"\x08",
        ])
        self.assertEqual(parse_buffer(buf),
                         {"list": ["k", False], "map": {"k": False}})

    def test_dict_keeps_file_order(self):
        buf = build([dict_obj([1, 2, 3], [4, 4, 4]),
                     ascii_obj("z"), ascii_obj("a"), ascii_obj("m"), b"\x00"])
        self.assertEqual(list(parse_buffer(buf)), ["z", "a", "m"])

    def test_top_object_not_first(self):
        buf = build([ascii_obj("unused"), b"\x09"], top=1)
        self.assertIs(parse_buffer(buf), True)

    def test_shared_reference_is_not_a_cycle(self):
        buf = build([array_obj([1, 1, 1]), ascii_obj("same")])
        self.assertEqual(parse_buffer(buf), ["same", "same", "same"])

    def test_wide_offsets_and_refs(self):
        buf = build([array_obj([1, 2], ref_size=2), b"\x09", b"\x08"],
                    offset_size=2, ref_size=2)
        self.assertEqual(parse_buffer(buf), [True, False])

    def test_deterministic(self):
        buf = _binary({"a": [1, 2.5, "x"], "b": {"c": b"\x00"}})
        self.assertEqual(parse_buffer(buf), parse_buffer(buf))


# ── Cross-check against plistlib's writer ─────────────────────

class TestPlistlibWritten(unittest.TestCase):
    def test_rich_document(self):
        source = {
            "name": "sellStuff",
            "copyright": "©2008-2012, sellStuff, Inc.",
            "chinese": "天翼阅读",
            "flags": [True, False],
            "small": 7,
            "int32": 1234567890,
            "negative": -1234567890,
            "int64": 12345678901234567890,
            "real": 5555.0495000000001,
            "blob": b"\x00\x01\xfe\xff",
            "empty": {},
            "nested": {"list": [1, "two", [3]]},
        }
        self.assertEqual(parse_buffer(_binary(source)), source)

    def test_long_string_and_data(self):
        source = {"s": "x" * 300, "d": bytes(range(256)) * 4, "u": "é" * 70000}
        self.assertEqual(parse_buffer(_binary(source)), source)

    def test_many_keys(self):
        source = {"key%03d" % i: i for i in range(200)}
        self.assertEqual(parse_buffer(_binary(source)), source)

    def test_date(self):
        when = datetime(2012, 5, 17, 12, 30, 45)
        result = parse_buffer(_binary({"when": when}))["when"]
        self.assertIsInstance(result, Date)
        self.assertEqual(result.to_datetime(), when.replace(tzinfo=timezone.utc))

    def test_uid(self):
        source = {"$top": {"root": plistlib.UID(1)},
                  "$objects": ["$null", {"NS.keys": [plistlib.UID(2), plistlib.UID(3)]}]}
        result = parse_buffer(_binary(source))
        self.assertEqual(result["$top"]["root"], UID(1))
        self.assertEqual(result["$objects"][1]["NS.keys"], [UID(2), UID(3)])


# ── Integers ──────────────────────────────────────────────────

class TestIntegers(unittest.TestCase):
    def _decode(self, obj: bytes):
        return parse_buffer(build([obj]))

    def test_small_widths_are_unsigned(self):
        self.assertEqual(self._decode(b"\x10\xff"), 255)
        self.assertEqual(self._decode(b"\x11\xff\xfe"), 0xFFFE)
        self.assertEqual(self._decode(b"\x12\xff\xff\xff\xff"), 0xFFFFFFFF)

    def test_eight_bytes_are_signed(self):
        self.assertEqual(self._decode(b"\x13" + b"\xff" * 8), -1)
        self.assertEqual(self._decode(int_obj(-1234567890, 8)), -1234567890)

    def test_sixteen_bytes_all_ones(self):
        self.assertEqual(self._decode(b"\x14" + b"\xff" * 16), 2**128 - 1)

    def test_sixteen_bytes_high_bit_stays_positive(self):
        self.assertEqual(self._decode(b"\x14\x80" + b"\x00" * 15), 2**127)

    def test_wider_than_sixteen_not_truncated(self):
        self.assertEqual(self._decode(b"\x15\x01" + b"\x00" * 31), 2**248)


# ── Reals and dates ───────────────────────────────────────────

class TestRealsAndDates(unittest.TestCase):
    def test_float32_widened(self):
        value = parse_buffer(build([b"\x22\x3f\xc0\x00\x00"]))
        self.assertIsInstance(value, float)
        self.assertEqual(value, 1.5)

    def test_float64(self):
        self.assertEqual(parse_buffer(build([b"\x23\x40\x09\x21\xfb\x54\x44\x2d\x18"])),
                         3.141592653589793)

    def test_bad_real_width(self):
        with self.assertRaises(FormatError) as ctx:
            parse_buffer(build([b"\x21\x00\x00"]))
        self.assertEqual(ctx.exception.code, ERR_REAL)

    def test_epoch_zero_is_2001(self):
        value = parse_buffer(build([b"\x33" + bytes(8)]))
        self.assertEqual(value, Date(0.0))
        self.assertEqual(value.to_datetime(), datetime(2001, 1, 1, tzinfo=timezone.utc))
        self.assertEqual(value.to_datetime(), COCOA_EPOCH)
        self.assertEqual(value.to_unix(), 978307200.0)

    def test_unix_round_trip(self):
        d = Date.from_unix(1_000_000_000.25)
        self.assertEqual(d.seconds, 1_000_000_000.25 - 978307200.0)
        self.assertEqual(d.to_unix(), 1_000_000_000.25)

    def test_odd_date_info_warns_but_decodes(self):
        with self.assertLogs("bplist00", level="WARNING") as logs:
            value = parse_buffer(build([b"\x30" + bytes(8)]))
        self.assertEqual(value, Date(0.0))
        self.assertIn("unknown date type", logs.output[0])


# ── Strings, data, UIDs ───────────────────────────────────────

class TestStrings(unittest.TestCase):
    def test_utf16_nihon(self):
        buf = build([utf16_obj("日本")])
        self.assertEqual(buf[8:13], b"\x62\x65\xe5\x67\x2c")
        self.assertEqual(parse_buffer(buf), "日本")

    def test_utf16_conversion_only_for_utf16_tag(self):
        buf = build([array_obj([1, 2]), utf16_obj("日本"), ascii_obj("ascii")])
        with mock.patch("bplist00._decoder.decode_utf16be",
                        wraps=_primitives.decode_utf16be) as conv:
            self.assertEqual(parse_buffer(buf), ["日本", "ascii"])
        conv.assert_called_once_with(b"\x65\xe5\x67\x2c")

    def test_ascii_is_one_byte_per_char(self):
        self.assertEqual(parse_buffer(build([b"\x52\x41\xe9"])), "A\xe9")

    def test_surrogate_pair(self):
        self.assertEqual(parse_buffer(build([utf16_obj("\U0001F600")])), "\U0001F600")

    def test_data(self):
        value = parse_buffer(build([data_obj(b"\x00\x01\x02")]))
        self.assertEqual(value, b"\x00\x01\x02")
        self.assertIsInstance(value, bytes)

    def test_uid_is_not_an_int(self):
        value = parse_buffer(build([b"\x81\x01\x00"]))
        self.assertEqual(value, UID(256))
        self.assertNotEqual(value, 256)
        self.assertNotIsInstance(value, int)

    def test_uid_rejects_negative(self):
        with self.assertRaises(ValueError):
            UID(-1)


# ── Length-extension boundary ─────────────────────────────────

class TestLengthEncoding(unittest.TestCase):
    def test_fourteen_is_inline(self):
        obj = ascii_obj("a" * 14)
        self.assertEqual(obj[0], 0x5E)
        self.assertEqual(parse_buffer(build([obj])), "a" * 14)

    def test_fifteen_is_extended(self):
        obj = ascii_obj("a" * 15)
        self.assertEqual(obj[:3], b"\x5f\x10\x0f")
        self.assertEqual(parse_buffer(build([obj])), "a" * 15)

    def test_fourteen_both_ways_decode_equal(self):
        inline = parse_buffer(build([ascii_obj("b" * 14)]))
        extended = parse_buffer(build([ascii_obj("b" * 14, extended=True)]))
        self.assertEqual(inline, extended)

    def test_array_and_dict_both_ways(self):
        items = [array_obj([1, 1]), b"\x09"]
        items_ext = [array_obj([1, 1], extended=True), b"\x09"]
        self.assertEqual(parse_buffer(build(items)), parse_buffer(build(items_ext)))
        d = [dict_obj([1], [2]), ascii_obj("k"), b"\x08"]
        d_ext = [dict_obj([1], [2], extended=True), ascii_obj("k"), b"\x08"]
        self.assertEqual(parse_buffer(build(d)), parse_buffer(build(d_ext)))

    def test_two_byte_length(self):
        text = "q" * 300
        obj = ascii_obj(text)
        self.assertEqual(obj[:4], b"\x5f\x11\x01\x2c")
        self.assertEqual(parse_buffer(build([obj])), text)

    def test_wrong_length_marker_warns(self):
        obj = length_marker(0x5, 15, int_marker=0x20) + b"c" * 15
        with self.assertLogs("bplist00", level="WARNING") as logs:
            self.assertEqual(parse_buffer(build([obj])), "c" * 15)
        self.assertIn("unexpected length marker", logs.output[0])

    def test_length_integer_too_wide(self):
        with self.assertRaises(FormatError) as ctx:
            parse_buffer(build([b"\x5f\x14" + bytes(16)]))
        self.assertEqual(ctx.exception.code, ERR_LENGTH)


# ── Structural failures ───────────────────────────────────────

class TestFormatErrors(unittest.TestCase):
    def test_short_buffer(self):
        for size in (0, 6, 37):
            with self.subTest(size=size):
                with self.assertRaises(FormatError) as ctx:
                    parse_buffer(b"bplist00\x09"[:size] + bytes(max(0, size - 9)))
                self.assertEqual(ctx.exception.code, ERR_HEADER)

    def test_bad_magic(self):
        with self.assertRaises(FormatError) as ctx:
            parse_buffer(build([b"\x09"], header=b"xplist00"))
        self.assertEqual(ctx.exception.code, ERR_HEADER)

    def test_version_bytes_ignored(self):
        self.assertIs(parse_buffer(build([b"\x09"], header=b"bplist15")), True)

    def test_integer_key(self):
        buf = build([dict_obj([1], [2]), int_obj(1), b"\x09"])
        with self.assertRaises(FormatError) as ctx:
            parse_buffer(buf)
        self.assertEqual(ctx.exception.code, ERR_KEY_TYPE)
        self.assertIn("key", str(ctx.exception))

    def test_unknown_type(self):
        for marker in (0x70, 0x90, 0xB0, 0xC0, 0xE0, 0xF0):
            with self.subTest(marker=hex(marker)):
                with self.assertRaises(FormatError) as ctx:
                    parse_buffer(build([bytes([marker])]))
                self.assertEqual(ctx.exception.code, ERR_TAG)

    def test_unknown_simple_value(self):
        with self.assertRaises(FormatError) as ctx:
            parse_buffer(build([b"\x01"]))
        self.assertEqual(ctx.exception.code, ERR_TAG)

    def test_reference_outside_table(self):
        with self.assertRaises(FormatError) as ctx:
            parse_buffer(build([array_obj([9])]))
        self.assertEqual(ctx.exception.code, ERR_BAD_REF)

    def test_offset_past_end(self):
        buf = bytearray(build([b"\x09"]))
        buf[9] = 0xF0
        with self.assertRaises(FormatError) as ctx:
            parse_buffer(bytes(buf))
        self.assertEqual(ctx.exception.code, ERR_TRUNCATED)

    def test_payload_past_end(self):
        with self.assertRaises(FormatError) as ctx:
            parse_buffer(build([b"\x4f\x10\xff"]))
        self.assertEqual(ctx.exception.code, ERR_TRUNCATED)

    def test_not_bytes(self):
        with self.assertRaises(TypeError):
            parse_buffer("bplist00")


# ── Limits and cycles ─────────────────────────────────────────

class TestLimits(unittest.TestCase):
    def test_object_count_over_default(self):
        buf = b"bplist" + trailer(1, 1, 40000, 0, 6)
        self.assertEqual(len(buf), 38)
        with mock.patch("bplist00._core.read_offset_table") as table:
            with self.assertRaises(LimitExceeded) as ctx:
                parse_buffer(buf)
        self.assertEqual(ctx.exception.code, ERR_LIMIT_COUNT)
        table.assert_not_called()

    def test_object_count_configurable(self):
        buf = build([array_obj([1, 2]), b"\x09", b"\x08"])
        with self.assertRaises(LimitExceeded):
            parse_buffer(buf, max_object_count=2)
        self.assertEqual(parse_buffer(buf, max_object_count=3), [True, False])

    def test_data_over_payload_limit(self):
        buf = build([data_obj(bytes(100))])
        with self.assertRaises(LimitExceeded) as ctx:
            parse_buffer(buf, max_payload_size=50)
        self.assertEqual(ctx.exception.code, ERR_LIMIT_SIZE)

    def test_huge_declared_array_refused_before_reading(self):
        obj = b"\xaf\x13" + (2**40).to_bytes(8, "big")
        with self.assertRaises(LimitExceeded) as ctx:
            parse_buffer(build([obj]))
        self.assertEqual(ctx.exception.code, ERR_LIMIT_SIZE)

    def test_huge_declared_dict_refused(self):
        obj = b"\xdf\x12" + (60_000_000).to_bytes(4, "big")
        with self.assertRaises(LimitExceeded) as ctx:
            parse_buffer(build([obj]))
        self.assertEqual(ctx.exception.code, ERR_LIMIT_SIZE)

    def test_array_contains_itself(self):
        with self.assertRaises(CyclicReferenceError) as ctx:
            parse_buffer(build([array_obj([0])]))
        self.assertEqual(ctx.exception.code, ERR_CYCLE)
        self.assertEqual(ctx.exception.index, 0)

    def test_indirect_cycle_through_dict(self):
        buf = build([array_obj([1]), dict_obj([2], [0]), ascii_obj("up")])
        with self.assertRaises(CyclicReferenceError):
            parse_buffer(buf)

    def test_depth_limit(self):
        # object i is an array holding object i+1; the last one is `true`
        depth = 10
        objects = [array_obj([i + 1]) for i in range(depth)] + [b"\x09"]
        buf = build(objects)
        self.assertIsNotNone(parse_buffer(buf, max_depth=depth + 1))
        with self.assertRaises(LimitExceeded) as ctx:
            parse_buffer(buf, max_depth=depth)
        self.assertEqual(ctx.exception.code, ERR_LIMIT_DEPTH)

    def test_depth_limit_above_interpreter_stack(self):
        depth = 5000
        objects = [array_obj([i + 1], ref_size=2) for i in range(depth)] + [b"\x09"]
        buf = build(objects, offset_size=2, ref_size=2)
        with self.assertRaises(LimitExceeded) as ctx:
            parse_buffer(buf, max_depth=100_000)
        self.assertEqual(ctx.exception.code, ERR_LIMIT_DEPTH)
        self.assertIsInstance(ctx.exception.__cause__, RecursionError)

    def test_all_errors_share_a_base(self):
        for exc in (FormatError, LimitExceeded, CyclicReferenceError):
            self.assertTrue(issubclass(exc, BplistError))


# ── Caller-owned memory ───────────────────────────────────────

class TestBufferOwnership(unittest.TestCase):
    def test_bytearray_input_not_mutated(self):
        original = build([array_obj([1, 2]), utf16_obj("日本"), data_obj(b"abc")])
        buf = bytearray(original)
        parse_buffer(buf)
        self.assertEqual(bytes(buf), original)

    def test_results_independent_of_caller_buffer(self):
        buf = bytearray(build([array_obj([1, 2]), data_obj(b"abc"), ascii_obj("xyz")]))
        result = parse_buffer(memoryview(buf))
        for i in range(8, len(buf) - 32):
            buf[i] = 0
        self.assertEqual(result, [b"abc", "xyz"])


# ── Files and async ───────────────────────────────────────────

class TestFileEntryPoints(unittest.TestCase):
    def setUp(self):
        fd, self.path = tempfile.mkstemp(suffix=".plist")
        with os.fdopen(fd, "wb") as f:
            f.write(_binary({"CFBundleIdentifier": "com.apple.dictionary.MySample"}))

    def tearDown(self):
        os.unlink(self.path)

    def test_parse_file(self):
        self.assertEqual(parse_file(self.path)["CFBundleIdentifier"],
                         "com.apple.dictionary.MySample")

    def test_parse_file_passes_options(self):
        with self.assertRaises(LimitExceeded):
            parse_file(self.path, max_object_count=1)

    def test_parse_file_async(self):
        result = asyncio.run(parse_file_async(self.path))
        self.assertEqual(result, {"CFBundleIdentifier": "com.apple.dictionary.MySample"})

    def test_missing_file_raises_oserror(self):
        with self.assertRaises(FileNotFoundError):
            parse_file(self.path + ".missing")


# ── Tracing ───────────────────────────────────────────────────

class TestVerbose(unittest.TestCase):
    def test_verbose_traces_trailer_and_entries(self):
        buf = build([dict_obj([1], [2]), ascii_obj("A"), b"\x09"])
        with self.assertLogs("bplist00", level="DEBUG") as logs:
            parse_buffer(buf, verbose=True)
        text = "\n".join(logs.output)
        self.assertIn("trailer", text)
        self.assertIn("'A' -> True", text)


if __name__ == "__main__":
    unittest.main()
