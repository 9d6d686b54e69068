"""
Tests for the snapshot file codec and storage.

Tests:
  - line encoding and decoding, including legacy timestamps
  - deterministic, sorted output independent of insertion order
  - malformed lines are skipped without aborting the load
  - missing files load as empty; write failures raise SnapshotWriteError
"""
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

from lookout.errors import SnapshotWriteError
from lookout.state.snapshot import (
    FileEntry, decode_snapshot, encode_entry, encode_snapshot,
    load_snapshot, parse_line, parse_timestamp, save_snapshot,
)

T0 = datetime(2017, 3, 17, 14, 39, 39, tzinfo=timezone.utc)


def _sample() -> dict:
    return {
        "/AMEDIATEKA/ANIMALS_2/SER_05620.mxf": FileEntry("SER_05620.mxf", 13114515508, T0),
        "/AMEDIATEKA/a.mp4": FileEntry("a.mp4", 0, T0 + timedelta(seconds=1)),
        "/b/c d/ünïcode.mxf": FileEntry("ünïcode.mxf", 42,
                                        datetime(2020, 1, 2, 3, 4, 5, 123456,
                                                 tzinfo=timezone(timedelta(hours=3)))),
    }


class TestEncode(unittest.TestCase):

    def test_encode_entry_format(self):
        line = encode_entry("/x/y.mxf", FileEntry("y.mxf", 100, T0))
        self.assertEqual(line, "?{/x/y.mxf?}y.mxf?|100?|2017-03-17T14:39:39+00:00")

    def test_lines_sorted_and_newline_terminated(self):
        text = encode_snapshot(_sample())
        lines = text.split("\n")
        self.assertEqual(lines[-1], "")
        self.assertEqual(lines[:-1], sorted(lines[:-1]))
        self.assertEqual(len(lines) - 1, 3)

    def test_deterministic_regardless_of_insertion_order(self):
        sample = _sample()
        reversed_sample = dict(reversed(list(sample.items())))
        self.assertEqual(encode_snapshot(sample), encode_snapshot(reversed_sample))

    def test_empty_snapshot_encodes_to_empty_string(self):
        self.assertEqual(encode_snapshot({}), "")

    def test_found_flag_not_written(self):
        a = {"/f.mxf": FileEntry("f.mxf", 1, T0, found=True)}
        b = {"/f.mxf": FileEntry("f.mxf", 1, T0, found=False)}
        self.assertEqual(encode_snapshot(a), encode_snapshot(b))


class TestDecode(unittest.TestCase):

    def test_round_trip(self):
        sample = _sample()
        decoded = decode_snapshot(encode_snapshot(sample))
        self.assertEqual(decoded, sample)
        for path, entry in decoded.items():
            self.assertEqual(entry.modified_at.utcoffset(), sample[path].modified_at.utcoffset())

    def test_large_size(self):
        path, entry = parse_line("?{/big.mxf?}big.mxf?|98765432109876543210?|2017-03-17T14:39:39+00:00")
        self.assertEqual(entry.size, 98765432109876543210)

    def test_legacy_timestamp(self):
        parsed = parse_line(
            "?{/AMEDIATEKA/ANIMALS_2/SER_05620.mxf?}SER_05620.mxf?|13114515508?|"
            "2017-03-17 14:39:39 +0000 UTC"
        )
        self.assertIsNotNone(parsed)
        self.assertEqual(parsed[1].modified_at, T0)

    def test_zulu_and_nanosecond_timestamp(self):
        ts = parse_timestamp("2017-03-17T14:39:39.123456789Z")
        self.assertEqual(ts, T0.replace(microsecond=123456))

    def test_naive_timestamp_is_utc(self):
        self.assertEqual(parse_timestamp("2017-03-17T14:39:39"), T0)

    def test_garbage_line_skipped(self):
        text = (
            "?{/ok.mxf?}ok.mxf?|5?|2017-03-17T14:39:39+00:00\n"
            "this is not a snapshot line\n"
        )
        snapshot = decode_snapshot(text)
        self.assertEqual(list(snapshot), ["/ok.mxf"])

    def test_bad_timestamp_skipped(self):
        text = (
            "?{/bad.mxf?}bad.mxf?|5?|yesterday\n"
            "?{/ok.mxf?}ok.mxf?|5?|2017-03-17T14:39:39+00:00\n"
        )
        self.assertEqual(list(decode_snapshot(text)), ["/ok.mxf"])

    def test_negative_size_rejected(self):
        self.assertIsNone(parse_line("?{/n.mxf?}n.mxf?|-5?|2017-03-17T14:39:39+00:00"))

    def test_crlf_and_blank_lines(self):
        text = "\r\n?{/ok.mxf?}ok.mxf?|5?|2017-03-17T14:39:39+00:00\r\n\r\n"
        self.assertEqual(list(decode_snapshot(text)), ["/ok.mxf"])


class TestStorage(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self.tmpdir.name)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_missing_file_loads_empty(self):
        self.assertEqual(load_snapshot(self.root / "nope.txt"), {})

    def test_save_then_load(self):
        path = self.root / "list.txt"
        save_snapshot(path, _sample())
        self.assertEqual(load_snapshot(path), _sample())
        self.assertEqual(path.read_bytes(), encode_snapshot(_sample()).encode("utf-8"))

    def test_save_leaves_no_temp_files(self):
        path = self.root / "list.txt"
        save_snapshot(path, _sample())
        save_snapshot(path, {})
        self.assertEqual([p.name for p in self.root.iterdir()], ["list.txt"])
        self.assertEqual(path.read_text(encoding="utf-8"), "")

    def test_load_skips_garbage_line(self):
        path = self.root / "list.txt"
        path.write_text(
            "?{/ok.mxf?}ok.mxf?|5?|2017-03-17T14:39:39+00:00\n@@@ garbage @@@\n",
            encoding="utf-8",
        )
        snapshot = load_snapshot(path)
        self.assertEqual(list(snapshot), ["/ok.mxf"])
        self.assertEqual(snapshot["/ok.mxf"].size, 5)

    def test_write_failure_raises(self):
        path = self.root / "missing-dir" / "list.txt"
        with self.assertRaises(SnapshotWriteError):
            save_snapshot(path, _sample())


if __name__ == "__main__":
    unittest.main()
