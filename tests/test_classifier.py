"""
Tests for classify() and reconcile_entry().
"""
import unittest
from datetime import datetime, timedelta, timezone

from lookout.operations.classifier import Change, classify, reconcile_entry
from lookout.state.snapshot import FileEntry
from lookout.utils.notifier import Notifier

T = datetime(2021, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
PATH = "/drop/show/ep01.mxf"


class TestClassify(unittest.TestCase):

    def test_no_existing_entry_is_new(self):
        self.assertIs(classify(None, FileEntry("ep01.mxf", 100, T)), Change.NEW)

    def test_identical_is_unchanged(self):
        self.assertIs(classify(FileEntry("ep01.mxf", 100, T), FileEntry("ep01.mxf", 100, T)),
                      Change.UNCHANGED)

    def test_size_differs(self):
        self.assertIs(classify(FileEntry("ep01.mxf", 100, T), FileEntry("ep01.mxf", 200, T)),
                      Change.CHANGED_SIZE)

    def test_time_differs(self):
        observed = FileEntry("ep01.mxf", 100, T + timedelta(seconds=1))
        self.assertIs(classify(FileEntry("ep01.mxf", 100, T), observed), Change.CHANGED_TIME)

    def test_time_checked_before_size(self):
        observed = FileEntry("ep01.mxf", 200, T + timedelta(seconds=1))
        self.assertIs(classify(FileEntry("ep01.mxf", 100, T), observed), Change.CHANGED_TIME)

    def test_same_instant_other_offset_is_unchanged(self):
        other_offset = T.astimezone(timezone(timedelta(hours=5)))
        self.assertIs(classify(FileEntry("ep01.mxf", 100, T), FileEntry("ep01.mxf", 100, other_offset)),
                      Change.UNCHANGED)


class TestReconcileEntry(unittest.TestCase):

    def setUp(self):
        self.notifier = Notifier(width=64)

    def test_unchanged_keeps_stored_entry(self):
        stored = FileEntry("ep01.mxf", 100, T)
        snapshot = {PATH: stored}
        change = reconcile_entry(snapshot, PATH, FileEntry("ep01.mxf", 100, T), self.notifier)
        self.assertIs(change, Change.UNCHANGED)
        self.assertIs(snapshot[PATH], stored)
        self.assertTrue(stored.found)
        self.assertEqual(self.notifier.pending, [])

    def test_size_change_replaces_and_reports_once(self):
        snapshot = {PATH: FileEntry("ep01.mxf", 100, T)}
        change = reconcile_entry(snapshot, PATH, FileEntry("ep01.mxf", 200, T), self.notifier)
        self.assertIs(change, Change.CHANGED_SIZE)
        self.assertEqual(snapshot[PATH].size, 200)
        self.assertTrue(snapshot[PATH].found)
        self.assertEqual(len(self.notifier.pending), 1)
        self.assertTrue(self.notifier.pending[0].startswith(f"~ {PATH}"))
        self.assertTrue(self.notifier.pending[0].endswith(" size changed"))

    def test_time_change_reports_datetime_changed(self):
        snapshot = {PATH: FileEntry("ep01.mxf", 100, T)}
        later = T + timedelta(seconds=1)
        reconcile_entry(snapshot, PATH, FileEntry("ep01.mxf", 100, later), self.notifier)
        self.assertEqual(snapshot[PATH].modified_at, later)
        self.assertTrue(self.notifier.pending[0].endswith(" datetime changed"))

    def test_new_file_added_and_reported(self):
        snapshot = {}
        change = reconcile_entry(snapshot, PATH, FileEntry("ep01.mxf", 5, T), self.notifier)
        self.assertIs(change, Change.NEW)
        self.assertEqual(snapshot[PATH], FileEntry("ep01.mxf", 5, T))
        self.assertTrue(snapshot[PATH].found)
        self.assertTrue(self.notifier.pending[0].startswith("+ "))
        self.assertTrue(self.notifier.pending[0].endswith(" new file"))


if __name__ == "__main__":
    unittest.main()
