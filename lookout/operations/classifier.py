"""
Classification of an observed remote file against the snapshot
"""
from enum import Enum
from typing import Optional

from ..state.snapshot import FileEntry, Snapshot
from ..utils.notifier import Notifier


class Change(Enum):
    NEW = "new"
    CHANGED_TIME = "datetime changed"
    CHANGED_SIZE = "size changed"
    UNCHANGED = "unchanged"


def classify(existing: Optional[FileEntry], observed: FileEntry) -> Change:
    """Timestamp is checked before size; either difference means changed."""
    if existing is None:
        return Change.NEW
    if existing.modified_at != observed.modified_at:
        return Change.CHANGED_TIME
    if existing.size != observed.size:
        return Change.CHANGED_SIZE
    return Change.UNCHANGED


def reconcile_entry(snapshot: Snapshot, path: str, observed: FileEntry,
                    notifier: Notifier) -> Change:
    """
    Classify *observed* against snapshot[path] and update the snapshot.

    New and changed files replace the stored entry and are reported.
    An unchanged file keeps its stored entry; only its found flag is set.
    """
    existing = snapshot.get(path)
    change = classify(existing, observed)

    if change is Change.UNCHANGED:
        existing.found = True
        return change

    snapshot[path] = FileEntry(name=observed.name, size=observed.size,
                               modified_at=observed.modified_at, found=True)
    if change is Change.NEW:
        notifier.new_file(path)
    elif change is Change.CHANGED_TIME:
        notifier.datetime_changed(path)
    else:
        notifier.size_changed(path)
    return change
