"""
Recursive walk of the remote tree
"""
import re
from dataclasses import dataclass
from typing import Optional

from ..core.remote import DIRECTORY, FILE, RemoteDirectory
from ..state.snapshot import FileEntry, Snapshot
from ..utils.logging import vlog
from ..utils.notifier import Notifier
from .classifier import Change, reconcile_entry


@dataclass
class WalkStats:
    directories: int = 0
    files: int = 0
    changed: int = 0


def join_path(cwd: str, name: str) -> str:
    if cwd.endswith("/"):
        return cwd + name
    return f"{cwd}/{name}"


def accept_file(name: str, file_filter: Optional[re.Pattern]) -> bool:
    return file_filter is None or bool(file_filter.search(name))


def ignore_folder(path: str, ignore_filter: Optional[re.Pattern]) -> bool:
    return ignore_filter is not None and bool(ignore_filter.search(path))


def walk(remote: RemoteDirectory, snapshot: Snapshot,
         file_filter: Optional[re.Pattern], ignore_filter: Optional[re.Pattern],
         notifier: Notifier, stats: Optional[WalkStats] = None) -> WalkStats:
    """
    Walk the remote tree depth-first from the remote's current directory,
    reconciling every accepted file against *snapshot*.

    Any TransportError propagates and ends the walk where it happened;
    snapshot updates made before that point are kept.
    """
    if stats is None:
        stats = WalkStats()

    entries = remote.list()
    cwd = remote.getcwd()
    stats.directories += 1
    vlog(f"[walk] {cwd} ({len(entries)} entries)")

    for entry in entries:
        if entry.name in (".", ".."):
            continue
        full_path = join_path(cwd, entry.name)

        if entry.kind == FILE:
            if not accept_file(entry.name, file_filter):
                continue
            stats.files += 1
            observed = FileEntry(name=entry.name, size=entry.size,
                                 modified_at=entry.modified_at)
            if reconcile_entry(snapshot, full_path, observed, notifier) is not Change.UNCHANGED:
                stats.changed += 1

        elif entry.kind == DIRECTORY:
            if ignore_folder(full_path, ignore_filter):
                vlog(f"[walk] ignoring folder \"{full_path}\"")
                continue
            remote.chdir(entry.name)
            walk(remote, snapshot, file_filter, ignore_filter, notifier, stats)
            remote.chdir_parent()

    return stats
