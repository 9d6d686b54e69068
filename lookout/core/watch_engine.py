"""
Watch engine - one reconciliation cycle and the polling loop around it
"""
import re
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from .. import config as _cfg
from ..errors import TransportError
from ..operations.walker import WalkStats, walk
from ..state.snapshot import Snapshot, save_snapshot
from ..utils.logging import log, vlog, warn
from ..utils.notifier import MailSink, Notifier
from .remote import RemoteDirectory, open_remote


class CycleState(Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    WALKING = "walking"
    RECONCILED = "reconciled"
    FAILED = "failed"
    SLEEPING = "sleeping"


@dataclass
class CycleResult:
    state: CycleState
    stats: Optional[WalkStats] = None
    deleted: int = 0
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.state is CycleState.RECONCILED


def unfind(snapshot: Snapshot):
    """Clear the found flag on every entry."""
    for entry in snapshot.values():
        entry.found = False


def clean_snapshot(snapshot: Snapshot, notifier: Notifier) -> int:
    """
    Drop every entry the walk did not see and report it as deleted;
    reset found on the survivors. Returns the number of deletions.
    """
    gone = sorted(path for path, entry in snapshot.items() if not entry.found)
    for path in gone:
        del snapshot[path]
        notifier.deleted(path)
    unfind(snapshot)
    return len(gone)


def run_cycle(snapshot: Snapshot,
              connect: Callable[[], RemoteDirectory],
              root_path: str,
              file_filter: Optional[re.Pattern],
              ignore_filter: Optional[re.Pattern],
              notifier: Notifier,
              snapshot_path: Path) -> CycleResult:
    """
    Run one cycle: connect, walk from *root_path*, then - only if the whole
    tree was walked - drop unseen entries, deliver notices and save.

    A failed cycle leaves the snapshot file untouched. Entries updated before
    the failure stay updated in memory. SnapshotWriteError propagates.
    """
    state = CycleState.CONNECTING
    stats = None
    try:
        remote = connect()
        with remote:
            remote.chdir(root_path)
            state = CycleState.WALKING
            log("[scan] Looking for new files …")
            unfind(snapshot)
            stats = walk(remote, snapshot, file_filter, ignore_filter, notifier)
    except TransportError as exc:
        warn(f"[scan] cycle failed while {state.value}: {exc}")
        return CycleResult(CycleState.FAILED, stats=stats, error=exc)

    deleted = clean_snapshot(snapshot, notifier)
    notifier.flush()
    save_snapshot(snapshot_path, snapshot)
    log(f"[scan] {stats.directories} folder(s), {stats.files} file(s), "
        f"{stats.changed} new/changed, {deleted} deleted")
    return CycleResult(CycleState.RECONCILED, stats=stats, deleted=deleted)


def connect_from_config() -> RemoteDirectory:
    return open_remote(_cfg.SERVER, user=_cfg.USER, password=_cfg.PASSWORD,
                       key_path=_cfg.SSH_KEY_PATH, timeout=_cfg.TIMEOUT,
                       encoding=_cfg.ENCODING)


def notifier_from_config() -> Notifier:
    sinks = []
    if _cfg.SMTP_SERVER and _cfg.MAIL_TO:
        sinks.append(MailSink(
            _cfg.SMTP_SERVER, _cfg.SMTP_PORT,
            mail_from=_cfg.MAIL_FROM, mail_to=_cfg.MAIL_TO, subject=_cfg.MAIL_SUBJECT,
            user=_cfg.SMTP_USER, password=_cfg.SMTP_PASSWORD,
            starttls=_cfg.SMTP_STARTTLS, timeout=_cfg.TIMEOUT,
        ))
    return Notifier(width=_cfg.DISPLAY_WIDTH, sinks=sinks)


def watch(snapshot: Snapshot, notifier: Optional[Notifier] = None,
          connect: Optional[Callable[[], RemoteDirectory]] = None,
          once: bool = False, sleep: Callable[[float], None] = time.sleep) -> CycleResult:
    """
    Poll forever (or one cycle with *once*): long sleep after a reconciled
    cycle, short sleep after a failed one. Returns the last cycle's result.
    """
    notifier = notifier or notifier_from_config()
    connect = connect or connect_from_config
    snapshot_path = _cfg.get_snapshot_file()

    while True:
        result = run_cycle(snapshot, connect, _cfg.ROOT_PATH,
                           _cfg.FILE_MASK, _cfg.IGNORE_FOLDERS,
                           notifier, snapshot_path)
        if once:
            return result
        delay = _cfg.LONG_SLEEP if result.ok else _cfg.SHORT_SLEEP
        vlog(f"[{CycleState.SLEEPING.value}] next cycle in {delay:.0f}s")
        sleep(delay)
