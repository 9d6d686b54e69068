"""
Snapshot file management (persistent across runs)

On-disk format, one line per tracked file, lines sorted:

    ?{<full path>?}<file name>?|<size>?|<timestamp>

The timestamp is ISO-8601 with an explicit UTC offset.
"""
import os
import re
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..errors import SnapshotWriteError
from ..utils.logging import error, log, vlog

LINE_RE = re.compile(r"\?\{(.*)\?\}(.*)\?\|(\d+)\?\|(.*)$")

# Written by releases before the switch to ISO-8601:
#   2017-03-17 14:39:39 +0000 UTC
LEGACY_TIME_FORMAT = "%Y-%m-%d %H:%M:%S %z UTC"

_FRACTION_RE = re.compile(r"\.(\d+)")


@dataclass
class FileEntry:
    """One remote file as last observed."""
    name: str
    size: int
    modified_at: datetime
    # Set while the current walk has seen the file; never persisted.
    found: bool = field(default=False, compare=False)


Snapshot = dict  # {full remote path: FileEntry}


# ── timestamps ──────────────────────────────────────────────────────────────

def format_timestamp(ts: datetime) -> str:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.isoformat()


def parse_timestamp(raw: str) -> datetime:
    """Parse an ISO-8601 or legacy timestamp. Raises ValueError."""
    raw = raw.strip()
    if raw.endswith(" UTC"):
        return datetime.strptime(raw, LEGACY_TIME_FORMAT)
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    # fromisoformat wants exactly 6 fractional digits on older interpreters
    raw = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), raw, count=1)
    ts = datetime.fromisoformat(raw)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


# ── codec ───────────────────────────────────────────────────────────────────

def encode_entry(path: str, entry: FileEntry) -> str:
    return f"?{{{path}?}}{entry.name}?|{entry.size}?|{format_timestamp(entry.modified_at)}"


def encode_snapshot(snapshot: Snapshot) -> str:
    """Encode every entry as a newline-terminated line, sorted by line text."""
    lines = sorted(encode_entry(path, entry) + "\n" for path, entry in snapshot.items())
    return "".join(lines)


def parse_line(line: str) -> Optional[tuple[str, FileEntry]]:
    """
    Parse one snapshot line into (path, FileEntry).
    Returns None (after logging the reason) for a line that cannot be used.
    """
    m = LINE_RE.match(line)
    if not m:
        error(f"Wrong input in file list ({line})")
        return None
    path, name, size_raw, time_raw = m.groups()
    try:
        modified_at = parse_timestamp(time_raw)
    except ValueError as exc:
        error(f"Wrong timestamp in file list ({line}): {exc}")
        return None
    return path, FileEntry(name=name, size=int(size_raw), modified_at=modified_at)


def decode_snapshot(text: str) -> Snapshot:
    """Decode snapshot text; malformed lines are skipped."""
    snapshot: Snapshot = {}
    for line in text.split("\n"):
        line = line.rstrip("\r")
        if not line:
            continue
        parsed = parse_line(line)
        if parsed is None:
            continue
        path, entry = parsed
        snapshot[path] = entry
    return snapshot


# ── storage ─────────────────────────────────────────────────────────────────

def load_snapshot(path: Path) -> Snapshot:
    """
    Load the snapshot file. A missing or unreadable file is not fatal:
    it is logged and an empty snapshot is returned.
    """
    path = Path(path)
    vlog(f"[snapshot] Loading \"{path}\" …")
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        error(f"\"{path}\" not loaded ({exc.strerror or exc}); starting with an empty file list")
        return {}
    snapshot = decode_snapshot(text)
    log(f"[snapshot] {len(snapshot)} tracked file(s) loaded from {path}")
    return snapshot


def save_snapshot(path: Path, snapshot: Snapshot):
    """
    Write the snapshot atomically (temp file + rename).
    Raises SnapshotWriteError on any failure.
    """
    path = Path(path)
    text = encode_snapshot(snapshot)
    tmp_name = None
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp",
                                        dir=str(path.parent))
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as exc:
        raise SnapshotWriteError(f"cannot write snapshot file {path}: {exc}") from exc
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
    vlog(f"[snapshot] {len(snapshot)} tracked file(s) saved to {path}")
