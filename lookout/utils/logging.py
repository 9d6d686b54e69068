"""
Logging utilities for lookout
"""
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

_verbose = False
_log_file: Optional[Path] = None


def set_verbose(verbose: bool):
    """Set the verbose flag"""
    global _verbose
    _verbose = verbose


def set_log_file(path: Optional[Path]):
    """Append every logged line to *path* as well (None disables)."""
    global _log_file
    _log_file = Path(path) if path else None


def _write_log_file(msg: str):
    if _log_file is None:
        return
    ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    try:
        with _log_file.open("a", encoding="utf-8") as f:
            f.write(f"{ts} {msg}\n")
    except OSError as exc:
        print(f"cannot write log file {_log_file}: {exc}", file=sys.stderr, flush=True)


def log(msg: str):
    """Log a message with timestamp"""
    ts = datetime.now().strftime("%H:%M:%S")
    print(f"[{ts}] {msg}", flush=True)
    _write_log_file(msg)


def vlog(msg: str):
    """Log a verbose message (console only in verbose mode, always to the log file)"""
    if _verbose:
        log(msg)
    else:
        _write_log_file(msg)


def warn(msg: str):
    """Log a warning message"""
    log(f"⚠  {msg}")


def error(msg: str):
    """Log an error message to stderr"""
    ts = datetime.now().strftime("%H:%M:%S")
    print(f"[{ts}] ✖  {msg}", file=sys.stderr, flush=True)
    _write_log_file(f"ERROR: {msg}")
