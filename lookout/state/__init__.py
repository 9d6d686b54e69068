"""State management (snapshot file)"""
from .snapshot import (
    FileEntry, Snapshot,
    encode_snapshot, decode_snapshot, parse_line,
    load_snapshot, save_snapshot,
)

__all__ = [
    "FileEntry", "Snapshot",
    "encode_snapshot", "decode_snapshot", "parse_line",
    "load_snapshot", "save_snapshot",
]
