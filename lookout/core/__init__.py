"""Core functionality (remote transports; the watch engine lives in core.watch_engine)"""
from .remote import (RemoteDirectory, RemoteEntry, SFTPDirectory, FTPDirectory,
                     open_remote, parse_server)

__all__ = ["RemoteDirectory", "RemoteEntry", "SFTPDirectory", "FTPDirectory",
           "open_remote", "parse_server"]
