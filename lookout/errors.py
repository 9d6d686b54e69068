"""
Exception types raised by lookout
"""


class LookoutError(Exception):
    """Base class for lookout errors."""


class TransportError(LookoutError):
    """A connect, login, listing or navigation call on the remote failed."""


class SnapshotWriteError(LookoutError):
    """The snapshot file could not be written; the process must not continue."""


class ConfigError(LookoutError):
    """The configuration file or one of its values is invalid."""
