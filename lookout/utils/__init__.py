"""Utilities (logging, change notices)"""
from .logging import log, vlog, warn, error, set_verbose, set_log_file
from .notifier import Notifier, MailSink, format_notice, trunc_pad

__all__ = [
    "log", "vlog", "warn", "error", "set_verbose", "set_log_file",
    "Notifier", "MailSink", "format_notice", "trunc_pad",
]
