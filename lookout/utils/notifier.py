"""
Change notices: formatting, queueing and mail delivery
"""
import smtplib
from email.message import EmailMessage
from typing import Optional

from .logging import error, log, vlog

NEW = "+"
CHANGED = "~"
DELETED = "-"


def trunc_pad(s: str, width: int) -> str:
    """Fit *s* into exactly *width* characters: left-truncate with '…' or right-pad."""
    if len(s) > width:
        if width >= 1:
            return "…" + s[len(s) - width + 1:]
        return ""
    return s + " " * (width - len(s))


def format_notice(tag: str, path: str, reason: str, width: int = 64) -> str:
    return f"{tag} {trunc_pad(path, width)} {reason}"


class MailSink:
    """Sends a batch of notice lines as a single plain-text email over SMTP."""

    def __init__(self, server: str, port: int = 25, mail_from: str = "",
                 mail_to: Optional[list] = None, subject: str = "",
                 user: Optional[str] = None, password: Optional[str] = None,
                 starttls: bool = False, timeout: int = 30):
        self.server = server
        self.port = port
        self.mail_from = mail_from
        self.mail_to = list(mail_to or [])
        self.subject = subject
        self.user = user
        self.password = password
        self.starttls = starttls
        self.timeout = timeout

    def __call__(self, lines: list):
        msg = EmailMessage()
        msg["From"] = self.mail_from
        msg["To"] = ", ".join(self.mail_to)
        msg["Subject"] = self.subject
        msg.set_content("\n".join(lines) + "\n")

        with smtplib.SMTP(self.server, self.port, timeout=self.timeout) as smtp:
            if self.starttls:
                smtp.starttls()
            if self.user:
                smtp.login(self.user, self.password or "")
            smtp.send_message(msg)
        vlog(f"[mail] sent {len(lines)} notice(s) to {msg['To']}")


class Notifier:
    """
    Logs every change notice immediately and queues it for the sinks.
    flush() delivers the queue; on a sink failure the queue is kept
    for the next cycle.
    """

    def __init__(self, width: int = 64, sinks: Optional[list] = None):
        self.width = width
        self.sinks = list(sinks or [])
        self.pending: list = []

    def notify(self, tag: str, path: str, reason: str):
        line = format_notice(tag, path, reason, self.width)
        log(line)
        self.pending.append(line)

    def new_file(self, path: str):
        self.notify(NEW, path, "new file")

    def datetime_changed(self, path: str):
        self.notify(CHANGED, path, "datetime changed")

    def size_changed(self, path: str):
        self.notify(CHANGED, path, "size changed")

    def deleted(self, path: str):
        self.notify(DELETED, path, "deleted")

    def flush(self) -> bool:
        """Hand queued notices to every sink. Returns True if the queue was delivered."""
        if not self.pending:
            return True
        for sink in self.sinks:
            try:
                sink(self.pending)
            except (smtplib.SMTPException, OSError) as exc:
                error(f"[notify] delivery failed, {len(self.pending)} notice(s) kept: {exc}")
                return False
        self.pending = []
        return True
