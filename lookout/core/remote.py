"""
Remote directory listing over FTP or SFTP.

Both transports expose the same small surface the walker needs:
list the current directory, change into a child, change to the parent and
report the current path. Every failure is raised as TransportError.
"""
import ftplib
import stat
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import unquote, urlsplit

import paramiko

from ..errors import ConfigError, TransportError
from ..utils.logging import vlog, warn

FILE = "file"
DIRECTORY = "directory"
LINK = "link"
OTHER = "other"

DEFAULT_PORTS = {"ftp": 21, "sftp": 22}


@dataclass
class RemoteEntry:
    name: str
    kind: str
    size: int
    modified_at: datetime


class RemoteDirectory:
    """Base class: a connected session positioned in some remote directory."""

    def list(self) -> list:
        raise NotImplementedError

    def chdir(self, path: str):
        raise NotImplementedError

    def chdir_parent(self):
        raise NotImplementedError

    def getcwd(self) -> str:
        raise NotImplementedError

    def close(self):
        raise NotImplementedError

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


# ── SFTP ────────────────────────────────────────────────────────────────────

# UnicodeError: a file name the session cannot decode
_SFTP_ERRORS = (paramiko.SSHException, OSError, EOFError, UnicodeError)


def _sftp_kind(mode: Optional[int]) -> str:
    if mode is None:
        return OTHER
    if stat.S_ISLNK(mode):
        return LINK
    if stat.S_ISDIR(mode):
        return DIRECTORY
    if stat.S_ISREG(mode):
        return FILE
    return OTHER


class SFTPDirectory(RemoteDirectory):
    """Wraps paramiko SSHClient + SFTPClient."""

    def __init__(self, host: str, port: int = 22, user: Optional[str] = None,
                 password: Optional[str] = None, key_path: Optional[str] = None,
                 timeout: int = 30):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.key_path = key_path
        self.timeout = timeout
        self._ssh: Optional[paramiko.SSHClient] = None
        self._sftp: Optional[paramiko.SFTPClient] = None

    def connect(self):
        vlog(f"[SFTP] connecting to {self.user or ''}@{self.host}:{self.port} …")
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        kw: dict = dict(hostname=self.host, port=self.port, username=self.user,
                        timeout=self.timeout, banner_timeout=self.timeout,
                        auth_timeout=self.timeout)
        if self.key_path:
            kw["key_filename"] = self.key_path
        if self.password:
            kw["password"] = self.password
        try:
            client.connect(**kw)
            self._ssh = client
            self._sftp = client.open_sftp()
            self._sftp.get_channel().settimeout(self.timeout)
        except _SFTP_ERRORS as exc:
            client.close()
            self._ssh = None
            self._sftp = None
            raise TransportError(f"sftp connect to {self.host}:{self.port} failed: {exc}") from exc
        vlog("[SFTP] connected ✓")
        return self

    def list(self) -> list:
        try:
            attrs = self._sftp.listdir_attr(".")
        except _SFTP_ERRORS as exc:
            raise TransportError(f"sftp list failed: {exc}") from exc
        entries = []
        for a in attrs:
            mtime = a.st_mtime or 0
            entries.append(RemoteEntry(
                name=a.filename,
                kind=_sftp_kind(a.st_mode),
                size=a.st_size or 0,
                modified_at=datetime.fromtimestamp(mtime, timezone.utc),
            ))
        return entries

    def chdir(self, path: str):
        try:
            self._sftp.chdir(path)
        except _SFTP_ERRORS as exc:
            raise TransportError(f"sftp chdir {path!r} failed: {exc}") from exc

    def chdir_parent(self):
        self.chdir("..")

    def getcwd(self) -> str:
        try:
            return self._sftp.getcwd() or self._sftp.normalize(".")
        except _SFTP_ERRORS as exc:
            raise TransportError(f"sftp getcwd failed: {exc}") from exc

    def close(self):
        try:
            if self._sftp:
                self._sftp.close()
        except _SFTP_ERRORS:
            pass
        try:
            if self._ssh:
                self._ssh.close()
        except _SFTP_ERRORS:
            pass
        if self._ssh:
            vlog("[SFTP] connection closed")
        self._ssh = None
        self._sftp = None


# ── FTP ─────────────────────────────────────────────────────────────────────

_FTP_ERRORS = ftplib.all_errors + (UnicodeError,)

# 500 / 502: MLSD not understood or not implemented
_MLSD_MISSING = ("500", "502")
_mlsd_warned: set = set()


def _ftp_kind(facts: dict) -> str:
    kind = facts.get("type", "").lower()
    if kind == "file":
        return FILE
    if kind == "dir":
        return DIRECTORY
    if kind in ("cdir", "pdir"):
        return OTHER
    if "symlink" in kind or "slink" in kind:
        return LINK
    return OTHER


def parse_mlsd_time(value: str) -> datetime:
    """MLSD 'modify' fact: YYYYMMDDHHMMSS[.sss], always UTC."""
    whole, _, fraction = value.partition(".")
    ts = datetime.strptime(whole, "%Y%m%d%H%M%S").replace(tzinfo=timezone.utc)
    if fraction:
        ts = ts.replace(microsecond=int(fraction[:6].ljust(6, "0")))
    return ts


class FTPDirectory(RemoteDirectory):
    """Wraps ftplib.FTP; listings use MLSD.

    *encoding* decodes the control connection (file names and paths);
    servers on legacy code pages need e.g. "latin-1" or "cp1252".
    """

    def __init__(self, host: str, port: int = 21, user: Optional[str] = None,
                 password: Optional[str] = None, timeout: int = 30,
                 encoding: str = "utf-8"):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.timeout = timeout
        self.encoding = encoding
        self._ftp: Optional[ftplib.FTP] = None

    def connect(self):
        vlog(f"[FTP] connecting to {self.host}:{self.port} …")
        ftp = ftplib.FTP(timeout=self.timeout, encoding=self.encoding)
        try:
            ftp.connect(self.host, self.port)
            ftp.login(self.user or "anonymous", self.password or "")
        except _FTP_ERRORS as exc:
            ftp.close()
            raise TransportError(f"ftp connect to {self.host}:{self.port} failed: {exc}") from exc
        self._ftp = ftp
        vlog(f"[FTP] logged in as {self.user or 'anonymous'} ✓")
        return self

    def list(self) -> list:
        try:
            listing = list(self._ftp.mlsd(facts=["type", "size", "modify"]))
        except ftplib.error_perm as exc:
            if str(exc)[:3] in _MLSD_MISSING and self.host not in _mlsd_warned:
                _mlsd_warned.add(self.host)
                warn(f"[FTP] {self.host} does not support MLSD (RFC 3659); "
                     f"lookout cannot list this server")
            raise TransportError(f"ftp list failed: {exc}") from exc
        except _FTP_ERRORS as exc:
            raise TransportError(f"ftp list failed: {exc}") from exc
        entries = []
        for name, facts in listing:
            try:
                modified_at = parse_mlsd_time(facts["modify"]) if "modify" in facts else \
                    datetime.fromtimestamp(0, timezone.utc)
                size = int(facts.get("size", 0))
            except ValueError as exc:
                raise TransportError(f"ftp list: bad facts for {name!r}: {exc}") from exc
            entries.append(RemoteEntry(name=name, kind=_ftp_kind(facts),
                                       size=size, modified_at=modified_at))
        return entries

    def chdir(self, path: str):
        try:
            self._ftp.cwd(path)
        except _FTP_ERRORS as exc:
            raise TransportError(f"ftp cwd {path!r} failed: {exc}") from exc

    def chdir_parent(self):
        self.chdir("..")

    def getcwd(self) -> str:
        try:
            return self._ftp.pwd()
        except _FTP_ERRORS as exc:
            raise TransportError(f"ftp pwd failed: {exc}") from exc

    def close(self):
        if self._ftp is None:
            return
        try:
            self._ftp.quit()
        except _FTP_ERRORS:
            self._ftp.close()
        self._ftp = None
        vlog("[FTP] connection closed")


# ── factory ─────────────────────────────────────────────────────────────────

def parse_server(url: str) -> tuple:
    """
    Split a server URL into (scheme, host, port, user, password).
    A bare host means ftp. Raises ConfigError for anything unusable.
    """
    if "://" not in url:
        url = f"ftp://{url}"
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    if scheme not in DEFAULT_PORTS:
        raise ConfigError(f"server: unsupported scheme {scheme!r} in {url!r} (use ftp:// or sftp://)")
    if not parts.hostname:
        raise ConfigError(f"server: no host in {url!r}")
    try:
        port = parts.port or DEFAULT_PORTS[scheme]
    except ValueError as exc:
        raise ConfigError(f"server: bad port in {url!r}") from exc
    user = unquote(parts.username) if parts.username else None
    password = unquote(parts.password) if parts.password else None
    return scheme, parts.hostname, port, user, password


def open_remote(url: str, user: Optional[str] = None, password: Optional[str] = None,
                key_path: Optional[str] = None, timeout: int = 30,
                encoding: str = "utf-8") -> RemoteDirectory:
    """
    Connect to *url* (ftp://host[:port] or sftp://host[:port]; a bare host
    means ftp) and return a connected RemoteDirectory.
    Credentials embedded in the URL win over *user* / *password*.
    *encoding* only applies to ftp; sftp names are always UTF-8.
    """
    scheme, host, port, url_user, url_password = parse_server(url)
    user = url_user or user
    password = url_password or password

    if scheme == "sftp":
        return SFTPDirectory(host, port, user, password, key_path, timeout).connect()
    return FTPDirectory(host, port, user, password, timeout, encoding).connect()
