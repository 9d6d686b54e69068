"""
Configuration constants for lookout
"""
import codecs
import os
import re
from pathlib import Path
from typing import Optional

from .errors import ConfigError

# ══════════════════════════════════════════════════════════════════════════════
#  DEFAULTS  ── overridden by YAML config or apply_profile()
# ══════════════════════════════════════════════════════════════════════════════

# ftp://host[:port] or sftp://host[:port]; a bare host means ftp
SERVER = "ftp://example.com"
USER: Optional[str] = None
PASSWORD: Optional[str] = None
# Private key for sftp, or None to use ssh-agent / ~/.ssh/id_*
SSH_KEY_PATH: Optional[str] = None
TIMEOUT = 30  # seconds, per network call
# Control-connection encoding for ftp (names on the wire); sftp is always UTF-8
ENCODING = "utf-8"

ROOT_PATH = "/"

# Only files whose name matches are tracked
FILE_MASK: Optional[re.Pattern] = re.compile(r"(?:\.mxf|\.mp4)$")
# Folders whose full path matches are not walked (None = walk everything)
IGNORE_FOLDERS: Optional[re.Pattern] = None

# Poll intervals (seconds): after a reconciled cycle / after a failed one
LONG_SLEEP = 30 * 60
SHORT_SLEEP = 60

BASE_DIR = Path(".")
SNAPSHOT_FILE = "lookoutFileList.txt"
LOG_FILE: Optional[str] = "lookout.log"

# Width of the path column in change notices
DISPLAY_WIDTH = 64

# Mail delivery of change notices (disabled while SMTP_SERVER is None)
SMTP_SERVER: Optional[str] = None
SMTP_PORT = 25
SMTP_USER: Optional[str] = None
SMTP_PASSWORD: Optional[str] = None
SMTP_STARTTLS = False
MAIL_FROM = "lookout@localhost"
MAIL_TO: list = []
MAIL_SUBJECT = "lookout: remote file changes"


# ══════════════════════════════════════════════════════════════════════════════
#  DYNAMIC PATHS  ── computed from BASE_DIR at call time
# ══════════════════════════════════════════════════════════════════════════════

def get_snapshot_file() -> Path:
    """Return the snapshot file path, relative paths resolved against BASE_DIR."""
    p = Path(SNAPSHOT_FILE).expanduser()
    return p if p.is_absolute() else BASE_DIR / p


def get_log_file() -> Optional[Path]:
    """Return the log file path, or None when file logging is disabled."""
    if not LOG_FILE:
        return None
    p = Path(LOG_FILE).expanduser()
    return p if p.is_absolute() else BASE_DIR / p


# ══════════════════════════════════════════════════════════════════════════════
#  GLOBAL CONFIG FILE  ── $XDG_CONFIG_HOME/lookout/config.yaml
# ══════════════════════════════════════════════════════════════════════════════

def get_global_config_dir() -> Path:
    """Return the global config directory for lookout."""
    xdg = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg:
        return Path(xdg) / "lookout"
    if os.name == "nt":
        appdata = os.environ.get("APPDATA", "")
        if appdata:
            return Path(appdata) / "lookout"
    return Path.home() / ".config" / "lookout"


def load_global_config() -> dict:
    """Load global config from the lookout config directory."""
    import yaml

    cfg_path = get_global_config_dir() / "config.yaml"
    if not cfg_path.is_file():
        return {}
    try:
        with cfg_path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError):
        return {}


# ══════════════════════════════════════════════════════════════════════════════
#  PROJECT CONFIG FILE  ── .lookout (searched upward)
# ══════════════════════════════════════════════════════════════════════════════

def find_lookout(start: Optional[Path] = None) -> Optional[Path]:
    """
    Search upward from *start* (default: cwd) for a .lookout YAML file.
    Returns the Path if found, or None if no .lookout exists in any parent.
    """
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / ".lookout"
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_lookout_file(path: Path) -> dict:
    """Parse a .lookout YAML file and return its contents as a dict."""
    import yaml

    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path}: invalid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level")
    return data


def get_profile(data: dict, profile_name: str = "default") -> dict:
    """
    Extract a named profile from a .lookout or config.yaml data dict.
    Falls back to the first profile if the named one is not found.
    Returns a flat profile dict merged with top-level defaults.
    """
    defaults = data.get("defaults") or {}
    profiles = data.get("profiles") or []
    if not profiles:
        return defaults.copy()
    profile = next((p for p in profiles if p.get("name") == profile_name), None)
    if profile is None:
        profile = profiles[0]
    merged = defaults.copy()
    merged.update(profile)
    return merged


def _compile(key: str, value) -> Optional[re.Pattern]:
    if value is None or value == "":
        return None
    try:
        return re.compile(str(value))
    except re.error as exc:
        raise ConfigError(f"{key}: invalid regular expression {value!r}: {exc}") from exc


def _number(key: str, value, kind=int):
    try:
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key}: expected a number, got {value!r}") from exc


def _encoding(value) -> str:
    name = str(value or "utf-8")
    try:
        codecs.lookup(name)
    except LookupError as exc:
        raise ConfigError(f"encoding: unknown codec {name!r}") from exc
    return name


# ══════════════════════════════════════════════════════════════════════════════
#  APPLY PROFILE  ── mutates module-level variables
# ══════════════════════════════════════════════════════════════════════════════

def apply_profile(profile: dict, base_dir: Optional[Path] = None):
    """
    Apply a profile dict to the module-level config variables.
    Supports keys: server, user, password, ssh_key, timeout, encoding, root_path,
                   file_mask, ignore_folders, long_sleep, short_sleep,
                   snapshot_file, log_file, display_width, smtp_server,
                   smtp_port, smtp_user, smtp_password, smtp_starttls,
                   mail_from, mail_to, mail_subject.
    *base_dir* anchors relative snapshot_file / log_file paths.
    """
    global SERVER, USER, PASSWORD, SSH_KEY_PATH, TIMEOUT, ENCODING, ROOT_PATH
    global FILE_MASK, IGNORE_FOLDERS, LONG_SLEEP, SHORT_SLEEP
    global BASE_DIR, SNAPSHOT_FILE, LOG_FILE, DISPLAY_WIDTH
    global SMTP_SERVER, SMTP_PORT, SMTP_USER, SMTP_PASSWORD, SMTP_STARTTLS
    global MAIL_FROM, MAIL_TO, MAIL_SUBJECT

    if base_dir is not None:
        BASE_DIR = Path(base_dir)

    if "server" in profile:
        SERVER = str(profile["server"])
    if "user" in profile:
        USER = str(profile["user"]) if profile["user"] else None
    elif "username" in profile:
        USER = str(profile["username"]) if profile["username"] else None
    if "password" in profile:
        PASSWORD = str(profile["password"]) if profile["password"] else None
    if "ssh_key" in profile:
        SSH_KEY_PATH = str(profile["ssh_key"]) if profile["ssh_key"] else None
    if "timeout" in profile:
        TIMEOUT = _number("timeout", profile["timeout"])
    if "encoding" in profile:
        ENCODING = _encoding(profile["encoding"])
    if "root_path" in profile:
        rp = str(profile["root_path"]) or "/"
        ROOT_PATH = rp if rp == "/" else rp.rstrip("/")
    if "file_mask" in profile:
        FILE_MASK = _compile("file_mask", profile["file_mask"])
    if "ignore_folders" in profile:
        IGNORE_FOLDERS = _compile("ignore_folders", profile["ignore_folders"])
    if "long_sleep" in profile:
        LONG_SLEEP = _number("long_sleep", profile["long_sleep"], float)
    if "short_sleep" in profile:
        SHORT_SLEEP = _number("short_sleep", profile["short_sleep"], float)
    if "snapshot_file" in profile:
        SNAPSHOT_FILE = str(profile["snapshot_file"])
    if "log_file" in profile:
        LOG_FILE = str(profile["log_file"]) if profile["log_file"] else None
    if "display_width" in profile:
        DISPLAY_WIDTH = _number("display_width", profile["display_width"])
    if "smtp_server" in profile:
        SMTP_SERVER = str(profile["smtp_server"]) if profile["smtp_server"] else None
    if "smtp_port" in profile:
        SMTP_PORT = _number("smtp_port", profile["smtp_port"])
    if "smtp_user" in profile:
        SMTP_USER = str(profile["smtp_user"]) if profile["smtp_user"] else None
    if "smtp_password" in profile:
        SMTP_PASSWORD = str(profile["smtp_password"]) if profile["smtp_password"] else None
    if "smtp_starttls" in profile:
        SMTP_STARTTLS = bool(profile["smtp_starttls"])
    if "mail_from" in profile:
        MAIL_FROM = str(profile["mail_from"])
    if "mail_to" in profile:
        to = profile["mail_to"] or []
        MAIL_TO = [str(to)] if isinstance(to, str) else [str(t) for t in to]
    if "mail_subject" in profile:
        MAIL_SUBJECT = str(profile["mail_subject"])
