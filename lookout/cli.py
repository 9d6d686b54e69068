#!/usr/bin/env python3
"""
lookout  —  Report new, changed and deleted files on a remote FTP/SFTP drop
===========================================================================

Subcommands:
  init      Create a .lookout config file in the current directory.
  watch     Poll the remote tree using the nearest .lookout config.
  status    Show the tracked files recorded in the snapshot file.

Run 'lookout <subcommand> --help' for more details.
"""
import sys
import argparse
from pathlib import Path


def _load_profile(args) -> dict:
    """Find the nearest .lookout, apply the requested profile and return it."""
    import lookout.config as _cfg
    from lookout.errors import ConfigError

    lookout_path = _cfg.find_lookout()
    if lookout_path is None:
        print("error: no .lookout file found in this directory or any parent.", file=sys.stderr)
        print("Run 'lookout init' to create one.", file=sys.stderr)
        sys.exit(1)

    if args.verbose:
        print(f"[config] Using {lookout_path}")

    try:
        data = _cfg.load_lookout_file(lookout_path)
        # Global defaults sit under the project's own defaults
        defaults = dict(_cfg.load_global_config().get("defaults") or {})
        defaults.update(data.get("defaults") or {})
        data["defaults"] = defaults
        profile = _cfg.get_profile(data, args.profile or "default")
        _cfg.apply_profile(profile, base_dir=lookout_path.parent)
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(1)
    return profile


# ── init ─────────────────────────────────────────────────────────────────────

def cmd_init(args):
    """Create a .lookout profile file in the current directory."""
    from lookout import config as _cfg

    target = Path.cwd() / ".lookout"

    if target.exists() and not args.force:
        print(f"error: .lookout already exists in {Path.cwd()}", file=sys.stderr)
        print("Use --force to overwrite.", file=sys.stderr)
        sys.exit(1)

    g_defaults = _cfg.load_global_config().get("defaults", {})

    server = args.server or g_defaults.get("server", _cfg.SERVER)
    if not args.server and sys.stdin.isatty():
        val = input(f"Server URL (ftp://host or sftp://host) [{server}]: ").strip()
        if val:
            server = val

    user = args.user or g_defaults.get("user", "anonymous")
    if not args.user and sys.stdin.isatty():
        val = input(f"User [{user}]: ").strip()
        if val:
            user = val

    root = args.root or g_defaults.get("root_path", _cfg.ROOT_PATH)
    file_mask = args.file_mask or g_defaults.get("file_mask", _cfg.FILE_MASK.pattern)
    ignore_folders = args.ignore_folders or g_defaults.get("ignore_folders", "")
    profile_name = args.profile or "default"

    def _yq(value: str) -> str:
        """Wrap a string in YAML single quotes, escaping embedded single quotes."""
        return "'" + str(value).replace("'", "''") + "'"

    lines = [
        "# .lookout — lookout project configuration",
        "#",
        "# profiles: list of watch profiles for this project.",
        "# file_mask and ignore_folders are regular expressions; ignore_folders",
        "# is matched against the full remote path of each folder.",
        "profiles:",
        f"  - name: {profile_name}",
        f"    server: {_yq(server)}",
        f"    user: {_yq(user)}",
        "    password: ''",
        f"    root_path: {_yq(root)}",
        f"    file_mask: {_yq(file_mask)}",
        f"    ignore_folders: {_yq(ignore_folders)}",
        f"    long_sleep: {int(_cfg.LONG_SLEEP)}",
        f"    short_sleep: {int(_cfg.SHORT_SLEEP)}",
        f"    snapshot_file: {_yq(_cfg.SNAPSHOT_FILE)}",
        f"    log_file: {_yq(_cfg.LOG_FILE or '')}",
        "    # smtp_server: 'smtp.example.com'",
        "    # smtp_port: 587",
        "    # smtp_starttls: true",
        "    # mail_from: 'lookout@example.com'",
        "    # mail_to: ['ops@example.com']",
    ]
    content = "\n".join(lines) + "\n"

    if args.dry_run:
        print(f"[dry-run] Would write {target}:")
        print(content)
        return

    target.write_text(content, encoding="utf-8")
    print(f"Created {target}")
    if args.verbose:
        print(content)


# ── watch ────────────────────────────────────────────────────────────────────

def cmd_watch(args):
    """Run the polling loop using the nearest .lookout config file."""
    import lookout.config as _cfg
    from lookout.core.remote import parse_server
    from lookout.core.watch_engine import watch
    from lookout.errors import ConfigError, SnapshotWriteError
    from lookout.state.snapshot import load_snapshot
    from lookout.utils.logging import error, log, set_log_file, set_verbose

    _load_profile(args)
    set_verbose(args.verbose)
    try:
        parse_server(_cfg.SERVER)
    except ConfigError as exc:
        error(str(exc))
        sys.exit(1)
    set_log_file(_cfg.get_log_file())

    print(f"\n{'=' * 64}")
    print(f"  Watch  {_cfg.SERVER}  {_cfg.ROOT_PATH}")
    print(f"  List   {_cfg.get_snapshot_file()}")
    print(f"{'=' * 64}\n")

    snapshot = load_snapshot(_cfg.get_snapshot_file())
    try:
        result = watch(snapshot, once=args.once)
    except (ConfigError, SnapshotWriteError) as exc:
        error(str(exc))
        sys.exit(1)
    except KeyboardInterrupt:
        print()
        log("Interrupted by user.")
        return
    if not result.ok:
        sys.exit(2)


# ── status ───────────────────────────────────────────────────────────────────

def cmd_status(args):
    """Show the profile and the files tracked in the snapshot file."""
    import lookout.config as _cfg
    from lookout.state.snapshot import load_snapshot

    profile = _load_profile(args)
    snapshot_file = _cfg.get_snapshot_file()

    print(f"\nProfile : {profile.get('name', 'default')}")
    print(f"Remote  : {_cfg.SERVER}")
    print(f"Root    : {_cfg.ROOT_PATH}")
    print(f"List    : {snapshot_file}")

    if not snapshot_file.exists():
        print("Tracked : 0 file(s) (no snapshot yet)")
        return

    snapshot = load_snapshot(snapshot_file)
    print(f"Tracked : {len(snapshot)} file(s)")
    if args.verbose:
        for path in sorted(snapshot):
            entry = snapshot[path]
            print(f"  {path}  {entry.size}  {entry.modified_at.isoformat()}")


# ── main ─────────────────────────────────────────────────────────────────────

def main():
    """CLI entry point for lookout"""
    parser = argparse.ArgumentParser(
        prog="lookout",
        description="Report new, changed and deleted files on a remote FTP/SFTP drop",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # ── init ──────────────────────────────────────────────────────────────────
    init_p = subparsers.add_parser(
        "init",
        help="Create a .lookout config file in the current directory",
        description="Create a .lookout YAML config file for this project.",
    )
    init_p.add_argument("--server", metavar="URL",
                        help="ftp://host[:port] or sftp://host[:port]")
    init_p.add_argument("--user", metavar="NAME",
                        help="Login name (default: anonymous)")
    init_p.add_argument("--root", metavar="PATH",
                        help="Remote folder to watch (default: /)")
    init_p.add_argument("--file-mask", metavar="REGEX",
                        help="Only track files whose name matches")
    init_p.add_argument("--ignore-folders", metavar="REGEX",
                        help="Skip folders whose full path matches")
    init_p.add_argument("--profile", metavar="NAME", default="default",
                        help="Profile name to create (default: default)")
    init_p.add_argument("--force", action="store_true",
                        help="Overwrite existing .lookout")
    init_p.add_argument("-n", "--dry-run", action="store_true",
                        help="Preview without writing files")
    init_p.add_argument("-v", "--verbose", action="store_true",
                        help="Show extra output")

    # ── watch ─────────────────────────────────────────────────────────────────
    watch_p = subparsers.add_parser(
        "watch",
        help="Poll the remote tree and report changes",
        description="Poll the remote tree using settings from .lookout.",
    )
    watch_p.add_argument("--profile", metavar="NAME", default="default",
                         help="Profile to use (default: default)")
    watch_p.add_argument("--once", action="store_true",
                         help="Run a single cycle and exit")
    watch_p.add_argument("-v", "--verbose", action="store_true",
                         help="Show every folder walked")

    # ── status ────────────────────────────────────────────────────────────────
    status_p = subparsers.add_parser(
        "status",
        help="Show tracked files",
        description="Show the snapshot for the nearest .lookout config.",
    )
    status_p.add_argument("--profile", metavar="NAME", default="default",
                          help="Profile to use (default: default)")
    status_p.add_argument("-v", "--verbose", action="store_true",
                          help="List every tracked file")

    args = parser.parse_args()

    if args.command == "init":
        cmd_init(args)
    elif args.command == "watch":
        cmd_watch(args)
    elif args.command == "status":
        cmd_status(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
