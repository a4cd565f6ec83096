#!/usr/bin/env python3
"""
CLI entrypoint for siv.

Usage examples:
  python -m siv init /srv/www -V /var/lib/siv/www.tsv -R /var/lib/siv/init.txt -H sha1
  python -m siv verify -V /var/lib/siv/www.tsv -R /var/lib/siv/report.txt
  python -m siv update -V /var/lib/siv/www.tsv --yes
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from .errors import SivError
from .hasher import available_digests
from .logger import append_log
from .logging_config import setup_logging
from .report import warning_lines
from .settings import build_settings
from . import verifier

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CHANGES = 1
EXIT_ERROR = 2


def _require(settings: dict, key: str, flag: str) -> str:
    value = settings.get(key)
    if not value:
        raise SivError(f"Please specify {flag} (or set '{key}' in the config file)")
    return value


def _show(text) -> str:
    """Printable form of a path; undecodable name bytes are shown escaped."""
    return str(text).encode("utf-8", "backslashreplace").decode("utf-8")


def _check_report_suffix(report: str) -> None:
    if Path(report).suffix != ".txt":
        raise SivError(f"The report file must be a .txt file: {report}")


def init_command(args: Any) -> int:
    """
    Create a snapshot based on settings (defaults <- config <- CLI).
    """
    settings = build_settings(args, args.config)

    directory = _require(settings, "directory", "a directory")
    snapshot = _require(settings, "snapshot", "-V/--snapshot")
    report = _require(settings, "report", "-R/--report")
    _check_report_suffix(report)

    print(f"Scanning directory: {_show(directory)}")
    result = verifier.initialize(
        Path(directory),
        Path(snapshot),
        Path(report),
        settings["algorithm"],
        exclude=settings["exclude"],
    )
    summary = result.summary

    append_log(Path(settings["log"]), {
        "event": "init",
        "directory": summary.directory,
        "snapshot": str(snapshot),
        "algorithm": summary.algorithm,
        "files": summary.file_count,
        "directories": summary.directory_count,
    })

    print("Initialization complete!")
    print(f"Parsed {summary.file_count} files and {summary.directory_count} directories")
    print(f"Verification file: {snapshot}")
    print(f"Report file: {report}")
    return EXIT_OK


def verify_command(args: Any) -> int:
    """
    Check current directory state against the snapshot and report changes.
    """
    settings = build_settings(args, args.config)

    snapshot = _require(settings, "snapshot", "-V/--snapshot")
    report_path = _require(settings, "report", "-R/--report")
    _check_report_suffix(report_path)

    print(f"Verifying against: {snapshot}")
    result = verifier.verify(Path(snapshot), Path(report_path), exclude=settings["exclude"])
    report = result.report

    if report.is_clean:
        print("No changes detected. Everything is clean.")
    else:
        print("\n=== Changes Detected ===")
        for line in warning_lines(report):
            print(" ", _show(line))

    event = {"event": "verify", "directory": result.baseline.directory, "snapshot": str(snapshot)}
    event.update(report.to_dict())
    append_log(Path(settings["log"]), event)

    print("\nVerification complete!")
    print(f"Report file: {report_path}")
    return EXIT_OK if report.is_clean else EXIT_CHANGES


def update_command(args: Any) -> int:
    settings = build_settings(args, args.config)
    snapshot = _require(settings, "snapshot", "-V/--snapshot")

    print(f"Scanning current directory state for: {snapshot}")
    plan = verifier.plan_update(Path(snapshot), exclude=settings["exclude"])
    report = plan.report

    if report.is_clean:
        print("No changes detected. Snapshot is up-to-date. Nothing to update.")
        return EXIT_OK

    # Show user the changes that will be applied
    print("\n=== Proposed snapshot update (these changes will be accepted) ===")
    for line in warning_lines(report):
        print(" ", _show(line))

    if not args.yes:
        try:
            ans = input("\nApply these changes to the snapshot? (y/N): ").strip().lower()
        except EOFError:
            ans = ""
        if ans not in ("y", "yes"):
            print("Update cancelled by user. Snapshot unchanged.")
            return EXIT_OK

    backup_path = verifier.apply_update(plan, backup=not args.no_backup)
    if backup_path is not None:
        print(f"Backup created: {backup_path}")
    print(f"Snapshot updated and saved to {snapshot}")

    event = {
        "event": "snapshot_update",
        "directory": plan.baseline.directory,
        "snapshot": str(snapshot),
        "backup": str(backup_path) if backup_path else None,
    }
    event.update(report.to_dict())
    append_log(Path(settings["log"]), event)
    return EXIT_OK


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("-V", "--snapshot", help="Path to the verification (snapshot) file", default=None)
    p.add_argument("--config", help="Path to YAML config file", default=None)
    p.add_argument("--log", help="Path to JSONL audit log file", default=None)
    p.add_argument(
        "--exclude",
        nargs="*",
        action="append",
        help="Exclude patterns (can be passed multiple times)",
        default=None,
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")
    p.add_argument("--log-file", help="Write diagnostic logs to this file", default=None)


def build_cli() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="siv",
        description="Simple Integrity Verifier",
        epilog=(
            "The verification file and the report file have to be outside the "
            "monitored directory; the report file has to be a .txt file."
        ),
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_init = sub.add_parser("init", help="Snapshot a directory (initialization mode)")
    p_init.add_argument("directory", nargs="?", help="Directory to monitor", default=None)
    p_init.add_argument("-R", "--report", help="Path to the report .txt file", default=None)
    p_init.add_argument(
        "-H",
        "--hash",
        dest="algorithm",
        help=f"Hash function ({', '.join(available_digests())})",
        default=None,
    )
    _add_common(p_init)

    p_verify = sub.add_parser("verify", help="Compare a directory with its snapshot (verification mode)")
    p_verify.add_argument("-R", "--report", help="Path to the report .txt file", default=None)
    _add_common(p_verify)

    p_update = sub.add_parser("update", help="Accept current state into the snapshot after review")
    p_update.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    p_update.add_argument("--no-backup", action="store_true", help="Do not keep a copy of the old snapshot")
    _add_common(p_update)

    return parser


_COMMANDS = {
    "init": init_command,
    "verify": verify_command,
    "update": update_command,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_cli()
    args = parser.parse_args(argv)
    setup_logging(verbose=args.verbose, log_path=args.log_file)

    try:
        return _COMMANDS[args.command](args)
    except SivError as e:
        logger.debug("%s failed", args.command, exc_info=True)
        print(f"ERROR: {_show(e)}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
