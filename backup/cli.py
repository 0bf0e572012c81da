"""Command line entry point for parallel directory backups."""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, NoReturn, Optional

from core.logging_utils import configure_console_logging
from core.settings import load_settings

from .api import BackupOrchestrator, format_summary, report_payload
from .credentials import StaticCredentialProvider
from .errors import BackupError
from .validate import build_request

USAGE_EXIT = 1


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(USAGE_EXIT, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="parallel-backup",
        description="Back up directories in parallel, optionally compressed and encrypted.",
        add_help=False,
    )
    parser.add_argument("directories", nargs="*", help="Directories to back up")
    parser.add_argument("-o", dest="output_dir", metavar="DIR", help="Output root directory")
    parser.add_argument("-z", dest="compression", metavar="TYPE", help="Compression: gz, bz2 or xz")
    parser.add_argument("-e", dest="encrypt", action="store_true", help="Encrypt archives (prompts for a key)")
    parser.add_argument("-k", dest="key", metavar="KEY", help="Encryption passphrase")
    parser.add_argument("-r", dest="remove_after", action="store_true", help="Remove sources after backup")
    parser.add_argument("-c", dest="copy_only", action="store_true", help="Copy directories without archiving")
    parser.add_argument("-p", dest="max_jobs", type=int, metavar="CORES", help="Maximum parallel tasks")
    parser.add_argument("-l", dest="log_path", metavar="LOGFILE", help="Log file")
    parser.add_argument("-h", dest="show_help", action="store_true", help="Show this help and exit")
    parser.add_argument("--settings", type=Path, default=None, help="Settings file override")
    parser.add_argument("--json", action="store_true", help="Print the summary as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose console logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.show_help:
        parser.print_help(sys.stderr)
        return USAGE_EXIT
    if not args.directories:
        parser.print_usage(sys.stderr)
        print(f"{parser.prog}: error: at least one directory is required", file=sys.stderr)
        return USAGE_EXIT

    configure_console_logging("admintools", verbose=args.verbose)
    settings = load_settings(args.settings)
    try:
        request = build_request(
            args.directories,
            settings=settings,
            output_dir=args.output_dir,
            compression=args.compression,
            encrypt=args.encrypt,
            key=args.key,
            remove_after=args.remove_after,
            copy_only=args.copy_only,
            max_jobs=args.max_jobs,
            log_path=args.log_path,
        )
        credentials = StaticCredentialProvider(args.key) if args.key else None
        report = BackupOrchestrator(request, credentials=credentials).run()
    except BackupError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(report_payload(report), indent=2))
    else:
        print(format_summary(report))
    return report.exit_code


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
