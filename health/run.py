from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, NoReturn, Optional, Sequence

from core.errors import ToolMissingError
from core.logging_utils import AppendOnlyLog, configure_console_logging
from core.paths import ensure_log_file
from core.settings import load_settings
from core.tools import CommandRunner, require_tools, run_command

from .checks import REQUIRED_TOOLS, TITLES, CheckId, HealthConfig, HealthSection, run_check
from .errors import HealthCheckError, HealthError, HealthUsageError
from .report import HealthReportWriter, section_payload
from .selection import CheckRequest, select_checks


def tools_for(checks: Sequence[CheckId]) -> List[str]:
    names: List[str] = []
    for check in checks:
        for name in REQUIRED_TOOLS[check]:
            if name not in names:
                names.append(name)
    return names


def run_health_checks(
    checks: Sequence[CheckId],
    config: HealthConfig,
    *,
    writer: HealthReportWriter,
    logger: AppendOnlyLog,
    runner: CommandRunner = run_command,
) -> List[HealthSection]:
    """Run *checks* in order, appending each section to the report.

    The first failing check raises HealthCheckError; nothing after it runs.
    """

    for check in checks:
        try:
            section = run_check(check, config, runner)
        except HealthCheckError as exc:
            logger.error("%s", exc)
            raise
        for warning in section.warnings:
            logger.warning("%s", warning)
            print(f"WARNING: {warning}", file=sys.stderr)
        writer.append(section)
        logger.info("%s check complete", TITLES[check])
    return writer.sections


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(HealthUsageError.exit_code, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog="syshealth", description="Write a system health report with threshold warnings.")
    parser.add_argument("-a", dest="all", action="store_true", help="Run every check")
    parser.add_argument("-c", "-m", dest="memory", action="store_true", help="Memory check (includes top processes)")
    parser.add_argument("--cpu", dest="cpu", action="store_true", help="CPU check (includes top processes)")
    parser.add_argument("-d", dest="disk", action="store_true", help="Disk usage check")
    parser.add_argument("-r", dest="services", action="store_true", help="Running services count")
    parser.add_argument("-u", dest="last_update", action="store_true", help="Last package update time")
    parser.add_argument("-l", dest="log_path", type=Path, default=None, help="Log file")
    parser.add_argument("--report-dir", type=Path, default=None, help="Directory for the report file")
    parser.add_argument("--settings", type=Path, default=None, help="Settings file override")
    parser.add_argument("--json", action="store_true", help="Print the sections as JSON")
    return parser


def cli(argv: Optional[list[str]] = None, *, runner: CommandRunner = run_command) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    request = CheckRequest(
        all=args.all,
        cpu=args.cpu,
        memory=args.memory,
        disk=args.disk,
        services=args.services,
        last_update=args.last_update,
    )
    try:
        checks = select_checks(request)
    except HealthUsageError as exc:
        parser.print_usage(sys.stderr)
        print(f"{parser.prog}: error: {exc}", file=sys.stderr)
        return exc.exit_code

    configure_console_logging("admintools")
    config = HealthConfig.from_settings(load_settings(args.settings))
    if args.log_path is not None:
        config.log_path = args.log_path
    if args.report_dir is not None:
        config.report_dir = args.report_dir

    try:
        if config.log_path is not None and not ensure_log_file(config.log_path):
            raise HealthUsageError(f"Log file is not writable: {config.log_path}")
        logger = AppendOnlyLog(config.log_path, logger_name="admintools.health")
        try:
            require_tools(tools_for(checks))
        except ToolMissingError as exc:
            logger.error("%s", exc)
            raise HealthUsageError(str(exc)) from exc
        writer = HealthReportWriter(config.report_dir)
        try:
            writer.start()
        except OSError as exc:
            raise HealthUsageError(f"Cannot write report in {config.report_dir}: {exc}") from exc
        logger.info("Health report started: %s (%s)", writer.path, ", ".join(check.value for check in checks))
        sections = run_health_checks(checks, config, writer=writer, logger=logger, runner=runner)
    except HealthError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return exc.exit_code

    logger.info("Health report written to %s", writer.path)
    if args.json:
        print(json.dumps({"report": str(writer.path), "sections": [section_payload(s) for s in sections]}, indent=2))
    else:
        print(writer.read(), end="")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(cli())
