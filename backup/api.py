"""Public API for backup runs."""
from __future__ import annotations

import shutil
import sys
from pathlib import Path
from typing import Dict, List, Optional

from core.errors import CommandError, ToolMissingError
from core.logging_utils import ErrorCollector
from core.paths import create_run_dir
from core.tools import CommandRunner, human_size, run_command

from .credentials import CredentialProvider
from .logs import BackupLogger
from .scheduler import BoundedScheduler
from .task import BackupTask, expected_artifact
from .types import BackupOutcome, BackupRequest, BackupStatus, RunContext, RunReport, TaskResult
from .validate import validate_request


def _echo_error(line: str) -> None:
    print(f"ERROR: {line}", file=sys.stderr)


class BackupOrchestrator:
    """Validate a request, run one task per directory and report the batch.

    Task failures never stop sibling tasks. Once every task has finished the
    artifacts are re-checked on disk; if anything failed the whole run
    directory is discarded.
    """

    def __init__(
        self,
        request: BackupRequest,
        *,
        credentials: Optional[CredentialProvider] = None,
        cpu_count: Optional[int] = None,
        runner: CommandRunner = run_command,
    ) -> None:
        self._request = request
        self._credentials = credentials
        self._cpu_count = cpu_count
        self._runner = runner
        self._logger = BackupLogger(request.log_path)

    # ------------------------------------------------------------------
    @property
    def request(self) -> BackupRequest:
        return self._request

    # ------------------------------------------------------------------
    def run(self) -> RunReport:
        """Run the batch. Raises BackupValidationError before any work if prerequisites fail."""

        request = validate_request(
            self._request,
            credentials=self._credentials,
            cpu_count=self._cpu_count,
            logger=self._logger,
        )
        self._request = request

        run_dir = create_run_dir(request.output_dir)
        context = RunContext(run_dir=run_dir, errors=ErrorCollector(), log=self._logger)
        self._logger.info(
            "Backup run started: %d director%s into %s (jobs=%d, mode=%s)",
            len(request.directories),
            "y" if len(request.directories) == 1 else "ies",
            run_dir,
            request.max_jobs,
            "copy" if request.copy_only else request.resolved_compression.value,
        )

        def _record(directory: Path, result: TaskResult) -> None:
            if not result.ok:
                line = f"{directory}: {result.error}"
                context.errors.add(line)
                _echo_error(line)

        task = BackupTask(request, run_dir, logger=self._logger, runner=self._runner)
        scheduler: BoundedScheduler[Path, TaskResult] = BoundedScheduler(request.max_jobs, on_complete=_record)
        results = scheduler.run(request.directories, task)

        outcomes = self._verify(context, results)
        errors = context.errors.lines()
        discarded = False
        removed: List[Path] = []
        if errors:
            print("Errors:", file=sys.stderr)
            for line in errors:
                print(f"  {line}", file=sys.stderr)
            discarded = self._discard(run_dir)
        elif request.remove_after:
            removed = self._remove_sources(request.directories)

        report = RunReport(
            run_dir=run_dir,
            outcomes=outcomes,
            errors=errors,
            discarded=discarded,
            removed_sources=removed,
            max_in_flight=scheduler.peak,
        )
        self._logger.info(
            "Backup run finished: %d ok, %d failed%s",
            sum(1 for outcome in outcomes if outcome.status is BackupStatus.SUCCESS),
            sum(1 for outcome in outcomes if outcome.status is BackupStatus.FAILED),
            ", output discarded" if discarded else "",
        )
        return report

    # ------------------------------------------------------------------
    def _verify(self, context: RunContext, results: List[TaskResult]) -> List[BackupOutcome]:
        by_dir: Dict[Path, TaskResult] = {result.directory: result for result in results}
        outcomes: List[BackupOutcome] = []
        for directory in self._request.directories:
            artifact = expected_artifact(directory, context.run_dir, self._request)
            result = by_dir.get(directory)
            if not artifact.exists():
                if result is not None and result.ok:
                    line = f"{directory}: task reported success but {artifact.name} is missing"
                    context.errors.add(line)
                    _echo_error(line)
                error = result.error if result is not None and result.error else "artifact missing"
                outcomes.append(
                    BackupOutcome(directory=directory, artifact=artifact, status=BackupStatus.FAILED, error=error)
                )
                continue
            try:
                size: Optional[str] = human_size(artifact, runner=self._runner)
            except (CommandError, ToolMissingError) as exc:
                self._logger.warning("Unable to measure %s: %s", artifact, exc)
                size = None
            outcomes.append(
                BackupOutcome(directory=directory, artifact=artifact, status=BackupStatus.SUCCESS, size=size)
            )
        return outcomes

    def _discard(self, run_dir: Path) -> bool:
        try:
            shutil.rmtree(run_dir)
        except OSError as exc:
            self._logger.error("Failed to remove run directory %s: %s", run_dir, exc)
            return False
        self._logger.warning("Discarded run directory %s because errors occurred", run_dir)
        return True

    def _remove_sources(self, directories: List[Path]) -> List[Path]:
        removed: List[Path] = []
        for directory in directories:
            try:
                shutil.rmtree(directory)
            except OSError as exc:
                self._logger.error("Failed to remove source %s: %s", directory, exc)
                continue
            self._logger.info("Removed source %s", directory)
            removed.append(directory)
        return removed


def format_summary(report: RunReport) -> str:
    lines = [f"Backup summary ({report.run_dir}):"]
    for outcome in report.outcomes:
        if outcome.status is BackupStatus.SUCCESS:
            lines.append(f" - {outcome.directory}: Success {outcome.size or '?'}")
        else:
            lines.append(f" - {outcome.directory}: Failed")
    if report.discarded:
        lines.append(f"Run directory {report.run_dir} removed because {len(report.errors)} error(s) occurred.")
    for directory in report.removed_sources:
        lines.append(f"Removed source {directory}")
    return "\n".join(lines)


def report_payload(report: RunReport) -> Dict[str, object]:
    return {
        "run_dir": str(report.run_dir),
        "ok": report.ok,
        "discarded": report.discarded,
        "max_in_flight": report.max_in_flight,
        "outcomes": [
            {
                "directory": str(outcome.directory),
                "artifact": str(outcome.artifact),
                "status": outcome.status.value,
                "size": outcome.size,
                "error": outcome.error,
            }
            for outcome in report.outcomes
        ],
        "errors": list(report.errors),
        "removed_sources": [str(path) for path in report.removed_sources],
    }


__all__ = ["BackupOrchestrator", "format_summary", "report_payload"]
