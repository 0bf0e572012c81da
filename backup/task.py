"""Back up a single directory into the run directory."""
from __future__ import annotations

import shutil
import time
from pathlib import Path
from typing import Optional

from core.errors import CommandError, ToolMissingError
from core.tools import CommandRunner, human_size, run_command

from .errors import BackupTaskError, UnsupportedCompressionError
from .logs import BackupLogger
from .types import ENCRYPTED_SUFFIX, BackupRequest, CompressionKind, TaskResult

_EXTENSIONS = {
    CompressionKind.GZ: "tar.gz",
    CompressionKind.BZ2: "tar.bz2",
    CompressionKind.XZ: "tar.xz",
}

_TAR_FLAGS = {
    CompressionKind.GZ: "-czf",
    CompressionKind.BZ2: "-cjf",
    CompressionKind.XZ: "-cJf",
}


def _kind(value: CompressionKind | str) -> CompressionKind:
    try:
        return CompressionKind(value)
    except ValueError as exc:
        raise UnsupportedCompressionError(f"Unsupported compression type: {value}") from exc


def archive_extension(kind: CompressionKind | str) -> str:
    resolved = _kind(kind)
    if resolved not in _EXTENSIONS:
        raise UnsupportedCompressionError(f"Unsupported compression type: {resolved.value}")
    return _EXTENSIONS[resolved]


def artifact_name(directory: Path) -> str:
    return directory.resolve().name


def expected_artifact(directory: Path, run_dir: Path, request: BackupRequest) -> Path:
    """Path the task for *directory* is supposed to leave behind."""

    name = artifact_name(directory)
    if request.copy_only:
        return run_dir / name
    archive = run_dir / f"{name}.{archive_extension(request.resolved_compression)}"
    if request.encrypt:
        return archive.with_name(archive.name + ENCRYPTED_SUFFIX)
    return archive


class BackupTask:
    """Copy, or archive and optionally encrypt, one source directory."""

    def __init__(
        self,
        request: BackupRequest,
        run_dir: Path,
        *,
        logger: BackupLogger,
        runner: CommandRunner = run_command,
    ) -> None:
        self._request = request
        self._run_dir = run_dir
        self._logger = logger
        self._runner = runner

    # ------------------------------------------------------------------
    def __call__(self, directory: Path) -> TaskResult:
        start = time.monotonic()
        source_size: Optional[str] = None
        try:
            self._logger.event(event="task_start", directory=directory, ok=True)
            if self._request.copy_only:
                artifact = self._copy(directory)
            else:
                source_size = self._size(directory)
                self._logger.event(event="source_size", directory=directory, ok=True, size=source_size)
                artifact = self._archive(directory)
                if self._request.encrypt:
                    artifact = self._encrypt(directory, artifact)
        except (BackupTaskError, UnsupportedCompressionError, OSError) as exc:
            return self._failed(directory, str(exc), source_size, start)
        except Exception as exc:
            # a task never takes the run down with it
            return self._failed(directory, f"Unexpected {type(exc).__name__}: {exc}", source_size, start)
        duration = time.monotonic() - start
        self._logger.event(
            event="task_complete", directory=directory, ok=True, artifact=artifact, seconds=f"{duration:.1f}"
        )
        return TaskResult(
            directory=directory,
            artifact=artifact,
            ok=True,
            source_size=source_size,
            duration_s=duration,
        )

    # ------------------------------------------------------------------
    def _failed(self, directory: Path, error: str, source_size: Optional[str], start: float) -> TaskResult:
        self._logger.event(event="task_failed", directory=directory, ok=False, error=error)
        return TaskResult(
            directory=directory,
            artifact=None,
            ok=False,
            error=error,
            source_size=source_size,
            duration_s=time.monotonic() - start,
        )

    def _size(self, path: Path) -> str:
        try:
            return human_size(path, runner=self._runner)
        except (CommandError, ToolMissingError) as exc:
            raise BackupTaskError(f"Unable to measure {path}: {exc}") from exc

    def _copy(self, directory: Path) -> Path:
        target = self._run_dir / artifact_name(directory)
        try:
            shutil.copytree(directory, target, symlinks=True)
        except (OSError, shutil.Error) as exc:
            raise BackupTaskError(f"Copy of {directory} failed: {exc}") from exc
        self._logger.event(event="copy_complete", directory=directory, ok=True, dest=target)
        return target

    def _archive(self, directory: Path) -> Path:
        kind = self._request.resolved_compression
        name = artifact_name(directory)
        archive = self._run_dir / f"{name}.{archive_extension(kind)}"
        source = directory.resolve()
        argv = ["tar", _TAR_FLAGS[kind], str(archive), "-C", str(source.parent), source.name]
        try:
            self._runner(argv)
        except (CommandError, ToolMissingError) as exc:
            archive.unlink(missing_ok=True)
            raise BackupTaskError(f"Compression of {directory} failed: {exc}") from exc
        size = self._size(archive)
        self._logger.event(event="archive_complete", directory=directory, ok=True, dest=archive, size=size)
        return archive

    def _encrypt(self, directory: Path, archive: Path) -> Path:
        target = archive.with_name(archive.name + ENCRYPTED_SUFFIX)
        argv = [
            "gpg",
            "--batch",
            "--yes",
            "--pinentry-mode",
            "loopback",
            "--passphrase-fd",
            "0",
            "--symmetric",
            "--output",
            str(target),
            str(archive),
        ]
        try:
            self._runner(argv, input=(self._request.passphrase() or "") + "\n")
        except (CommandError, ToolMissingError) as exc:
            target.unlink(missing_ok=True)
            raise BackupTaskError(f"Encryption of {archive.name} failed: {exc}") from exc
        if not target.exists():
            raise BackupTaskError(f"Encryption of {archive.name} produced no output")
        try:
            archive.unlink()
        except OSError as exc:
            raise BackupTaskError(f"Unable to remove plaintext archive {archive}: {exc}") from exc
        self._logger.event(event="encrypt_complete", directory=directory, ok=True, dest=target)
        return target


__all__ = ["BackupTask", "archive_extension", "artifact_name", "expected_artifact"]
