"""Parallel directory backups with optional compression and encryption."""
from __future__ import annotations

from .api import BackupOrchestrator, format_summary
from .errors import BackupError, BackupTaskError, BackupValidationError, UnsupportedCompressionError
from .types import BackupOutcome, BackupRequest, BackupStatus, CompressionKind, RunReport, TaskResult
from .validate import build_request, validate_request

__all__ = [
    "BackupError",
    "BackupOrchestrator",
    "BackupOutcome",
    "BackupRequest",
    "BackupStatus",
    "BackupTaskError",
    "BackupValidationError",
    "CompressionKind",
    "RunReport",
    "TaskResult",
    "UnsupportedCompressionError",
    "build_request",
    "format_summary",
    "validate_request",
]
