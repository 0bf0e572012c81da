"""Error hierarchy for backup operations."""
from __future__ import annotations


class BackupError(RuntimeError):
    """Base exception for backup related failures."""


class BackupValidationError(BackupError):
    """Raised when a run cannot start because its configuration or prerequisites are invalid."""


class UnsupportedCompressionError(BackupValidationError):
    """Raised for compression kinds other than gz, bz2 and xz."""


class BackupTaskError(BackupError):
    """Raised inside a task when a copy, archive or encryption step fails."""


__all__ = [
    "BackupError",
    "BackupTaskError",
    "BackupValidationError",
    "UnsupportedCompressionError",
]
