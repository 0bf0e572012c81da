"""Run log for backup operations."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from core.logging_utils import AppendOnlyLog


class BackupLogger(AppendOnlyLog):
    """Timestamped backup log with a helper for per-directory events."""

    def __init__(self, path: Optional[Path]) -> None:
        super().__init__(path, logger_name="admintools.backup")

    def event(self, *, event: str, directory: Path, ok: bool, **extra: Any) -> None:
        parts = [event, str(directory)]
        parts.extend(f"{key}={value}" for key, value in extra.items() if value is not None)
        line = " ".join(parts)
        if ok:
            self.info(line)
        else:
            self.error(line)


__all__ = ["BackupLogger"]
