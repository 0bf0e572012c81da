"""Common dataclasses and models shared across backup modules."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, model_validator

from core.logging_utils import AppendOnlyLog, ErrorCollector

ENCRYPTED_SUFFIX = ".gpg"


class CompressionKind(str, Enum):
    NONE = "none"
    GZ = "gz"
    BZ2 = "bz2"
    XZ = "xz"


class BackupStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class BackupRequest(BaseModel):
    """Validated configuration for one backup run."""

    model_config = ConfigDict(frozen=True)

    directories: List[Path] = Field(..., min_length=1, description="Directories to back up, in order.")
    output_dir: Path = Field(..., description="Root directory receiving the timestamped run directory.")
    compression: Optional[CompressionKind] = Field(
        None, description="Archive compression; None means not specified."
    )
    encrypt: bool = Field(False, description="Encrypt each archive symmetrically.")
    key: Optional[SecretStr] = Field(None, description="Passphrase used when encrypting.")
    remove_after: bool = Field(False, description="Delete each source once the run is kept.")
    copy_only: bool = Field(False, description="Copy directories instead of archiving them.")
    max_jobs: int = Field(1, ge=1, description="Upper bound on concurrently running tasks.")
    log_path: Path = Field(Path("/var/log/backup.log"), description="Append-only run log.")

    @model_validator(mode="after")
    def _check_modes(self) -> "BackupRequest":
        if self.copy_only:
            if self.compression not in (None, CompressionKind.NONE):
                raise ValueError("copy-only mode cannot be combined with compression")
            if self.encrypt:
                raise ValueError("encryption requires an archive and cannot be combined with copy-only mode")
        elif self.compression is CompressionKind.NONE:
            raise ValueError("compression 'none' is only valid in copy-only mode")
        return self

    @property
    def resolved_compression(self) -> CompressionKind:
        if self.copy_only:
            return CompressionKind.NONE
        return self.compression or CompressionKind.GZ

    def passphrase(self) -> Optional[str]:
        return self.key.get_secret_value() if self.key is not None else None

    def with_key(self, key: str) -> "BackupRequest":
        return self.model_copy(update={"key": SecretStr(key)})


@dataclass(slots=True, frozen=True)
class TaskResult:
    """What a single task reports back to the orchestrator."""

    directory: Path
    artifact: Optional[Path]
    ok: bool
    error: Optional[str] = None
    source_size: Optional[str] = None
    duration_s: float = 0.0


@dataclass(slots=True, frozen=True)
class BackupOutcome:
    directory: Path
    artifact: Path
    status: BackupStatus
    size: Optional[str] = None
    error: Optional[str] = None


@dataclass(slots=True)
class RunContext:
    run_dir: Path
    errors: ErrorCollector
    log: AppendOnlyLog
    started: datetime = field(default_factory=datetime.now)


@dataclass(slots=True)
class RunReport:
    run_dir: Path
    outcomes: List[BackupOutcome]
    errors: List[str]
    discarded: bool
    removed_sources: List[Path] = field(default_factory=list)
    max_in_flight: int = 0

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1


__all__ = [
    "ENCRYPTED_SUFFIX",
    "BackupOutcome",
    "BackupRequest",
    "BackupStatus",
    "CompressionKind",
    "RunContext",
    "RunReport",
    "TaskResult",
]
