"""Configuration building and pre-run validation for backup runs."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from core.errors import ToolMissingError
from core.paths import ensure_log_file, ensure_writable_dir, expand_path
from core.tools import probe_tool, require_tools

from .credentials import CredentialProvider, PromptCredentialProvider
from .errors import BackupValidationError, UnsupportedCompressionError
from .logs import BackupLogger
from .types import BackupRequest, CompressionKind


def _describe_validation_error(exc: ValidationError) -> str:
    messages: List[str] = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error.get("loc", ()))
        msg = str(error.get("msg", "invalid value"))
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, ") :]
        messages.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(messages)


def build_request(
    directories: Sequence[str | os.PathLike[str]],
    *,
    settings: Optional[Dict[str, Any]] = None,
    output_dir: Optional[str | os.PathLike[str]] = None,
    compression: Optional[str] = None,
    encrypt: bool = False,
    key: Optional[str] = None,
    remove_after: bool = False,
    copy_only: bool = False,
    max_jobs: Optional[int] = None,
    log_path: Optional[str | os.PathLike[str]] = None,
) -> BackupRequest:
    """Layer explicit options over the ``backup`` settings block and validate the result.

    A compression kind taken from the settings file only applies to archive
    runs; in copy-only mode only an explicitly requested compression is an
    error.
    """

    section: Dict[str, Any] = dict((settings or {}).get("backup") or {})
    output = output_dir if output_dir is not None else section.get("output_dir")
    if not output:
        raise BackupValidationError("An output directory is required (-o)")
    if compression is None and not copy_only:
        compression = section.get("compression")
    if compression is not None and str(compression) not in {kind.value for kind in CompressionKind}:
        raise UnsupportedCompressionError(f"Unsupported compression type: {compression}")
    jobs = max_jobs if max_jobs is not None else section.get("max_jobs")
    if jobs is None:
        jobs = os.cpu_count() or 1
    log_value = log_path if log_path is not None else section.get("log_path") or "/var/log/backup.log"

    payload: Dict[str, Any] = {
        "directories": [expand_path(item) for item in directories],
        "output_dir": expand_path(output),
        "compression": compression,
        "encrypt": encrypt or bool(key),
        "key": key,
        "remove_after": remove_after,
        "copy_only": copy_only,
        "max_jobs": jobs,
        "log_path": expand_path(log_value),
    }
    try:
        return BackupRequest(**payload)
    except ValidationError as exc:
        raise BackupValidationError(_describe_validation_error(exc)) from exc


def required_tools(request: BackupRequest) -> List[str]:
    tools = ["du"]
    if not request.copy_only:
        tools.append("tar")
    if request.encrypt:
        tools.append("gpg")
    return tools


def validate_request(
    request: BackupRequest,
    *,
    credentials: Optional[CredentialProvider] = None,
    cpu_count: Optional[int] = None,
    logger: Optional[BackupLogger] = None,
) -> BackupRequest:
    """Check every prerequisite of *request*; return it with the passphrase filled in."""

    if not ensure_writable_dir(request.output_dir):
        raise BackupValidationError(f"Output directory is not writable: {request.output_dir}")

    if not ensure_log_file(request.log_path):
        raise BackupValidationError(f"Log file is not writable: {request.log_path}")

    try:
        require_tools(required_tools(request))
    except ToolMissingError as exc:
        raise BackupValidationError(str(exc)) from exc
    if logger is not None:
        for name in required_tools(request):
            info = probe_tool(name)
            logger.info("Using %s at %s (%s)", name, info["path"], info["version"] or "unknown version")

    if request.encrypt and not request.passphrase():
        provider = credentials or PromptCredentialProvider()
        value = provider.passphrase()
        if not value:
            raise BackupValidationError("Encryption requested but no passphrase was provided")
        request = request.with_key(value)

    for directory in request.directories:
        if not directory.is_dir():
            raise BackupValidationError(f"Directory not found: {directory}")

    names: Dict[str, Path] = {}
    for directory in request.directories:
        name = directory.resolve().name
        if not name:
            raise BackupValidationError(f"Cannot derive an artifact name from {directory}")
        if name in names:
            raise BackupValidationError(
                f"Directories {names[name]} and {directory} would produce the same artifact name"
            )
        names[name] = directory

    available = cpu_count if cpu_count is not None else (os.cpu_count() or 1)
    if request.max_jobs > available:
        raise BackupValidationError(
            f"Concurrency {request.max_jobs} exceeds the {available} available processor(s)"
        )
    return request


__all__ = ["build_request", "required_tools", "validate_request"]
