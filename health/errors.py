"""Errors raised by the health reporter."""
from __future__ import annotations


class HealthError(RuntimeError):
    """Base exception for health reporting failures."""

    exit_code = 1


class HealthUsageError(HealthError):
    """Raised when no check was requested or the environment is unusable."""


class HealthCheckError(HealthError):
    """Raised when a requested check cannot collect its metric."""

    def __init__(self, check: str, exit_code: int, reason: str) -> None:
        self.check = check
        self.exit_code = exit_code
        self.reason = reason
        super().__init__(f"{check} check failed: {reason}")


__all__ = ["HealthCheckError", "HealthError", "HealthUsageError"]
