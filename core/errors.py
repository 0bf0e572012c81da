"""Errors raised by the shared tooling layer."""
from __future__ import annotations

from typing import Optional, Sequence


class ToolMissingError(RuntimeError):
    """Raised when a required external command cannot be located."""

    def __init__(self, tools: Sequence[str]) -> None:
        self.tools = tuple(tools)
        super().__init__("Required tool(s) not found: " + ", ".join(self.tools))


class CommandError(RuntimeError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(self, argv: Sequence[str], returncode: int, stderr: Optional[str] = None) -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = (stderr or "").strip()
        message = f"{self.argv[0]} exited with status {returncode}"
        if self.stderr:
            message += f": {self.stderr.splitlines()[-1]}"
        super().__init__(message)


__all__ = ["CommandError", "ToolMissingError"]
