from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import List, Optional

_LINE_FORMAT = "[%s] %s %s"
_TS_FORMAT = "%Y-%m-%d %H:%M:%S"


class AppendOnlyLog:
    """Append timestamped lines to a log file, one whole line per write.

    Safe to share between worker threads. Every line is mirrored to the
    stdlib logger named *logger_name*.
    """

    def __init__(self, path: Optional[Path], *, logger_name: str = "admintools") -> None:
        self._path = Path(path) if path is not None else None
        self._lock = Lock()
        self._logger = logging.getLogger(logger_name)

    @property
    def path(self) -> Optional[Path]:
        return self._path

    # ------------------------------------------------------------------
    def _write(self, level: int, message: str) -> None:
        line = _LINE_FORMAT % (datetime.now().strftime(_TS_FORMAT), logging.getLevelName(level), message)
        if self._path is not None:
            with self._lock:
                with self._path.open("a", encoding="utf-8", errors="backslashreplace") as handle:
                    handle.write(line + "\n")
        self._logger.log(level, "%s", message)

    def info(self, message: str, *args: object) -> None:
        self._write(logging.INFO, message % args if args else message)

    def warning(self, message: str, *args: object) -> None:
        self._write(logging.WARNING, message % args if args else message)

    def error(self, message: str, *args: object) -> None:
        self._write(logging.ERROR, message % args if args else message)


class ErrorCollector:
    """Thread-safe, append-only list of error lines for one run."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._lines: List[str] = []

    def add(self, line: str) -> None:
        with self._lock:
            self._lines.append(line)

    def lines(self) -> List[str]:
        with self._lock:
            return list(self._lines)

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)

    def __bool__(self) -> bool:
        return len(self) > 0


def configure_console_logging(name: str = "admintools", *, verbose: bool = False) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler) and getattr(handler, "stream", None) is sys.stderr:
            break
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        handler.setLevel(logging.WARNING if not verbose else logging.DEBUG)
        logger.addHandler(handler)
    logger.propagate = False
    return logger


__all__ = ["AppendOnlyLog", "ErrorCollector", "configure_console_logging"]
