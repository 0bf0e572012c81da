from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .errors import CommandError, ToolMissingError

CommandRunner = Callable[..., subprocess.CompletedProcess]

_TOOL_VERSION_ARGS: Dict[str, List[str]] = {
    "tar": ["--version"],
    "gpg": ["--version"],
    "du": ["--version"],
}


def _expand_path(value: str) -> Path:
    expanded = os.path.expanduser(os.path.expandvars(value))
    return Path(expanded)


def find_executable(name: str, extra_dirs: Optional[Iterable[str]] = None) -> Optional[str]:
    """Search PATH and any extra directories for *name*."""

    candidates = [shutil.which(name)]
    if extra_dirs:
        for entry in extra_dirs:
            if entry:
                candidates.append(shutil.which(name, path=str(_expand_path(str(entry)))))
    for candidate in candidates:
        if candidate:
            return os.path.abspath(candidate)
    return None


def get_version(cmd: list[str]) -> Optional[str]:
    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            errors="surrogateescape",
            check=False,
        )
    except (FileNotFoundError, PermissionError, OSError, subprocess.SubprocessError):
        return None
    output = proc.stdout or proc.stderr or ""
    for line in output.splitlines():
        line = line.strip()
        if line:
            return line
    return None


def probe_tool(name: str) -> Dict[str, object]:
    path = find_executable(name)
    version: Optional[str] = None
    if path is not None and name in _TOOL_VERSION_ARGS:
        version = get_version([path] + _TOOL_VERSION_ARGS[name])
    return {
        "name": name,
        "present": path is not None,
        "version": version,
        "path": path,
    }


def require_tools(names: Sequence[str]) -> Dict[str, str]:
    """Resolve every tool in *names*, raising ToolMissingError listing the absent ones."""

    resolved: Dict[str, str] = {}
    missing: List[str] = []
    for name in names:
        path = find_executable(name)
        if path is None:
            missing.append(name)
        else:
            resolved[name] = path
    if missing:
        raise ToolMissingError(missing)
    return resolved


def run_command(
    argv: Sequence[str],
    *,
    input: Optional[str] = None,
    cwd: Optional[Path] = None,
) -> subprocess.CompletedProcess:
    """Run *argv* and return the completed process, raising CommandError on failure."""

    try:
        proc = subprocess.run(
            list(argv),
            input=input,
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
            errors="surrogateescape",
            check=False,
        )
    except FileNotFoundError as exc:
        raise ToolMissingError([argv[0]]) from exc
    if proc.returncode != 0:
        raise CommandError(argv, proc.returncode, proc.stderr)
    return proc


def first_field(output: str) -> Optional[str]:
    """Return the first whitespace-separated field of the first non-empty line."""

    for line in output.splitlines():
        parts = line.split()
        if parts:
            return parts[0]
    return None


def human_size(path: Path, *, runner: CommandRunner = run_command) -> str:
    """Return the ``du -sh`` size of *path*, e.g. ``1.2G``."""

    proc = runner(["du", "-sh", str(path)])
    size = first_field(proc.stdout or "")
    if not size:
        raise CommandError(["du", "-sh", str(path)], 0, "du produced no output")
    return size


__all__ = [
    "CommandRunner",
    "find_executable",
    "first_field",
    "get_version",
    "human_size",
    "probe_tool",
    "require_tools",
    "run_command",
]
