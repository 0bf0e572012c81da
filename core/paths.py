from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Optional

__all__ = [
    "RUN_DIR_FORMAT",
    "create_run_dir",
    "ensure_log_file",
    "ensure_writable_dir",
    "expand_path",
    "get_default_settings_paths",
    "run_stamp",
]

RUN_DIR_FORMAT = "%Y-%m-%d_%H-%M-%S"
SETTINGS_ENV = "LINUX_ADMIN_TOOLS_SETTINGS"
_LOG_FILE_MODE = 0o666


def expand_path(value: str | os.PathLike[str]) -> Path:
    expanded = os.path.expandvars(os.path.expanduser(str(value)))
    return Path(expanded)


def run_stamp(moment: Optional[datetime] = None) -> str:
    """Return the ``YYYY-MM-DD_HH-MM-SS`` stamp used for run and report names."""

    return (moment or datetime.now()).strftime(RUN_DIR_FORMAT)


def ensure_writable_dir(path: Path) -> bool:
    """Create *path* if needed and confirm a file can be written inside it."""

    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError:
        return False
    test_file = path / f".write_test_{os.getpid()}"
    try:
        with open(test_file, "w", encoding="utf-8") as handle:
            handle.write("ok")
        test_file.unlink(missing_ok=True)
        return True
    except OSError:
        try:
            if test_file.exists():
                test_file.unlink()
        except OSError:  # pragma: no cover - cleanup only
            pass
        return False


def ensure_log_file(path: Path) -> bool:
    """Create the log file world-writable when missing and confirm it accepts appends."""

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if not path.exists():
            path.touch()
            os.chmod(path, _LOG_FILE_MODE)
        with open(path, "a", encoding="utf-8"):
            pass
    except OSError:
        return False
    return True


def create_run_dir(root: Path, moment: Optional[datetime] = None) -> Path:
    """Create a uniquely named timestamped directory below *root*."""

    base = run_stamp(moment)
    candidate = root / base
    suffix = 0
    while True:
        try:
            candidate.mkdir(parents=True, exist_ok=False)
            return candidate
        except FileExistsError:
            suffix += 1
            candidate = root / f"{base}_{suffix}"


def get_default_settings_paths(explicit: Optional[Path] = None) -> list[Path]:
    """Return the search order for settings.json files."""

    paths: list[Path] = []
    if explicit is not None:
        paths.append(expand_path(explicit))
    env_path = os.environ.get(SETTINGS_ENV)
    if env_path:
        paths.append(expand_path(env_path))
    paths.append(Path.home() / ".config" / "linux-admin-tools" / "settings.json")
    paths.append(Path("/etc/linux-admin-tools/settings.json"))
    return paths
