from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional

from .paths import get_default_settings_paths

__all__ = [
    "DEFAULT_SETTINGS",
    "SETTINGS_VERSION",
    "load_settings",
    "merge_defaults",
    "unknown_keys",
]

LOGGER = logging.getLogger("admintools.core.settings")

SETTINGS_VERSION = 1


DEFAULT_SETTINGS: Dict[str, Any] = {
    "version": SETTINGS_VERSION,
    "backup": {
        "output_dir": None,
        "compression": "gz",
        "max_jobs": None,
        "log_path": "/var/log/backup.log",
    },
    "health": {
        "log_path": "/var/log/syshealth.log",
        "report_dir": ".",
        "disk_partition": "/",
        "top_processes": 5,
        "update_stamp": "/var/lib/apt/periodic/update-success-stamp",
        "thresholds": {
            "cpu_pct": 80.0,
            "memory_pct": 50.0,
            "disk_pct": 80.0,
        },
    },
}


def merge_defaults(data: Dict[str, Any]) -> Dict[str, Any]:
    def _merge(default: Dict[str, Any], payload: Dict[str, Any]) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for key, value in default.items():
            if isinstance(value, dict):
                current = payload.get(key)
                if isinstance(current, dict):
                    result[key] = _merge(value, current)
                else:
                    result[key] = _merge(value, {})
            else:
                result[key] = payload.get(key, copy.deepcopy(value))
        for key, value in payload.items():
            if key not in result:
                result[key] = value
        return result

    return _merge(DEFAULT_SETTINGS, data or {})


def _walk_unknown(payload: Mapping[str, Any], known: Mapping[str, Any], prefix: str) -> Iterator[str]:
    for key, value in payload.items():
        if key not in known:
            yield f"{prefix}{key}"
        elif isinstance(known[key], dict) and isinstance(value, Mapping):
            yield from _walk_unknown(value, known[key], f"{prefix}{key}.")


def unknown_keys(settings: Mapping[str, Any]) -> list[str]:
    """Dotted paths of keys in *settings* that DEFAULT_SETTINGS does not define."""

    return sorted(_walk_unknown(settings, DEFAULT_SETTINGS, ""))


def _log_unknown_keys(settings: Dict[str, Any], source: Optional[Path]) -> None:
    unknown = unknown_keys(settings)
    if unknown:
        LOGGER.warning("Ignoring unknown settings keys in %s: %s", source or "defaults", ", ".join(unknown))


def load_settings(explicit: Optional[Path] = None) -> Dict[str, Any]:
    """Load the first readable settings file and merge it over the defaults."""

    data: Dict[str, Any] = {}
    source: Optional[Path] = None
    for candidate in get_default_settings_paths(explicit):
        try:
            with open(candidate, "r", encoding="utf-8") as handle:
                loaded = json.load(handle)
        except FileNotFoundError:
            continue
        except json.JSONDecodeError as exc:
            LOGGER.warning("Skipping malformed settings file %s: %s", candidate, exc)
            continue
        except OSError:
            continue
        if isinstance(loaded, dict):
            data = loaded
            source = candidate
            break
    merged = merge_defaults(data)
    merged["version"] = SETTINGS_VERSION
    _log_unknown_keys(merged, source)
    return merged
