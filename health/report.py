"""Plain-text health report file."""
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional

from core.paths import run_stamp

from .checks import HealthSection

_RULE = "=" * 60


def format_section(section: HealthSection) -> str:
    lines = [_RULE, section.title, _RULE]
    width = max((len(key) for key, _ in section.lines if key), default=0)
    for key, value in section.lines:
        if key:
            lines.append(f"{key.ljust(width)} : {value}")
        else:
            lines.append(value)
    for warning in section.warnings:
        lines.append(f"WARNING: {warning}")
    if section.recommendations:
        lines.append("Recommendations:")
        lines.extend(f" - {item}" for item in section.recommendations)
    return "\n".join(lines) + "\n\n"


def section_payload(section: HealthSection) -> Dict[str, Any]:
    return {
        "check": section.key.value,
        "title": section.title,
        "metrics": {key or f"row{index}": value for index, (key, value) in enumerate(section.lines)},
        "warnings": list(section.warnings),
        "recommendations": list(section.recommendations),
    }


class HealthReportWriter:
    """Append formatted sections to ``syshealth_<timestamp>.txt``."""

    def __init__(self, report_dir: Path, *, moment: Optional[datetime] = None) -> None:
        self._moment = moment or datetime.now()
        self._report_dir = Path(report_dir)
        self._path = self._report_dir / f"syshealth_{run_stamp(self._moment)}.txt"
        self._lock = Lock()
        self._sections: List[HealthSection] = []

    @property
    def path(self) -> Path:
        return self._path

    @property
    def sections(self) -> List[HealthSection]:
        return list(self._sections)

    def start(self) -> Path:
        self._report_dir.mkdir(parents=True, exist_ok=True)
        header = f"System Health Report - {self._moment.strftime('%Y-%m-%d %H:%M:%S')}\n\n"
        self._path.write_text(header, encoding="utf-8")
        return self._path

    def append(self, section: HealthSection) -> None:
        text = format_section(section)
        with self._lock:
            with self._path.open("a", encoding="utf-8") as handle:
                handle.write(text)
            self._sections.append(section)

    def read(self) -> str:
        return self._path.read_text(encoding="utf-8")


__all__ = ["HealthReportWriter", "format_section", "section_payload"]
