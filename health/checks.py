from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from core.errors import CommandError, ToolMissingError
from core.tools import CommandRunner, run_command

from .errors import HealthCheckError
from .policy import HealthThresholds, Verdict, evaluate_cpu, evaluate_disk, evaluate_memory

_FALLBACK_UPDATE_STAMPS = ("/var/lib/apt/lists", "/var/log/dpkg.log")
_IDLE_PATTERN = re.compile(r"(\d+(?:[.,]\d+)?)\s*id\b")


class CheckId(str, Enum):
    SYSTEM = "system"
    CPU = "cpu"
    MEMORY = "memory"
    PROCESSES = "processes"
    DISK = "disk"
    SERVICES = "services"
    LAST_UPDATE = "last_update"


EXIT_CODES: Dict[CheckId, int] = {
    CheckId.SYSTEM: 2,
    CheckId.CPU: 3,
    CheckId.MEMORY: 4,
    CheckId.PROCESSES: 5,
    CheckId.DISK: 6,
    CheckId.SERVICES: 7,
    CheckId.LAST_UPDATE: 8,
}

TITLES: Dict[CheckId, str] = {
    CheckId.SYSTEM: "System Details",
    CheckId.CPU: "CPU",
    CheckId.MEMORY: "Memory Information",
    CheckId.PROCESSES: "Top Processes",
    CheckId.DISK: "Disk Usage",
    CheckId.SERVICES: "Running Services",
    CheckId.LAST_UPDATE: "Last Update",
}

REQUIRED_TOOLS: Dict[CheckId, Tuple[str, ...]] = {
    CheckId.SYSTEM: ("hostname", "uname", "uptime"),
    CheckId.CPU: ("top",),
    CheckId.MEMORY: ("free",),
    CheckId.PROCESSES: ("ps",),
    CheckId.DISK: ("df",),
    CheckId.SERVICES: ("systemctl",),
    CheckId.LAST_UPDATE: ("stat",),
}


@dataclass(slots=True)
class HealthSection:
    key: CheckId
    title: str
    lines: List[Tuple[str, str]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def apply(self, verdict: Verdict) -> None:
        self.warnings.extend(verdict.warnings)
        self.recommendations.extend(verdict.recommendations)


@dataclass(slots=True)
class HealthConfig:
    thresholds: HealthThresholds = field(default_factory=HealthThresholds)
    disk_partition: str = "/"
    top_processes: int = 5
    update_stamp: Path = Path("/var/lib/apt/periodic/update-success-stamp")
    report_dir: Path = Path(".")
    log_path: Optional[Path] = Path("/var/log/syshealth.log")

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any] | None) -> "HealthConfig":
        section = dict((settings or {}).get("health") or {})
        defaults = cls()
        log_value = section.get("log_path")
        return cls(
            thresholds=HealthThresholds.from_settings(section.get("thresholds")),
            disk_partition=str(section.get("disk_partition") or defaults.disk_partition),
            top_processes=max(1, int(section.get("top_processes") or defaults.top_processes)),
            update_stamp=Path(section.get("update_stamp") or defaults.update_stamp),
            report_dir=Path(section.get("report_dir") or defaults.report_dir),
            log_path=Path(log_value) if log_value else defaults.log_path,
        )


# ----------------------------------------------------------------------
# Parsers


def parse_cpu_usage(output: str) -> float:
    """Return CPU usage (100 - idle) from ``top -bn1`` output."""

    for line in output.splitlines():
        if "Cpu(s)" not in line:
            continue
        match = _IDLE_PATTERN.search(line)
        if match:
            idle = float(match.group(1).replace(",", "."))
            return round(100.0 - idle, 1)
    raise ValueError("no CPU summary line in top output")


def parse_memory(output: str) -> Tuple[float, float]:
    """Return ``(total_mb, used_mb)`` from ``free -m`` output."""

    for line in output.splitlines():
        parts = line.split()
        if parts and parts[0] == "Mem:" and len(parts) >= 3:
            return float(parts[1]), float(parts[2])
    raise ValueError("no Mem: row in free output")


def parse_disk_usage(output: str) -> Dict[str, str]:
    """Return the fields of the data row of ``df -Ph`` output."""

    rows = [line.split() for line in output.splitlines() if line.strip()]
    if len(rows) < 2 or len(rows[1]) < 6:
        raise ValueError("unexpected df output")
    row = rows[1]
    return {
        "filesystem": row[0],
        "size": row[1],
        "used": row[2],
        "available": row[3],
        "use_pct": row[4],
        "mount": " ".join(row[5:]),
    }


def parse_processes(output: str, limit: int) -> List[str]:
    rows = [line.rstrip() for line in output.splitlines() if line.strip()]
    if not rows:
        raise ValueError("empty process list")
    return rows[: limit + 1]


def count_services(output: str) -> int:
    return sum(1 for line in output.splitlines() if line.strip())


# ----------------------------------------------------------------------
# Checks


CheckFunc = Callable[[HealthConfig, CommandRunner], HealthSection]


def _output(check: CheckId, argv: Sequence[str], runner: CommandRunner) -> str:
    try:
        proc = runner(list(argv))
    except (CommandError, ToolMissingError) as exc:
        raise HealthCheckError(check.value, EXIT_CODES[check], str(exc)) from exc
    return proc.stdout or ""


def _fail(check: CheckId, exc: Exception) -> HealthCheckError:
    return HealthCheckError(check.value, EXIT_CODES[check], str(exc))


def check_system(config: HealthConfig, runner: CommandRunner) -> HealthSection:
    section = HealthSection(CheckId.SYSTEM, TITLES[CheckId.SYSTEM])
    hostname = _output(CheckId.SYSTEM, ["hostname"], runner).strip()
    kernel = _output(CheckId.SYSTEM, ["uname", "-sr"], runner).strip()
    uptime = _output(CheckId.SYSTEM, ["uptime", "-p"], runner).strip()
    if not hostname or not kernel:
        raise _fail(CheckId.SYSTEM, ValueError("hostname or kernel unavailable"))
    section.lines.extend([("Hostname", hostname), ("Kernel", kernel), ("Uptime", uptime or "unknown")])
    return section


def check_cpu(config: HealthConfig, runner: CommandRunner) -> HealthSection:
    section = HealthSection(CheckId.CPU, TITLES[CheckId.CPU])
    try:
        usage = parse_cpu_usage(_output(CheckId.CPU, ["top", "-bn1"], runner))
    except ValueError as exc:
        raise _fail(CheckId.CPU, exc) from exc
    section.lines.append(("CPU Usage", f"{usage:.1f}%"))
    section.apply(evaluate_cpu(usage, config.thresholds))
    return section


def check_memory(config: HealthConfig, runner: CommandRunner) -> HealthSection:
    section = HealthSection(CheckId.MEMORY, TITLES[CheckId.MEMORY])
    try:
        total, used = parse_memory(_output(CheckId.MEMORY, ["free", "-m"], runner))
    except ValueError as exc:
        raise _fail(CheckId.MEMORY, exc) from exc
    section.lines.extend([("Total Memory", f"{total:.0f}MB"), ("Used Memory", f"{used:.0f}MB")])
    if total > 0:
        section.lines.append(("Memory Usage", f"{used * 100.0 / total:.1f}%"))
    section.apply(evaluate_memory(used, total, config.thresholds))
    return section


def check_processes(config: HealthConfig, runner: CommandRunner) -> HealthSection:
    section = HealthSection(CheckId.PROCESSES, TITLES[CheckId.PROCESSES])
    argv = ["ps", "-eo", "pid,user,%cpu,%mem,comm", "--sort=-%mem"]
    try:
        rows = parse_processes(_output(CheckId.PROCESSES, argv, runner), config.top_processes)
    except ValueError as exc:
        raise _fail(CheckId.PROCESSES, exc) from exc
    section.lines.extend(("", row) for row in rows)
    return section


def check_disk(config: HealthConfig, runner: CommandRunner) -> HealthSection:
    section = HealthSection(CheckId.DISK, TITLES[CheckId.DISK])
    try:
        fields = parse_disk_usage(_output(CheckId.DISK, ["df", "-Ph", config.disk_partition], runner))
        usage = float(fields["use_pct"].rstrip("%"))
    except ValueError as exc:
        raise _fail(CheckId.DISK, exc) from exc
    section.lines.extend(
        [
            ("Partition", fields["mount"]),
            ("Size", fields["size"]),
            ("Used", fields["used"]),
            ("Available", fields["available"]),
            ("Disk Usage", f"{usage:.0f}%"),
        ]
    )
    section.apply(evaluate_disk(usage, config.disk_partition, config.thresholds))
    return section


def check_services(config: HealthConfig, runner: CommandRunner) -> HealthSection:
    section = HealthSection(CheckId.SERVICES, TITLES[CheckId.SERVICES])
    argv = ["systemctl", "list-units", "--type=service", "--state=running", "--no-legend", "--no-pager"]
    count = count_services(_output(CheckId.SERVICES, argv, runner))
    section.lines.append(("Running Services", str(count)))
    return section


def check_last_update(config: HealthConfig, runner: CommandRunner) -> HealthSection:
    section = HealthSection(CheckId.LAST_UPDATE, TITLES[CheckId.LAST_UPDATE])
    candidates = [config.update_stamp] + [Path(item) for item in _FALLBACK_UPDATE_STAMPS]
    stamp = next((candidate for candidate in candidates if candidate.exists()), None)
    if stamp is None:
        raise _fail(CheckId.LAST_UPDATE, FileNotFoundError("no package update timestamp found"))
    value = _output(CheckId.LAST_UPDATE, ["stat", "-c", "%y", str(stamp)], runner).strip()
    if not value:
        raise _fail(CheckId.LAST_UPDATE, ValueError(f"stat returned nothing for {stamp}"))
    section.lines.append(("Last Update", value.split(".")[0]))
    return section


CHECKS: Dict[CheckId, CheckFunc] = {
    CheckId.SYSTEM: check_system,
    CheckId.CPU: check_cpu,
    CheckId.MEMORY: check_memory,
    CheckId.PROCESSES: check_processes,
    CheckId.DISK: check_disk,
    CheckId.SERVICES: check_services,
    CheckId.LAST_UPDATE: check_last_update,
}


def run_check(check: CheckId, config: HealthConfig, runner: CommandRunner = run_command) -> HealthSection:
    return CHECKS[check](config, runner)
