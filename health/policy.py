"""Threshold policy for the health report."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping


@dataclass(slots=True, frozen=True)
class HealthThresholds:
    cpu_pct: float = 80.0
    memory_pct: float = 50.0
    disk_pct: float = 80.0

    @classmethod
    def from_settings(cls, raw: Mapping[str, Any] | None) -> "HealthThresholds":
        data = dict(raw or {})
        defaults = cls()
        return cls(
            cpu_pct=float(data.get("cpu_pct", defaults.cpu_pct)),
            memory_pct=float(data.get("memory_pct", defaults.memory_pct)),
            disk_pct=float(data.get("disk_pct", defaults.disk_pct)),
        )


@dataclass(slots=True)
class Verdict:
    warnings: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    @property
    def flagged(self) -> bool:
        return bool(self.warnings)


def evaluate_cpu(usage_pct: float, thresholds: HealthThresholds) -> Verdict:
    verdict = Verdict()
    if usage_pct > thresholds.cpu_pct:
        verdict.warnings.append(f"CPU usage is high: {usage_pct:.1f}% (threshold {thresholds.cpu_pct:g}%)")
        verdict.recommendations.append(
            "Consider scaling CPU resources or optimizing the processes consuming the most CPU."
        )
    return verdict


def evaluate_memory(used_mb: float, total_mb: float, thresholds: HealthThresholds) -> Verdict:
    verdict = Verdict()
    if total_mb <= 0:
        return verdict
    used_pct = used_mb * 100.0 / total_mb
    if used_pct > thresholds.memory_pct:
        verdict.warnings.append(
            f"Memory usage is high: {used_mb:.0f}MB of {total_mb:.0f}MB used ({used_pct:.1f}%, "
            f"threshold {thresholds.memory_pct:g}%)"
        )
        verdict.recommendations.append("Investigate which applications are using the most memory.")
        verdict.recommendations.append("Check the Top Processes section for the largest memory consumers.")
    return verdict


def evaluate_disk(usage_pct: float, partition: str, thresholds: HealthThresholds) -> Verdict:
    verdict = Verdict()
    if usage_pct > thresholds.disk_pct:
        verdict.warnings.append(
            f"Disk usage on {partition} is high: {usage_pct:.0f}% (threshold {thresholds.disk_pct:g}%)"
        )
        verdict.recommendations.append(f"Free up space on {partition} or expand the partition.")
    return verdict


__all__ = ["HealthThresholds", "Verdict", "evaluate_cpu", "evaluate_disk", "evaluate_memory"]
