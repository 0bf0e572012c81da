"""System health report with threshold-based warnings."""

from .checks import CheckId, HealthConfig, HealthSection, run_check
from .errors import HealthCheckError, HealthError, HealthUsageError
from .policy import HealthThresholds
from .report import HealthReportWriter
from .run import cli, run_health_checks
from .selection import CheckRequest, select_checks

__all__ = [
    "CheckId",
    "CheckRequest",
    "HealthCheckError",
    "HealthConfig",
    "HealthError",
    "HealthReportWriter",
    "HealthSection",
    "HealthThresholds",
    "HealthUsageError",
    "cli",
    "run_check",
    "run_health_checks",
    "select_checks",
]
