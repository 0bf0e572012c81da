"""Decide which checks run and in what order."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .checks import CheckId
from .errors import HealthUsageError

CHECK_ORDER = (
    CheckId.SYSTEM,
    CheckId.CPU,
    CheckId.MEMORY,
    CheckId.PROCESSES,
    CheckId.DISK,
    CheckId.SERVICES,
    CheckId.LAST_UPDATE,
)


@dataclass(slots=True, frozen=True)
class CheckRequest:
    all: bool = False
    cpu: bool = False
    memory: bool = False
    disk: bool = False
    services: bool = False
    last_update: bool = False

    @property
    def empty(self) -> bool:
        return not (self.all or self.cpu or self.memory or self.disk or self.services or self.last_update)


def select_checks(request: CheckRequest) -> List[CheckId]:
    """Return the checks to run, in report order.

    Memory always brings in the process list; CPU brings it in too when
    memory was not requested.
    """

    if request.empty:
        raise HealthUsageError("No checks requested")
    if request.all:
        return list(CHECK_ORDER)
    wanted = set()
    if request.cpu:
        wanted.update({CheckId.CPU, CheckId.PROCESSES})
    if request.memory:
        wanted.update({CheckId.MEMORY, CheckId.PROCESSES})
    if request.disk:
        wanted.add(CheckId.DISK)
    if request.services:
        wanted.add(CheckId.SERVICES)
    if request.last_update:
        wanted.add(CheckId.LAST_UPDATE)
    return [check for check in CHECK_ORDER if check in wanted]


__all__ = ["CHECK_ORDER", "CheckRequest", "select_checks"]
