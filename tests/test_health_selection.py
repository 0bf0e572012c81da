import pytest

from health.checks import CheckId
from health.errors import HealthUsageError
from health.selection import CHECK_ORDER, CheckRequest, select_checks


def test_nothing_requested_is_a_usage_error() -> None:
    with pytest.raises(HealthUsageError):
        select_checks(CheckRequest())


def test_all_runs_everything_in_order() -> None:
    assert select_checks(CheckRequest(all=True)) == list(CHECK_ORDER)
    assert select_checks(CheckRequest(all=True))[0] is CheckId.SYSTEM


def test_memory_brings_process_list() -> None:
    assert select_checks(CheckRequest(memory=True)) == [CheckId.MEMORY, CheckId.PROCESSES]


def test_cpu_alone_brings_process_list() -> None:
    assert select_checks(CheckRequest(cpu=True)) == [CheckId.CPU, CheckId.PROCESSES]


def test_cpu_and_memory_share_one_process_list() -> None:
    assert select_checks(CheckRequest(cpu=True, memory=True)) == [
        CheckId.CPU,
        CheckId.MEMORY,
        CheckId.PROCESSES,
    ]


def test_individual_checks_keep_report_order() -> None:
    selected = select_checks(CheckRequest(last_update=True, disk=True, services=True))

    assert selected == [CheckId.DISK, CheckId.SERVICES, CheckId.LAST_UPDATE]
    assert CheckId.SYSTEM not in selected
