from pathlib import Path

import pytest

from health import checks
from health.checks import CheckId, HealthConfig, parse_cpu_usage, parse_disk_usage, parse_memory, run_check
from health.errors import HealthCheckError
from helpers import DF_OUTPUT, PS_OUTPUT, TOP_OUTPUT, ScriptedRunner, health_outputs


def _config(tmp_path: Path, **overrides) -> HealthConfig:
    stamp = tmp_path / "update-success-stamp"
    stamp.write_text("", encoding="utf-8")
    config = HealthConfig(update_stamp=stamp, report_dir=tmp_path, log_path=None)
    for key, value in overrides.items():
        setattr(config, key, value)
    return config


def test_parse_cpu_usage() -> None:
    assert parse_cpu_usage(TOP_OUTPUT.format(busy=12.5, idle=87.5)) == 12.5


def test_parse_cpu_usage_accepts_comma_decimals() -> None:
    line = "%Cpu(s):  3,0 us,  1,0 sy,  0,0 ni, 95,5 id,  0,0 wa"

    assert parse_cpu_usage(line) == 4.5


def test_parse_cpu_usage_without_summary() -> None:
    with pytest.raises(ValueError):
        parse_cpu_usage("top - nothing useful\n")


def test_parse_memory() -> None:
    assert parse_memory("      total used\nMem:  16000  9000  7000\n") == (16000.0, 9000.0)


def test_parse_disk_usage() -> None:
    fields = parse_disk_usage(DF_OUTPUT.format(used=72, avail=28, pct=72))

    assert fields["use_pct"] == "72%"
    assert fields["mount"] == "/"
    assert fields["size"] == "100G"


def test_processes_are_limited_to_configured_count(tmp_path: Path) -> None:
    runner = ScriptedRunner({"ps": PS_OUTPUT})

    section = run_check(CheckId.PROCESSES, _config(tmp_path, top_processes=3), runner)

    assert len(section.lines) == 4
    assert "COMMAND" in section.lines[0][1]
    assert "postgres" in section.lines[1][1]
    assert runner.calls == [["ps", "-eo", "pid,user,%cpu,%mem,comm", "--sort=-%mem"]]


def test_system_details(tmp_path: Path) -> None:
    section = run_check(CheckId.SYSTEM, _config(tmp_path), ScriptedRunner(health_outputs()))

    assert dict(section.lines) == {
        "Hostname": "web01",
        "Kernel": "Linux 6.1.0-18-amd64",
        "Uptime": "up 3 days, 2 hours",
    }


def test_cpu_over_threshold_warns(tmp_path: Path) -> None:
    section = run_check(CheckId.CPU, _config(tmp_path), ScriptedRunner(health_outputs(cpu_idle=10.0)))

    assert ("CPU Usage", "90.0%") in section.lines
    assert section.warnings and section.recommendations


def test_cpu_at_threshold_is_quiet(tmp_path: Path) -> None:
    section = run_check(CheckId.CPU, _config(tmp_path), ScriptedRunner(health_outputs(cpu_idle=20.0)))

    assert section.warnings == []


def test_memory_section(tmp_path: Path) -> None:
    runner = ScriptedRunner(health_outputs(mem_total=8000, mem_used=6000))

    section = run_check(CheckId.MEMORY, _config(tmp_path), runner)

    assert ("Memory Usage", "75.0%") in section.lines
    assert len(section.warnings) == 1
    assert len(section.recommendations) == 2


def test_disk_uses_configured_partition(tmp_path: Path) -> None:
    runner = ScriptedRunner(health_outputs(disk_pct=85))

    section = run_check(CheckId.DISK, _config(tmp_path, disk_partition="/srv"), runner)

    assert runner.calls == [["df", "-Ph", "/srv"]]
    assert ("Disk Usage", "85%") in section.lines
    assert "/srv" in section.warnings[0]


def test_running_services_are_counted(tmp_path: Path) -> None:
    section = run_check(CheckId.SERVICES, _config(tmp_path), ScriptedRunner(health_outputs()))

    assert section.lines == [("Running Services", "3")]


def test_last_update_strips_fraction(tmp_path: Path) -> None:
    config = _config(tmp_path)
    runner = ScriptedRunner(health_outputs())

    section = run_check(CheckId.LAST_UPDATE, config, runner)

    assert section.lines == [("Last Update", "2026-10-01 06:25:14")]
    assert runner.calls == [["stat", "-c", "%y", str(config.update_stamp)]]


def test_last_update_without_any_stamp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(checks, "_FALLBACK_UPDATE_STAMPS", ())
    config = _config(tmp_path, update_stamp=tmp_path / "missing")

    with pytest.raises(HealthCheckError) as excinfo:
        run_check(CheckId.LAST_UPDATE, config, ScriptedRunner(health_outputs()))

    assert excinfo.value.exit_code == 8


@pytest.mark.parametrize(
    "check, tool, code",
    [
        (CheckId.SYSTEM, "hostname", 2),
        (CheckId.CPU, "top", 3),
        (CheckId.MEMORY, "free", 4),
        (CheckId.PROCESSES, "ps", 5),
        (CheckId.DISK, "df", 6),
        (CheckId.SERVICES, "systemctl", 7),
        (CheckId.LAST_UPDATE, "stat", 8),
    ],
)
def test_command_failures_map_to_check_exit_codes(tmp_path: Path, check: CheckId, tool: str, code: int) -> None:
    runner = ScriptedRunner(health_outputs(), failures=[tool])

    with pytest.raises(HealthCheckError) as excinfo:
        run_check(check, _config(tmp_path), runner)

    assert excinfo.value.exit_code == code
    assert excinfo.value.check == check.value


def test_unparseable_output_fails_the_check(tmp_path: Path) -> None:
    with pytest.raises(HealthCheckError) as excinfo:
        run_check(CheckId.MEMORY, _config(tmp_path), ScriptedRunner({"free": "garbage\n"}))

    assert excinfo.value.exit_code == 4
