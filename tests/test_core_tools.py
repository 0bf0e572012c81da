import subprocess
from pathlib import Path

import pytest

from core import tools as core_tools
from core.errors import CommandError, ToolMissingError


def test_run_command_returns_output() -> None:
    proc = core_tools.run_command(["sh", "-c", "echo hello"])

    assert proc.stdout.strip() == "hello"


def test_run_command_raises_on_failure() -> None:
    with pytest.raises(CommandError) as excinfo:
        core_tools.run_command(["sh", "-c", "echo first >&2; echo broken pipe >&2; exit 3"])

    assert excinfo.value.returncode == 3
    assert str(excinfo.value) == "sh exited with status 3: broken pipe"


def test_run_command_missing_executable() -> None:
    with pytest.raises(ToolMissingError) as excinfo:
        core_tools.run_command(["definitely-not-a-real-tool-xyz"])

    assert excinfo.value.tools == ("definitely-not-a-real-tool-xyz",)


def test_run_command_passes_stdin() -> None:
    proc = core_tools.run_command(["cat"], input="secret\n")

    assert proc.stdout == "secret\n"


def test_require_tools_lists_every_missing_tool() -> None:
    with pytest.raises(ToolMissingError) as excinfo:
        core_tools.require_tools(["sh", "missing-one-xyz", "missing-two-xyz"])

    assert excinfo.value.tools == ("missing-one-xyz", "missing-two-xyz")
    assert "missing-one-xyz, missing-two-xyz" in str(excinfo.value)


def test_require_tools_resolves_paths() -> None:
    resolved = core_tools.require_tools(["sh"])

    assert Path(resolved["sh"]).is_absolute()


def test_probe_tool_reports_absent_tool() -> None:
    info = core_tools.probe_tool("missing-tool-xyz")

    assert info == {"name": "missing-tool-xyz", "present": False, "version": None, "path": None}


def test_human_size_reads_first_field(tmp_path: Path) -> None:
    calls = []

    def runner(argv, **_kwargs):
        calls.append(argv)
        return subprocess.CompletedProcess(argv, 0, f"1.5M\t{argv[-1]}\n", "")

    assert core_tools.human_size(tmp_path, runner=runner) == "1.5M"
    assert calls == [["du", "-sh", str(tmp_path)]]


def test_human_size_rejects_empty_output(tmp_path: Path) -> None:
    def runner(argv, **_kwargs):
        return subprocess.CompletedProcess(argv, 0, "", "")

    with pytest.raises(CommandError):
        core_tools.human_size(tmp_path, runner=runner)


def test_run_command_tolerates_undecodable_output() -> None:
    proc = core_tools.run_command(["printf", "caf\\351\\n"])

    assert proc.stdout == "caf\udce9\n"
