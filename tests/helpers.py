"""Shared test doubles for the backup and health suites."""
from __future__ import annotations

import subprocess
import threading
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from core.errors import CommandError
from core.tools import run_command


def make_tree(root: Path, name: str, files: int = 3) -> Path:
    directory = root / name
    (directory / "nested").mkdir(parents=True)
    for index in range(files):
        (directory / f"file{index}.txt").write_text(f"{name} {index}\n" * 50, encoding="utf-8")
    (directory / "nested" / "deep.txt").write_text("deep\n", encoding="utf-8")
    return directory


class RecordingRunner:
    """Delegate to real commands, faking ``gpg`` and optionally failing or faking selected ``tar`` calls.

    A faked ``tar`` reports success without writing the archive; ``du`` then
    reports zero for it so the task itself believes it succeeded. An exploding
    ``tar`` raises something other than CommandError.
    """

    def __init__(
        self,
        *,
        fail_tar_for: Sequence[str] = (),
        fake_tar_for: Sequence[str] = (),
        fail_gpg: bool = False,
        explode_for: Sequence[str] = (),
    ) -> None:
        self.calls: List[Tuple[List[str], Optional[str]]] = []
        self._fail_tar_for = set(fail_tar_for)
        self._fake_tar_for = set(fake_tar_for)
        self._fail_gpg = fail_gpg
        self._explode_for = set(explode_for)
        self._lock = threading.Lock()

    def __call__(self, argv: Sequence[str], *, input: Optional[str] = None, cwd: Optional[Path] = None):
        argv = list(argv)
        with self._lock:
            self.calls.append((argv, input))
        if argv[0] == "gpg":
            if self._fail_gpg:
                raise CommandError(argv, 2, "gpg: decryption failed: bad key")
            target = Path(argv[argv.index("--output") + 1])
            source = Path(argv[-1])
            target.write_bytes(b"GPG" + source.read_bytes())
            return subprocess.CompletedProcess(argv, 0, "", "")
        if argv[0] == "tar":
            name = argv[-1]
            if name in self._fail_tar_for:
                raise CommandError(argv, 2, f"tar: {name}: Cannot open: Permission denied")
            if name in self._fake_tar_for:
                return subprocess.CompletedProcess(argv, 0, "", "")
            if name in self._explode_for:
                raise RuntimeError(f"runner crashed on {name}")
        if argv[0] == "du":
            target = Path(argv[-1])
            if not target.exists() and target.name.split(".")[0] in self._fake_tar_for:
                return subprocess.CompletedProcess(argv, 0, f"0\t{target}\n", "")
        return run_command(argv, input=input, cwd=cwd)

    def commands(self, name: str) -> List[List[str]]:
        with self._lock:
            return [argv for argv, _ in self.calls if argv[0] == name]


class ScriptedRunner:
    """Answer commands from a table keyed by executable name."""

    def __init__(self, outputs: Dict[str, str], failures: Sequence[str] = ()) -> None:
        self._outputs = dict(outputs)
        self._failures = set(failures)
        self.calls: List[List[str]] = []

    def __call__(self, argv: Sequence[str], *, input: Optional[str] = None, cwd: Optional[Path] = None):
        argv = list(argv)
        self.calls.append(argv)
        if argv[0] in self._failures:
            raise CommandError(argv, 1, f"{argv[0]}: failed")
        return subprocess.CompletedProcess(argv, 0, self._outputs.get(argv[0], ""), "")


TOP_OUTPUT = """top - 10:00:00 up 3 days,  2:01,  1 user,  load average: 0.10, 0.20, 0.30
Tasks: 210 total,   1 running, 209 sleeping,   0 stopped,   0 zombie
%Cpu(s): {busy:4.1f} us,  0.0 sy,  0.0 ni, {idle:4.1f} id,  0.0 wa,  0.0 hi,  0.0 si,  0.0 st
MiB Mem :  15890.2 total,   8012.4 free,   4100.0 used,   3777.8 buff/cache
"""

FREE_OUTPUT = """               total        used        free      shared  buff/cache   available
Mem:           {total}        {used}        4000         120        3000        7000
Swap:           2047           0        2047
"""

DF_OUTPUT = """Filesystem      Size  Used Avail Capacity Mounted on
/dev/sda1        100G   {used}G   {avail}G      {pct}% /
"""

PS_OUTPUT = """    PID USER     %CPU %MEM COMMAND
   1201 postgres  2.0 12.5 postgres
    887 root      0.5  6.1 dockerd
   1500 www-data  1.1  4.0 nginx
    301 root      0.0  1.2 systemd-journal
      1 root      0.0  0.4 systemd
    512 root      0.0  0.3 sshd
"""

SERVICES_OUTPUT = """cron.service      loaded active running Regular background program processing daemon
ssh.service       loaded active running OpenBSD Secure Shell server
nginx.service     loaded active running A high performance web server
"""


def health_outputs(*, cpu_idle: float = 90.0, mem_total: int = 8000, mem_used: int = 2000, disk_pct: int = 40) -> Dict[str, str]:
    return {
        "hostname": "web01\n",
        "uname": "Linux 6.1.0-18-amd64\n",
        "uptime": "up 3 days, 2 hours\n",
        "top": TOP_OUTPUT.format(busy=100.0 - cpu_idle, idle=cpu_idle),
        "free": FREE_OUTPUT.format(total=mem_total, used=mem_used),
        "ps": PS_OUTPUT,
        "df": DF_OUTPUT.format(used=disk_pct, avail=100 - disk_pct, pct=disk_pct),
        "systemctl": SERVICES_OUTPUT,
        "stat": "2026-10-01 06:25:14.123456789 +0000\n",
    }


def fake_require_tools(names: Sequence[str]) -> Dict[str, str]:
    return {name: f"/usr/bin/{name}" for name in names}

