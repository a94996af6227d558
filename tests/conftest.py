"""Shared fixtures: a tmp_path rooted configuration and a fake command runner."""

import dataclasses
import logging
import subprocess
from typing import Dict, List, Optional, Tuple

import pytest

from os_reinstall import drivers, packages, repos, storage, tools
from os_reinstall.config import AppConfig
from os_reinstall.errors import ExecutionError


class CommandRecorder:
    """Stands in for run_command: records every call, fails on request."""

    def __init__(self) -> None:
        self.calls: List[List[str]] = []
        self.kwargs: List[dict] = []
        self.returncodes: Dict[Tuple[str, ...], int] = {}
        self.outputs: Dict[Tuple[str, ...], str] = {}

    def fail(self, *prefix: str, returncode: int = 1) -> None:
        self.returncodes[prefix] = returncode

    def respond(self, *prefix: str, stdout: str = "") -> None:
        self.outputs[prefix] = stdout

    @staticmethod
    def _lookup(table: dict, cmd: List[str], default):
        for prefix, value in table.items():
            if tuple(cmd[: len(prefix)]) == prefix:
                return value
        return default

    def __call__(
        self,
        cmd,
        env=None,
        check: bool = True,
        capture_output: bool = True,
        input: Optional[str] = None,
    ) -> subprocess.CompletedProcess:
        cmd = [str(part) for part in cmd]
        self.calls.append(cmd)
        self.kwargs.append({"env": env, "check": check, "input": input})

        returncode = self._lookup(self.returncodes, cmd, 0)
        stdout = self._lookup(self.outputs, cmd, "")
        if returncode and check:
            raise ExecutionError(f"{' '.join(cmd)} failed", returncode=returncode)
        return subprocess.CompletedProcess(cmd, returncode, stdout, "")

    def index(self, *prefix: str) -> int:
        for i, cmd in enumerate(self.calls):
            if tuple(cmd[: len(prefix)]) == prefix:
                return i
        raise ValueError(f"{prefix} was never run")

    def ran(self, *prefix: str) -> bool:
        return any(tuple(cmd[: len(prefix)]) == prefix for cmd in self.calls)


@pytest.fixture
def commands(monkeypatch) -> CommandRecorder:
    recorder = CommandRecorder()
    for module in (storage, repos, packages, drivers, tools):
        monkeypatch.setattr(module, "run_command", recorder)
    return recorder


@pytest.fixture
def config(tmp_path) -> AppConfig:
    etc = tmp_path / "etc"
    skel = etc / "skel"
    skel.mkdir(parents=True)
    (skel / ".profile").write_text("# profile\n")
    (skel / ".config").mkdir()
    (skel / ".config" / "user-dirs.dirs").write_text("XDG_DESKTOP_DIR=Desktop\n")
    (etc / "fstab").write_text("UUID=1234 / ext4 errors=remount-ro 0 1\n")

    (tmp_path / "dev" / "VG0").mkdir(parents=True)
    (tmp_path / "home").mkdir()

    return dataclasses.replace(
        AppConfig(),
        log_file=str(tmp_path / "log" / "os_reinstall.log"),
        sources_list=str(etc / "apt" / "sources.list"),
        sources_dir=str(etc / "apt" / "sources.list.d"),
        keyring_dir=str(tmp_path / "usr" / "share" / "keyrings"),
        volume_group_dir=str(tmp_path / "dev" / "VG0"),
        srv_root=str(tmp_path / "srv"),
        home_mount=str(tmp_path / "home"),
        fstab_path=str(etc / "fstab"),
        skel_dir=str(skel),
        lib32_dir=str(tmp_path / "usr" / "lib" / "i386-linux-gnu"),
        nvidia_download_dir=str(tmp_path / "tmp" / "nvidia_update"),
        nouveau_blacklist=str(etc / "modprobe.d" / "blacklist-nouveau.conf"),
        temp_dir=str(tmp_path / "tmp"),
    )


@pytest.fixture(autouse=True)
def reset_app_logger():
    yield
    app_logger = logging.getLogger("os_reinstall")
    for handler in app_logger.handlers[:]:
        app_logger.removeHandler(handler)
        handler.close()
