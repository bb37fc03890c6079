"""Shared pytest fixtures for the SessionCore test suite.

Provides a throwaway server directory and in-memory stand-ins for server
processes so the restart loop and the console bridges can be exercised
without starting Java.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Callable

import pytest
import yaml

from sessioncore.config import Config
from sessioncore.models import Cell, ChildHandle, InstallerPhase, SupervisorControl


class RecordingStdin(io.StringIO):
    """A child stdin that remembers what was written after it is closed."""

    def __init__(self):
        super().__init__()
        self.written = ""

    def write(self, s: str) -> int:
        self.written += s
        return super().write(s)


class BrokenStdin(io.StringIO):
    """A child stdin whose reader has gone away."""

    def write(self, s: str) -> int:
        raise BrokenPipeError("Broken pipe")


class FakeProcess:
    """Just enough of subprocess.Popen for ChildHandle."""

    _next_pid = 1000

    def __init__(self, code: int = 0, output: str = "", on_wait: Callable[[], None] = None):
        FakeProcess._next_pid += 1
        self.pid = FakeProcess._next_pid
        self.returncode = None
        self.stdin = RecordingStdin()
        self.stdout = io.StringIO(output)
        self._code = code
        self._on_wait = on_wait

    def wait(self, timeout=None) -> int:
        if self._on_wait:
            self._on_wait()
        self.returncode = self._code
        return self._code


class FakeLauncher:
    """Hands out fake server processes with scripted exit codes."""

    def __init__(self, codes: list, on_wait: Callable[[], None] = None):
        self.codes = list(codes)
        self.calls: list[tuple[str, str]] = []
        self.handles: list[ChildHandle] = []
        self.on_wait = on_wait

    def launch(self, server_file: str, auth_endpoint: str) -> ChildHandle:
        self.calls.append((server_file, auth_endpoint))
        code = self.codes.pop(0)
        if isinstance(code, Exception):
            raise code
        handle = ChildHandle(process=FakeProcess(code, on_wait=self.on_wait))
        self.handles.append(handle)
        return handle


@pytest.fixture
def server_dir(tmp_path: Path) -> Path:
    """An empty server directory."""
    return tmp_path


@pytest.fixture
def config(server_dir: Path) -> Config:
    """Wrapper configuration rooted at the server directory."""
    return Config(root=server_dir)


@pytest.fixture
def valid_config_file(server_dir: Path, config: Config) -> Path:
    """A saved configuration whose server jar exists."""
    (server_dir / "server.jar").write_bytes(b"jar")
    config.config_path.write_text(
        yaml.safe_dump({"auth-endpoint": "https://auth.example", "server-file": "server.jar"})
    )
    return config.config_path


@pytest.fixture
def control() -> SupervisorControl:
    return SupervisorControl()


@pytest.fixture
def phase() -> Cell:
    return Cell(InstallerPhase.IDLE)


@pytest.fixture
def current_child() -> Cell:
    return Cell(None)


@pytest.fixture
def make_launcher():
    """Factory for FakeLauncher(codes, on_wait=None)."""
    return FakeLauncher


@pytest.fixture
def make_process():
    """Factory for FakeProcess(code, output, on_wait=None)."""
    return FakeProcess


@pytest.fixture
def broken_stdin():
    return BrokenStdin()
