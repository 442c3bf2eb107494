# tests/conftest.py
from __future__ import annotations

import asyncio
import itertools
from typing import Iterable, List, Optional

import pytest

from floatvid.common import settings as settings_mod


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch, tmp_path):
    """Every test reads settings from its own env; nothing leaks from a developer's .env."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("STREAMING__WORK_DIR", str(tmp_path / "work"))
    settings_mod.get_settings.cache_clear()
    yield
    settings_mod.get_settings.cache_clear()


class FakeStream:
    """Enough of asyncio.StreamReader: read(n) for stdout, async iteration for stderr."""

    def __init__(self, chunks: Iterable[bytes] = ()):
        self._chunks: List[bytes] = list(chunks)

    async def read(self, n: int = -1) -> bytes:
        return self._chunks.pop(0) if self._chunks else b""

    def __aiter__(self):
        return self

    async def __anext__(self) -> bytes:
        if self._chunks:
            return self._chunks.pop(0)
        raise StopAsyncIteration


class FakeProcess:
    """
    Stand-in for asyncio.subprocess.Process. Stays "running" until
    terminate()/kill()/finish(); communicate() exits with `rc` at once.
    Create inside the running event loop.
    """
    _pids = itertools.count(4000)

    def __init__(
        self,
        stdout: Iterable[bytes] = (),
        stderr: Iterable[bytes] = (),
        *,
        rc: int = 0,
        ignore_term: bool = False,
    ):
        self.pid = next(self._pids)
        self.returncode: Optional[int] = None
        self.stdout = FakeStream(stdout)
        self.stderr = FakeStream(stderr)
        self.rc = rc
        self.ignore_term = ignore_term
        self.terminated = False
        self.killed = False
        self._exited = asyncio.Event()

    def finish(self, rc: int = 0) -> None:
        if self.returncode is None:
            self.returncode = rc
            self._exited.set()

    def terminate(self) -> None:
        self.terminated = True
        if not self.ignore_term:
            self.finish(-15)

    def kill(self) -> None:
        self.killed = True
        self.finish(-9)

    async def wait(self) -> int:
        await self._exited.wait()
        return self.returncode

    async def communicate(self):
        out = b"".join(self.stdout._chunks)
        err = b"".join(self.stderr._chunks)
        self.finish(self.rc)
        return out, err


class FakeSpawner:
    """Records every argv handed to it and returns a fresh FakeProcess."""

    def __init__(self, **process_kwargs):
        self.process_kwargs = process_kwargs
        self.calls: List[tuple] = []
        self.processes: List[FakeProcess] = []

    async def __call__(self, *cmd, **kwargs):
        self.calls.append((list(cmd), kwargs))
        proc = FakeProcess(**self.process_kwargs)
        self.processes.append(proc)
        return proc


class FakeEncoders:
    def __init__(self, available: bool = False):
        self.available = available
        self.calls = 0

    async def hardware_available(self) -> bool:
        self.calls += 1
        return self.available


@pytest.fixture()
def fake_process():
    return FakeProcess


@pytest.fixture()
def fake_spawner():
    return FakeSpawner


@pytest.fixture()
def fake_encoders():
    return FakeEncoders
