"""Test doubles for the process supervisor's OS-facing collaborators."""

from __future__ import annotations

import asyncio
import itertools
import subprocess
import threading
from typing import Callable, List, Optional, Sequence

import pytest

_PID_COUNTER = itertools.count(4000)


class FakeProcess:
    """Popen-compatible stand-in whose exit is driven by the test."""

    def __init__(self, args: Sequence[str], *, exits_on_terminate: bool = True) -> None:
        self.args = list(args)
        self.pid = next(_PID_COUNTER)
        self.returncode: Optional[int] = None
        self.stdout = None
        self.stderr = None
        self.terminate_calls = 0
        self.kill_calls = 0
        self.exits_on_terminate = exits_on_terminate
        self._exited = threading.Event()

    def poll(self) -> Optional[int]:
        return self.returncode

    def wait(self, timeout: Optional[float] = None) -> Optional[int]:
        if not self._exited.wait(timeout):
            raise subprocess.TimeoutExpired(self.args, timeout)
        return self.returncode

    def terminate(self) -> None:
        self.terminate_calls += 1
        if self.exits_on_terminate:
            self.exit(-15)

    def kill(self) -> None:
        self.kill_calls += 1
        self.exit(-9)

    def exit(self, code: int) -> None:
        if self.returncode is None:
            self.returncode = code
            self._exited.set()


class FakeLauncher:
    """Records launches and hands out FakeProcess instances."""

    def __init__(self) -> None:
        self.calls: List[tuple[str, List[str]]] = []
        self.processes: List[FakeProcess] = []
        self.error: Optional[BaseException] = None
        self.exits_on_terminate = True

    def __call__(self, binary_path: str, arguments: Sequence[str]) -> FakeProcess:
        self.calls.append((binary_path, list(arguments)))
        if self.error is not None:
            raise self.error
        process = FakeProcess([binary_path, *arguments], exits_on_terminate=self.exits_on_terminate)
        self.processes.append(process)
        return process


class StaticPortAllocator:
    """Port allocator double returning a fixed port or raising a preset error."""

    def __init__(self, port: int = 8080) -> None:
        self.port = port
        self.error: Optional[BaseException] = None
        self.calls = 0

    def find_available_port(self) -> int:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.port


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0, interval: float = 0.01) -> None:
    """Poll ``predicate`` on the running loop until it holds or fail the test."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            pytest.fail("condition not met before timeout")
        await asyncio.sleep(interval)

