import asyncio
import socket

import aiohttp
import pytest

from proxy_supervisor.errors import (
    AlreadyRunningError,
    BinaryNotFoundError,
    CrashLoopExceededError,
    NoPortsAvailableError,
    ProxySupervisorError,
    StartFailedError,
)
from proxy_supervisor.network_errors import NETWORK_ERROR_TYPES


@pytest.mark.parametrize(
    "error",
    [
        BinaryNotFoundError("spoofdpi"),
        NoPortsAvailableError(8080, 8090),
        StartFailedError("exec format error"),
        AlreadyRunningError(),
        CrashLoopExceededError(3),
    ],
)
def test_all_supervisor_errors_share_base(error):
    assert isinstance(error, ProxySupervisorError)
    assert isinstance(error, RuntimeError)


def test_binary_not_found_lists_searched_paths():
    error = BinaryNotFoundError("spoofdpi", ("/opt/homebrew/bin/spoofdpi", "/usr/local/bin/spoofdpi"))

    assert str(error) == "spoofdpi binary not found (searched: /opt/homebrew/bin/spoofdpi, /usr/local/bin/spoofdpi)"
    assert error.searched_paths == ("/opt/homebrew/bin/spoofdpi", "/usr/local/bin/spoofdpi")


def test_start_failed_carries_reason():
    error = StartFailedError("permission denied")

    assert str(error) == "Failed to start process: permission denied"
    assert error.reason == "permission denied"


@pytest.mark.parametrize(
    "error",
    [
        asyncio.TimeoutError(),
        aiohttp.ClientError("boom"),
        socket.gaierror("nodename nor servname provided"),
        ConnectionRefusedError(),
    ],
)
def test_network_errors_are_recognised(error):
    assert isinstance(error, NETWORK_ERROR_TYPES)


def test_programming_errors_are_not_network_errors():
    assert not isinstance(ValueError("bad"), NETWORK_ERROR_TYPES)
