"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

import os
from typing import Any, List

import pytest

from tests.helpers.supervisor_fakes import FakeLauncher, StaticPortAllocator

# Keep developer .env files out of the test run
os.environ.setdefault("PROXY_SUPERVISOR_ENV_FILE", "/nonexistent/proxy_supervisor_test.env")


@pytest.fixture
def fake_launcher() -> FakeLauncher:
    return FakeLauncher()


@pytest.fixture
def port_allocator() -> StaticPortAllocator:
    return StaticPortAllocator()


@pytest.fixture
def killed_names() -> List[str]:
    return []


@pytest.fixture
def proxy_resets() -> List[Any]:
    return []


@pytest.fixture
def supervisor_dependencies(fake_launcher, port_allocator, killed_names, proxy_resets):
    from proxy_supervisor.process_supervisor_helpers import ProcessSupervisorDependencies

    def _reset() -> List[str]:
        proxy_resets.append(True)
        return ["Wi-Fi"]

    return ProcessSupervisorDependencies(
        port_allocator=port_allocator,
        kill_existing=killed_names.append,
        locate_binary=lambda paths: "/opt/homebrew/bin/spoofdpi",
        launch=fake_launcher,
        reset_system_proxies=_reset,
    )


@pytest.fixture
def supervisor_settings():
    from proxy_supervisor.settings import SupervisorSettings

    return SupervisorSettings(
        binary_name="spoofdpi",
        binary_paths=("/opt/homebrew/bin/spoofdpi", "/usr/local/bin/spoofdpi"),
        bundled_binary_path=None,
        listen_host="127.0.0.1",
        port_range_start=8080,
        port_range_end=8090,
        log_level="info",
        max_crash_count=3,
        restart_delay_seconds=0.01,
        settle_delay_seconds=0.0,
        stable_run_seconds=5.0,
    )


@pytest.fixture
def make_supervisor(supervisor_settings, supervisor_dependencies):
    from proxy_supervisor.process_supervisor import ProcessSupervisor

    created: List[Any] = []

    def _make(**overrides: Any) -> Any:
        kwargs = {
            "dependencies": supervisor_dependencies,
            "register_exit_hook": False,
        }
        kwargs.update(overrides)
        settings = kwargs.pop("settings", supervisor_settings)
        supervisor = ProcessSupervisor(settings, **kwargs)
        created.append(supervisor)
        return supervisor

    yield _make

    for supervisor in created:
        supervisor.teardown()
