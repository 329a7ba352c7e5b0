"""
Runtime settings for the proxy supervisor and the latency probes.

Every field reads its value from the environment (or a ``.env`` file) when the
dataclass is instantiated without arguments. Tests and embedding applications
pass explicit values instead. The defaults mirror the behaviour the desktop
client expects from the proxy binary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from typing import Tuple

from proxy_supervisor.config import ConfigurationError, env_int, env_list, env_seconds, env_str

DEFAULT_BINARY_NAME = "spoofdpi"
DEFAULT_BINARY_PATHS: Tuple[str, ...] = (
    "/opt/homebrew/bin/spoofdpi",  # Apple Silicon Homebrew prefix
    "/usr/local/bin/spoofdpi",  # Intel Homebrew prefix
)
DEFAULT_LISTEN_HOST = "127.0.0.1"
DEFAULT_PORT_RANGE_START = 8080
DEFAULT_PORT_RANGE_END = 8090
DEFAULT_LOG_LEVEL = "info"

DEFAULT_MAX_CRASH_COUNT = 3
DEFAULT_CRASH_RESET_WINDOW_SECONDS = 60.0
DEFAULT_STABLE_RUN_SECONDS = 5.0
DEFAULT_RESTART_DELAY_SECONDS = 1.0
DEFAULT_SETTLE_DELAY_SECONDS = 0.5
DEFAULT_STOP_TIMEOUT_SECONDS = 2.0

DEFAULT_DNS_PROBE_TIMEOUT_SECONDS = 2.0
DEFAULT_DNS_PROBE_PORT = 53

DEFAULT_REFERENCE_ENDPOINT_URL = "https://discord.com/api/v9/gateway"
DEFAULT_REFERENCE_TIMEOUT_SECONDS = 5.0
DEFAULT_MONITOR_INTERVAL_SECONDS = 5.0


def _binary_paths() -> Tuple[str, ...]:
    paths = env_list("PROXY_BINARY_PATHS", or_value=DEFAULT_BINARY_PATHS)
    return tuple(paths or ())


@dataclass
class SupervisorSettings:
    """
    Launch and recovery parameters for :class:`ProcessSupervisor`.

    Attributes:
        binary_name: Executable name, also used to kill stale instances
        binary_paths: Candidate install locations, checked in order
        bundled_binary_path: Optional path shipped with the client, checked last
        listen_host: Address passed in ``--listen-addr``
        port_range_start: First candidate port (inclusive)
        port_range_end: Last candidate port (inclusive)
        log_level: Value passed in ``--log-level``
        max_crash_count: Automatic restarts allowed inside the crash window
        crash_reset_window_seconds: Idle time after which the crash count resets
        stable_run_seconds: Continuous uptime after which the crash count resets
        restart_delay_seconds: Delay between an unexpected exit and the restart
        settle_delay_seconds: Pause after killing stale instances
        stop_timeout_seconds: Upper bound for ``stop_blocking``
    """

    binary_name: str = field(default_factory=partial(env_str, "PROXY_BINARY_NAME", DEFAULT_BINARY_NAME))
    binary_paths: Tuple[str, ...] = field(default_factory=_binary_paths)
    bundled_binary_path: str | None = field(default_factory=partial(env_str, "PROXY_BUNDLED_BINARY_PATH"))
    listen_host: str = field(default_factory=partial(env_str, "PROXY_LISTEN_HOST", DEFAULT_LISTEN_HOST))
    port_range_start: int = field(default_factory=partial(env_int, "PROXY_PORT_RANGE_START", DEFAULT_PORT_RANGE_START))
    port_range_end: int = field(default_factory=partial(env_int, "PROXY_PORT_RANGE_END", DEFAULT_PORT_RANGE_END))
    log_level: str = field(default_factory=partial(env_str, "PROXY_LOG_LEVEL", DEFAULT_LOG_LEVEL))
    max_crash_count: int = field(default_factory=partial(env_int, "PROXY_MAX_CRASH_COUNT", DEFAULT_MAX_CRASH_COUNT))
    crash_reset_window_seconds: float = DEFAULT_CRASH_RESET_WINDOW_SECONDS
    stable_run_seconds: float = DEFAULT_STABLE_RUN_SECONDS
    restart_delay_seconds: float = field(
        default_factory=partial(env_seconds, "PROXY_RESTART_DELAY_SECONDS", DEFAULT_RESTART_DELAY_SECONDS)
    )
    settle_delay_seconds: float = DEFAULT_SETTLE_DELAY_SECONDS
    stop_timeout_seconds: float = DEFAULT_STOP_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        if self.port_range_start > self.port_range_end:
            raise ConfigurationError.invalid_value(
                "port range",
                (self.port_range_start, self.port_range_end),
                "start must not exceed end",
            )
        if self.max_crash_count < 0:
            raise ConfigurationError.invalid_value("max_crash_count", self.max_crash_count, "must be non-negative")

    @property
    def port_range(self) -> Tuple[int, int]:
        return self.port_range_start, self.port_range_end

    @property
    def candidate_binary_paths(self) -> Tuple[str, ...]:
        if self.bundled_binary_path:
            return tuple(self.binary_paths) + (self.bundled_binary_path,)
        return tuple(self.binary_paths)


@dataclass
class ProberSettings:
    """TCP probe parameters for :class:`LatencyProber`."""

    probe_timeout_seconds: float = field(
        default_factory=partial(env_seconds, "DNS_PROBE_TIMEOUT_SECONDS", DEFAULT_DNS_PROBE_TIMEOUT_SECONDS)
    )
    probe_port: int = DEFAULT_DNS_PROBE_PORT


@dataclass
class MonitorSettings:
    """Reference endpoint parameters for :class:`EndpointLatencyMonitor`."""

    endpoint_url: str = field(default_factory=partial(env_str, "REFERENCE_ENDPOINT_URL", DEFAULT_REFERENCE_ENDPOINT_URL))
    timeout_seconds: float = field(
        default_factory=partial(env_seconds, "REFERENCE_TIMEOUT_SECONDS", DEFAULT_REFERENCE_TIMEOUT_SECONDS)
    )
    interval_seconds: float = field(
        default_factory=partial(env_seconds, "REFERENCE_MONITOR_INTERVAL_SECONDS", DEFAULT_MONITOR_INTERVAL_SECONDS)
    )


__all__ = [
    "MonitorSettings",
    "ProberSettings",
    "SupervisorSettings",
]
