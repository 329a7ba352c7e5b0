"""
System proxy reset performed at teardown.

The proxy binary enables the system-wide web proxy when started with
``--system-proxy`` and is expected to undo it on exit. A crash skips that
step and leaves the host pointing at a dead listener, so teardown disables
the plain and secure web proxy on every network service. Nothing here raises:
failures are logged because the caller is already shutting down.
"""

from __future__ import annotations

import logging
import subprocess
from typing import Callable, List, Sequence

logger = logging.getLogger(__name__)

NETWORKSETUP_PATH = "/usr/sbin/networksetup"
COMMAND_TIMEOUT_SECONDS = 5.0
_HEADER_MARKER = "An asterisk"
_DISABLED_MARKER = "*"

CommandRunner = Callable[..., "subprocess.CompletedProcess[str]"]

_CLEANUP_ERRORS = (OSError, subprocess.SubprocessError, UnicodeDecodeError)


def parse_network_services(output: str) -> List[str]:
    """
    Extract service names from ``networksetup -listallnetworkservices`` output.

    The header line and blank lines are dropped. Disabled services carry a
    leading asterisk, which is stripped so they are reset too.
    """
    services: List[str] = []
    for line in output.splitlines():
        stripped = line.strip()
        if not stripped or _HEADER_MARKER in stripped:
            continue
        if stripped.startswith(_DISABLED_MARKER):
            stripped = stripped[len(_DISABLED_MARKER) :].strip()
        if stripped:
            services.append(stripped)
    return services


def list_network_services(runner: CommandRunner = subprocess.run) -> List[str]:
    """Return configured network services; raises on command failure."""
    completed = runner(
        [NETWORKSETUP_PATH, "-listallnetworkservices"],
        capture_output=True,
        text=True,
        check=True,
        timeout=COMMAND_TIMEOUT_SECONDS,
    )
    return parse_network_services(completed.stdout or "")


def _proxy_off_commands(service: str) -> Sequence[List[str]]:
    return (
        [NETWORKSETUP_PATH, "-setwebproxystate", service, "off"],
        [NETWORKSETUP_PATH, "-setsecurewebproxystate", service, "off"],
    )


def reset_system_proxies(runner: CommandRunner = subprocess.run) -> List[str]:
    """
    Disable web and secure web proxies on every network service.

    Returns:
        Services for which both commands completed
    """
    try:
        services = list_network_services(runner)
    except _CLEANUP_ERRORS as exc:  # Teardown must not raise  # policy_guard: allow-silent-handler
        logger.warning("Failed to reset system proxies: %s", exc)
        return []

    reset: List[str] = []
    for service in services:
        succeeded = True
        for command in _proxy_off_commands(service):
            try:
                runner(command, capture_output=True, text=True, check=True, timeout=COMMAND_TIMEOUT_SECONDS)
            except _CLEANUP_ERRORS as exc:  # Teardown must not raise  # policy_guard: allow-silent-handler
                logger.warning("Failed to run %s for %s: %s", command[1], service, exc)
                succeeded = False
        if succeeded:
            reset.append(service)
    logger.info("Reset system proxy settings on %d/%d network services", len(reset), len(services))
    return reset


__all__ = [
    "NETWORKSETUP_PATH",
    "list_network_services",
    "parse_network_services",
    "reset_system_proxies",
]
