"""
Process Killer Utility

Kills stale copies of the proxy binary before a new one is launched so that
two proxies never fight over the listen port or the system proxy settings.
Only processes whose executable name matches exactly and that belong to the
current OS user are touched.

Usage:
    from proxy_supervisor.process_killer import kill_processes_by_name

    kill_processes_by_name("spoofdpi")
"""

from __future__ import annotations

import logging
import os
from typing import List, Optional

import psutil

logger = logging.getLogger(__name__)

# Process termination timeouts (seconds)
GRACEFUL_SHUTDOWN_TIMEOUT_SECONDS = 1.0
FORCE_KILL_TIMEOUT_SECONDS = 1.0


def current_uid() -> int:
    """Return the effective user id of this process."""
    return os.geteuid()


def find_processes_by_name(process_name: str, *, uid: Optional[int] = None) -> List[psutil.Process]:
    """
    Return live processes named exactly ``process_name`` owned by ``uid``.

    Args:
        process_name: Executable name to match (no substring matching)
        uid: Effective user id to filter on; defaults to the current user
    """
    owner = uid if uid is not None else current_uid()
    current_pid = os.getpid()
    matching: List[psutil.Process] = []
    for proc in psutil.process_iter(["pid", "name", "uids"]):
        info = proc.info
        if info.get("pid") == current_pid:
            continue
        if info.get("name") != process_name:
            continue
        uids = info.get("uids")
        if uids is None or uids.effective != owner:
            continue
        matching.append(proc)
    return matching


def kill_processes_by_name(process_name: str, *, uid: Optional[int] = None) -> List[int]:
    """
    Terminate every matching process, escalating to SIGKILL when needed.

    Never raises for processes that disappear or refuse the signal; those are
    logged and skipped.

    Returns:
        PIDs that are confirmed gone
    """
    matching = find_processes_by_name(process_name, uid=uid)
    if not matching:
        logger.debug("No existing %s processes found", process_name)
        return []

    killed: List[int] = []
    for proc in matching:
        if _terminate_single_process(proc, process_name):
            killed.append(proc.pid)
    logger.info("Killed %d existing %s process(es)", len(killed), process_name)
    return killed


def _terminate_single_process(proc: psutil.Process, process_name: str) -> bool:
    """Terminate and force kill a single process if needed."""
    try:
        proc.terminate()
    except psutil.NoSuchProcess:  # Expected exception, process race condition  # policy_guard: allow-silent-handler
        return True
    except psutil.AccessDenied:  # Expected exception, returning default value  # policy_guard: allow-silent-handler
        logger.warning("Could not kill process %s (%s): access denied", proc.pid, process_name)
        return False

    if _wait_graceful(proc, process_name):
        return True

    return _force_kill(proc, process_name)


def _wait_graceful(proc: psutil.Process, process_name: str) -> bool:
    try:
        proc.wait(timeout=GRACEFUL_SHUTDOWN_TIMEOUT_SECONDS)
    except psutil.TimeoutExpired:  # Expected exception in operation  # policy_guard: allow-silent-handler
        logger.info(
            "Process %s (%s) did not terminate within %ss; sending SIGKILL",
            proc.pid,
            process_name,
            GRACEFUL_SHUTDOWN_TIMEOUT_SECONDS,
        )
    except psutil.NoSuchProcess:  # Expected exception in operation  # policy_guard: allow-silent-handler
        return True
    else:
        logger.debug("Process %s (%s) terminated gracefully", proc.pid, process_name)
        return True
    return False


def _force_kill(proc: psutil.Process, process_name: str) -> bool:
    try:
        proc.kill()
    except psutil.NoSuchProcess:  # Expected exception, process race condition  # policy_guard: allow-silent-handler
        return True
    except psutil.AccessDenied:  # Expected exception, returning default value  # policy_guard: allow-silent-handler
        logger.warning("Could not kill process %s (%s): permission denied", proc.pid, process_name)
        return False

    try:
        proc.wait(timeout=FORCE_KILL_TIMEOUT_SECONDS)
    except psutil.TimeoutExpired:  # Expected exception in operation  # policy_guard: allow-silent-handler
        logger.warning("Process %s (%s) still alive after force kill timeout", proc.pid, process_name)
        return False
    except psutil.NoSuchProcess:  # Expected exception in operation  # policy_guard: allow-silent-handler
        return True
    logger.debug("Process %s (%s) force killed", proc.pid, process_name)
    return True


__all__ = [
    "FORCE_KILL_TIMEOUT_SECONDS",
    "GRACEFUL_SHUTDOWN_TIMEOUT_SECONDS",
    "current_uid",
    "find_processes_by_name",
    "kill_processes_by_name",
]
