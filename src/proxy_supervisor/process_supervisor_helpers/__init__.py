"""Helpers backing :mod:`proxy_supervisor.process_supervisor`."""

from .binary_locator import find_binary
from .crash_policy import CrashPolicy
from .dependencies_factory import ProcessSupervisorDependencies, ProcessSupervisorDependenciesFactory
from .launcher import OutputPump, TerminationWatcher, build_arguments, launch_process, start_output_pumps
from .proxy_cleanup import list_network_services, parse_network_services, reset_system_proxies
from .restart_scheduler import RestartScheduler
from .types import CrashDecision, CrashRecord, SupervisorState

__all__ = [
    "CrashDecision",
    "CrashPolicy",
    "CrashRecord",
    "OutputPump",
    "ProcessSupervisorDependencies",
    "ProcessSupervisorDependenciesFactory",
    "RestartScheduler",
    "SupervisorState",
    "TerminationWatcher",
    "build_arguments",
    "find_binary",
    "launch_process",
    "list_network_services",
    "parse_network_services",
    "reset_system_proxies",
    "start_output_pumps",
]
