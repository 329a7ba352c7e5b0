"""Supervision of a local proxy process plus DNS and endpoint latency probing."""

from .endpoint_latency_monitor import ConnectionQuality, EndpointLatencyMonitor
from .errors import (
    AlreadyRunningError,
    BinaryNotFoundError,
    CrashLoopExceededError,
    NoPortsAvailableError,
    ProxySupervisorError,
    StartFailedError,
)
from .latency_prober import LatencyProber
from .latency_prober_helpers import DNS_SERVERS, UNREACHABLE_LATENCY_MS, ServerDescriptor
from .log_aggregator import LogAggregator, LogEntry
from .port_allocator import PortAllocator
from .process_supervisor import ProcessSupervisor, SupervisorState

__all__ = [
    "AlreadyRunningError",
    "BinaryNotFoundError",
    "ConnectionQuality",
    "CrashLoopExceededError",
    "DNS_SERVERS",
    "EndpointLatencyMonitor",
    "LatencyProber",
    "LogAggregator",
    "LogEntry",
    "NoPortsAvailableError",
    "PortAllocator",
    "ProcessSupervisor",
    "ProxySupervisorError",
    "ServerDescriptor",
    "StartFailedError",
    "SupervisorState",
    "UNREACHABLE_LATENCY_MS",
]
