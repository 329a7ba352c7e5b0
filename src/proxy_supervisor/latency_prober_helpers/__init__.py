"""Helpers backing :mod:`proxy_supervisor.latency_prober`."""

from .server_catalog import AUTOMATIC, DEFAULT_SERVER, DNS_SERVERS, ServerDescriptor, find_server
from .tcp_probe import UNREACHABLE_LATENCY_MS, ConnectionOpener, measure_connect_latency

__all__ = [
    "AUTOMATIC",
    "ConnectionOpener",
    "DEFAULT_SERVER",
    "DNS_SERVERS",
    "ServerDescriptor",
    "UNREACHABLE_LATENCY_MS",
    "find_server",
    "measure_connect_latency",
]
