from __future__ import annotations

"""Utilities for running the supervised proxy as a long-lived async service."""

import asyncio
import logging
import signal
from typing import Any, Callable, Coroutine, Optional

from .endpoint_latency_monitor import EndpointLatencyMonitor
from .latency_prober import LatencyProber
from .latency_prober_helpers import AUTOMATIC
from .logging_config import setup_logging
from .process_supervisor import ProcessSupervisor

logger = logging.getLogger(__name__)

ServiceFactory = Callable[[], Coroutine[Any, Any, None]]


class ProxyService:
    """
    Wire the prober, supervisor and endpoint monitor together.

    The prober picks the resolver, the supervisor runs the proxy with it, and
    the monitor keeps ``current_latency`` fresh until :meth:`request_shutdown`.
    """

    def __init__(
        self,
        *,
        prober: Optional[LatencyProber] = None,
        supervisor: Optional[ProcessSupervisor] = None,
        monitor: Optional[EndpointLatencyMonitor] = None,
    ) -> None:
        self.prober = prober or LatencyProber()
        self.supervisor = supervisor or ProcessSupervisor()
        self.monitor = monitor or EndpointLatencyMonitor()
        self._shutdown_event = asyncio.Event()

    def request_shutdown(self) -> None:
        self._shutdown_event.set()

    async def run(self, dns_server_id: str = AUTOMATIC.id) -> None:
        dns_address = await self.prober.resolve_dns_address(dns_server_id)
        port = await self.supervisor.start(dns_address)
        logger.info("Proxy listening on port %s using DNS %s", port, dns_address)
        self.monitor.start_monitoring()
        try:
            await self._shutdown_event.wait()
        finally:
            await self.monitor.stop_monitoring()
            self.supervisor.stop_blocking()
            self.supervisor.teardown()


def _install_signal_handlers(service: ProxyService) -> None:
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, service.request_shutdown)
        except (NotImplementedError, RuntimeError):  # Unsupported platform  # policy_guard: allow-silent-handler
            logger.debug("Cannot install handler for signal %s", signum)


async def serve(dns_server_id: str = AUTOMATIC.id, service: Optional[ProxyService] = None) -> None:
    """Run ``service`` until SIGINT or SIGTERM."""
    proxy_service = service or ProxyService()
    _install_signal_handlers(proxy_service)
    await proxy_service.run(dns_server_id)


def run_async_service(
    factory: ServiceFactory,
    *,
    service_name: str,
    configure_logging: bool = True,
    shutdown_message: Optional[str] = None,
) -> None:
    """Run an async service with consistent Ctrl+C handling.

    Args:
        factory: Callable returning the coroutine to execute.
        service_name: Identifier used for logging configuration.
        configure_logging: Whether to configure logging via ``setup_logging``.
        shutdown_message: Optional custom message when interrupted.
    """
    if configure_logging:
        setup_logging(service_name)

    try:
        asyncio.run(factory())
    except KeyboardInterrupt:  # Expected exception in operation  # policy_guard: allow-silent-handler
        if shutdown_message:
            logger.info(shutdown_message)
        else:
            logger.info("%s service interrupted by user", service_name)


__all__ = ["ProxyService", "run_async_service", "serve"]
