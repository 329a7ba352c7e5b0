"""
Round-trip latency to a fixed reference endpoint.

Drives the connection-quality indicator: one ``HEAD`` request, no body, no
caches, timed end to end. Failures never propagate; they read as "unknown".
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Callable, Optional

import aiohttp
from aiohttp import ClientTimeout

from .network_errors import NETWORK_ERROR_TYPES
from .settings import MonitorSettings

logger = logging.getLogger(__name__)

GOOD_LATENCY_THRESHOLD_MS = 100
FAIR_LATENCY_THRESHOLD_MS = 200

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store",
    "Pragma": "no-cache",
}


class ConnectionQuality(Enum):
    """Coarse connection quality derived from reference latency"""

    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    UNKNOWN = "unknown"


def classify_latency(latency_ms: Optional[int]) -> ConnectionQuality:
    if not latency_ms or latency_ms <= 0:
        return ConnectionQuality.UNKNOWN
    if latency_ms < GOOD_LATENCY_THRESHOLD_MS:
        return ConnectionQuality.GOOD
    if latency_ms < FAIR_LATENCY_THRESHOLD_MS:
        return ConnectionQuality.FAIR
    return ConnectionQuality.POOR


def _is_success(status: int) -> bool:
    return 200 <= status < 300


class EndpointLatencyMonitor:
    """Measures latency to one reference endpoint, on demand or periodically."""

    def __init__(
        self,
        settings: Optional[MonitorSettings] = None,
        *,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.settings = settings or MonitorSettings()
        self._clock = clock
        self.current_latency: Optional[int] = None
        self._monitor_task: Optional[asyncio.Task] = None
        self._shutdown_event = asyncio.Event()

    @property
    def quality(self) -> ConnectionQuality:
        return classify_latency(self.current_latency)

    @property
    def is_monitoring(self) -> bool:
        return self._monitor_task is not None and not self._monitor_task.done()

    async def measure_reference_latency(self) -> Optional[int]:
        """
        Time a ``HEAD`` request to the reference endpoint.

        Returns:
            Elapsed milliseconds for a 2xx response, otherwise None
        """
        timeout = ClientTimeout(total=self.settings.timeout_seconds)
        start_time = self._clock()
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.head(
                    self.settings.endpoint_url, headers=NO_CACHE_HEADERS, allow_redirects=True
                ) as response:
                    elapsed_ms = int((self._clock() - start_time) * 1000)
                    if not _is_success(response.status):
                        logger.debug("Reference endpoint returned HTTP %s", response.status)
                        return None
                    return elapsed_ms
        except NETWORK_ERROR_TYPES as exc:  # Transient network/connection failure  # policy_guard: allow-silent-handler
            logger.debug("Reference latency measurement failed: %s", str(exc) or type(exc).__name__)
            return None

    def start_monitoring(self, interval_seconds: Optional[float] = None) -> None:
        """Spawn the background loop refreshing ``current_latency``."""
        if self.is_monitoring:
            return
        interval = self.settings.interval_seconds if interval_seconds is None else interval_seconds
        self._shutdown_event = asyncio.Event()
        self._monitor_task = asyncio.create_task(self._monitor_loop(interval))
        logger.info("Started reference latency monitoring (interval: %ss)", interval)

    async def stop_monitoring(self) -> None:
        """Stop the background loop."""
        if self._monitor_task is None:
            return
        self._shutdown_event.set()
        try:
            await asyncio.wait_for(self._monitor_task, timeout=self.settings.timeout_seconds + 1.0)
        except asyncio.TimeoutError:
            self._monitor_task.cancel()
        self._monitor_task = None
        self.current_latency = None
        logger.info("Reference latency monitoring stopped")

    async def _monitor_loop(self, interval: float) -> None:
        while not self._shutdown_event.is_set():
            self.current_latency = await self.measure_reference_latency()
            try:
                await asyncio.wait_for(self._shutdown_event.wait(), timeout=interval)
            except asyncio.TimeoutError:  # Interval elapsed  # policy_guard: allow-silent-handler
                continue


__all__ = [
    "ConnectionQuality",
    "EndpointLatencyMonitor",
    "FAIR_LATENCY_THRESHOLD_MS",
    "GOOD_LATENCY_THRESHOLD_MS",
    "classify_latency",
]
