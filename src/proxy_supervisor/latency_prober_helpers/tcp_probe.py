"""Single TCP connect probe used as a privilege-free ping."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Tuple

from ..network_errors import NETWORK_ERROR_TYPES

logger = logging.getLogger(__name__)

UNREACHABLE_LATENCY_MS = 9999

ConnectionOpener = Callable[[str, int], Awaitable[Tuple[Any, Any]]]


async def _close_writer(writer: Any) -> None:
    try:
        writer.close()
        await writer.wait_closed()
    except NETWORK_ERROR_TYPES:  # Connection already torn down  # policy_guard: allow-silent-handler
        logger.debug("Probe connection closed with error")


async def measure_connect_latency(
    host: str,
    port: int,
    *,
    timeout: float,
    open_connection: ConnectionOpener = asyncio.open_connection,
    clock: Callable[[], float] = time.perf_counter,
) -> int:
    """
    Return milliseconds until a TCP connection to ``host:port`` is established.

    Any failure, including the timeout, yields ``UNREACHABLE_LATENCY_MS``.
    ``asyncio.wait_for`` cancels the pending connect on timeout, so a probe
    resolves exactly once even if the connection completes late.
    """
    start = clock()
    try:
        _reader, writer = await asyncio.wait_for(open_connection(host, port), timeout=timeout)
    except NETWORK_ERROR_TYPES as exc:  # Unreachable server degrades to sentinel  # policy_guard: allow-silent-handler
        logger.debug("Probe to %s:%s failed: %s", host, port, str(exc) or type(exc).__name__)
        return UNREACHABLE_LATENCY_MS

    elapsed_ms = int((clock() - start) * 1000)
    await _close_writer(writer)
    return min(elapsed_ms, UNREACHABLE_LATENCY_MS)


__all__ = ["ConnectionOpener", "UNREACHABLE_LATENCY_MS", "measure_connect_latency"]
