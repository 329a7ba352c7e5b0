"""
Network error detection and classification.

Latency probes and the reference endpoint monitor degrade to sentinel values
instead of raising. Both import the tuple of "expected" failures from here so
that the set of swallowed exceptions stays identical across callers.
"""

import asyncio
import socket

import aiohttp

NETWORK_ERROR_TYPES = (
    aiohttp.ClientError,
    asyncio.TimeoutError,
    socket.gaierror,
    OSError,
)


__all__ = ["NETWORK_ERROR_TYPES"]
