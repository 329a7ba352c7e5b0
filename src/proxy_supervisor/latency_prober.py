"""
DNS resolver latency probing and best-server selection.

Each round probes every catalog entry concurrently with a TCP connect to
port 53. ``latencies`` is cleared at the start of a round and filled in as
individual probes finish, so readers may observe a partially populated
mapping while a round is in flight.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional, Sequence, Tuple

from .config import ConfigurationError
from .latency_prober_helpers import (
    AUTOMATIC,
    DEFAULT_SERVER,
    DNS_SERVERS,
    UNREACHABLE_LATENCY_MS,
    ConnectionOpener,
    ServerDescriptor,
    find_server,
    measure_connect_latency,
)
from .settings import ProberSettings

logger = logging.getLogger(__name__)


def select_best_server(servers: Sequence[ServerDescriptor], latencies: Dict[str, int]) -> Optional[ServerDescriptor]:
    """
    Return the reachable server with the lowest latency.

    Ties go to the server listed first in ``servers``; entries at or above the
    unreachable sentinel are ignored.
    """
    best: Optional[ServerDescriptor] = None
    best_ms = UNREACHABLE_LATENCY_MS
    for server in servers:
        measured = latencies.get(server.id)
        if measured is None:
            continue
        if measured < best_ms:
            best = server
            best_ms = measured
    return best


class LatencyProber:
    """Measure and rank the DNS servers in a fixed catalog."""

    def __init__(
        self,
        servers: Sequence[ServerDescriptor] = DNS_SERVERS,
        settings: Optional[ProberSettings] = None,
        *,
        open_connection: ConnectionOpener = asyncio.open_connection,
    ) -> None:
        self.servers: Tuple[ServerDescriptor, ...] = tuple(servers)
        self.settings = settings or ProberSettings()
        self._open_connection = open_connection
        self.latencies: Dict[str, int] = {}
        self.best_server: Optional[ServerDescriptor] = None
        self.is_probing = False

    async def probe(self, server: ServerDescriptor) -> int:
        """Return the connect latency for ``server`` in ms, or the sentinel."""
        return await measure_connect_latency(
            server.host,
            self.settings.probe_port,
            timeout=self.settings.probe_timeout_seconds,
            open_connection=self._open_connection,
        )

    async def _probe_entry(self, server: ServerDescriptor) -> Tuple[str, int]:
        return server.id, await self.probe(server)

    async def measure_all(self) -> Dict[str, int]:
        """
        Probe every server concurrently and update ``best_server``.

        Returns:
            Snapshot of the completed latency mapping
        """
        self.is_probing = True
        self.latencies = {}
        try:
            pending = [self._probe_entry(server) for server in self.servers]
            for finished in asyncio.as_completed(pending):
                server_id, latency_ms = await finished
                self.latencies[server_id] = latency_ms
        finally:
            self.is_probing = False

        best = select_best_server(self.servers, self.latencies)
        if best is None:
            logger.warning("All %d DNS servers unreachable; keeping previous best server", len(self.servers))
        else:
            self.best_server = best
            logger.info("Best DNS server: %s (%sms)", best.name, self.latencies[best.id])
        return dict(self.latencies)

    async def resolve_dns_address(self, server_id: str) -> str:
        """
        Return the resolver address to hand to the proxy for ``server_id``.

        ``auto`` runs a probing round and uses the fastest server, falling back
        to the default server when nothing answers.

        Raises:
            ConfigurationError: If ``server_id`` is not in the catalog
        """
        server = find_server(server_id, self.servers)
        if server is None:
            raise ConfigurationError.unknown_server(server_id)
        if server is not AUTOMATIC:
            return server.address

        await self.measure_all()
        chosen = self.best_server or DEFAULT_SERVER
        return chosen.address


__all__ = ["LatencyProber", "UNREACHABLE_LATENCY_MS", "select_best_server"]
