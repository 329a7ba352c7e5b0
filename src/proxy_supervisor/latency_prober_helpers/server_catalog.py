"""Static catalog of public DNS resolvers offered to the proxy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class ServerDescriptor:
    """A selectable DNS resolver."""

    id: str
    name: str
    address: str
    description: str

    @property
    def host(self) -> str:
        return self.address.rsplit(":", 1)[0] if ":" in self.address else self.address

    @property
    def is_automatic(self) -> bool:
        return not self.address


DNS_SERVERS: Tuple[ServerDescriptor, ...] = (
    ServerDescriptor(id="cloudflare", name="Cloudflare", address="1.1.1.1:53", description="Fast and private"),
    ServerDescriptor(id="google", name="Google", address="8.8.8.8:53", description="Reliable"),
    ServerDescriptor(id="quad9", name="Quad9", address="9.9.9.9:53", description="Security focused"),
    ServerDescriptor(id="adguard", name="AdGuard", address="94.140.14.14:53", description="Ad blocking"),
    ServerDescriptor(id="cisco", name="OpenDNS", address="208.67.222.222:53", description="Backed by Cisco"),
)

AUTOMATIC = ServerDescriptor(id="auto", name="Automatic (fastest)", address="", description="Picks the best server")

DEFAULT_SERVER = DNS_SERVERS[0]


def find_server(server_id: str, servers: Tuple[ServerDescriptor, ...] = DNS_SERVERS) -> Optional[ServerDescriptor]:
    """Return the catalog entry for ``server_id`` (including ``auto``), or None."""
    if server_id == AUTOMATIC.id:
        return AUTOMATIC
    for server in servers:
        if server.id == server_id:
            return server
    return None


__all__ = ["AUTOMATIC", "DEFAULT_SERVER", "DNS_SERVERS", "ServerDescriptor", "find_server"]
