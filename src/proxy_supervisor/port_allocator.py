"""
Free local port discovery for the proxy listener.

The allocator only checks availability: it binds a throwaway socket, closes
it, and hands the number to the caller. Another process can still grab the
port before the proxy binds it, so callers must treat a failed launch as a
normal start failure.
"""

from __future__ import annotations

import logging
import socket
from typing import Iterator, Tuple

from .errors import NoPortsAvailableError
from .settings import DEFAULT_PORT_RANGE_END, DEFAULT_PORT_RANGE_START

logger = logging.getLogger(__name__)

WILDCARD_HOST = ""


class PortAllocator:
    """Scan a closed port range in ascending order for a bindable TCP port."""

    def __init__(
        self,
        port_range: Tuple[int, int] = (DEFAULT_PORT_RANGE_START, DEFAULT_PORT_RANGE_END),
        host: str = WILDCARD_HOST,
    ) -> None:
        first_port, last_port = port_range
        if first_port > last_port:
            raise ValueError(f"Invalid port range {first_port}-{last_port}")
        self.first_port = first_port
        self.last_port = last_port
        self.host = host

    def candidate_ports(self) -> Iterator[int]:
        return iter(range(self.first_port, self.last_port + 1))

    def find_available_port(self) -> int:
        """
        Return the first port in range that can currently be bound.

        Raises:
            NoPortsAvailableError: If every port in the range is taken
        """
        for port in self.candidate_ports():
            if self.is_port_available(port):
                logger.info("Found available port: %s", port)
                return port
        logger.warning("No free port in range %s-%s", self.first_port, self.last_port)
        raise NoPortsAvailableError(self.first_port, self.last_port)

    def is_port_available(self, port: int) -> bool:
        """Return True when a TCP socket can bind ``port`` right now."""
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        except OSError as exc:  # policy_guard: allow-silent-handler
            logger.debug("Socket creation failed while checking port %s: %s", port, exc)
            return False
        try:
            sock.bind((self.host, port))
        except OSError:  # Port in use  # policy_guard: allow-silent-handler
            return False
        finally:
            sock.close()
        return True


__all__ = ["PortAllocator", "WILDCARD_HOST"]
