#!/usr/bin/env python3
"""Run the supervised proxy from a terminal.

Probes the DNS catalog (unless a server id is given), starts the proxy on the
first free port and keeps it alive until Ctrl+C.

Usage:
    python -m scripts.run_proxy [--dns auto|cloudflare|google|...] [--probe-only]
"""

import argparse
import asyncio
import logging

from proxy_supervisor.latency_prober import LatencyProber
from proxy_supervisor.latency_prober_helpers import AUTOMATIC, DNS_SERVERS
from proxy_supervisor.service_runner import run_async_service, serve

logger = logging.getLogger(__name__)


async def probe_only() -> None:
    """Print one probing round, fastest first."""
    prober = LatencyProber()
    latencies = await prober.measure_all()
    for server in sorted(DNS_SERVERS, key=lambda entry: latencies.get(entry.id, 0)):
        print(f"  {server.name:<12} {server.address:<20} {latencies.get(server.id)} ms")
    if prober.best_server is not None:
        print(f"\nBest server: {prober.best_server.name}")


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Supervise the local DPI bypass proxy")
    parser.add_argument(
        "--dns",
        default=AUTOMATIC.id,
        choices=[AUTOMATIC.id, *(server.id for server in DNS_SERVERS)],
        help="DNS server id, or 'auto' to pick the fastest",
    )
    parser.add_argument("--probe-only", action="store_true", help="Measure DNS latency and exit")
    args = parser.parse_args()

    if args.probe_only:
        logging.basicConfig(level=logging.WARNING, format="%(message)s")
        asyncio.run(probe_only())
        return

    run_async_service(lambda: serve(args.dns), service_name="proxy_supervisor")


if __name__ == "__main__":
    main()
