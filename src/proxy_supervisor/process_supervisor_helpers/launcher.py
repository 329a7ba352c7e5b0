"""Launching the proxy binary and wiring its output and exit to callbacks."""

from __future__ import annotations

import logging
import subprocess
import threading
from typing import IO, Any, Callable, List, Optional, Sequence

import psutil

logger = logging.getLogger(__name__)

READ_CHUNK_BYTES = 4096


def build_arguments(listen_host: str, port: int, log_level: str, dns_address: Optional[str]) -> List[str]:
    """Return the proxy argument vector (without the executable)."""
    arguments = [
        "--listen-addr",
        f"{listen_host}:{port}",
        "--log-level",
        log_level,
        "--system-proxy",
    ]
    if dns_address:
        arguments.extend(["--dns-addr", dns_address])
    return arguments


def launch_process(binary_path: str, arguments: Sequence[str]) -> psutil.Popen:
    """
    Start the proxy with piped stdout and stderr.

    Raises:
        OSError: When the operating system refuses to execute the binary
    """
    return psutil.Popen(
        [binary_path, *arguments],
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )


class OutputPump(threading.Thread):
    """
    Daemon thread forwarding raw chunks from one pipe until EOF.

    The pump owns its stream and closes it on exit. Other threads never close
    the stream directly, since that would block on a read in progress; they
    call :meth:`detach` and the pump stops forwarding after its current read.
    """

    def __init__(self, stream: IO[bytes], on_chunk: Callable[[bytes], None], *, channel: str) -> None:
        super().__init__(name=f"proxy-{channel}-pump", daemon=True)
        self._stream = stream
        self._on_chunk = on_chunk
        self._detached = threading.Event()
        self.channel = channel

    @property
    def detached(self) -> bool:
        return self._detached.is_set()

    def run(self) -> None:
        read = getattr(self._stream, "read1", self._stream.read)
        try:
            while not self._detached.is_set():
                try:
                    chunk = read(READ_CHUNK_BYTES)
                except (OSError, ValueError):  # Stream closed underneath us  # policy_guard: allow-silent-handler
                    break
                if not chunk or self._detached.is_set():
                    break
                self._on_chunk(chunk)
        finally:
            self._close_stream()
        logger.debug("Output pump for %s finished", self.channel)

    def detach(self) -> None:
        """Stop forwarding output; the stream is closed once the pending read returns."""
        self._detached.set()

    def _close_stream(self) -> None:
        try:
            self._stream.close()
        except (OSError, ValueError):  # Best-effort cleanup operation  # policy_guard: allow-silent-handler
            logger.debug("Closing %s stream failed", self.channel)


class TerminationWatcher(threading.Thread):
    """Daemon thread that blocks on ``process.wait()`` and reports the exit status."""

    def __init__(self, process: Any, on_exit: Callable[[Any, Optional[int]], None]) -> None:
        super().__init__(name=f"proxy-exit-watcher-{getattr(process, 'pid', '?')}", daemon=True)
        self._process = process
        self._on_exit = on_exit

    def run(self) -> None:
        try:
            exit_code = self._process.wait()
        except (OSError, psutil.Error) as exc:  # Exit status unavailable  # policy_guard: allow-silent-handler
            logger.warning("Could not read proxy exit status: %s", exc)
            exit_code = None
        self._on_exit(self._process, exit_code)


def start_output_pumps(process: Any, on_chunk: Callable[[bytes], None]) -> List[OutputPump]:
    """Start one pump per available pipe of ``process``."""
    pumps: List[OutputPump] = []
    for channel in ("stdout", "stderr"):
        stream = getattr(process, channel, None)
        if stream is None:
            continue
        pump = OutputPump(stream, on_chunk, channel=channel)
        pump.start()
        pumps.append(pump)
    return pumps


__all__ = [
    "OutputPump",
    "READ_CHUNK_BYTES",
    "TerminationWatcher",
    "build_arguments",
    "launch_process",
    "start_output_pumps",
]
