"""
Throttled log collection for the supervised proxy process.

Output arrives from two reader threads (stdout and stderr) in small, frequent
chunks. Lines are staged in a :class:`PendingLineBuffer` and published to the
visible log at most once per flush interval, on the event loop that owns the
aggregator. Consumers subscribe with :meth:`LogAggregator.add_listener` and
receive each published batch.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from .log_aggregator_helpers import LogEntry, PendingLineBuffer

logger = logging.getLogger(__name__)

FLUSH_INTERVAL_SECONDS = 0.1
MAX_VISIBLE_ENTRIES = 300
TRIMMED_VISIBLE_ENTRIES = 200
TIMESTAMP_FORMAT = "%H:%M:%S"

LogListener = Callable[[List[LogEntry]], None]


class LogAggregator:
    """Buffer, throttle and timestamp lines streamed from a child process."""

    def __init__(
        self,
        *,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        flush_interval: float = FLUSH_INTERVAL_SECONDS,
        max_entries: int = MAX_VISIBLE_ENTRIES,
        trimmed_entries: int = TRIMMED_VISIBLE_ENTRIES,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        if trimmed_entries > max_entries:
            raise ValueError("trimmed_entries must not exceed max_entries")
        self._loop = loop
        self.flush_interval = flush_interval
        self.max_entries = max_entries
        self.trimmed_entries = trimmed_entries
        self._clock = clock
        self._pending = PendingLineBuffer()
        self._entries: List[LogEntry] = []
        self._listeners: List[LogListener] = []
        self.flush_count = 0

    @property
    def entries(self) -> List[LogEntry]:
        """Snapshot of the visible log, oldest first."""
        return list(self._entries)

    def bind_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """Deliver future flushes on ``loop``."""
        self._loop = loop

    def add_listener(self, listener: LogListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: LogListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def append_chunk(self, chunk: bytes) -> None:
        """Decode a raw output chunk and queue its non-empty lines."""
        if not chunk:
            return
        text = chunk.decode("utf-8", errors="replace")
        self.append_lines(text.splitlines())

    def append_lines(self, lines: Iterable[str]) -> None:
        """Queue lines for the next flush. Safe to call from any thread."""
        batch = [line for line in lines if line]
        if not batch:
            return
        scheduled = self._pending.append_batch(batch)
        # A flush queued on a loop that has since closed will never fire
        if scheduled or self._loop_closed():
            self._schedule_flush()

    def add_log(self, message: str) -> None:
        """Queue a supervisor-generated message alongside process output."""
        self.append_lines([message])

    def clear(self) -> None:
        self._entries = []

    def flush(self) -> List[LogEntry]:
        """
        Publish every pending line with a single timestamp.

        Returns:
            The batch appended to the visible log (possibly empty)
        """
        lines = self._pending.drain_all()
        if not lines:
            return []

        timestamp = self._clock().strftime(TIMESTAMP_FORMAT)
        batch = [LogEntry(timestamp=timestamp, text=line) for line in lines]
        self._entries.extend(batch)
        if len(self._entries) > self.max_entries:
            self._entries = self._entries[-self.trimmed_entries :]
        self.flush_count += 1
        self._notify(batch)
        return batch

    def _schedule_flush(self) -> None:
        loop = self._resolve_loop()
        if loop is None or loop.is_closed():
            # No delivery context left (e.g. interpreter shutdown)
            self.flush()
            return
        try:
            loop.call_soon_threadsafe(loop.call_later, self.flush_interval, self.flush)
        except RuntimeError:  # Loop closed between the check and the call  # policy_guard: allow-silent-handler
            logger.debug("Event loop closed while scheduling log flush; flushing inline")
            self.flush()

    def _loop_closed(self) -> bool:
        return self._loop is not None and self._loop.is_closed()

    def _resolve_loop(self) -> Optional[asyncio.AbstractEventLoop]:
        if self._loop is not None:
            return self._loop
        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:  # Called outside a running loop  # policy_guard: allow-silent-handler
            return None
        return self._loop

    def _notify(self, batch: List[LogEntry]) -> None:
        for listener in list(self._listeners):
            try:
                listener(batch)
            except (RuntimeError, ValueError, TypeError):  # Listener failure must not stop delivery  # policy_guard: allow-silent-handler
                logger.exception("Log listener %r failed", listener)


__all__ = [
    "FLUSH_INTERVAL_SECONDS",
    "LogAggregator",
    "LogEntry",
    "MAX_VISIBLE_ENTRIES",
    "TRIMMED_VISIBLE_ENTRIES",
]
