"""Delayed restart timer bound to the supervisor's event loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RestartScheduler:
    """
    Single-slot timer for the next automatic restart.

    Scheduling replaces any pending timer. The callback receives no captured
    state: it must inspect the supervisor when it fires, because a user stop
    may have happened in between.
    """

    def __init__(self) -> None:
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None and not self._handle.cancelled()

    def schedule(self, loop: asyncio.AbstractEventLoop, delay: float, callback: Callable[[], None]) -> None:
        self.cancel()
        self._handle = loop.call_later(delay, self._fire, callback)
        logger.debug("Restart scheduled in %.2fs", delay)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, callback: Callable[[], None]) -> None:
        self._handle = None
        callback()
