"""Bounded auto-restart policy for unexpected proxy exits."""

from __future__ import annotations

import logging

from .types import CrashDecision, CrashRecord

logger = logging.getLogger(__name__)


class CrashPolicy:
    """
    Decide whether an unexpected exit should trigger another restart.

    The counter starts over when the previous crash is older than
    ``reset_window_seconds``. Below ``max_crash_count`` the exit is counted and
    a restart is allowed; at the limit the policy refuses and the count is
    left untouched, so ``max_crash_count`` crashes in a row produce exactly
    that many restarts and the next crash gives up.
    """

    def __init__(self, max_crash_count: int = 3, reset_window_seconds: float = 60.0) -> None:
        self.max_crash_count = max_crash_count
        self.reset_window_seconds = reset_window_seconds
        self.record = CrashRecord()

    def register_crash(self, now: float) -> CrashDecision:
        last = self.record.last_crash_time
        if last is not None and now - last > self.reset_window_seconds:
            logger.debug("Last crash %.1fs ago; resetting crash count", now - last)
            self.record.count = 0

        if self.record.count >= self.max_crash_count:
            return CrashDecision(should_restart=False, attempt=self.record.count, max_attempts=self.max_crash_count)

        self.record.count += 1
        self.record.last_crash_time = now
        return CrashDecision(should_restart=True, attempt=self.record.count, max_attempts=self.max_crash_count)

    def reset(self) -> None:
        """Forget the crash count after a stable run."""
        self.record.count = 0

    def clear(self) -> None:
        """Drop all crash history, including the last crash time."""
        self.record = CrashRecord()
