"""Lock-guarded staging area for lines waiting for the next flush."""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Iterable, List

DEFAULT_PENDING_CAPACITY = 1000


class PendingLineBuffer:
    """
    Bounded queue shared by the output reader threads and the flush callback.

    Only two operations are exposed. ``append_batch`` returns True for the
    first batch after the buffer was last drained, which tells the caller to
    schedule a flush. ``drain_all`` empties the buffer and re-arms that flag.
    When more than ``capacity`` lines pile up between flushes the oldest are
    discarded, since the visible log would trim them anyway.
    """

    def __init__(self, capacity: int = DEFAULT_PENDING_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._lines: Deque[str] = deque(maxlen=capacity)
        self._flush_pending = False
        self._lock = threading.Lock()

    def append_batch(self, lines: Iterable[str]) -> bool:
        with self._lock:
            self._lines.extend(lines)
            if self._flush_pending or not self._lines:
                return False
            self._flush_pending = True
            return True

    def drain_all(self) -> List[str]:
        with self._lock:
            drained = list(self._lines)
            self._lines.clear()
            self._flush_pending = False
            return drained


__all__ = ["PendingLineBuffer", "DEFAULT_PENDING_CAPACITY"]
