"""Helpers backing :mod:`proxy_supervisor.log_aggregator`."""

from .pending_buffer import DEFAULT_PENDING_CAPACITY, PendingLineBuffer
from .types import LogEntry

__all__ = ["DEFAULT_PENDING_CAPACITY", "LogEntry", "PendingLineBuffer"]
