from __future__ import annotations

"""Utility helpers for scheduling asyncio coroutines from synchronous callbacks."""

import asyncio
import logging
from typing import Any, Callable, Coroutine, Optional, Set, Union

logger = logging.getLogger(__name__)

CoroutineFactory = Callable[[], Coroutine[Any, Any, Any]]

# Strong references so scheduled tasks are not garbage collected mid-flight
_BACKGROUND_TASKS: Set["asyncio.Task[Any]"] = set()


def safely_schedule_coroutine(
    coro_or_factory: Union[Coroutine[Any, Any, Any], CoroutineFactory],
    *,
    loop: Optional[asyncio.AbstractEventLoop] = None,
) -> Optional["asyncio.Task[Any]"]:
    """
    Schedule the provided coroutine on ``loop`` or the running loop.

    Accept either a coroutine object or a zero-argument callable that returns a
    coroutine, which prevents creating the coroutine unless scheduling actually
    happens. Returns None when no usable loop exists.
    """
    target = loop
    if target is None:
        try:
            target = asyncio.get_running_loop()
        except RuntimeError:  # No loop in this thread  # policy_guard: allow-silent-handler
            logger.debug("No running event loop; coroutine not scheduled")
            _close_if_coroutine(coro_or_factory)
            return None

    if target.is_closed():
        logger.debug("Event loop closed; coroutine not scheduled")
        _close_if_coroutine(coro_or_factory)
        return None

    task = target.create_task(_resolve_coroutine(coro_or_factory))
    _BACKGROUND_TASKS.add(task)
    task.add_done_callback(_BACKGROUND_TASKS.discard)
    return task


def _close_if_coroutine(coro_or_factory: Union[Coroutine[Any, Any, Any], CoroutineFactory]) -> None:
    if asyncio.iscoroutine(coro_or_factory):
        coro_or_factory.close()


def _resolve_coroutine(
    coro_or_factory: Union[Coroutine[Any, Any, Any], CoroutineFactory],
) -> Coroutine[Any, Any, Any]:
    """Turn the input into a coroutine object for scheduling."""
    if asyncio.iscoroutine(coro_or_factory):
        return coro_or_factory

    if callable(coro_or_factory):
        result = coro_or_factory()
        if not asyncio.iscoroutine(result):
            raise TypeError("Callable passed to safely_schedule_coroutine must return a coroutine")
        return result

    raise TypeError("safely_schedule_coroutine expects a coroutine or a callable returning one")


__all__ = ["safely_schedule_coroutine"]
