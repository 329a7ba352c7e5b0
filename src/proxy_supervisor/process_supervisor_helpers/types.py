"""Type definitions for the process supervisor."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SupervisorState(Enum):
    """Lifecycle states of the supervised proxy"""

    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    CRASH_LOOP_EXCEEDED = "crash_loop_exceeded"


@dataclass
class CrashRecord:
    """Crash bookkeeping used by the auto-restart policy"""

    count: int = 0
    last_crash_time: Optional[float] = None


@dataclass(frozen=True)
class CrashDecision:
    """Outcome of applying the crash policy to one unexpected exit"""

    should_restart: bool
    attempt: int
    max_attempts: int
