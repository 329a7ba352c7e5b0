"""Error types raised by the proxy supervisor."""

from __future__ import annotations


class ProxySupervisorError(RuntimeError):
    """Base class for failures surfaced to callers of the supervisor."""


class BinaryNotFoundError(ProxySupervisorError):
    """Raised when the proxy executable is missing from every search path."""

    def __init__(self, binary_name: str, searched_paths: tuple[str, ...] = ()) -> None:
        message = f"{binary_name} binary not found"
        if searched_paths:
            message += f" (searched: {', '.join(searched_paths)})"
        super().__init__(message)
        self.binary_name = binary_name
        self.searched_paths = searched_paths


class NoPortsAvailableError(ProxySupervisorError):
    """Raised when every port in the allocator range is taken."""

    def __init__(self, first_port: int, last_port: int) -> None:
        super().__init__(f"No available ports found in range {first_port}-{last_port}")
        self.first_port = first_port
        self.last_port = last_port


class StartFailedError(ProxySupervisorError):
    """Raised when the operating system refuses to launch the proxy."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to start process: {reason}")
        self.reason = reason


class AlreadyRunningError(ProxySupervisorError):
    """Raised when ``start`` is requested while a process is starting or running."""

    def __init__(self) -> None:
        super().__init__("Process is already running")


class CrashLoopExceededError(ProxySupervisorError):
    """Raised when the supervisor gave up restarting after repeated crashes."""

    def __init__(self, crash_count: int) -> None:
        super().__init__(f"Maximum restart attempts reached after {crash_count} crashes")
        self.crash_count = crash_count


__all__ = [
    "AlreadyRunningError",
    "BinaryNotFoundError",
    "CrashLoopExceededError",
    "NoPortsAvailableError",
    "ProxySupervisorError",
    "StartFailedError",
]
