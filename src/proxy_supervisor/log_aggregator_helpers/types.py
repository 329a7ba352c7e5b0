"""Type definitions for the log aggregator."""

from dataclasses import dataclass


@dataclass(frozen=True)
class LogEntry:
    """A single timestamped line of child process output."""

    timestamp: str
    text: str

    def __str__(self) -> str:
        return f"[{self.timestamp}] {self.text}"
