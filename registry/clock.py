"""
DSS Collection - Clock Sources

The registry never trusts a caller-supplied timestamp. Time-bound checks and
mint timestamps come from a clock injected at construction.
"""

import time
from threading import Lock
from typing import Protocol


class Clock(Protocol):
    """Source of the current timestamp in UNIX seconds."""

    def now(self) -> float:
        ...


class SystemClock:
    """Wall clock."""

    def now(self) -> float:
        return time.time()


class FixedClock:
    """Manually driven clock for tests and replays."""

    def __init__(self, timestamp: float = 0.0):
        self._timestamp = float(timestamp)
        self._lock = Lock()

    def now(self) -> float:
        with self._lock:
            return self._timestamp

    def set(self, timestamp: float) -> None:
        with self._lock:
            self._timestamp = float(timestamp)

    def advance(self, seconds: float) -> float:
        """Move the clock forward and return the new timestamp."""
        if seconds < 0:
            raise ValueError("Clock cannot move backwards")
        with self._lock:
            self._timestamp += seconds
            return self._timestamp
