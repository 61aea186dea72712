"""Time sources used by the aggregators.

Two readings are needed: wall-clock milliseconds for the pull rate limit
(persisted across restarts) and a monotonic elapsed reading for route
transition latencies (immune to wall-clock adjustments).
"""
from __future__ import annotations

import time
from abc import ABC, abstractmethod


class Clock(ABC):
    """Source of wall-clock and elapsed millisecond readings."""

    @abstractmethod
    def wall_millis(self) -> int:
        """Milliseconds since the Unix epoch."""

    @abstractmethod
    def elapsed_millis(self) -> int:
        """Monotonic milliseconds from an arbitrary origin."""


class SystemClock(Clock):
    """Clock backed by :func:`time.time_ns` and :func:`time.monotonic_ns`."""

    def wall_millis(self) -> int:
        return time.time_ns() // 1_000_000

    def elapsed_millis(self) -> int:
        return time.monotonic_ns() // 1_000_000

    def __repr__(self) -> str:
        return "SystemClock()"


__all__ = ["Clock", "SystemClock"]
