"""Shared fixtures for callmetrics-sdk tests.

``ManualExecutor`` stands in for a metric's task queue: tasks run only when a
test calls :meth:`ManualExecutor.run_pending` or :meth:`ManualExecutor.advance`,
in the same ``(due time, post order)`` order the threaded queue uses.  When it
is given a :class:`FakeClock`, advancing virtual time moves the clock too.
"""
from __future__ import annotations

import heapq
import itertools
from collections.abc import Hashable

import pytest

from callmetrics.schema.config import MetricsConfig
from callmetrics.telemetry.clock import Clock
from callmetrics.telemetry.storage import MemoryStorage
from callmetrics.telemetry.task_queue import Task, TaskExecutor

WALL_EPOCH_MS = 1_700_000_000_000


class FakeClock(Clock):
    def __init__(self, wall: int = WALL_EPOCH_MS, elapsed: int = 0) -> None:
        self.wall = wall
        self.elapsed = elapsed

    def wall_millis(self) -> int:
        return self.wall

    def elapsed_millis(self) -> int:
        return self.elapsed

    def advance(self, ms: int) -> None:
        self.wall += ms
        self.elapsed += ms


class ManualExecutor(TaskExecutor):
    def __init__(self, clock: FakeClock | None = None) -> None:
        self.clock = clock
        self.now = 0
        self.shut_down = False
        self._heap: list[tuple[int, int, Task, Hashable | None]] = []
        self._seq = itertools.count()

    def post_delayed(
        self,
        task: Task,
        delay_ms: int,
        *,
        token: Hashable | None = None,
    ) -> bool:
        if self.shut_down:
            return False
        heapq.heappush(self._heap, (self.now + max(delay_ms, 0), next(self._seq), task, token))
        return True

    def has_pending(self, token: Hashable) -> bool:
        return any(entry[3] == token for entry in self._heap)

    def cancel(self, token: Hashable) -> int:
        kept = [entry for entry in self._heap if entry[3] != token]
        removed = len(self._heap) - len(kept)
        heapq.heapify(kept)
        self._heap = kept
        return removed

    def shutdown(self) -> None:
        self.shut_down = True
        self._heap = [entry for entry in self._heap if entry[0] <= self.now]
        heapq.heapify(self._heap)
        self.run_pending()

    @property
    def pending_count(self) -> int:
        return len(self._heap)

    def run_pending(self) -> int:
        """Run every task due at the current virtual time; return how many ran."""
        ran = 0
        while self._heap and self._heap[0][0] <= self.now:
            _, _, task, _ = heapq.heappop(self._heap)
            task()
            ran += 1
        return ran

    def advance(self, ms: int) -> int:
        """Move virtual time forward by *ms*, running tasks as they fall due."""
        target = self.now + ms
        ran = self.run_pending()
        while self._heap and self._heap[0][0] <= target:
            self._step_to(self._heap[0][0])
            ran += self.run_pending()
        self._step_to(target)
        return ran + self.run_pending()

    def _step_to(self, when: int) -> None:
        delta = when - self.now
        if delta > 0 and self.clock is not None:
            self.clock.advance(delta)
        self.now = max(self.now, when)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def executor(clock: FakeClock) -> ManualExecutor:
    return ManualExecutor(clock)


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def config() -> MetricsConfig:
    return MetricsConfig()
