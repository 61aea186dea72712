"""Single-threaded task queues for callmetrics-sdk.

Every pulled metric owns one queue.  All mutation of the metric's store and
of its route tracker happens as tasks on that queue, which is the sole
serialization mechanism for event handling.

Shipped in this module
----------------------
- TaskExecutor — ABC: post / post_delayed / has_pending / cancel / shutdown
- TaskQueue    — daemon worker thread draining a time-ordered task heap

Tasks due at the same instant run in the order they were posted.  A task may
carry a *token*; tokens let the persistence debounce ask "is a save already
scheduled?" and let the route tracker replace its finalize timer.
"""
from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Hashable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

Task = Callable[[], object]


class TaskExecutor(ABC):
    """Abstract FIFO executor with delayed, cancellable tasks."""

    def post(self, task: Task, *, token: Hashable | None = None) -> bool:
        """Enqueue *task* to run as soon as the tasks ahead of it finish.

        Returns
        -------
        bool
            ``False`` if the executor has been shut down and the task was
            dropped.
        """
        return self.post_delayed(task, 0, token=token)

    @abstractmethod
    def post_delayed(
        self,
        task: Task,
        delay_ms: int,
        *,
        token: Hashable | None = None,
    ) -> bool:
        """Enqueue *task* to run no earlier than *delay_ms* from now."""

    @abstractmethod
    def has_pending(self, token: Hashable) -> bool:
        """Return True if a task tagged with *token* is still waiting to run."""

    @abstractmethod
    def cancel(self, token: Hashable) -> int:
        """Drop every waiting task tagged with *token*; return how many."""

    @abstractmethod
    def shutdown(self) -> None:
        """Run tasks that are already due, drop delayed ones, then stop."""


@dataclass(order=True)
class _ScheduledTask:
    due: float
    seq: int
    task: Task = field(compare=False)
    token: Hashable | None = field(default=None, compare=False)


class TaskQueue(TaskExecutor):
    """Thread-backed :class:`TaskExecutor`.

    One daemon thread pops tasks in ``(due time, post order)`` order.  A task
    that raises is logged with its traceback and the worker carries on.

    Parameters
    ----------
    name:
        Worker thread name, used in log records.

    Examples
    --------
    >>> queue = TaskQueue("example")
    >>> seen = []
    >>> queue.post(lambda: seen.append(1))
    True
    >>> queue.wait_idle(1.0)
    True
    >>> seen
    [1]
    >>> queue.shutdown()
    """

    def __init__(self, name: str = "callmetrics-queue") -> None:
        self._name = name
        self._cond = threading.Condition()
        self._heap: list[_ScheduledTask] = []
        self._seq = itertools.count()
        self._busy = False
        self._quitting = False
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    # ------------------------------------------------------------------
    # Posting
    # ------------------------------------------------------------------

    def post_delayed(
        self,
        task: Task,
        delay_ms: int,
        *,
        token: Hashable | None = None,
    ) -> bool:
        with self._cond:
            if self._quitting:
                logger.warning("Task queue %s is shut down; dropping %r", self._name, task)
                return False
            due = time.monotonic() + max(delay_ms, 0) / 1000.0
            heapq.heappush(self._heap, _ScheduledTask(due, next(self._seq), task, token))
            self._cond.notify_all()
        return True

    def has_pending(self, token: Hashable) -> bool:
        with self._cond:
            return any(entry.token == token for entry in self._heap)

    def cancel(self, token: Hashable) -> int:
        with self._cond:
            kept = [entry for entry in self._heap if entry.token != token]
            removed = len(self._heap) - len(kept)
            if removed:
                heapq.heapify(kept)
                self._heap = kept
                self._cond.notify_all()
        return removed

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def shutdown(self, timeout: float = 5.0) -> None:
        with self._cond:
            if self._quitting:
                return
            self._quitting = True
            now = time.monotonic()
            self._heap = [entry for entry in self._heap if entry.due <= now]
            heapq.heapify(self._heap)
            self._cond.notify_all()
        if threading.current_thread() is not self._thread:
            self._thread.join(timeout)
        logger.debug("Task queue %s stopped", self._name)

    @property
    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until no task is due or running.

        Delayed tasks that are not yet due do not count.  Mostly useful in
        tests and at shutdown.

        Returns
        -------
        bool
            ``False`` if *timeout* seconds elapsed first.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while True:
                now = time.monotonic()
                due_waiting = any(entry.due <= now for entry in self._heap)
                if not due_waiting and not self._busy:
                    return True
                if deadline is not None and now >= deadline:
                    return False
                wait = 0.05 if deadline is None else min(0.05, deadline - now)
                self._cond.wait(wait)

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _next_task(self) -> _ScheduledTask | None:
        with self._cond:
            while True:
                if not self._heap:
                    if self._quitting:
                        return None
                    self._cond.wait()
                    continue
                head = self._heap[0]
                wait = head.due - time.monotonic()
                if wait <= 0:
                    heapq.heappop(self._heap)
                    self._busy = True
                    return head
                self._cond.wait(wait)

    def _run(self) -> None:
        while True:
            entry = self._next_task()
            if entry is None:
                return
            try:
                entry.task()
            except Exception:
                logger.exception("Task %r failed on queue %s", entry.task, self._name)
            finally:
                with self._cond:
                    self._busy = False
                    self._cond.notify_all()

    def __repr__(self) -> str:
        with self._cond:
            pending = len(self._heap)
        return f"TaskQueue(name={self._name!r}, pending={pending}, quitting={self._quitting})"


__all__ = ["Task", "TaskExecutor", "TaskQueue"]
