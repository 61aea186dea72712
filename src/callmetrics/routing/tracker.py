"""Audio route transition tracker.

Pairs asynchronous "route entered" / "route exited" signals into single
transition records and classifies each as successful, failed, or reverted.

States
------
IDLE           : No transition is pending.
IN_TRANSITION  : One transition is pending and a finalize timer is armed.

Transitions
-----------
IDLE           → IN_TRANSITION   (outer enter)
IN_TRANSITION  → IN_TRANSITION   (outer enter finalizes the pending record
                                  and starts a new one)
IN_TRANSITION  → IDLE            (finalize timer expiry)

Exit signals never change state; they complete the pending record.  An
enter whose exit never arrived keeps later enters ignored until that exit
shows up, even after the timer has finalized the record.

Enter signals are ignored while an earlier enter has not yet seen its exit,
so only the outermost enter of a nested routing sequence starts a record.
A record is finalized either by the next outer enter or when the revert
threshold elapses after its enter.  Routing back to the record's source
within that threshold marks the record as reverted before it is logged.

All methods must run on the owning metric's task queue; the finalize timer is
posted to the same queue, so it never races with enter/exit handling.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from callmetrics.schema.keys import AudioRouteStatsKey
from callmetrics.telemetry.clock import Clock
from callmetrics.telemetry.task_queue import TaskExecutor

logger = logging.getLogger(__name__)

FinalizeCallback = Callable[[AudioRouteStatsKey, int], None]
"""Callback signature: (key, latency_ms) → None."""


class TrackerState(str, Enum):
    IDLE = "idle"
    IN_TRANSITION = "in_transition"


@dataclass
class PendingTransition:
    """A started transition awaiting finalization.

    ``exit_time`` stays ``None`` until an exit is observed.
    """

    source: int
    dest: int
    enter_time: int
    exit_time: int | None = None
    is_success: bool = False
    is_revert: bool = False

    def to_key(self) -> AudioRouteStatsKey:
        return AudioRouteStatsKey(self.source, self.dest, self.is_success, self.is_revert)


class RouteTransitionTracker:
    """Timer-driven state machine producing finalized route transitions.

    Parameters
    ----------
    executor:
        Task queue of the owning metric; the finalize timer is posted here.
    clock:
        Elapsed-time source used when a timer finalizes a record that never
        saw its exit.
    on_finalized:
        Receives ``(key, latency_ms)`` for every non-degenerate record.
    revert_threshold_ms:
        Revert window and finalize delay.

    Example
    -------
    ::

        tracker = RouteTransitionTracker(queue, clock, stats.record_latency)
        tracker.enter_route(EARPIECE, BLUETOOTH_LE, now=0)
        tracker.exit_route(BLUETOOTH_LE, True, now=200)
        # 5 s later the timer logs (EARPIECE, BLUETOOTH_LE, True, False) → 200 ms
    """

    def __init__(
        self,
        executor: TaskExecutor,
        clock: Clock,
        on_finalized: FinalizeCallback,
        revert_threshold_ms: int,
    ) -> None:
        self._executor = executor
        self._clock = clock
        self._on_finalized = on_finalized
        self._revert_threshold_ms = revert_threshold_ms
        self._pending: PendingTransition | None = None
        self._is_ongoing = False
        self._timer_token = ("revert_threshold_expired", id(self))

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> TrackerState:
        if self._pending is None:
            return TrackerState.IDLE
        return TrackerState.IN_TRANSITION

    @property
    def pending(self) -> PendingTransition | None:
        return self._pending

    @property
    def is_ongoing(self) -> bool:
        """True between an accepted enter and its exit."""
        return self._is_ongoing

    @property
    def timer_armed(self) -> bool:
        return self._executor.has_pending(self._timer_token)

    # ------------------------------------------------------------------
    # Signals
    # ------------------------------------------------------------------

    def enter_route(self, source: int, dest: int, now: int) -> None:
        """Start a transition from *source* to *dest* entered at *now*."""
        if self._is_ongoing:
            logger.debug("Ignoring nested route enter %s → %s", source, dest)
            return
        self._is_ongoing = True

        previous = self._pending
        if previous is not None:
            if dest == previous.source and now - previous.enter_time < self._revert_threshold_ms:
                previous.is_revert = True
            if previous.exit_time is None:
                previous.exit_time = now
            self._finalize()

        self._pending = PendingTransition(source=source, dest=dest, enter_time=now)
        self._executor.cancel(self._timer_token)
        self._executor.post_delayed(
            self._on_revert_threshold_expired,
            self._revert_threshold_ms,
            token=self._timer_token,
        )
        logger.debug("Route transition %s → %s entered at %d", source, dest, now)

    def exit_route(self, dest: int, is_success: bool, now: int) -> None:
        """Complete the pending transition; the exit's *dest* is authoritative."""
        if not self._is_ongoing:
            return
        self._is_ongoing = False
        pending = self._pending
        if pending is None:
            return
        pending.dest = dest
        pending.is_success = is_success
        pending.exit_time = now

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    def _on_revert_threshold_expired(self) -> None:
        # The guard stays set: a late exit for the expired record must not
        # land on the next one.
        self._finalize()

    def _finalize(self) -> None:
        pending = self._pending
        if pending is None:
            return
        self._pending = None
        if pending.source == pending.dest:
            logger.debug("Discarding no-op route transition to %s", pending.dest)
            return
        if pending.exit_time is None:
            pending.exit_time = self._clock.elapsed_millis()
        latency = pending.exit_time - pending.enter_time
        logger.debug("Finalized route transition %s in %d ms", pending, latency)
        self._on_finalized(pending.to_key(), latency)

    def __repr__(self) -> str:
        return (
            f"RouteTransitionTracker(state={self.state.value!r}, "
            f"is_ongoing={self._is_ongoing})"
        )


__all__ = [
    "FinalizeCallback",
    "PendingTransition",
    "RouteTransitionTracker",
    "TrackerState",
]
