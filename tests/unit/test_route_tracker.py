"""Unit tests for callmetrics.routing.tracker (RouteTransitionTracker)."""
from __future__ import annotations

import pytest

from callmetrics.routing.tracker import RouteTransitionTracker, TrackerState
from callmetrics.schema.keys import AudioRouteStatsKey, CallAudioRoute

EARPIECE = CallAudioRoute.EARPIECE
SPEAKER = CallAudioRoute.PHONE_SPEAKER
BLUETOOTH = CallAudioRoute.BLUETOOTH
BLE = CallAudioRoute.BLUETOOTH_LE

THRESHOLD = 5_000


class _Recorder:
    def __init__(self) -> None:
        self.records: list[tuple[AudioRouteStatsKey, int]] = []

    def __call__(self, key: AudioRouteStatsKey, latency: int) -> None:
        self.records.append((key, latency))


@pytest.fixture
def recorder() -> _Recorder:
    return _Recorder()


@pytest.fixture
def tracker(executor, clock, recorder: _Recorder) -> RouteTransitionTracker:
    return RouteTransitionTracker(executor, clock, recorder, THRESHOLD)


# ---------------------------------------------------------------------------
# Basic transitions
# ---------------------------------------------------------------------------


class TestBasicTransition:
    def test_starts_idle(self, tracker: RouteTransitionTracker) -> None:
        assert tracker.state is TrackerState.IDLE
        assert tracker.pending is None
        assert not tracker.is_ongoing
        assert not tracker.timer_armed

    def test_enter_arms_timer_and_sets_guard(self, tracker: RouteTransitionTracker) -> None:
        tracker.enter_route(EARPIECE, BLE, now=0)
        assert tracker.state is TrackerState.IN_TRANSITION
        assert tracker.is_ongoing
        assert tracker.timer_armed

    def test_plain_enter_exit_logs_one_record_at_timer(
        self, tracker: RouteTransitionTracker, executor, recorder: _Recorder
    ) -> None:
        tracker.enter_route(EARPIECE, BLE, now=0)
        tracker.exit_route(BLE, True, now=200)
        assert recorder.records == []
        assert not tracker.is_ongoing

        executor.advance(THRESHOLD)
        assert recorder.records == [(AudioRouteStatsKey(EARPIECE, BLE, True, False), 200)]
        assert tracker.state is TrackerState.IDLE

    def test_exit_destination_is_authoritative(
        self, tracker: RouteTransitionTracker, executor, recorder: _Recorder
    ) -> None:
        tracker.enter_route(EARPIECE, BLE, now=0)
        tracker.exit_route(SPEAKER, False, now=80)
        executor.advance(THRESHOLD)
        assert recorder.records == [(AudioRouteStatsKey(EARPIECE, SPEAKER, False, False), 80)]

    def test_exit_without_enter_is_ignored(
        self, tracker: RouteTransitionTracker, executor, recorder: _Recorder
    ) -> None:
        tracker.exit_route(BLE, True, now=10)
        executor.advance(THRESHOLD)
        assert recorder.records == []
        assert tracker.state is TrackerState.IDLE

    def test_same_source_and_dest_is_discarded(
        self, tracker: RouteTransitionTracker, executor, recorder: _Recorder
    ) -> None:
        tracker.enter_route(SPEAKER, SPEAKER, now=0)
        tracker.exit_route(SPEAKER, True, now=30)
        executor.advance(THRESHOLD)
        assert recorder.records == []


# ---------------------------------------------------------------------------
# Reverts
# ---------------------------------------------------------------------------


class TestRevert:
    def test_return_within_window_marks_first_record_reverted(
        self, tracker: RouteTransitionTracker, executor, recorder: _Recorder
    ) -> None:
        tracker.enter_route(EARPIECE, BLE, now=0)
        tracker.exit_route(BLE, True, now=200)
        executor.advance(1_000)
        tracker.enter_route(BLE, EARPIECE, now=1_000)

        assert recorder.records == [(AudioRouteStatsKey(EARPIECE, BLE, True, True), 200)]
        tracker.exit_route(EARPIECE, True, now=1_150)
        executor.advance(THRESHOLD)
        assert recorder.records[1] == (AudioRouteStatsKey(BLE, EARPIECE, True, False), 150)
        assert len(recorder.records) == 2

    def test_return_after_window_is_not_a_revert(
        self, tracker: RouteTransitionTracker, executor, recorder: _Recorder
    ) -> None:
        tracker.enter_route(EARPIECE, BLE, now=0)
        tracker.exit_route(BLE, True, now=200)
        executor.advance(7_000)
        tracker.enter_route(BLE, EARPIECE, now=7_000)

        assert recorder.records == [(AudioRouteStatsKey(EARPIECE, BLE, True, False), 200)]

    def test_next_enter_to_other_route_finalizes_without_revert(
        self, tracker: RouteTransitionTracker, recorder: _Recorder
    ) -> None:
        tracker.enter_route(EARPIECE, BLE, now=0)
        tracker.exit_route(BLE, True, now=100)
        tracker.enter_route(BLE, SPEAKER, now=500)
        assert recorder.records == [(AudioRouteStatsKey(EARPIECE, BLE, True, False), 100)]
        assert tracker.pending is not None
        assert tracker.pending.source == BLE

    def test_new_enter_replaces_timer(
        self, tracker: RouteTransitionTracker, executor, recorder: _Recorder
    ) -> None:
        tracker.enter_route(EARPIECE, BLE, now=0)
        tracker.exit_route(BLE, True, now=100)
        executor.advance(4_000)
        tracker.enter_route(BLE, SPEAKER, now=4_000)
        tracker.exit_route(SPEAKER, True, now=4_100)

        executor.advance(1_000)
        assert len(recorder.records) == 1
        executor.advance(THRESHOLD)
        assert len(recorder.records) == 2
        assert executor.pending_count == 0


# ---------------------------------------------------------------------------
# Nesting and timer expiry
# ---------------------------------------------------------------------------


class TestNestingAndExpiry:
    def test_consecutive_enters_keep_single_pending(
        self, tracker: RouteTransitionTracker, executor, recorder: _Recorder
    ) -> None:
        tracker.enter_route(EARPIECE, BLE, now=0)
        tracker.enter_route(BLE, SPEAKER, now=50)
        tracker.enter_route(SPEAKER, BLUETOOTH, now=60)
        assert recorder.records == []
        assert tracker.pending is not None
        assert (tracker.pending.source, tracker.pending.dest) == (EARPIECE, BLE)

        tracker.exit_route(BLE, True, now=300)
        executor.advance(THRESHOLD)
        assert recorder.records == [(AudioRouteStatsKey(EARPIECE, BLE, True, False), 300)]

    def test_timer_without_exit_uses_clock_and_fails(
        self, tracker: RouteTransitionTracker, executor, clock, recorder: _Recorder
    ) -> None:
        start = clock.elapsed
        tracker.enter_route(EARPIECE, SPEAKER, now=start)
        executor.advance(THRESHOLD)
        assert recorder.records == [
            (AudioRouteStatsKey(EARPIECE, SPEAKER, False, False), THRESHOLD)
        ]

    def test_timer_expiry_keeps_guard_until_exit(
        self, tracker: RouteTransitionTracker, executor
    ) -> None:
        tracker.enter_route(EARPIECE, SPEAKER, now=0)
        executor.advance(THRESHOLD)
        assert tracker.state is TrackerState.IDLE
        assert tracker.is_ongoing

        tracker.enter_route(SPEAKER, BLE, now=THRESHOLD + 10)
        assert tracker.pending is None

    def test_late_exit_after_timer_does_not_complete_next_transition(
        self, tracker: RouteTransitionTracker, executor, recorder: _Recorder
    ) -> None:
        tracker.enter_route(EARPIECE, SPEAKER, now=0)
        executor.advance(THRESHOLD)

        tracker.enter_route(BLUETOOTH, BLE, now=5_500)
        tracker.exit_route(SPEAKER, True, now=5_600)
        assert not tracker.is_ongoing
        executor.advance(THRESHOLD)

        assert recorder.records == [
            (AudioRouteStatsKey(EARPIECE, SPEAKER, False, False), THRESHOLD)
        ]

    def test_exit_after_timer_reopens_tracker(
        self, tracker: RouteTransitionTracker, executor, recorder: _Recorder
    ) -> None:
        tracker.enter_route(EARPIECE, SPEAKER, now=0)
        executor.advance(THRESHOLD)
        tracker.exit_route(SPEAKER, True, now=THRESHOLD + 100)

        tracker.enter_route(SPEAKER, BLE, now=THRESHOLD + 200)
        tracker.exit_route(BLE, True, now=THRESHOLD + 300)
        executor.advance(THRESHOLD)
        assert recorder.records[-1] == (AudioRouteStatsKey(SPEAKER, BLE, True, False), 100)

    def test_repr_shows_state(self, tracker: RouteTransitionTracker) -> None:
        assert "idle" in repr(tracker)
