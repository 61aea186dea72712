"""Unit tests for callmetrics.stats.audio_route_stats."""
from __future__ import annotations

import pytest

from callmetrics.schema.keys import AudioRouteStatsKey, CallAudioRoute
from callmetrics.schema.signals import AudioRoute, RouteType
from callmetrics.stats.audio_route_stats import AudioRouteStats, convert_audio_type
from callmetrics.telemetry.aggregates import RunningAverage
from callmetrics.telemetry.pulled import PullResult, StatsRow


@pytest.fixture
def route_stats(storage, executor, clock) -> AudioRouteStats:
    return AudioRouteStats(storage, executor=executor, clock=clock)


# ---------------------------------------------------------------------------
# Route code conversion
# ---------------------------------------------------------------------------


class TestConvertAudioType:
    @pytest.mark.parametrize(
        ("route", "expected"),
        [
            (AudioRoute(RouteType.EARPIECE), CallAudioRoute.EARPIECE),
            (AudioRoute(RouteType.WIRED), CallAudioRoute.WIRED_HEADSET),
            (AudioRoute(RouteType.SPEAKER), CallAudioRoute.PHONE_SPEAKER),
            (AudioRoute(RouteType.BLUETOOTH_LE), CallAudioRoute.BLUETOOTH_LE),
            (AudioRoute(RouteType.BLUETOOTH_HA), CallAudioRoute.HEARING_AID),
            (AudioRoute(RouteType.BLUETOOTH_SCO), CallAudioRoute.BLUETOOTH),
            (AudioRoute(RouteType.BLUETOOTH_SCO, is_watch=True), CallAudioRoute.WATCH_SPEAKER),
            (AudioRoute(RouteType.DOCK), CallAudioRoute.UNSPECIFIED),
            (AudioRoute(RouteType.STREAMING), CallAudioRoute.UNSPECIFIED),
            (AudioRoute(RouteType.INVALID), CallAudioRoute.UNSPECIFIED),
            (AudioRoute(42), CallAudioRoute.UNSPECIFIED),
            (None, CallAudioRoute.UNSPECIFIED),
        ],
    )
    def test_mapping(self, route: AudioRoute | None, expected: CallAudioRoute) -> None:
        assert convert_audio_type(route) is expected


# ---------------------------------------------------------------------------
# Direct logging
# ---------------------------------------------------------------------------


class TestDirectLog:
    def test_log_folds_latency_into_average(self, route_stats: AudioRouteStats, executor) -> None:
        route_stats.log(CallAudioRoute.EARPIECE, CallAudioRoute.BLUETOOTH, True, False, 300)
        route_stats.log(CallAudioRoute.EARPIECE, CallAudioRoute.BLUETOOTH, True, False, 100)
        executor.run_pending()
        key = AudioRouteStatsKey(CallAudioRoute.EARPIECE, CallAudioRoute.BLUETOOTH, True, False)
        assert route_stats.get(key) == RunningAverage(2, 200)

    def test_out_of_range_codes_are_unspecified(self, route_stats: AudioRouteStats, executor) -> None:
        route_stats.log(99, -3, False, False, 10)
        executor.run_pending()
        key = AudioRouteStatsKey(CallAudioRoute.UNSPECIFIED, CallAudioRoute.UNSPECIFIED, False, False)
        assert route_stats.get(key) == RunningAverage(1, 10)


# ---------------------------------------------------------------------------
# Route signals through the tracker
# ---------------------------------------------------------------------------


class TestRouteSignals:
    def test_enter_exit_records_latency_from_caller_clock(
        self, route_stats: AudioRouteStats, executor, clock
    ) -> None:
        route_stats.on_route_enter(AudioRoute(RouteType.EARPIECE), AudioRoute(RouteType.BLUETOOTH_LE))
        clock.advance(200)
        route_stats.on_route_exit(AudioRoute(RouteType.BLUETOOTH_LE), True)
        executor.run_pending()
        assert route_stats.entries() == []

        executor.advance(5_000)
        key = AudioRouteStatsKey(CallAudioRoute.EARPIECE, CallAudioRoute.BLUETOOTH_LE, True, False)
        assert route_stats.entries() == [(key, RunningAverage(1, 200))]

    def test_quick_return_is_logged_as_revert(
        self, route_stats: AudioRouteStats, executor, clock
    ) -> None:
        speaker = AudioRoute(RouteType.SPEAKER)
        watch = AudioRoute(RouteType.BLUETOOTH_SCO, is_watch=True)
        route_stats.on_route_enter(speaker, watch)
        clock.advance(120)
        route_stats.on_route_exit(watch, True)
        executor.run_pending()

        executor.advance(800)
        route_stats.on_route_enter(watch, speaker)
        executor.run_pending()

        reverted = AudioRouteStatsKey(
            CallAudioRoute.PHONE_SPEAKER, CallAudioRoute.WATCH_SPEAKER, True, True
        )
        assert route_stats.get(reverted) == RunningAverage(1, 120)
        assert route_stats.tracker.is_ongoing

    def test_pull_rows_include_average(self, route_stats: AudioRouteStats, executor) -> None:
        route_stats.log(CallAudioRoute.EARPIECE, CallAudioRoute.PHONE_SPEAKER, False, False, 90)
        executor.run_pending()
        sink: list[StatsRow] = []
        assert route_stats.pull(sink) is PullResult.SUCCESS
        assert sink[0].values == (1, 3, False, False, 1, 90)

    def test_tracker_uses_configured_threshold(self, storage, executor, clock) -> None:
        from callmetrics.schema.config import MetricsConfig

        stats = AudioRouteStats(
            storage,
            config=MetricsConfig(revert_threshold_ms=1_000),
            executor=executor,
            clock=clock,
        )
        stats.on_route_enter(AudioRoute(RouteType.EARPIECE), AudioRoute(RouteType.SPEAKER))
        executor.run_pending()
        executor.advance(1_000)
        assert len(stats.entries()) == 1
