"""Audio route change counts with average switch latency."""
from __future__ import annotations

import logging

from callmetrics.routing.tracker import RouteTransitionTracker
from callmetrics.schema.config import MetricsConfig
from callmetrics.schema.keys import AudioRouteStatsKey, CallAudioRoute, MetricId, coerce_code
from callmetrics.schema.signals import AudioRoute, RouteType
from callmetrics.telemetry.aggregates import RunningAverage
from callmetrics.telemetry.clock import Clock
from callmetrics.telemetry.pulled import MetricDescriptor, PulledMetric
from callmetrics.telemetry.storage import SnapshotStorage
from callmetrics.telemetry.task_queue import TaskExecutor

logger = logging.getLogger(__name__)

AUDIO_ROUTE_STATS = MetricDescriptor(
    metric_id=MetricId.AUDIO_ROUTE_STATS,
    file_name="audio_route_stats",
    key_type=AudioRouteStatsKey,
    aggregate_type=RunningAverage,
)

_ROUTE_CODES: dict[int, CallAudioRoute] = {
    RouteType.EARPIECE: CallAudioRoute.EARPIECE,
    RouteType.WIRED: CallAudioRoute.WIRED_HEADSET,
    RouteType.SPEAKER: CallAudioRoute.PHONE_SPEAKER,
    RouteType.BLUETOOTH_LE: CallAudioRoute.BLUETOOTH_LE,
    RouteType.BLUETOOTH_HA: CallAudioRoute.HEARING_AID,
}


def convert_audio_type(route: AudioRoute | None) -> CallAudioRoute:
    """Map a routing-subsystem route onto its metric code.

    Bluetooth SCO splits into watch speaker and plain Bluetooth.  Dock,
    streaming and unknown route types, and a missing route, map to
    UNSPECIFIED.
    """
    if route is None:
        return CallAudioRoute.UNSPECIFIED
    if route.type == RouteType.BLUETOOTH_SCO:
        return CallAudioRoute.WATCH_SPEAKER if route.is_watch else CallAudioRoute.BLUETOOTH
    return _ROUTE_CODES.get(route.type, CallAudioRoute.UNSPECIFIED)


class AudioRouteStats(PulledMetric[AudioRouteStatsKey, RunningAverage]):
    """Route change counts per ``(source, dest, success, revert)``.

    Route signals are paired into transitions by a
    :class:`~callmetrics.routing.tracker.RouteTransitionTracker` that lives on
    this metric's queue.  Signal times are read on the caller's thread so
    that queue latency does not skew the measured switch time.
    """

    def __init__(
        self,
        storage: SnapshotStorage,
        *,
        config: MetricsConfig | None = None,
        executor: TaskExecutor | None = None,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(AUDIO_ROUTE_STATS, storage, config=config, executor=executor, clock=clock)
        self._tracker = RouteTransitionTracker(
            self.executor,
            self.clock,
            self._record_latency,
            self.config.revert_threshold_ms,
        )

    @property
    def tracker(self) -> RouteTransitionTracker:
        return self._tracker

    def log(self, source: int, dest: int, is_success: bool, is_revert: bool, latency: int) -> None:
        """Fold one finished route change of *latency* ms into its bucket."""
        key = AudioRouteStatsKey(
            source=coerce_code(CallAudioRoute, source),
            dest=coerce_code(CallAudioRoute, dest),
            is_success=is_success,
            is_revert=is_revert,
        )
        self.post(lambda: self._record_latency(key, latency))

    def on_route_enter(self, orig_route: AudioRoute | None, dest_route: AudioRoute | None) -> None:
        now = self.clock.elapsed_millis()
        source = convert_audio_type(orig_route)
        dest = convert_audio_type(dest_route)
        self.post(lambda: self._tracker.enter_route(source, dest, now))

    def on_route_exit(self, dest_route: AudioRoute | None, is_success: bool) -> None:
        now = self.clock.elapsed_millis()
        dest = convert_audio_type(dest_route)
        self.post(lambda: self._tracker.exit_route(dest, is_success, now))

    def _record_latency(self, key: AudioRouteStatsKey, latency: int) -> None:
        self._record(key, lambda avg: avg.add(latency))


__all__ = ["AUDIO_ROUTE_STATS", "AudioRouteStats", "convert_audio_type"]
