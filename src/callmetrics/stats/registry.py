"""Process-wide registry of pulled metrics.

The ``MetricsRegistry`` lazily builds one aggregator per
:class:`~callmetrics.schema.keys.MetricId`, each with its own task queue, and
answers the external pull collector.

Shipped in this module
----------------------
- MetricsRegistry — thread-safe lookup, pull dispatch and teardown
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any, TypeVar

from callmetrics.config.defaults import DEFAULT_CONFIG
from callmetrics.schema.config import MetricsConfig
from callmetrics.schema.keys import MetricId
from callmetrics.stats.api_stats import ApiStats
from callmetrics.stats.audio_route_stats import AudioRouteStats
from callmetrics.stats.call_stats import CallStats
from callmetrics.stats.error_stats import ErrorStats
from callmetrics.telemetry.clock import Clock, SystemClock
from callmetrics.telemetry.pulled import PulledMetric, PullResult, StatsRow
from callmetrics.telemetry.storage import FileStorage, SnapshotStorage
from callmetrics.telemetry.task_queue import TaskExecutor, TaskQueue

logger = logging.getLogger(__name__)

QueueFactory = Callable[[str], TaskExecutor]
"""Builds the task queue for a metric, given a thread name."""

M = TypeVar("M", bound=PulledMetric[Any, Any])


class MetricsRegistry:
    """Lazily constructed aggregators keyed by metric identifier.

    Parameters
    ----------
    storage:
        Backend shared by every metric; each metric uses its own key.
    config:
        Timing configuration passed to every metric.
    clock:
        Time source passed to every metric.
    queue_factory:
        Builds one task queue per metric.  Defaults to :class:`TaskQueue`.

    Examples
    --------
    >>> from callmetrics.telemetry.storage import MemoryStorage
    >>> registry = MetricsRegistry(MemoryStorage())
    >>> registry.get_api_stats() is registry.get_api_stats()
    True
    >>> registry.destroy()
    """

    def __init__(
        self,
        storage: SnapshotStorage,
        config: MetricsConfig | None = None,
        clock: Clock | None = None,
        queue_factory: QueueFactory | None = None,
    ) -> None:
        self._storage = storage
        self._config = config if config is not None else DEFAULT_CONFIG
        self._clock = clock if clock is not None else SystemClock()
        self._queue_factory: QueueFactory = queue_factory if queue_factory is not None else TaskQueue
        self._lock = threading.Lock()
        self._stats: dict[MetricId, PulledMetric[Any, Any]] = {}

    @classmethod
    def make(cls, config: MetricsConfig | None = None) -> MetricsRegistry:
        """Build a registry persisting under ``config.storage_dir``."""
        cfg = config if config is not None else DEFAULT_CONFIG
        return cls(FileStorage(cfg.storage_dir), cfg)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get_api_stats(self) -> ApiStats:
        return self._get_or_create(MetricId.API_STATS, ApiStats)

    def get_audio_route_stats(self) -> AudioRouteStats:
        return self._get_or_create(MetricId.AUDIO_ROUTE_STATS, AudioRouteStats)

    def get_call_stats(self) -> CallStats:
        return self._get_or_create(MetricId.CALL_STATS, CallStats)

    def get_error_stats(self) -> ErrorStats:
        return self._get_or_create(MetricId.ERROR_STATS, ErrorStats)

    @property
    def stats(self) -> dict[MetricId, PulledMetric[Any, Any]]:
        """A copy of the metrics built or registered so far."""
        with self._lock:
            return dict(self._stats)

    def register(self, metric_id: MetricId, metric: PulledMetric[Any, Any]) -> None:
        """Install *metric* under *metric_id*, shutting down any it replaces."""
        with self._lock:
            previous = self._stats.get(metric_id)
            self._stats[metric_id] = metric
        if previous is not None and previous is not metric:
            previous.shutdown()

    # ------------------------------------------------------------------
    # Pull dispatch
    # ------------------------------------------------------------------

    def on_pull_atom(self, metric_id: MetricId | str, sink: list[StatsRow]) -> PullResult:
        """Answer the pull collector for *metric_id*.

        Unknown or not-yet-built metrics answer SKIP.
        """
        try:
            key = MetricId(metric_id)
        except ValueError:
            logger.debug("Pull for unknown metric %r", metric_id)
            return PullResult.SKIP
        with self._lock:
            metric = self._stats.get(key)
        if metric is None:
            return PullResult.SKIP
        return metric.pull(sink)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def flush_all(self) -> None:
        """Write every metric's snapshot now."""
        for metric in self.stats.values():
            metric.flush()

    def destroy(self) -> None:
        """Forget every metric and halt its task queue."""
        with self._lock:
            metrics = list(self._stats.values())
            self._stats.clear()
        for metric in metrics:
            metric.shutdown()
        logger.info("Destroyed metrics registry (%d metrics)", len(metrics))

    def _get_or_create(self, metric_id: MetricId, factory: Callable[..., M]) -> M:
        with self._lock:
            metric = self._stats.get(metric_id)
            if metric is None:
                metric = factory(
                    self._storage,
                    config=self._config,
                    executor=self._queue_factory(f"callmetrics-{metric_id.value}"),
                    clock=self._clock,
                )
                self._stats[metric_id] = metric
                logger.debug("Created %s", metric)
            return metric  # type: ignore[return-value]

    def __repr__(self) -> str:
        return f"MetricsRegistry(metrics={sorted(m.value for m in self.stats)})"


__all__ = ["MetricsRegistry", "QueueFactory"]
