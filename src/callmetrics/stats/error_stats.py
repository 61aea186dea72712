"""Error event counts, keyed by reporting submodule and error."""
from __future__ import annotations

from callmetrics.schema.config import MetricsConfig
from callmetrics.schema.keys import ErrorName, ErrorStatsKey, MetricId, SubModule, coerce_code
from callmetrics.telemetry.aggregates import Counter
from callmetrics.telemetry.clock import Clock
from callmetrics.telemetry.pulled import MetricDescriptor, PulledMetric
from callmetrics.telemetry.storage import SnapshotStorage
from callmetrics.telemetry.task_queue import TaskExecutor

ERROR_STATS = MetricDescriptor(
    metric_id=MetricId.ERROR_STATS,
    file_name="error_stats",
    key_type=ErrorStatsKey,
    aggregate_type=Counter,
)


class ErrorStats(PulledMetric[ErrorStatsKey, Counter]):
    """Counts error events per ``(module_id, error_id)``."""

    def __init__(
        self,
        storage: SnapshotStorage,
        *,
        config: MetricsConfig | None = None,
        executor: TaskExecutor | None = None,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(ERROR_STATS, storage, config=config, executor=executor, clock=clock)

    def log(self, module_id: int, error_id: int) -> None:
        key = ErrorStatsKey(
            module_id=coerce_code(SubModule, module_id),
            error_id=coerce_code(ErrorName, error_id),
        )
        self.post(lambda: self._record(key, Counter.increment))


__all__ = ["ERROR_STATS", "ErrorStats"]
