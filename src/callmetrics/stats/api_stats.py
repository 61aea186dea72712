"""API usage counts, keyed by API, calling uid and result."""
from __future__ import annotations

from callmetrics.schema.config import MetricsConfig
from callmetrics.schema.keys import ApiName, ApiResult, ApiStatsKey, MetricId, coerce_code
from callmetrics.telemetry.aggregates import Counter
from callmetrics.telemetry.clock import Clock
from callmetrics.telemetry.pulled import MetricDescriptor, PulledMetric
from callmetrics.telemetry.storage import SnapshotStorage
from callmetrics.telemetry.task_queue import TaskExecutor

API_STATS = MetricDescriptor(
    metric_id=MetricId.API_STATS,
    file_name="api_stats",
    key_type=ApiStatsKey,
    aggregate_type=Counter,
)


class ApiStats(PulledMetric[ApiStatsKey, Counter]):
    """Counts API invocations per ``(api_id, caller_uid, result)``."""

    def __init__(
        self,
        storage: SnapshotStorage,
        *,
        config: MetricsConfig | None = None,
        executor: TaskExecutor | None = None,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(API_STATS, storage, config=config, executor=executor, clock=clock)

    def log(self, api_id: int, caller_uid: int, result: int) -> None:
        """Count one call of *api_id* by *caller_uid* that ended with *result*."""
        key = ApiStatsKey(
            api_id=coerce_code(ApiName, api_id),
            caller_uid=caller_uid,
            result=coerce_code(ApiResult, result),
        )
        self.post(lambda: self._record(key, Counter.increment))


__all__ = ["API_STATS", "ApiStats"]
