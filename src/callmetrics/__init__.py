"""callmetrics-sdk — In-process call telemetry: keyed counters, running averages, debounced persistence, rate-limited pulls.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Quick-start
-----------
>>> import callmetrics
>>> callmetrics.__version__
'0.1.0'

>>> from callmetrics import MemoryStorage, MetricsRegistry, MetricId, StatsRow
>>> registry = MetricsRegistry(MemoryStorage())
>>> sink: list[StatsRow] = []
>>> registry.on_pull_atom(MetricId.API_STATS, sink).value
'skip'
>>> registry.destroy()
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------
from callmetrics.schema.config import MetricsConfig
from callmetrics.schema.errors import (
    CallMetricsError,
    ConfigurationError,
    ErrorSeverity,
    SnapshotDecodeError,
    StorageError,
)
from callmetrics.schema.keys import (
    AccountType,
    ApiName,
    ApiResult,
    ApiStatsKey,
    AudioRouteStatsKey,
    CallAudioRoute,
    CallDirection,
    CallStatsKey,
    ErrorName,
    ErrorStatsKey,
    MetricId,
    SubModule,
)
from callmetrics.schema.signals import AccountCapability, AudioRoute, CallInfo, RouteType
from callmetrics.schema.snapshot import MetricSnapshot, SnapshotEntry

# ---------------------------------------------------------------------------
# Telemetry core
# ---------------------------------------------------------------------------
from callmetrics.telemetry.aggregates import Counter, RunningAverage
from callmetrics.telemetry.clock import Clock, SystemClock
from callmetrics.telemetry.pulled import PulledMetric, PullResult, StatsRow
from callmetrics.telemetry.storage import FileStorage, MemoryStorage, SnapshotStorage
from callmetrics.telemetry.task_queue import TaskExecutor, TaskQueue

# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------
from callmetrics.routing.tracker import RouteTransitionTracker, TrackerState

# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------
from callmetrics.stats.api_stats import ApiStats
from callmetrics.stats.audio_route_stats import AudioRouteStats
from callmetrics.stats.call_stats import CallStats
from callmetrics.stats.error_stats import ErrorStats
from callmetrics.stats.registry import MetricsRegistry

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------
from callmetrics.config.defaults import DEFAULT_CONFIG
from callmetrics.config.loader import ConfigLoader
from callmetrics.config.schema import validate_config

__all__ = [
    "__version__",
    # schema — identifiers and codes
    "MetricId",
    "ApiName",
    "ApiResult",
    "SubModule",
    "ErrorName",
    "CallDirection",
    "AccountType",
    "CallAudioRoute",
    # schema — keys
    "ApiStatsKey",
    "ErrorStatsKey",
    "CallStatsKey",
    "AudioRouteStatsKey",
    # schema — signals
    "AccountCapability",
    "CallInfo",
    "RouteType",
    "AudioRoute",
    # schema — snapshot
    "SnapshotEntry",
    "MetricSnapshot",
    # schema — errors
    "ErrorSeverity",
    "CallMetricsError",
    "ConfigurationError",
    "StorageError",
    "SnapshotDecodeError",
    # schema — config
    "MetricsConfig",
    # telemetry
    "Counter",
    "RunningAverage",
    "Clock",
    "SystemClock",
    "TaskExecutor",
    "TaskQueue",
    "SnapshotStorage",
    "FileStorage",
    "MemoryStorage",
    "PulledMetric",
    "PullResult",
    "StatsRow",
    # routing
    "RouteTransitionTracker",
    "TrackerState",
    # metrics
    "ApiStats",
    "AudioRouteStats",
    "CallStats",
    "ErrorStats",
    "MetricsRegistry",
    # config
    "DEFAULT_CONFIG",
    "ConfigLoader",
    "validate_config",
]
