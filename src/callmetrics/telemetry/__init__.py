"""Telemetry package for callmetrics-sdk.

Provides the aggregation core: stores, aggregates, task queues, storage
backends, debounced persistence, and the generic pulled metric.
"""
from __future__ import annotations

from callmetrics.telemetry.aggregates import Counter, RunningAverage, truncating_div
from callmetrics.telemetry.clock import Clock, SystemClock
from callmetrics.telemetry.persistence import PersistenceCoalescer
from callmetrics.telemetry.pulled import MetricDescriptor, PulledMetric, PullResult, StatsRow
from callmetrics.telemetry.storage import FileStorage, MemoryStorage, SnapshotStorage
from callmetrics.telemetry.store import MetricStore
from callmetrics.telemetry.task_queue import TaskExecutor, TaskQueue

__all__ = [
    "Counter",
    "RunningAverage",
    "truncating_div",
    "MetricStore",
    "Clock",
    "SystemClock",
    "TaskExecutor",
    "TaskQueue",
    "SnapshotStorage",
    "FileStorage",
    "MemoryStorage",
    "PersistenceCoalescer",
    "MetricDescriptor",
    "PulledMetric",
    "PullResult",
    "StatsRow",
]
