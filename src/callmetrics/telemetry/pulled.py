"""Generic pulled-metric aggregator.

``PulledMetric`` binds a :class:`~callmetrics.telemetry.store.MetricStore`
and a :class:`~callmetrics.telemetry.persistence.PersistenceCoalescer` to a
private single-threaded task queue and exposes the load / aggregate / pull /
save lifecycle shared by every metric.  What differs between metrics (key
shape, aggregate kind, storage name, identifier) is carried by a
``MetricDescriptor`` rather than by overridden methods; the concrete
aggregators in :mod:`callmetrics.stats` only add their domain entry points.

Shipped in this module
----------------------
- PullResult        — SUCCESS / SKIP answer to the pull collector
- StatsRow          — one pulled row
- MetricDescriptor  — static description of a metric
- PulledMetric      — the aggregator

Threading
---------
Event entry points post tasks to the metric's queue and return.  ``pull``,
``aggregate``, loading, saving and ``reset`` hold a coarse re-entrant lock so
that a pull from the collector thread never sees a half-rebuilt snapshot.
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, NamedTuple, TypeVar

from callmetrics.config.defaults import DEFAULT_CONFIG
from callmetrics.schema.config import MetricsConfig
from callmetrics.schema.errors import SnapshotDecodeError, StorageError
from callmetrics.schema.keys import MetricId
from callmetrics.schema.snapshot import (
    MetricSnapshot,
    SnapshotEntry,
    decode_snapshot,
    encode_snapshot,
)
from callmetrics.telemetry.aggregates import Counter, RunningAverage
from callmetrics.telemetry.clock import Clock, SystemClock
from callmetrics.telemetry.persistence import PersistenceCoalescer
from callmetrics.telemetry.storage import SnapshotStorage
from callmetrics.telemetry.store import MetricStore
from callmetrics.telemetry.task_queue import Task, TaskExecutor, TaskQueue

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=tuple)
A = TypeVar("A", Counter, RunningAverage)


class PullResult(str, Enum):
    """Answer returned to the pull collector.  SKIP is never an error."""

    SUCCESS = "success"
    SKIP = "skip"


class StatsRow(NamedTuple):
    """One pulled row: key fields, then ``count``, then ``average`` if any."""

    metric_id: MetricId
    values: tuple[int | bool, ...]


@dataclass(frozen=True)
class MetricDescriptor:
    """Static description of one pulled metric.

    Attributes
    ----------
    metric_id:
        Identifier the pull collector uses.
    file_name:
        Storage key of the persisted snapshot.
    key_type:
        ``NamedTuple`` class of the dimension key.
    aggregate_type:
        ``Counter`` or ``RunningAverage``.
    """

    metric_id: MetricId
    file_name: str
    key_type: type[Any]
    aggregate_type: type[Counter] | type[RunningAverage]


def _plain(value: object) -> bool | int:
    if isinstance(value, bool):
        return value
    return int(value)  # type: ignore[call-overload]


class PulledMetric(Generic[K, A]):
    """Keyed aggregator with debounced persistence and rate-limited pulls.

    The persisted snapshot is loaded during construction; a missing or
    corrupt snapshot yields an empty store and never raises.

    Parameters
    ----------
    descriptor:
        Key shape, aggregate kind and naming of this metric.
    storage:
        Durable snapshot storage.
    config:
        Timing configuration.  Defaults to ``DEFAULT_CONFIG``.
    executor:
        Task queue owned by this metric.  A dedicated :class:`TaskQueue` is
        started when omitted.
    clock:
        Time source.  Defaults to :class:`SystemClock`.
    """

    def __init__(
        self,
        descriptor: MetricDescriptor,
        storage: SnapshotStorage,
        *,
        config: MetricsConfig | None = None,
        executor: TaskExecutor | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._descriptor = descriptor
        self._storage = storage
        self._config = config if config is not None else DEFAULT_CONFIG
        self._clock = clock if clock is not None else SystemClock()
        self._executor = (
            executor if executor is not None else TaskQueue(f"callmetrics-{descriptor.file_name}")
        )
        self._lock = threading.RLock()
        self._store: MetricStore[K, A] = MetricStore(descriptor.aggregate_type)  # type: ignore[arg-type]
        self._last_pull_millis = 0
        self._snapshot = MetricSnapshot()
        self._coalescer = PersistenceCoalescer(
            storage, descriptor.file_name, self._encode, self._executor
        )
        self._load()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def metric_id(self) -> MetricId:
        return self._descriptor.metric_id

    @property
    def descriptor(self) -> MetricDescriptor:
        return self._descriptor

    @property
    def config(self) -> MetricsConfig:
        return self._config

    @property
    def executor(self) -> TaskExecutor:
        return self._executor

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def coalescer(self) -> PersistenceCoalescer:
        return self._coalescer

    @property
    def last_pull_millis(self) -> int:
        with self._lock:
            return self._last_pull_millis

    @property
    def snapshot(self) -> MetricSnapshot:
        """The snapshot built by the latest aggregation (or load)."""
        with self._lock:
            return self._snapshot

    def get(self, key: K) -> A | None:
        """Return the aggregate currently stored under *key*."""
        with self._lock:
            return self._store.get(key)

    def entries(self) -> list[tuple[K, A]]:
        """Return a copy of every ``(key, aggregate)`` pair in insertion order."""
        with self._lock:
            return list(self._store.items())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def post(self, task: Task) -> bool:
        """Run *task* on this metric's queue."""
        return self._executor.post(task)

    def aggregate(self) -> None:
        """Rebuild the snapshot from the store and request a debounced save.

        An empty store yields an empty snapshot and no save.
        """
        with self._lock:
            if self._store.is_empty():
                self._snapshot = MetricSnapshot()
                return
            self._snapshot = MetricSnapshot(
                pull_timestamp_millis=self._last_pull_millis,
                entries=[self._entry_for(key, agg) for key, agg in self._store.items()],
            )
            logger.debug(
                "Aggregated %s: %d entries", self._descriptor.file_name, len(self._store)
            )
            self._coalescer.request_save(self._config.persist_delay_ms)

    def pull(self, sink: list[StatsRow]) -> PullResult:
        """Append every aggregated row to *sink*, at most once per interval.

        Within ``min_pull_interval_ms`` of the previous successful pull this
        returns SKIP without touching *sink* or the pull timestamp.
        Otherwise the timestamp advances to now and the result is SUCCESS
        when any rows were appended, SKIP when the snapshot is empty.
        """
        with self._lock:
            now = self._clock.wall_millis()
            since_last = now - self._last_pull_millis
            if since_last < self._config.min_pull_interval_ms:
                logger.debug(
                    "Skipping pull of %s; last pull %d ms ago", self._descriptor.file_name, since_last
                )
                return PullResult.SKIP
            self._last_pull_millis = now
            return self._on_pull(sink)

    def flush(self) -> None:
        """Write the current snapshot immediately, cancelling any armed save."""
        self._coalescer.flush_now()

    def reset(self) -> None:
        """Drop every bucket and the pull timestamp, and persist the empty state."""
        with self._lock:
            self._store.clear()
            self._last_pull_millis = 0
            self._snapshot = MetricSnapshot()
            logger.info("Reset %s", self._descriptor.file_name)
            self.flush()

    def shutdown(self) -> None:
        """Halt this metric's task queue."""
        self._executor.shutdown()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _record(self, key: K, update: Callable[[A], A]) -> None:
        """Fold one event into *key* and re-aggregate.  Runs on the queue."""
        with self._lock:
            self._store.upsert(key, update)
            self.aggregate()

    def _on_pull(self, sink: list[StatsRow]) -> PullResult:
        if self._snapshot.is_empty():
            return PullResult.SKIP
        fields = self._descriptor.key_type._fields
        has_average = self._descriptor.aggregate_type.has_average
        for entry in self._snapshot.entries:
            values: tuple[int | bool, ...] = tuple(entry.key[name] for name in fields)
            values += (entry.count,)
            if has_average:
                values += (entry.average or 0,)
            sink.append(StatsRow(self._descriptor.metric_id, values))
        return PullResult.SUCCESS

    def _entry_for(self, key: K, aggregate: A) -> SnapshotEntry:
        return SnapshotEntry(
            key={name: _plain(value) for name, value in zip(key._fields, key)},  # type: ignore[attr-defined]
            count=aggregate.count,
            average=aggregate.average if isinstance(aggregate, RunningAverage) else None,
        )

    def _encode(self) -> bytes:
        with self._lock:
            return encode_snapshot(self._snapshot)

    def _load(self) -> None:
        name = self._descriptor.file_name
        with self._lock:
            try:
                data = self._storage.read(name)
            except StorageError as exc:
                logger.warning("Cannot read %s snapshot; starting empty: %s", name, exc)
                return
            if data is None:
                logger.debug("No persisted %s snapshot; starting empty", name)
                return
            try:
                snapshot = decode_snapshot(data)
                restored = [
                    (
                        self._descriptor.key_type(**entry.key),
                        self._descriptor.aggregate_type.from_fields(entry.count, entry.average),
                    )
                    for entry in snapshot.entries
                ]
            except (SnapshotDecodeError, TypeError) as exc:
                logger.warning("Discarding corrupt %s snapshot: %s", name, exc)
                return
            for key, aggregate in restored:
                self._store.put(key, aggregate)
            self._snapshot = snapshot
            self._last_pull_millis = snapshot.pull_timestamp_millis
            logger.debug("Loaded %s snapshot with %d entries", name, len(restored))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(metric_id={self._descriptor.metric_id.value!r}, "
            f"entries={len(self._store)})"
        )


__all__ = ["MetricDescriptor", "PullResult", "PulledMetric", "StatsRow"]
