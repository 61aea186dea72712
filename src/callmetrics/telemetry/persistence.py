"""Debounced snapshot persistence.

``PersistenceCoalescer`` collapses bursts of save requests into a single
write.  A delayed request arms one save task on the metric's queue; further
requests while it is armed are no-ops, so the first request decides when the
write happens.  ``flush_now()`` cancels the armed task and writes at once.

Write failures are logged and swallowed.  The in-memory store remains the
source of truth and the next aggregation re-arms a save.
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from callmetrics.schema.errors import StorageError
from callmetrics.telemetry.storage import SnapshotStorage
from callmetrics.telemetry.task_queue import TaskExecutor

logger = logging.getLogger(__name__)


class PersistenceCoalescer:
    """Schedules at most one pending snapshot write.

    Parameters
    ----------
    storage:
        Backend receiving the encoded snapshot.
    name:
        Storage key (file name) of the metric.
    encode:
        Returns the bytes to persist; called at write time so the latest
        snapshot is what lands on disk.
    executor:
        The owning metric's task queue, which runs delayed saves.
    """

    def __init__(
        self,
        storage: SnapshotStorage,
        name: str,
        encode: Callable[[], bytes],
        executor: TaskExecutor,
    ) -> None:
        self._storage = storage
        self._name = name
        self._encode = encode
        self._executor = executor
        self._lock = threading.Lock()
        self._token = ("save", name)
        self._write_count = 0

    def request_save(self, delay_ms: int) -> None:
        """Save now when *delay_ms* <= 0, else arm a save unless one is armed."""
        if delay_ms <= 0:
            self.save()
            return
        with self._lock:
            if self._executor.has_pending(self._token):
                return
            self._executor.post_delayed(self.save, delay_ms, token=self._token)
        logger.debug("Scheduled save of %s in %d ms", self._name, delay_ms)

    def flush_now(self) -> None:
        """Cancel any armed save and write immediately."""
        with self._lock:
            self._executor.cancel(self._token)
        self.save()

    @property
    def pending(self) -> bool:
        """True while a delayed save is armed."""
        return self._executor.has_pending(self._token)

    @property
    def write_count(self) -> int:
        """Number of successful writes since construction."""
        with self._lock:
            return self._write_count

    def save(self) -> bool:
        """Encode and write the snapshot; return False if the write failed."""
        try:
            payload = self._encode()
            self._storage.write(self._name, payload)
        except (OSError, StorageError) as exc:
            logger.warning("Cannot save %s snapshot; keeping in-memory state: %s", self._name, exc)
            return False
        with self._lock:
            self._write_count += 1
        logger.debug("Saved %s snapshot (%d bytes)", self._name, len(payload))
        return True

    def __repr__(self) -> str:
        return f"PersistenceCoalescer(name={self._name!r}, pending={self.pending})"


__all__ = ["PersistenceCoalescer"]
