"""Durable storage backends for metric snapshots.

Storage is byte-oriented and keyed by a fixed per-metric name.  A missing
entry is a normal state on a fresh install and is reported as ``None``, not
as an error.

Shipped in this module
----------------------
- SnapshotStorage — ABC for all backends
- FileStorage     — one file per metric name inside a directory
- MemoryStorage   — dict-backed, for embedding and tests
"""
from __future__ import annotations

import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path

from callmetrics.schema.errors import ErrorSeverity, StorageError

logger = logging.getLogger(__name__)


class SnapshotStorage(ABC):
    """Abstract base class for snapshot storage backends."""

    @abstractmethod
    def read(self, name: str) -> bytes | None:
        """Return the stored bytes for *name*, or ``None`` when absent.

        Raises
        ------
        StorageError
            If the entry exists but cannot be read.
        """

    @abstractmethod
    def write(self, name: str, data: bytes) -> None:
        """Replace the stored bytes for *name*.

        Raises
        ------
        StorageError
            If the write fails.
        """


class FileStorage(SnapshotStorage):
    """Stores each snapshot as a file named after the metric.

    Writes go to a temporary file in the same directory which then replaces
    the target, so a crash mid-write leaves the previous snapshot intact.

    Parameters
    ----------
    directory:
        Directory holding the snapshot files.  Created on first write.

    Examples
    --------
    >>> import tempfile
    >>> storage = FileStorage(tempfile.mkdtemp())
    >>> storage.read("api_stats") is None
    True
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory).expanduser()

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, name: str) -> Path:
        return self._directory / name

    def read(self, name: str) -> bytes | None:
        path = self.path_for(name)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            logger.debug("No snapshot file at %s", path)
            return None
        except OSError as exc:
            raise StorageError(
                f"Cannot read snapshot file {path}: {exc}",
                severity=ErrorSeverity.MEDIUM,
                context={"path": str(path)},
            ) from exc

    def write(self, name: str, data: bytes) -> None:
        path = self.path_for(name)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{name}.", dir=self._directory)
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(data)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageError(
                f"Cannot write snapshot file {path}: {exc}",
                severity=ErrorSeverity.MEDIUM,
                context={"path": str(path)},
            ) from exc

    def __repr__(self) -> str:
        return f"FileStorage(directory={str(self._directory)!r})"


class MemoryStorage(SnapshotStorage):
    """Thread-safe in-memory storage.

    Survives as long as the object does, which is enough to simulate a
    process restart by building a second aggregator on the same instance.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data: dict[str, bytes] = {}

    def read(self, name: str) -> bytes | None:
        with self._lock:
            return self._data.get(name)

    def write(self, name: str, data: bytes) -> None:
        with self._lock:
            self._data[name] = bytes(data)

    def names(self) -> list[str]:
        with self._lock:
            return list(self._data)

    def __repr__(self) -> str:
        with self._lock:
            count = len(self._data)
        return f"MemoryStorage(entries={count})"


__all__ = ["SnapshotStorage", "FileStorage", "MemoryStorage"]
