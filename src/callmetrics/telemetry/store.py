"""Keyed aggregate container for callmetrics-sdk.

Shipped in this module
----------------------
- MetricStore — ordered mapping from a dimension key to its aggregate

The store has no locking of its own.  Every mutation happens on the owning
metric's task queue, and readers that run on other threads go through the
metric's coarse lock.
"""
from __future__ import annotations

from collections.abc import Callable, Hashable, Iterator
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)
A = TypeVar("A")


class MetricStore(Generic[K, A]):
    """Insertion-ordered mapping of dimension keys to aggregates.

    Parameters
    ----------
    zero:
        Factory for the zero-valued aggregate that :meth:`upsert` starts from
        when a key is seen for the first time.

    Examples
    --------
    >>> from callmetrics.telemetry.aggregates import Counter
    >>> store: MetricStore[str, Counter] = MetricStore(Counter)
    >>> store.upsert("a", Counter.increment).count
    1
    >>> store.upsert("a", Counter.increment).count
    2
    >>> [k for k, _ in store.items()]
    ['a']
    """

    def __init__(self, zero: Callable[[], A]) -> None:
        self._zero = zero
        self._data: dict[K, A] = {}

    def get(self, key: K) -> A | None:
        """Return the aggregate stored under *key*, or ``None``."""
        return self._data.get(key)

    def upsert(self, key: K, update: Callable[[A], A]) -> A:
        """Apply *update* to the current (or zero) aggregate and store it.

        Parameters
        ----------
        key:
            Bucket to update.  The key itself is never modified.
        update:
            Function from the previous aggregate to the new one.

        Returns
        -------
        The stored aggregate.
        """
        current = self._data.get(key)
        if current is None:
            current = self._zero()
        updated = update(current)
        self._data[key] = updated
        return updated

    def put(self, key: K, value: A) -> None:
        """Store *value* under *key* as-is (used when restoring snapshots)."""
        self._data[key] = value

    def items(self) -> Iterator[tuple[K, A]]:
        """Yield ``(key, aggregate)`` pairs in insertion order."""
        yield from list(self._data.items())

    def is_empty(self) -> bool:
        return not self._data

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __repr__(self) -> str:
        return f"MetricStore(entries={len(self._data)})"


__all__ = ["MetricStore"]
