"""Aggregate values stored per dimension key.

Shipped in this module
----------------------
- Counter         — event count
- RunningAverage  — event count plus an incrementally updated integer mean

Both are frozen; every update returns a new value which the owning
:class:`~callmetrics.telemetry.store.MetricStore` writes back under the same
key.

The running mean uses integer division truncated toward zero::

    count += 1
    average += trunc((sample - average) / count)

This drifts from the exact mean and depends on sample ordering.  Historical
persisted data was produced with this rule, so it is reproduced exactly.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


def truncating_div(numerator: int, denominator: int) -> int:
    """Integer division rounding toward zero.

    Python's ``//`` floors, which differs for negative numerators.

    >>> truncating_div(-7, 2)
    -3
    >>> truncating_div(7, 2)
    3
    """
    quotient = abs(numerator) // abs(denominator)
    if (numerator < 0) != (denominator < 0):
        return -quotient
    return quotient


@dataclass(frozen=True)
class Counter:
    """Number of events observed for one key."""

    count: int = 0

    has_average: ClassVar[bool] = False

    def increment(self) -> Counter:
        return Counter(count=self.count + 1)

    def values(self) -> tuple[int, ...]:
        """Return the pulled column values: ``(count,)``."""
        return (self.count,)

    @classmethod
    def from_fields(cls, count: int, average: int | None = None) -> Counter:
        return cls(count=count)


@dataclass(frozen=True)
class RunningAverage:
    """Event count and truncating incremental mean for one key.

    Attributes
    ----------
    count:
        Number of samples folded into the mean.  Never decreases.
    average:
        Current integer mean.

    Examples
    --------
    >>> avg = RunningAverage().add(300).add(100)
    >>> avg.count, avg.average
    (2, 200)
    """

    count: int = 0
    average: int = 0

    has_average: ClassVar[bool] = True

    def add(self, sample: int) -> RunningAverage:
        """Return a new aggregate with *sample* folded in."""
        count = self.count + 1
        return RunningAverage(
            count=count,
            average=self.average + truncating_div(sample - self.average, count),
        )

    def values(self) -> tuple[int, ...]:
        """Return the pulled column values: ``(count, average)``."""
        return (self.count, self.average)

    @classmethod
    def from_fields(cls, count: int, average: int | None = None) -> RunningAverage:
        return cls(count=count, average=average or 0)


Aggregate = Counter | RunningAverage


__all__ = ["Aggregate", "Counter", "RunningAverage", "truncating_div"]
