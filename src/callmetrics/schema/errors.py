"""Error taxonomy for callmetrics-sdk.

All exceptions raised by callmetrics derive from ``CallMetricsError`` so that
callers can catch the entire family with a single ``except CallMetricsError``
clause while still being able to distinguish individual failure modes.

Most of these errors never reach callers: storage and decode failures are
raised by the persistence layer and absorbed by the aggregators, which log
them and fall back to in-memory state.  Only configuration loading lets its
errors propagate.

Shipped in this module
----------------------
- ErrorSeverity        — ordered severity enum
- CallMetricsError     — root exception with severity and context payload
- Domain subclasses    — ConfigurationError, StorageError, SnapshotDecodeError
"""
from __future__ import annotations

from enum import Enum


class ErrorSeverity(str, Enum):
    """Ordered severity levels for ``CallMetricsError`` instances.

    Severity is purely advisory metadata; it lets logging infrastructure
    filter by impact level.
    """

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


class CallMetricsError(Exception):
    """Root exception for all callmetrics failures.

    Parameters
    ----------
    message:
        Human-readable description of what went wrong.
    severity:
        Advisory ``ErrorSeverity`` level.  Defaults to ``HIGH``.
    context:
        Optional dict of structured metadata (metric ids, file names, etc.).

    Examples
    --------
    >>> try:
    ...     raise CallMetricsError("something broke", ErrorSeverity.MEDIUM)
    ... except CallMetricsError as exc:
    ...     print(exc.severity.value)
    medium
    """

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.HIGH,
        context: dict[str, object] | None = None,
    ) -> None:
        super().__init__(message)
        self.severity: ErrorSeverity = severity
        self.context: dict[str, object] = context or {}

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}("
            f"message={str(self)!r}, "
            f"severity={self.severity.value!r})"
        )


class ConfigurationError(CallMetricsError):
    """Raised when configuration loading or validation fails.

    Examples: negative delays, bad YAML, missing config file.
    """


class StorageError(CallMetricsError):
    """Raised by a storage backend when a snapshot cannot be read or written."""


class SnapshotDecodeError(CallMetricsError):
    """Raised when a persisted snapshot payload is malformed."""
