"""Persisted snapshot schema for callmetrics-sdk.

``MetricSnapshot`` is the unit of persistence: every (key, aggregate) pair of
one metric plus the timestamp of its last successful pull.  It is a Pydantic
v2 model so a truncated or hand-edited file fails validation as a whole
instead of yielding a half-restored store.

Shipped in this module
----------------------
- SnapshotEntry    — one persisted bucket
- MetricSnapshot   — ordered entries + ``pull_timestamp_millis``
- encode_snapshot  — model to UTF-8 JSON bytes
- decode_snapshot  — bytes to model, raising ``SnapshotDecodeError``
"""
from __future__ import annotations

from pydantic import BaseModel, Field, ValidationError

from callmetrics.schema.errors import ErrorSeverity, SnapshotDecodeError


class SnapshotEntry(BaseModel):
    """A single persisted bucket.

    Parameters
    ----------
    key:
        Dimension key fields by name, in key declaration order.
    count:
        Number of events folded into the bucket.
    average:
        Running mean for average-bearing metrics; ``None`` for counters.
    """

    model_config = {"frozen": True}

    key: dict[str, bool | int]
    count: int = Field(ge=0)
    average: int | None = None


class MetricSnapshot(BaseModel):
    """Everything persisted for one metric."""

    pull_timestamp_millis: int = Field(default=0, ge=0)
    entries: list[SnapshotEntry] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.entries


def encode_snapshot(snapshot: MetricSnapshot) -> bytes:
    """Serialise *snapshot* to UTF-8 JSON bytes."""
    return snapshot.model_dump_json().encode("utf-8")


def decode_snapshot(data: bytes) -> MetricSnapshot:
    """Parse bytes produced by :func:`encode_snapshot`.

    Raises
    ------
    SnapshotDecodeError
        If *data* is not valid JSON or does not match the schema.  The
        original ``ValidationError`` is attached as the ``__cause__``.
    """
    try:
        return MetricSnapshot.model_validate_json(data)
    except ValidationError as exc:
        raise SnapshotDecodeError(
            f"Malformed metric snapshot: {exc.error_count()} validation error(s)",
            severity=ErrorSeverity.LOW,
            context={"errors": exc.errors(include_url=False)},
        ) from exc


__all__ = ["SnapshotEntry", "MetricSnapshot", "encode_snapshot", "decode_snapshot"]
