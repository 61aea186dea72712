"""Schema package for callmetrics-sdk.

Exports metric identifiers, dimension keys, raw signal shapes, the persisted
snapshot model, errors, and the validated configuration model.
"""
from __future__ import annotations

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
    coerce_code,
)
from callmetrics.schema.signals import AccountCapability, AudioRoute, CallInfo, RouteType
from callmetrics.schema.snapshot import (
    MetricSnapshot,
    SnapshotEntry,
    decode_snapshot,
    encode_snapshot,
)

__all__ = [
    # Identifiers and codes
    "MetricId",
    "ApiName",
    "ApiResult",
    "SubModule",
    "ErrorName",
    "CallDirection",
    "AccountType",
    "CallAudioRoute",
    "coerce_code",
    # Keys
    "ApiStatsKey",
    "ErrorStatsKey",
    "CallStatsKey",
    "AudioRouteStatsKey",
    # Signals
    "AccountCapability",
    "CallInfo",
    "RouteType",
    "AudioRoute",
    # Snapshot
    "SnapshotEntry",
    "MetricSnapshot",
    "encode_snapshot",
    "decode_snapshot",
    # Errors
    "ErrorSeverity",
    "CallMetricsError",
    "ConfigurationError",
    "StorageError",
    "SnapshotDecodeError",
    # Config
    "MetricsConfig",
]
