"""Default configuration constants for callmetrics-sdk.

``DEFAULT_CONFIG`` is the starting point used by ``ConfigLoader.load_auto()``
before applying file or environment overrides.
"""
from __future__ import annotations

from callmetrics.schema.config import (
    MIN_PULL_INTERVAL_MS,
    PERSIST_DELAY_MS,
    REVERT_THRESHOLD_MS,
    MetricsConfig,
)

DEFAULT_CONFIG: MetricsConfig = MetricsConfig(
    storage_dir=".callmetrics",
    persist_delay_ms=PERSIST_DELAY_MS,
    min_pull_interval_ms=MIN_PULL_INTERVAL_MS,
    revert_threshold_ms=REVERT_THRESHOLD_MS,
)
"""Baseline ``MetricsConfig`` used when no file or env config is present."""
