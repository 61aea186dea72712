"""Concrete call metrics and the registry that owns them."""
from __future__ import annotations

from callmetrics.stats.api_stats import ApiStats
from callmetrics.stats.audio_route_stats import AudioRouteStats, convert_audio_type
from callmetrics.stats.call_stats import CallStats, account_type_for
from callmetrics.stats.error_stats import ErrorStats
from callmetrics.stats.registry import MetricsRegistry

__all__ = [
    "ApiStats",
    "AudioRouteStats",
    "CallStats",
    "ErrorStats",
    "MetricsRegistry",
    "account_type_for",
    "convert_audio_type",
]
