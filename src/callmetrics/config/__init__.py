"""Config package for callmetrics-sdk.

Provides configuration loading, validation, and defaults.
"""
from __future__ import annotations

from callmetrics.config.defaults import DEFAULT_CONFIG
from callmetrics.config.loader import ConfigLoader
from callmetrics.config.schema import MetricsConfig, validate_config

__all__ = [
    "MetricsConfig",
    "validate_config",
    "ConfigLoader",
    "DEFAULT_CONFIG",
]
