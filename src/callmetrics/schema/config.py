"""Metrics configuration schema for callmetrics-sdk.

``MetricsConfig`` is a Pydantic v2 model that acts as the validated,
strongly-typed boundary object between raw configuration sources (YAML files,
environment variables, in-memory dicts) and the aggregators.

Shipped in this module
----------------------
- MetricsConfig   — Pydantic v2 model with class-method loaders
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator

PERSIST_DELAY_MS: int = 30_000
MIN_PULL_INTERVAL_MS: int = 23 * 60 * 60 * 1000
REVERT_THRESHOLD_MS: int = 5_000


class MetricsConfig(BaseModel):
    """Validated runtime configuration for the metric aggregators.

    Every field has a default so that the registry can start with zero
    configuration.

    Parameters
    ----------
    storage_dir:
        Directory holding one snapshot file per metric.
    persist_delay_ms:
        Debounce window between an aggregation and the write it triggers.
    min_pull_interval_ms:
        Minimum wall-clock gap between two successful pulls of one metric.
    revert_threshold_ms:
        Window within which routing back to the previous source marks the
        earlier audio route transition as reverted.  Also the delay after
        which a pending transition is finalized.
    """

    model_config = {"extra": "forbid", "validate_assignment": True}

    storage_dir: str = Field(default=".callmetrics")
    persist_delay_ms: int = Field(default=PERSIST_DELAY_MS, ge=0)
    min_pull_interval_ms: int = Field(default=MIN_PULL_INTERVAL_MS, ge=0)
    revert_threshold_ms: int = Field(default=REVERT_THRESHOLD_MS, gt=0)

    @model_validator(mode="before")
    @classmethod
    def _normalise_storage_dir(cls, values: Any) -> Any:  # noqa: ANN401
        """Treat an empty or null ``storage_dir`` as the default."""
        if isinstance(values, dict) and not values.get("storage_dir", True):
            values = {k: v for k, v in values.items() if k != "storage_dir"}
        return values

    # ------------------------------------------------------------------
    # Class-method loaders
    # ------------------------------------------------------------------

    @classmethod
    def from_yaml(cls, path: str | Path) -> "MetricsConfig":
        """Load and validate configuration from a YAML file.

        Raises
        ------
        FileNotFoundError
            If ``path`` does not exist.
        pydantic.ValidationError
            If the parsed data fails validation.
        """
        resolved = Path(path)
        if not resolved.exists():
            raise FileNotFoundError(f"Config file not found: {resolved}")
        with resolved.open(encoding="utf-8") as fh:
            raw: object = yaml.safe_load(fh)
        data: dict[str, object] = dict(raw) if isinstance(raw, dict) else {}
        return cls.model_validate(data)

    @classmethod
    def from_env(cls, prefix: str = "CALLMETRICS_") -> "MetricsConfig":
        """Build configuration from environment variables.

        Variables are mapped by stripping the ``prefix`` and lower-casing the
        remainder, e.g. ``CALLMETRICS_PERSIST_DELAY_MS=1000`` maps to
        ``persist_delay_ms=1000``.  Unknown names are ignored.
        """
        data: dict[str, object] = {}
        for raw_key, raw_value in os.environ.items():
            if not raw_key.startswith(prefix):
                continue
            key = raw_key[len(prefix):].lower()
            if key in cls.model_fields:
                data[key] = raw_value
        return cls.model_validate(data)

    def merge(self, overrides: "MetricsConfig") -> "MetricsConfig":
        """Produce a new config taking every non-default value from *overrides*.

        Neither *self* nor *overrides* is mutated.
        """
        merged = self.model_dump()
        default_data = MetricsConfig().model_dump()
        for key, override_value in overrides.model_dump().items():
            if override_value != default_data.get(key):
                merged[key] = override_value
        return MetricsConfig.model_validate(merged)
