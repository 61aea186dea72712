"""Config schema re-export and validation helper for callmetrics-sdk.

Re-exports ``MetricsConfig`` so that ``callmetrics.config`` is a complete
import path for consumers who prefer not to reach into ``callmetrics.schema``.
"""
from __future__ import annotations

from pydantic import ValidationError

from callmetrics.schema.config import MetricsConfig
from callmetrics.schema.errors import ConfigurationError

__all__ = ["MetricsConfig", "validate_config"]


def validate_config(data: dict[str, object]) -> MetricsConfig:
    """Validate a raw dict against the ``MetricsConfig`` schema.

    Raises
    ------
    ConfigurationError
        If the data fails Pydantic validation.  The original
        ``ValidationError`` is attached as the ``__cause__``.

    Examples
    --------
    >>> validate_config({"persist_delay_ms": 1000}).persist_delay_ms
    1000
    """
    try:
        return MetricsConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(
            f"Configuration validation failed: {exc}",
            context={"errors": exc.errors(include_url=False)},
        ) from exc
