"""Configuration loader for callmetrics-sdk.

``ConfigLoader`` builds a ``MetricsConfig`` from a YAML or JSON file, from
``CALLMETRICS_*`` environment variables, or by discovering a config file in
a directory and overlaying the environment on top of it.
"""
from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import IO, Any

import yaml
from pydantic import ValidationError

from callmetrics.config.defaults import DEFAULT_CONFIG
from callmetrics.config.schema import validate_config
from callmetrics.schema.config import MetricsConfig
from callmetrics.schema.errors import ConfigurationError

logger = logging.getLogger(__name__)

# File names tried by load_auto(), in order
_AUTO_SEARCH_PATHS: tuple[str, ...] = (
    "callmetrics.yaml",
    "callmetrics.yml",
    "callmetrics.json",
    ".callmetrics.yaml",
    ".callmetrics.yml",
    ".callmetrics.json",
)

_Parser = Callable[[IO[str]], Any]

# format label -> (parser, parse error type)
_FORMATS: dict[str, tuple[_Parser, type[Exception]]] = {
    "YAML": (yaml.safe_load, yaml.YAMLError),
    "JSON": (json.load, json.JSONDecodeError),
}


def _read_mapping(path: str | Path, fmt: str) -> dict[str, Any]:
    """Parse *path* as *fmt*; a document that is not a mapping reads as ``{}``."""
    parse, parse_error = _FORMATS[fmt]
    resolved = Path(path)
    if not resolved.is_file():
        raise ConfigurationError(
            f"{fmt} config file not found: {resolved}",
            context={"path": str(resolved), "format": fmt},
        )
    try:
        with resolved.open(encoding="utf-8") as fh:
            raw = parse(fh)
    except parse_error as exc:
        raise ConfigurationError(
            f"Cannot parse {fmt} config {resolved}: {exc}",
            context={"path": str(resolved), "format": fmt},
        ) from exc
    logger.debug("Read %s config from %s", fmt, resolved)
    return dict(raw) if isinstance(raw, dict) else {}


class ConfigLoader:
    """Loads ``MetricsConfig`` from files or the environment.

    Examples
    --------
    >>> loader = ConfigLoader()
    >>> loader.load_env(prefix="CALLMETRICS_DOCTEST_").revert_threshold_ms
    5000
    """

    def load_yaml(self, path: str | Path) -> MetricsConfig:
        """Load configuration from a YAML file.

        Raises
        ------
        ConfigurationError
            If the file is missing, unparsable or fails validation.
        """
        return validate_config(_read_mapping(path, "YAML"))

    def load_json(self, path: str | Path) -> MetricsConfig:
        """Load configuration from a JSON file.  Same errors as :meth:`load_yaml`."""
        return validate_config(_read_mapping(path, "JSON"))

    def load_env(self, prefix: str = "CALLMETRICS_") -> MetricsConfig:
        """Build configuration from ``<prefix><FIELD>`` environment variables.

        Raises
        ------
        ConfigurationError
            If a variable holds a value that fails validation.
        """
        try:
            config = MetricsConfig.from_env(prefix=prefix)
        except ValidationError as exc:
            raise ConfigurationError(
                f"Invalid environment configuration: {exc}",
                context={"prefix": prefix},
            ) from exc
        logger.debug("Read environment config with prefix %r", prefix)
        return config

    def load_file(self, path: str | Path) -> MetricsConfig:
        """Load *path*, choosing YAML or JSON by its suffix."""
        if Path(path).suffix in {".yaml", ".yml"}:
            return self.load_yaml(path)
        return self.load_json(path)

    def load_auto(
        self,
        search_dir: str | Path | None = None,
        env_prefix: str = "CALLMETRICS_",
    ) -> MetricsConfig:
        """Discover a config file in *search_dir* and overlay the environment.

        The first readable file among ``callmetrics.{yaml,yml,json}`` and
        their hidden variants wins; unreadable ones are logged and skipped.
        With no file, ``DEFAULT_CONFIG`` is the base.  Any variable starting
        with *env_prefix* is then merged on top.
        """
        directory = Path.cwd() if search_dir is None else Path(search_dir)
        config = DEFAULT_CONFIG
        for name in _AUTO_SEARCH_PATHS:
            candidate = directory / name
            if not candidate.exists():
                continue
            try:
                config = self.load_file(candidate)
            except ConfigurationError as exc:
                logger.warning("Skipping config %s: %s", candidate, exc)
                continue
            logger.info("Loaded callmetrics config from %s", candidate)
            break
        else:
            logger.debug("No config file in %s; using defaults", directory)

        if any(key.startswith(env_prefix) for key in os.environ):
            config = config.merge(self.load_env(prefix=env_prefix))
            logger.debug("Merged %s* environment overrides", env_prefix)
        return config
