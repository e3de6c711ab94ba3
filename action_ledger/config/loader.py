"""
Configuration Loader
~~~~~~~~~~~~~~~~~~~~

Reads ledger_config.yaml and layers it over ``DEFAULT_CONFIG``.
Mappings merge key by key; lists such as ``collections.routes`` or
``rollback.open_ended_patterns`` replace the default list wholesale.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from action_ledger.config.defaults import DEFAULT_CONFIG
from action_ledger.config.schema import LedgerConfig
from action_ledger.exceptions import (
    ConfigFileNotFoundError,
    ConfigValidationError,
)

__all__ = ["load_config", "load_config_from_dict"]

logger = logging.getLogger(__name__)


def _layer(defaults: dict, overrides: dict) -> dict:
    merged = dict(defaults)
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _layer(current, value)
        else:
            merged[key] = value
    return merged


def load_config(path: str | os.PathLike[str]) -> LedgerConfig:
    """
    Load a ledger configuration file.

    Raises:
        ConfigFileNotFoundError: The file does not exist.
        ConfigValidationError: The file is not valid YAML, is not a
            mapping, or fails schema validation.
    """
    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigFileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigValidationError(
            f"Invalid YAML in {config_path.name}: {exc}",
            details={"path": str(config_path)},
        ) from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigValidationError(
            f"{config_path.name} must contain a mapping, got {type(raw).__name__}",
            details={"path": str(config_path)},
        )

    config = load_config_from_dict(raw)
    logger.debug(
        "Loaded ledger config from %s (backend=%s, class=%s)",
        config_path,
        config.store.backend,
        config.collections.class_id,
    )
    return config


def load_config_from_dict(data: dict[str, Any]) -> LedgerConfig:
    """Layer ``data`` over the defaults and validate the result."""
    try:
        return LedgerConfig.model_validate(_layer(DEFAULT_CONFIG, data))
    except ValidationError as exc:
        fields = [".".join(str(part) for part in err["loc"]) for err in exc.errors()]
        raise ConfigValidationError(
            f"Invalid ledger configuration: {exc.error_count()} error(s) in {', '.join(fields)}",
            details={"errors": exc.errors(include_url=False)},
        ) from exc
