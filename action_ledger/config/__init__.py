"""Action Ledger configuration: loading, validation, and defaults."""

from action_ledger.config.defaults import DEFAULT_CONFIG
from action_ledger.config.loader import load_config, load_config_from_dict
from action_ledger.config.schema import LedgerConfig, RouteConfig

__all__ = [
    "load_config",
    "load_config_from_dict",
    "LedgerConfig",
    "RouteConfig",
    "DEFAULT_CONFIG",
]
