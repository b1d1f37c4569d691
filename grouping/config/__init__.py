"""
Configuration management for the grouping engine.

Usage:
    from grouping.config import ConfigLoader, ConfigError

    config = ConfigLoader.get_instance()
    trials = config.get_int("local_search.trials_per_student")
"""

from __future__ import annotations

from .errors import ConfigError, UnknownKeyError, ValidationError
from .loader import ConfigLoader
from .schema import ALGORITHM_IDS, CONFIG_SCHEMA, get_defaults, get_schema_key, validate_key
from .types import ConfigKey, ConfigType

__all__ = [
    # Main loader
    "ConfigLoader",
    # Error classes
    "ConfigError",
    "ValidationError",
    "UnknownKeyError",
    # Schema
    "ALGORITHM_IDS",
    "CONFIG_SCHEMA",
    "ConfigKey",
    "ConfigType",
    "get_defaults",
    "get_schema_key",
    "validate_key",
]
