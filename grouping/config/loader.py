"""
ConfigLoader - Engine configuration management.

Resolves tunables from (highest priority first) runtime overrides,
environment variables, an optional PocketBase ``config`` collection and the
schema defaults. Values are type-converted and validated; bad values fail
fast with ValidationError.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, cast

from .errors import UnknownKeyError, ValidationError
from .schema import CONFIG_SCHEMA
from .types import ConfigType

if TYPE_CHECKING:
    from pocketbase import PocketBase

logger = logging.getLogger(__name__)


class ConfigLoader:
    """
    Configuration loader for the grouping engine.

    Usage:
        # Optional: back the loader with PocketBase at application startup
        ConfigLoader.initialize(pb_client=pb)

        # Get singleton instance
        loader = ConfigLoader.get_instance()

        # Typed accessors
        trials = loader.get_int("local_search.trials_per_student")

        # Test substitution
        with ConfigLoader.use(ConfigLoader(overrides={"candidates.default_count": 2})):
            ...
    """

    _instance: ConfigLoader | None = None
    _initialized: bool = False
    _init_lock = threading.Lock()

    def __init__(
        self,
        pb_client: PocketBase | None = None,
        overrides: dict[str, Any] | None = None,
        cache_ttl_seconds: int = 300,
    ):
        """
        Initialize the config loader.

        Args:
            pb_client: Authenticated PocketBase client, or None to skip the database layer.
            overrides: Runtime values taking precedence over every other source.
            cache_ttl_seconds: Cache TTL for database values in seconds.
        """
        self._pb = pb_client
        self._cache_ttl = cache_ttl_seconds
        self._cache: dict[str, tuple[Any, float]] = {}
        self._overrides: dict[str, Any] = {}
        for key, value in (overrides or {}).items():
            self.update_config(key, value)

    @classmethod
    def initialize(cls, pb_client: PocketBase | None = None) -> ConfigLoader:
        """
        Initialize the singleton ConfigLoader.

        Args:
            pb_client: Optional PocketBase client for database-backed values

        Returns:
            The initialized ConfigLoader instance
        """
        with cls._init_lock:
            if cls._initialized and cls._instance is not None:
                logger.debug("ConfigLoader already initialized, returning existing instance")
                return cls._instance

            cls._instance = cls(pb_client=pb_client)
            cls._initialized = True
            source = "PocketBase" if pb_client is not None else "environment/defaults"
            logger.info(f"ConfigLoader initialized ({source})")
            return cls._instance

    @classmethod
    def get_instance(cls) -> ConfigLoader:
        """Get the singleton instance, auto-initializing without a database."""
        if not cls._initialized or cls._instance is None:
            logger.debug("ConfigLoader auto-initializing (no explicit initialize() call)")
            return cls.initialize()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset singleton state. For testing only."""
        cls._instance = None
        cls._initialized = False

    @classmethod
    @contextmanager
    def use(cls, loader: ConfigLoader) -> Iterator[None]:
        """
        Temporarily replace the singleton with a custom loader.

        Args:
            loader: The loader to use temporarily.
        """
        original = cls._instance
        original_initialized = cls._initialized
        cls._instance = loader
        cls._initialized = True
        try:
            yield
        finally:
            cls._instance = original
            cls._initialized = original_initialized

    def _get_env_key(self, key: str) -> str:
        """Convert dot notation to environment variable name."""
        # local_search.trials_per_student -> CONFIG_LOCAL_SEARCH_TRIALS_PER_STUDENT
        return "CONFIG_" + key.upper().replace(".", "_")

    def get(self, key: str) -> Any:
        """
        Get a configuration value.

        Raises:
            UnknownKeyError: If key is not in schema
            ValidationError: If a source holds a value of the wrong type or range
        """
        if key not in CONFIG_SCHEMA:
            raise UnknownKeyError(f"Unknown config key: '{key}'")

        schema = CONFIG_SCHEMA[key]

        if key in self._overrides:
            return self._overrides[key]

        env_key = self._get_env_key(key)
        env_value = os.environ.get(env_key)
        if env_value is not None:
            return self._checked(key, env_value, source=f"environment variable {env_key}")

        if self._pb is not None:
            if key in self._cache:
                value, timestamp = self._cache[key]
                if time.time() - timestamp < self._cache_ttl:
                    return value

            raw_value = self._query_database_raw(key)
            if raw_value is not None:
                typed_value = self._checked(key, raw_value, source="database")
                self._cache[key] = (typed_value, time.time())
                return typed_value

        return schema.default

    def _checked(self, key: str, raw_value: Any, source: str) -> Any:
        schema = CONFIG_SCHEMA[key]
        try:
            typed_value = self._convert_type(raw_value, schema.config_type)
        except (ValueError, TypeError) as e:
            raise ValidationError(f"Config key '{key}' from {source} has invalid type: {e}") from e

        error = schema.validate(typed_value)
        if error:
            raise ValidationError(f"Config key '{key}' from {source}: {error}")
        return typed_value

    def get_int(self, key: str) -> int:
        """Get an integer config value."""
        return cast(int, self.get(key))

    def get_float(self, key: str) -> float:
        """Get a float config value."""
        return cast(float, self.get(key))

    def get_bool(self, key: str) -> bool:
        """Get a boolean config value."""
        return cast(bool, self.get(key))

    def get_str(self, key: str) -> str:
        """Get a string config value."""
        return cast(str, self.get(key))

    def _query_database_raw(self, key: str) -> Any | None:
        """
        Query PocketBase for a config value.

        Keys are stored as category + config_key, e.g.
        ``local_search.trials_per_student`` -> category="local_search",
        config_key="trials_per_student".

        Returns:
            The raw value from database, or None if not found or unreachable
        """
        assert self._pb is not None
        category, _, config_key = key.partition(".")
        filter_str = f'category = "{category}" && config_key = "{config_key}"'

        try:
            record = self._pb.collection("config").get_first_list_item(filter_str)
        except Exception as e:
            logger.debug(f"Config key '{key}' not available from database: {e}")
            return None
        return getattr(record, "value", None)

    def _convert_type(self, value: Any, config_type: ConfigType) -> Any:
        """Convert a raw value to the specified type."""
        if config_type == ConfigType.INT:
            if isinstance(value, bool):
                raise TypeError("boolean is not an integer")
            return int(value)
        elif config_type == ConfigType.FLOAT:
            return float(value)
        elif config_type == ConfigType.BOOL:
            if isinstance(value, bool):
                return value
            if isinstance(value, str):
                return value.lower() in ("true", "1", "yes", "on")
            return bool(value)
        elif config_type == ConfigType.STRING:
            return str(value)
        return value

    def invalidate_cache(self, key: str | None = None) -> None:
        """
        Invalidate cached database values.

        Args:
            key: Specific key to invalidate, or None for all
        """
        if key is None:
            self._cache.clear()
        elif key in self._cache:
            del self._cache[key]

    def update_config(self, key: str, value: str | int | float | bool) -> None:
        """
        Set a runtime override for a configuration value.

        Raises:
            UnknownKeyError: If key is not in schema
            ValidationError: If value fails validation
        """
        if key not in CONFIG_SCHEMA:
            raise UnknownKeyError(f"Unknown config key: '{key}'")

        self._overrides[key] = self._checked(key, value, source="override")
        self.invalidate_cache(key)
        logger.info(f"Updated config '{key}' to '{value}'")

    def snapshot(self) -> dict[str, Any]:
        """Return the effective value of every schema key."""
        return {key: self.get(key) for key in CONFIG_SCHEMA}
