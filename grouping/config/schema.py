"""Configuration schema registry.

Defines all valid configuration keys with their types, defaults and
validation rules. This is the single source of truth for engine tunables.
"""

from __future__ import annotations

from typing import Any

from .types import ConfigKey, ConfigType

ALGORITHM_IDS = ["balanced", "random", "round-robin", "preference-first"]

CONFIG_SCHEMA: dict[str, ConfigKey] = {
    # =========================================================================
    # LOCAL SEARCH
    # =========================================================================
    "local_search.trials_per_student": ConfigKey(
        key="local_search.trials_per_student",
        config_type=ConfigType.INT,
        default=30,
        description="Pairwise swap trials per roster student in the improvement phase",
        min_value=0,
        max_value=1000,
    ),
    # =========================================================================
    # OBJECTIVE WEIGHTS
    # =========================================================================
    "objective.rank_weight": ConfigKey(
        key="objective.rank_weight",
        config_type=ConfigType.INT,
        default=1,
        description="Cost per rank position below a student's first choice",
        min_value=0,
    ),
    "objective.avoid_student_penalty": ConfigKey(
        key="objective.avoid_student_penalty",
        config_type=ConfigType.INT,
        default=10,
        description="Cost per avoided student sharing a group",
        min_value=0,
    ),
    "objective.avoid_group_penalty": ConfigKey(
        key="objective.avoid_group_penalty",
        config_type=ConfigType.INT,
        default=10,
        description="Cost for placing a student in a group they avoid",
        min_value=0,
    ),
    # =========================================================================
    # CANDIDATE GENERATION
    # =========================================================================
    "candidates.default_count": ConfigKey(
        key="candidates.default_count",
        config_type=ConfigType.INT,
        default=5,
        description="Number of candidates generated when the caller gives no count",
        min_value=1,
        max_value=50,
    ),
    "candidates.max_count": ConfigKey(
        key="candidates.max_count",
        config_type=ConfigType.INT,
        default=12,
        description="Upper bound on candidates per request",
        min_value=1,
        max_value=50,
    ),
    "candidates.seed_stride": ConfigKey(
        key="candidates.seed_stride",
        config_type=ConfigType.INT,
        default=9973,
        description="Offset between consecutive candidate seeds",
        min_value=1,
    ),
    "candidates.max_workers": ConfigKey(
        key="candidates.max_workers",
        config_type=ConfigType.INT,
        default=4,
        description="Thread pool size for parallel candidate generation",
        min_value=1,
        max_value=32,
    ),
    # =========================================================================
    # ENGINE
    # =========================================================================
    "engine.default_algorithm": ConfigKey(
        key="engine.default_algorithm",
        config_type=ConfigType.STRING,
        default="balanced",
        description="Variant used when the configuration names none",
        allowed_values=ALGORITHM_IDS,
    ),
}


def get_schema_key(key: str) -> ConfigKey | None:
    """
    Get the schema definition for a config key.

    Args:
        key: The dot-notation config key

    Returns:
        ConfigKey if found, None if unknown
    """
    return CONFIG_SCHEMA.get(key)


def get_defaults() -> dict[str, Any]:
    """Return every key's schema default."""
    return {key: schema.default for key, schema in CONFIG_SCHEMA.items()}


def validate_key(key: str, value: Any) -> str | None:
    """
    Validate a value against its schema.

    Args:
        key: The config key
        value: The value to validate

    Returns:
        None if valid, error message if invalid
    """
    schema = CONFIG_SCHEMA.get(key)
    if schema is None:
        return f"Unknown config key: {key}"
    return schema.validate(value)
