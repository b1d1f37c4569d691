"""Satisfaction analytics for engine-produced and hand-edited partitions."""

from .satisfaction import (
    GroupSatisfaction,
    group_breakdown,
    resolve_preference_rank,
    score_partition,
    score_scenario,
)

__all__ = [
    "GroupSatisfaction",
    "group_breakdown",
    "resolve_preference_rank",
    "score_partition",
    "score_scenario",
]
