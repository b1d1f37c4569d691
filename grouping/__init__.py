"""
Grouping - Core business logic for partitioning a roster into groups.

This package contains:
- models: Domain models (Student, GroupSpec, Preference, Partition, Scenario, etc.)
- engine: Constraint model, assignment heuristic and candidate generator
- analytics: Preference satisfaction scoring
- lifecycle: Scenario lifecycle and scenario stores
"""

# Engine first: the candidate generator pulls in analytics, which in turn
# reads the engine's constraint model.
from grouping.engine import generate_candidates, generate_partition
from grouping.analytics import score_partition
from grouping.models import (
    AlgorithmConfig,
    Candidate,
    Group,
    GroupSpec,
    Partition,
    Placement,
    Preference,
    SatisfactionScore,
    Scenario,
    ScenarioStatus,
    Student,
)
from grouping.results import EngineFailure, FailureKind, is_failure

__all__ = [
    "AlgorithmConfig",
    "Candidate",
    "EngineFailure",
    "FailureKind",
    "Group",
    "GroupSpec",
    "Partition",
    "Placement",
    "Preference",
    "SatisfactionScore",
    "Scenario",
    "ScenarioStatus",
    "Student",
    "generate_candidates",
    "generate_partition",
    "is_failure",
    "score_partition",
]
