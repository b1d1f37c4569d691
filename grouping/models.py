"""
Domain models for the grouping engine.

Inputs (students, group specs, preferences, algorithm configuration) are
validated once here; everything downstream works with these typed models.
"""

from __future__ import annotations

import math
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Student(BaseModel):
    """Roster reference data. Never mutated by the engine."""

    model_config = ConfigDict(frozen=True)

    id: str
    first_name: str = ""
    last_name: str = ""
    grade: str | None = None

    @property
    def display_name(self) -> str:
        """Full name for display, falling back to the id."""
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.id


class GroupSpec(BaseModel):
    """A named group slot; capacity None means unlimited."""

    id: str
    name: str
    capacity: int | None = Field(default=None, ge=0)


class Group(GroupSpec):
    """A group with concrete members."""

    member_ids: list[str] = Field(default_factory=list)

    def spec(self) -> GroupSpec:
        return GroupSpec(id=self.id, name=self.name, capacity=self.capacity)


class Preference(BaseModel):
    """One student's preferences for an activity.

    ``ranked_groups`` holds group ids or names, most wanted first. Unknown
    payload keys are ignored; missing lists mean "no preference".
    """

    model_config = ConfigDict(extra="ignore")

    student_id: str
    ranked_groups: list[str] = Field(default_factory=list)
    avoid_student_ids: list[str] = Field(default_factory=list)
    avoid_group_ids: list[str] = Field(default_factory=list)

    @field_validator("ranked_groups", "avoid_student_ids", "avoid_group_ids", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class CapacityMode(str, Enum):
    EXPLICIT = "explicit"
    GROUP_COUNT = "group_count"
    TARGET_SIZE = "target_size"


class AlgorithmConfig(BaseModel):
    """Configuration bag for one generation run.

    At least one of ``groups``, ``group_count`` or ``target_group_size`` must
    be resolvable at generation time; that check happens in group sizing so
    it can be reported as a typed failure rather than a validation error.
    """

    model_config = ConfigDict(extra="ignore")

    group_count: int | None = Field(default=None, ge=1)
    target_group_size: int | None = Field(default=None, ge=1)
    seed: int | None = None
    algorithm: str | None = None
    groups: list[GroupSpec] | None = None
    swap_trials_per_student: int | None = Field(default=None, ge=0)

    def with_run(self, seed: int, algorithm: str) -> AlgorithmConfig:
        """Copy with a concrete seed and variant."""
        return self.model_copy(update={"seed": seed, "algorithm": algorithm}, deep=True)


class Partition(BaseModel):
    """One concrete assignment of every snapshot student to exactly one group."""

    groups: list[Group]
    participant_snapshot: list[str]
    algorithm: str
    seed: int
    capacity_mode: CapacityMode

    def assignment_map(self) -> dict[str, str]:
        """student id -> group id."""
        return {member: group.id for group in self.groups for member in group.member_ids}

    def group_by_id(self, group_id: str) -> Group | None:
        return next((g for g in self.groups if g.id == group_id), None)

    def run_config(self) -> dict[str, Any]:
        """The configuration that produced this partition, for audit."""
        return {"algorithm": self.algorithm, "seed": self.seed, "capacity_mode": self.capacity_mode.value}


class SatisfactionScore(BaseModel):
    """Preference satisfaction of a partition.

    ``average_preference_rank_assigned`` is NaN when no student received a
    ranked group; callers must treat that as "not applicable".
    """

    percent_assigned_top_choice: float = 0.0
    percent_assigned_top2: float = 0.0
    average_preference_rank_assigned: float = math.nan
    students_with_preferences: int = 0
    ranked_students: int = 0

    @property
    def has_average(self) -> bool:
        return not math.isnan(self.average_preference_rank_assigned)


class Candidate(BaseModel):
    """A scored partition produced for comparison; never persisted."""

    id: str
    partition: Partition
    score: SatisfactionScore
    algorithm_id: str
    algorithm_label: str
    seed: int
    generated_at: datetime
    algorithm_config: AlgorithmConfig


class ScenarioStatus(str, Enum):
    DRAFT = "DRAFT"
    ADOPTED = "ADOPTED"
    ARCHIVED = "ARCHIVED"


class Scenario(BaseModel):
    """A partition persisted for an activity with a tracked status."""

    id: str
    activity_id: str
    status: ScenarioStatus = ScenarioStatus.DRAFT
    groups: list[Group]
    participant_snapshot: list[str]
    created_at: datetime
    last_modified_at: datetime
    adopted_at: datetime | None = None
    archived_at: datetime | None = None
    created_by: str | None = None
    algorithm_config: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def members_within_snapshot(self) -> Scenario:
        snapshot = set(self.participant_snapshot)
        for group in self.groups:
            for member_id in group.member_ids:
                if member_id not in snapshot:
                    raise ValueError(
                        f"Group member {member_id} is not in participant snapshot for activity {self.activity_id}"
                    )
        return self

    @property
    def is_active(self) -> bool:
        return self.status != ScenarioStatus.ARCHIVED


class Placement(BaseModel):
    """Immutable record of a student's group at adoption time.

    ``preference_rank`` is 1-indexed, or None when the student had no ranked
    wishes or the group was not among them.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    scenario_id: str
    activity_id: str
    student_id: str
    group_id: str
    group_name: str
    preference_rank: int | None = Field(default=None, ge=1)
    preference_snapshot: tuple[str, ...] = ()
    assigned_at: datetime
    assigned_by: str | None = None
