"""
Pydantic schemas for engine endpoints.
"""

from __future__ import annotations

import math
from datetime import datetime

from pydantic import BaseModel, Field

from grouping.models import (
    AlgorithmConfig,
    Candidate,
    Group,
    GroupSpec,
    Partition,
    Preference,
    SatisfactionScore,
)


class PartitionRequest(BaseModel):
    """Inputs for one generation run."""

    roster: list[str]
    groups: list[GroupSpec] | None = None
    preferences: list[Preference] = Field(default_factory=list)
    algorithm_config: AlgorithmConfig | None = None


class CandidatesRequest(PartitionRequest):
    candidate_count: int | None = None
    parallel: bool = False


class ScoreRequest(BaseModel):
    groups: list[Group]
    preferences: list[Preference] = Field(default_factory=list)
    participant_snapshot: list[str]


class ScoreResponse(BaseModel):
    """SatisfactionScore with the NaN average sent as null."""

    percent_assigned_top_choice: float
    percent_assigned_top2: float
    average_preference_rank_assigned: float | None
    students_with_preferences: int
    ranked_students: int

    @classmethod
    def from_score(cls, score: SatisfactionScore) -> ScoreResponse:
        average = score.average_preference_rank_assigned
        return cls(
            percent_assigned_top_choice=score.percent_assigned_top_choice,
            percent_assigned_top2=score.percent_assigned_top2,
            average_preference_rank_assigned=None if math.isnan(average) else average,
            students_with_preferences=score.students_with_preferences,
            ranked_students=score.ranked_students,
        )


class PartitionResponse(BaseModel):
    partition: Partition
    score: ScoreResponse


class CandidateResponse(BaseModel):
    id: str
    partition: Partition
    score: ScoreResponse
    algorithm_id: str
    algorithm_label: str
    seed: int
    generated_at: datetime
    algorithm_config: AlgorithmConfig

    @classmethod
    def from_candidate(cls, candidate: Candidate) -> CandidateResponse:
        return cls(
            id=candidate.id,
            partition=candidate.partition,
            score=ScoreResponse.from_score(candidate.score),
            algorithm_id=candidate.algorithm_id,
            algorithm_label=candidate.algorithm_label,
            seed=candidate.seed,
            generated_at=candidate.generated_at,
            algorithm_config=candidate.algorithm_config,
        )
