"""
Pydantic schemas for scenario lifecycle endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from grouping.models import Partition, Preference

from .engine import PartitionRequest


class GenerateScenarioRequest(PartitionRequest):
    """Generate (or, for reset, regenerate) the activity's DRAFT scenario."""

    activity_id: str
    created_by: str | None = None


class CreateScenarioRequest(BaseModel):
    """Store a chosen candidate's partition as the activity's DRAFT."""

    activity_id: str
    partition: Partition
    created_by: str | None = None


class PublishScenarioRequest(BaseModel):
    preferences: list[Preference] = Field(default_factory=list)
    published_by: str | None = None
