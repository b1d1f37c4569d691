"""
Pydantic schemas for the Grouping API.

Re-exports all schemas for convenient importing.
"""

from __future__ import annotations

from .engine import (
    CandidateResponse,
    CandidatesRequest,
    PartitionRequest,
    PartitionResponse,
    ScoreRequest,
    ScoreResponse,
)
from .scenarios import CreateScenarioRequest, GenerateScenarioRequest, PublishScenarioRequest

__all__ = [
    # Engine
    "CandidateResponse",
    "CandidatesRequest",
    "PartitionRequest",
    "PartitionResponse",
    "ScoreRequest",
    "ScoreResponse",
    # Scenarios
    "CreateScenarioRequest",
    "GenerateScenarioRequest",
    "PublishScenarioRequest",
]
