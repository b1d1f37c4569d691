"""
Engine Router - Stateless partition generation and scoring.

This router handles:
- Generating a single partition
- Generating scored candidates for comparison
- Scoring any partition (engine output or hand-edited)
- Listing the available grouping algorithms
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter

from grouping.analytics import score_partition
from grouping.engine import ALGORITHM_CATALOG, generate_candidates, generate_partition
from grouping.results import EngineFailure

from ..errors import failure_to_http
from ..schemas import (
    CandidateResponse,
    CandidatesRequest,
    PartitionRequest,
    PartitionResponse,
    ScoreRequest,
    ScoreResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/engine", tags=["engine"])


@router.get("/algorithms")
async def list_algorithms() -> list[dict[str, str]]:
    """Grouping algorithms in candidate rotation order."""
    return [{"id": variant.id, "label": variant.label} for variant in ALGORITHM_CATALOG]


@router.post("/partition")
async def create_partition(request: PartitionRequest) -> PartitionResponse:
    """Generate one partition and score it."""
    result = await asyncio.to_thread(
        generate_partition, request.roster, request.groups, request.preferences, request.algorithm_config
    )
    if isinstance(result, EngineFailure):
        raise failure_to_http(result)

    score = score_partition(result.groups, request.preferences, result.participant_snapshot)
    return PartitionResponse(partition=result, score=ScoreResponse.from_score(score))


@router.post("/candidates")
async def create_candidates(request: CandidatesRequest) -> list[CandidateResponse]:
    """Generate several scored candidates rotating through the algorithms."""
    result = await asyncio.to_thread(
        generate_candidates,
        request.roster,
        request.groups,
        request.preferences,
        request.candidate_count,
        request.algorithm_config,
        request.parallel,
    )
    if isinstance(result, EngineFailure):
        raise failure_to_http(result)

    logger.info(f"Generated {len(result)} candidates for {len(request.roster)} students")
    return [CandidateResponse.from_candidate(candidate) for candidate in result]


@router.post("/score")
async def score(request: ScoreRequest) -> ScoreResponse:
    """Score a partition against preferences."""
    result = score_partition(request.groups, request.preferences, request.participant_snapshot)
    return ScoreResponse.from_score(result)
