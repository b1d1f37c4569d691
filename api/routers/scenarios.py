"""
Scenarios Router - Endpoints for an activity's scenario lifecycle.

This router handles:
- Generating and resetting the activity's DRAFT scenario
- Storing a chosen candidate as the DRAFT
- Publishing (adopting) a DRAFT, which records placements
- Archiving scenarios and reading current state and history
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Annotated, Any, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from pocketbase.client import ClientResponseError  # type: ignore[attr-defined]

from grouping.lifecycle import ScenarioLifecycle
from grouping.models import Placement, Scenario
from grouping.results import EngineFailure

from ..dependencies import get_lifecycle
from ..errors import failure_to_http
from ..schemas import CreateScenarioRequest, GenerateScenarioRequest, PublishScenarioRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/scenarios", tags=["scenarios"])

T = TypeVar("T")

Lifecycle = Annotated[ScenarioLifecycle, Depends(get_lifecycle)]
ScenarioId = Annotated[str, Path(description="Scenario ID")]


def _unwrap(result: Scenario | EngineFailure) -> Scenario:
    if isinstance(result, EngineFailure):
        raise failure_to_http(result)
    return result


async def _run(func: Callable[..., T], *args: Any) -> T:
    """Run a lifecycle call off the event loop, mapping store errors to 502."""
    try:
        return await asyncio.to_thread(func, *args)
    except ClientResponseError as e:
        logger.error(f"PocketBase error in scenario store: {e}")
        raise HTTPException(status_code=502, detail=f"Scenario store error: {e}")


# ========================================
# Lifecycle transitions
# ========================================


@router.post("/generate")
async def generate_scenario(request: GenerateScenarioRequest, lifecycle: Lifecycle) -> Scenario:
    """Generate the activity's DRAFT scenario; fails if one is already active."""
    result = await _run(
        lifecycle.generate,
        request.activity_id,
        request.roster,
        request.groups,
        request.preferences,
        request.algorithm_config,
        request.created_by,
    )
    return _unwrap(result)


@router.post("/reset")
async def reset_scenario(request: GenerateScenarioRequest, lifecycle: Lifecycle) -> Scenario:
    """Replace the activity's DRAFT with one regenerated from the current roster."""
    result = await _run(
        lifecycle.reset,
        request.activity_id,
        request.roster,
        request.groups,
        request.preferences,
        request.algorithm_config,
        request.created_by,
    )
    return _unwrap(result)


@router.post("")
async def create_scenario(request: CreateScenarioRequest, lifecycle: Lifecycle) -> Scenario:
    """Store a chosen candidate's partition as the activity's DRAFT."""
    result = await _run(lifecycle.create_from_partition, request.activity_id, request.partition, request.created_by)
    return _unwrap(result)


@router.post("/{scenario_id}/publish")
async def publish_scenario(scenario_id: ScenarioId, request: PublishScenarioRequest, lifecycle: Lifecycle) -> Scenario:
    result = await _run(lifecycle.publish, scenario_id, request.preferences, request.published_by)
    return _unwrap(result)


@router.post("/{scenario_id}/archive")
async def archive_scenario(scenario_id: ScenarioId, lifecycle: Lifecycle) -> Scenario:
    result = await _run(lifecycle.archive, scenario_id)
    return _unwrap(result)


# ========================================
# Reads
# ========================================


@router.get("/current")
async def get_current_scenario(
    activity_id: Annotated[str, Query(description="Activity ID")], lifecycle: Lifecycle
) -> Scenario:
    """The activity's non-archived scenario."""
    scenario = await _run(lifecycle.current, activity_id)
    if scenario is None:
        raise HTTPException(status_code=404, detail=f"No active scenario for activity {activity_id}")
    return scenario


@router.get("/history")
async def get_scenario_history(
    activity_id: Annotated[str, Query(description="Activity ID")], lifecycle: Lifecycle
) -> list[Scenario]:
    """All scenarios of the activity, oldest first, archived included."""
    return await _run(lifecycle.history, activity_id)


@router.get("/{scenario_id}")
async def get_scenario(scenario_id: ScenarioId, lifecycle: Lifecycle) -> Scenario:
    result = await _run(lifecycle.get, scenario_id)
    return _unwrap(result)


@router.get("/{scenario_id}/placements")
async def get_placements(scenario_id: ScenarioId, lifecycle: Lifecycle) -> list[Placement]:
    result = await _run(lifecycle.placements, scenario_id)
    if isinstance(result, EngineFailure):
        raise failure_to_http(result)
    return result
