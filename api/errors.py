"""
Mapping of engine and lifecycle failures onto HTTP errors.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException

from grouping.results import EngineFailure, FailureKind

logger = logging.getLogger(__name__)

FAILURE_STATUS: dict[FailureKind, int] = {
    FailureKind.INPUT_ERROR: 400,
    FailureKind.INFEASIBLE: 422,
    FailureKind.INVARIANT_VIOLATION: 500,
    FailureKind.SCENARIO_NOT_FOUND: 404,
    FailureKind.SCENARIO_ALREADY_EXISTS: 409,
    FailureKind.NOT_IN_DRAFT: 409,
}


def failure_to_http(failure: EngineFailure) -> HTTPException:
    status_code = FAILURE_STATUS.get(failure.kind, 500)
    if status_code >= 500:
        logger.error(f"Engine failure: {failure} {failure.details}")
    elif failure.kind == FailureKind.INFEASIBLE:
        logger.warning(f"Engine failure: {failure}")
    else:
        logger.info(f"Request failed: {failure}")
    return HTTPException(
        status_code=status_code,
        detail={"kind": failure.kind.value, "message": failure.message, "details": failure.details},
    )
