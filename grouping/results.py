"""
Typed failure values returned by the engine and the scenario lifecycle.

Engine entry points return either their result or an ``EngineFailure``;
they never raise for expected problems. Callers branch with
``is_failure(result)``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, TypeGuard

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    # Bad caller input: empty roster, no resolvable group count, unknown variant
    INPUT_ERROR = "INPUT_ERROR"
    # Capacities cannot hold the roster
    INFEASIBLE = "INFEASIBLE"
    # Post-generation check failed; a defect, not a caller problem
    INVARIANT_VIOLATION = "INVARIANT_VIOLATION"
    # Lifecycle
    SCENARIO_ALREADY_EXISTS = "SCENARIO_ALREADY_EXISTS"
    SCENARIO_NOT_FOUND = "SCENARIO_NOT_FOUND"
    NOT_IN_DRAFT = "NOT_IN_DRAFT"


class EngineFailure(BaseModel):
    """A failed engine or lifecycle call."""

    kind: FailureKind
    message: str
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def input_error(cls, message: str, **details: Any) -> EngineFailure:
        return cls(kind=FailureKind.INPUT_ERROR, message=message, details=details)

    @classmethod
    def infeasible(cls, message: str, **details: Any) -> EngineFailure:
        return cls(kind=FailureKind.INFEASIBLE, message=message, details=details)

    @classmethod
    def invariant_violation(cls, message: str, **details: Any) -> EngineFailure:
        return cls(kind=FailureKind.INVARIANT_VIOLATION, message=message, details=details)

    @classmethod
    def already_exists(cls, message: str, **details: Any) -> EngineFailure:
        return cls(kind=FailureKind.SCENARIO_ALREADY_EXISTS, message=message, details=details)

    @classmethod
    def not_found(cls, message: str, **details: Any) -> EngineFailure:
        return cls(kind=FailureKind.SCENARIO_NOT_FOUND, message=message, details=details)

    @classmethod
    def not_in_draft(cls, message: str, **details: Any) -> EngineFailure:
        return cls(kind=FailureKind.NOT_IN_DRAFT, message=message, details=details)

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


def is_failure(result: object) -> TypeGuard[EngineFailure]:
    return isinstance(result, EngineFailure)
