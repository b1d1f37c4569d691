"""
Objective - the cost the local search minimizes.

Per student: rank cost for the group they got plus penalties for every
avoided student sharing the group and for sitting in an avoided group.
Lower is better.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from grouping.config import ConfigLoader

from .constraint_model import ConstraintModel


@dataclass(frozen=True)
class ObjectiveWeights:
    rank_weight: int = 1
    avoid_student_penalty: int = 10
    avoid_group_penalty: int = 10

    @classmethod
    def from_config(cls, config: ConfigLoader | None = None) -> ObjectiveWeights:
        config = config or ConfigLoader.get_instance()
        return cls(
            rank_weight=config.get_int("objective.rank_weight"),
            avoid_student_penalty=config.get_int("objective.avoid_student_penalty"),
            avoid_group_penalty=config.get_int("objective.avoid_group_penalty"),
        )


class Objective:
    """Evaluates placement cost against a constraint model."""

    def __init__(self, model: ConstraintModel, weights: ObjectiveWeights):
        self.model = model
        self.weights = weights

    def rank_cost(self, student_id: str, group_id: str) -> int:
        wishes = self.model.constraints_for(student_id).ranked_groups
        if not wishes:
            return 0
        rank = self.model.rank_of(student_id, group_id)
        # An unlisted group costs one more than the last wish
        position = rank - 1 if rank is not None else len(wishes)
        return position * self.weights.rank_weight

    def student_cost(self, student_id: str, group_id: str, members: Iterable[str]) -> int:
        """Cost of ``student_id`` sitting in ``group_id`` with ``members``."""
        constraints = self.model.constraints_for(student_id)
        cost = self.rank_cost(student_id, group_id)
        if group_id in constraints.avoid_groups:
            cost += self.weights.avoid_group_penalty
        if constraints.avoid_students:
            clashes = sum(1 for other in members if other != student_id and other in constraints.avoid_students)
            cost += clashes * self.weights.avoid_student_penalty
        return cost

    def group_cost(self, group_id: str, members: list[str]) -> int:
        return sum(self.student_cost(student_id, group_id, members) for student_id in members)

    def total_cost(self, assignment: dict[str, list[str]]) -> int:
        """Cost of a whole partition given as group id -> members."""
        return sum(self.group_cost(group_id, members) for group_id, members in assignment.items())

    def violations(self, student_id: str, group_id: str, members: Iterable[str]) -> int:
        """Avoidance violations a placement would create, counted in both directions."""
        constraints = self.model.constraints_for(student_id)
        count = 1 if group_id in constraints.avoid_groups else 0
        count += sum(1 for other in members if other != student_id and self.model.conflicts(student_id, other))
        return count
