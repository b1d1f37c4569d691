"""
Greedy seed phase - first placement of every roster student.

Each variant decides the order students are visited in and how a group is
chosen among the compatible open ones. All variants share the same
compatibility rule and the same least-bad fallback, so every student is
always placed.
"""

from __future__ import annotations

import random
from collections.abc import Sequence

from grouping.models import GroupSpec

from .constraint_model import ConstraintModel
from .logging import GenerationLogger
from .objective import Objective


class AssignmentState:
    """Mutable working copy of a partition during one run."""

    def __init__(self, groups: Sequence[GroupSpec], model: ConstraintModel, objective: Objective):
        self.groups = list(groups)
        self.model = model
        self.objective = objective
        self.members: dict[str, list[str]] = {group.id: [] for group in self.groups}
        self._by_id = {group.id: group for group in self.groups}
        self.round_robin_index = 0

    def group(self, group_id: str) -> GroupSpec:
        return self._by_id[group_id]

    def is_open(self, group: GroupSpec) -> bool:
        return group.capacity is None or len(self.members[group.id]) < group.capacity

    def is_compatible(self, student_id: str, group: GroupSpec) -> bool:
        """Open, not avoided by the student, and no avoidance with anyone already there."""
        if not self.is_open(group):
            return False
        if group.id in self.model.constraints_for(student_id).avoid_groups:
            return False
        return not any(self.model.conflicts(student_id, other) for other in self.members[group.id])

    def compatible_groups(self, student_id: str) -> list[GroupSpec]:
        return [group for group in self.groups if self.is_compatible(student_id, group)]

    def most_underfilled(self, groups: Sequence[GroupSpec]) -> GroupSpec | None:
        if not groups:
            return None
        return min(groups, key=lambda g: (len(self.members[g.id]), g.id, g.name))

    def first_compatible_wish(self, student_id: str) -> GroupSpec | None:
        for group_id in self.model.constraints_for(student_id).ranked_groups:
            group = self._by_id.get(group_id)
            if group is not None and self.is_compatible(student_id, group):
                return group
        return None

    def next_round_robin(self, student_id: str) -> GroupSpec | None:
        """Next compatible group in cycling order, advancing the cursor past it."""
        count = len(self.groups)
        for step in range(count):
            index = (self.round_robin_index + step) % count
            group = self.groups[index]
            if self.is_compatible(student_id, group):
                self.round_robin_index = index + 1
                return group
        return None

    def least_bad(self, student_id: str) -> GroupSpec:
        """Open group with the fewest avoidance violations.

        Capacities were checked before the run, so an open group exists.
        """
        open_groups = [group for group in self.groups if self.is_open(group)]
        return min(
            open_groups,
            key=lambda g: (
                self.objective.violations(student_id, g.id, self.members[g.id]),
                len(self.members[g.id]),
                g.id,
            ),
        )

    def place(self, student_id: str, group: GroupSpec) -> None:
        self.members[group.id].append(student_id)


def order_by_weight(roster: Sequence[str], model: ConstraintModel, rng: random.Random) -> list[str]:
    """Most constrained first; roster order breaks ties."""
    return sorted(roster, key=lambda student_id: -model.weight(student_id))


def order_shuffled(roster: Sequence[str], model: ConstraintModel, rng: random.Random) -> list[str]:
    order = list(roster)
    rng.shuffle(order)
    return order


def choose_first_wish(state: AssignmentState, student_id: str, rng: random.Random) -> GroupSpec | None:
    """Highest compatible wish, else the most under-filled compatible group."""
    wish = state.first_compatible_wish(student_id)
    if wish is not None:
        return wish
    return state.most_underfilled(state.compatible_groups(student_id))


def choose_random(state: AssignmentState, student_id: str, rng: random.Random) -> GroupSpec | None:
    compatible = state.compatible_groups(student_id)
    if not compatible:
        return None
    return rng.choice(compatible)


def choose_round_robin(state: AssignmentState, student_id: str, rng: random.Random) -> GroupSpec | None:
    return state.next_round_robin(student_id)


def seed_assignment(
    state: AssignmentState,
    order: Sequence[str],
    choose,
    rng: random.Random,
    generation_logger: GenerationLogger,
) -> None:
    """Place every student in ``order`` using ``choose``, falling back to the least-bad group."""
    for student_id in order:
        group = choose(state, student_id, rng)
        if group is None:
            group = state.least_bad(student_id)
            generation_logger.log_fallback(
                student_id,
                group.id,
                f"no compatible open group; {state.objective.violations(student_id, group.id, state.members[group.id])} "
                "avoidance violation(s)",
            )
        state.place(student_id, group)
