"""
Local search improvement phase.

Randomized pairwise swaps, kept only when they strictly lower the objective.
A swap exchanges two students between groups, so group sizes and therefore
capacities never change.
"""

from __future__ import annotations

import logging
import random

from grouping.logging_config import TRACE

from .logging import GenerationLogger
from .seeding import AssignmentState

logger = logging.getLogger(__name__)


def _swapped(members: list[str], out_id: str, in_id: str) -> list[str]:
    return [in_id if member == out_id else member for member in members]


def improve(
    state: AssignmentState,
    rng: random.Random,
    trials: int,
    generation_logger: GenerationLogger,
) -> int:
    """Run ``trials`` swap trials in place; returns the number of accepted swaps."""
    students = [student_id for group in state.groups for student_id in state.members[group.id]]
    if trials <= 0 or len(state.groups) < 2 or len(students) < 2:
        return 0

    location = {student_id: group_id for group_id, members in state.members.items() for student_id in members}
    objective = state.objective
    accepted = 0
    start_cost = objective.total_cost(state.members)

    for trial in range(trials):
        a = students[rng.randrange(len(students))]
        b = students[rng.randrange(len(students))]
        group_a, group_b = location[a], location[b]
        if group_a == group_b:
            continue

        members_a = state.members[group_a]
        members_b = state.members[group_b]
        before = objective.group_cost(group_a, members_a) + objective.group_cost(group_b, members_b)

        new_a = _swapped(members_a, a, b)
        new_b = _swapped(members_b, b, a)
        after = objective.group_cost(group_a, new_a) + objective.group_cost(group_b, new_b)

        if after < before:
            state.members[group_a] = new_a
            state.members[group_b] = new_b
            location[a], location[b] = group_b, group_a
            accepted += 1
            if logger.isEnabledFor(TRACE):
                logger.log(
                    TRACE, f"Trial {trial}: swapped {a} ({group_a}) <-> {b} ({group_b}), cost delta {after - before}"
                )

    end_cost = objective.total_cost(state.members)
    generation_logger.log_progress(f"{trials} swap trials, {accepted} accepted, cost {start_cost} -> {end_cost}")
    return accepted
