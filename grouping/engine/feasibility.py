"""
Feasibility checking for the assignment heuristic.

Pre-generation checks that decide whether capacities can hold the roster,
plus warnings for avoidance constraints that are likely to be broken.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence

from grouping.models import GroupSpec
from grouping.results import EngineFailure

from .constraint_model import ConstraintModel
from .logging import GenerationLogger

logger = logging.getLogger(__name__)


def total_capacity(groups: Sequence[GroupSpec]) -> int | None:
    """Sum of capacities, or None when any group is unlimited."""
    if any(group.capacity is None for group in groups):
        return None
    return sum(group.capacity or 0 for group in groups)


def check_feasibility(
    roster: Sequence[str],
    groups: Sequence[GroupSpec],
    model: ConstraintModel,
    generation_logger: GenerationLogger,
) -> EngineFailure | None:
    """Return an INFEASIBLE failure when the roster cannot fit, else None.

    Avoidance problems never fail the run; they are logged as warnings.
    """
    capacity = total_capacity(groups)
    if capacity is not None and capacity < len(roster):
        shortfall = len(roster) - capacity
        logger.warning(f"Infeasible: {len(roster)} students but only {capacity} places ({shortfall} short)")
        return EngineFailure.infeasible(
            f"Group capacities hold {capacity} students but the roster has {len(roster)}",
            roster_size=len(roster),
            total_capacity=capacity,
            shortfall=shortfall,
            capacities={group.id: group.capacity for group in groups},
        )

    logger.debug(
        f"Capacity check: {len(roster)} students, "
        f"{'unlimited' if capacity is None else capacity} places in {len(groups)} groups"
    )

    group_ids = [group.id for group in groups]
    for student_id in roster:
        avoided = model.constraints_for(student_id).avoid_groups
        if avoided and all(group_id in avoided for group_id in group_ids):
            generation_logger.log_feasibility_warning(f"Student {student_id} avoids every group")

    # Students wanting the same first choice beyond its capacity
    first_choices = Counter(
        model.constraints_for(s).ranked_groups[0] for s in roster if model.has_ranked_wishes(s)
    )
    for group in groups:
        wanted = first_choices.get(group.id, 0)
        if group.capacity is not None and wanted > group.capacity:
            generation_logger.log_feasibility_warning(
                f"{wanted} students rank {group.name} first but it holds {group.capacity}"
            )

    return None
