"""Satisfaction Analytics - how well a partition meets ranked group wishes.

Works on any partition (engine output or a hand-edited one) given only the
groups, the preference records and the participant snapshot. Scoring never
fails: missing or inconsistent preference data degrades to zero
percentages and a NaN average.

Rules:
1. Only snapshot students assigned to a group and holding a non-empty
   wish-list (after resolving against the partition's groups) count.
2. A wish matches a group by id first, then by case-insensitive name, so
   renamed groups keep their rank.
3. A counted student whose group is not in their list is "unranked": they
   stay in the denominator of both percentages but add nothing to the
   average.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from grouping.engine.constraint_model import ConstraintModel, build_constraint_model
from grouping.models import Group, GroupSpec, Preference, SatisfactionScore, Scenario

logger = logging.getLogger(__name__)


@dataclass
class GroupSatisfaction:
    """Per-group counts for display next to a partition."""

    group_id: str
    group_name: str
    members: int
    with_preferences: int
    top_choice: int
    ranked: int
    unranked: int


def resolve_preference_rank(
    model: ConstraintModel,
    student_id: str,
    group: GroupSpec,
) -> int | None:
    """1-indexed rank of ``group`` in the student's wish-list, or None."""
    return model.rank_of(student_id, group.id, group.name)


def _assignments(groups: Sequence[Group], snapshot: set[str]) -> dict[str, Group]:
    assigned: dict[str, Group] = {}
    for group in groups:
        for member_id in group.member_ids:
            if member_id in snapshot and member_id not in assigned:
                assigned[member_id] = group
    return assigned


def score_partition(
    groups: Sequence[Group],
    preferences: Iterable[Preference],
    participant_snapshot: Sequence[str],
) -> SatisfactionScore:
    """Score a partition against the preferences of its participants.

    Args:
        groups: Groups with member lists
        preferences: Preference records; records for students outside the
            snapshot are ignored
        participant_snapshot: Students the partition covers

    Returns:
        SatisfactionScore; the average is NaN when no student got a ranked group
    """
    model = build_constraint_model(participant_snapshot, preferences, groups)
    assigned = _assignments(groups, set(model.roster))

    with_preferences = 0
    top_choice = 0
    top_two = 0
    ranks: list[int] = []

    for student_id in model.roster:
        group = assigned.get(student_id)
        if group is None or not model.has_ranked_wishes(student_id):
            continue

        with_preferences += 1
        rank = resolve_preference_rank(model, student_id, group)
        if rank is None:
            continue

        ranks.append(rank)
        if rank == 1:
            top_choice += 1
        if rank <= 2:
            top_two += 1

    if with_preferences == 0:
        return SatisfactionScore()

    return SatisfactionScore(
        percent_assigned_top_choice=top_choice / with_preferences * 100,
        percent_assigned_top2=top_two / with_preferences * 100,
        average_preference_rank_assigned=sum(ranks) / len(ranks) if ranks else math.nan,
        students_with_preferences=with_preferences,
        ranked_students=len(ranks),
    )


def score_scenario(scenario: Scenario, preferences: Iterable[Preference]) -> SatisfactionScore:
    return score_partition(scenario.groups, preferences, scenario.participant_snapshot)


def group_breakdown(
    groups: Sequence[Group],
    preferences: Iterable[Preference],
    participant_snapshot: Sequence[str],
) -> list[GroupSatisfaction]:
    model = build_constraint_model(participant_snapshot, preferences, groups)
    assigned = _assignments(groups, set(model.roster))

    breakdown = []
    for group in groups:
        members = [student_id for student_id, g in assigned.items() if g.id == group.id]
        counted = [student_id for student_id in members if model.has_ranked_wishes(student_id)]
        ranks = [resolve_preference_rank(model, student_id, group) for student_id in counted]
        breakdown.append(
            GroupSatisfaction(
                group_id=group.id,
                group_name=group.name,
                members=len(members),
                with_preferences=len(counted),
                top_choice=sum(1 for rank in ranks if rank == 1),
                ranked=sum(1 for rank in ranks if rank is not None),
                unranked=sum(1 for rank in ranks if rank is None),
            )
        )
    return breakdown
