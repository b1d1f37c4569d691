"""
Constraint Model - fast lookup of per-student wishes and avoidances.

Built once per generation or scoring call from the roster, the raw
preference records and (optionally) the group set. Stale references to
students outside the roster or groups outside the group set are dropped
rather than failing the request.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from grouping.models import GroupSpec, Preference

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StudentConstraints:
    """Normalized preferences of one student."""

    ranked_groups: tuple[str, ...] = ()
    avoid_students: frozenset[str] = frozenset()
    avoid_groups: frozenset[str] = frozenset()

    @property
    def weight(self) -> int:
        """Number of constraints carried; heavier students are placed first."""
        return len(self.ranked_groups) + len(self.avoid_students) + len(self.avoid_groups)


class GroupResolver:
    """Resolves a group reference by id first, then by case-insensitive name."""

    def __init__(self, groups: Iterable[GroupSpec]):
        self._ids: set[str] = set()
        self._by_name: dict[str, str] = {}
        for group in groups:
            self._ids.add(group.id)
            self._by_name.setdefault(group.name.casefold(), group.id)

    def resolve(self, reference: str) -> str | None:
        if reference in self._ids:
            return reference
        return self._by_name.get(reference.casefold())


def _dedupe(items: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(items))


@dataclass(frozen=True)
class ConstraintModel:
    """student id -> StudentConstraints, for roster students with a record.

    When built without groups, ``ranked_groups`` keeps the raw references and
    ``rank_of`` falls back to name matching.
    """

    roster: tuple[str, ...]
    by_student: dict[str, StudentConstraints] = field(default_factory=dict)
    resolved: bool = True

    def constraints_for(self, student_id: str) -> StudentConstraints:
        return self.by_student.get(student_id, _NO_CONSTRAINTS)

    def weight(self, student_id: str) -> int:
        return self.constraints_for(student_id).weight

    def has_ranked_wishes(self, student_id: str) -> bool:
        return bool(self.constraints_for(student_id).ranked_groups)

    def rank_of(self, student_id: str, group_id: str, group_name: str | None = None) -> int | None:
        """1-indexed position of the group in the student's wish-list, or None."""
        wishes = self.constraints_for(student_id).ranked_groups
        if group_id in wishes:
            return wishes.index(group_id) + 1
        if not self.resolved and group_name:
            lowered = group_name.casefold()
            for index, wish in enumerate(wishes):
                if wish.casefold() == lowered:
                    return index + 1
        return None

    def avoids(self, student_id: str, other_id: str) -> bool:
        return other_id in self.constraints_for(student_id).avoid_students

    def conflicts(self, student_id: str, other_id: str) -> bool:
        """Avoidance in either direction."""
        return self.avoids(student_id, other_id) or self.avoids(other_id, student_id)


_NO_CONSTRAINTS = StudentConstraints()


def build_constraint_model(
    roster: Sequence[str],
    preferences: Iterable[Preference],
    groups: Iterable[GroupSpec] | None = None,
) -> ConstraintModel:
    """Normalize raw preference records against a roster and group set.

    Args:
        roster: Student ids that make up the universe
        preferences: Preference records, possibly sparse or stale
        groups: Current groups; None keeps group references unresolved

    Returns:
        ConstraintModel covering roster students that have a record
    """
    roster_ids = _dedupe(roster)
    roster_set = set(roster_ids)
    resolver = GroupResolver(groups) if groups is not None else None

    def resolve_groups(references: Iterable[str]) -> list[str]:
        if resolver is None:
            return list(references)
        resolved = []
        for reference in references:
            group_id = resolver.resolve(reference)
            if group_id is not None:
                resolved.append(group_id)
        return resolved

    records: dict[str, Preference] = {}
    for preference in preferences:
        if preference.student_id not in roster_set:
            continue
        if preference.student_id in records:
            logger.warning(f"Multiple preference records for student {preference.student_id}; using the last one")
        records[preference.student_id] = preference

    by_student: dict[str, StudentConstraints] = {}
    dropped = 0
    for student_id in roster_ids:
        preference = records.get(student_id)
        if preference is None:
            continue

        ranked = _dedupe(resolve_groups(preference.ranked_groups))
        avoid_students = frozenset(
            other for other in preference.avoid_student_ids if other in roster_set and other != student_id
        )
        avoid_groups = frozenset(resolve_groups(preference.avoid_group_ids))

        dropped += len(preference.ranked_groups) - len(ranked)
        by_student[student_id] = StudentConstraints(
            ranked_groups=ranked,
            avoid_students=avoid_students,
            avoid_groups=avoid_groups,
        )

    if dropped:
        logger.debug(f"Dropped {dropped} stale or duplicate group wishes while building constraint model")

    return ConstraintModel(roster=roster_ids, by_student=by_student, resolved=resolver is not None)
