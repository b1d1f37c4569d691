"""
Assignment Heuristic - turns a roster, groups and preferences into one partition.

Two phases: a greedy seed phase that places every student (most constrained
first for the balanced variant), then a seeded local search of pairwise
swaps. Identical inputs and seed always reproduce the same partition.
"""

from __future__ import annotations

import logging
import os
import random
import time
from collections import Counter
from collections.abc import Iterable, Sequence

from grouping.config import ConfigLoader
from grouping.models import AlgorithmConfig, Group, GroupSpec, Partition, Preference, Student
from grouping.results import EngineFailure

from .catalog import ALGORITHM_CATALOG, AlgorithmVariant, get_variant
from .constraint_model import ConstraintModel, build_constraint_model
from .feasibility import check_feasibility
from .group_sizing import derive_group_specs
from .local_search import improve
from .logging import GenerationLogger
from .objective import Objective, ObjectiveWeights
from .seeding import AssignmentState, seed_assignment

logger = logging.getLogger(__name__)


def roster_ids(roster: Iterable[str | Student]) -> list[str]:
    """Student ids in roster order, duplicates removed."""
    ids = (entry.id if isinstance(entry, Student) else entry for entry in roster)
    return list(dict.fromkeys(ids))


def resolve_seed(seed: int | None) -> int:
    return seed if seed is not None else int(time.time() * 1000)


def check_partition(roster: Sequence[str], groups: Sequence[Group]) -> EngineFailure | None:
    """Every roster id placed exactly once, nothing else placed, capacities held."""
    placed = Counter(member for group in groups for member in group.member_ids)
    roster_set = set(roster)

    duplicates = sorted(student_id for student_id, count in placed.items() if count > 1)
    missing = [student_id for student_id in roster if student_id not in placed]
    extraneous = sorted(student_id for student_id in placed if student_id not in roster_set)
    over_capacity = {
        group.id: len(group.member_ids)
        for group in groups
        if group.capacity is not None and len(group.member_ids) > group.capacity
    }

    if duplicates or missing or extraneous or over_capacity:
        return EngineFailure.invariant_violation(
            "Generated partition does not place every roster student exactly once within capacity",
            duplicates=duplicates,
            missing=missing,
            extraneous=extraneous,
            over_capacity=over_capacity,
        )
    return None


def _log_remaining_violations(state: AssignmentState, generation_logger: GenerationLogger) -> None:
    model = state.model
    for group_id, members in state.members.items():
        for student_id in members:
            constraints = model.constraints_for(student_id)
            if group_id in constraints.avoid_groups:
                generation_logger.log_violation("avoid_group", f"{student_id} placed in avoided group {group_id}")
            for other in members:
                if other in constraints.avoid_students:
                    generation_logger.log_violation("avoid_student", f"{student_id} shares {group_id} with {other}")


def run_heuristic(
    roster: Sequence[str],
    groups: Sequence[GroupSpec],
    model: ConstraintModel,
    variant: AlgorithmVariant,
    seed: int,
    trials_per_student: int,
    weights: ObjectiveWeights,
    generation_logger: GenerationLogger,
) -> list[Group]:
    """Run both phases for an already validated, feasible input."""

    rng = random.Random(seed)
    state = AssignmentState(groups, model, Objective(model, weights))

    order = variant.order(roster, model, rng)
    seed_assignment(state, order, variant.choose, rng, generation_logger)

    if variant.improves:
        improve(state, rng, trials_per_student * len(roster), generation_logger)

    _log_remaining_violations(state, generation_logger)
    return [
        Group(id=group.id, name=group.name, capacity=group.capacity, member_ids=list(state.members[group.id]))
        for group in state.groups
    ]


def generate_partition(
    roster: Iterable[str | Student],
    groups: Sequence[GroupSpec] | None,
    preferences: Iterable[Preference],
    algorithm_config: AlgorithmConfig | None = None,
    config: ConfigLoader | None = None,
) -> Partition | EngineFailure:
    """Produce one partition of the roster.

    Args:
        roster: Student ids (or Students) to partition, in tie-break order
        groups: Named groups to fill; None derives them from ``group_count``
            or ``target_group_size`` in ``algorithm_config``
        preferences: Preference records; stale references are ignored
        algorithm_config: Seed, variant and sizing options
        config: Engine tunables; defaults to the ConfigLoader singleton

    Returns:
        The Partition, or an EngineFailure describing why none was produced
    """
    algorithm_config = algorithm_config or AlgorithmConfig()
    config = config or ConfigLoader.get_instance()
    ids = roster_ids(roster)

    if not ids:
        logger.info("Generation rejected: empty roster")
        return EngineFailure.input_error("Roster is empty; nothing to partition")

    algorithm_id = algorithm_config.algorithm or config.get_str("engine.default_algorithm")
    variant = get_variant(algorithm_id)
    if variant is None:
        return EngineFailure.input_error(
            f"Unknown grouping algorithm: {algorithm_id}",
            known_algorithms=[v.id for v in ALGORITHM_CATALOG],
        )

    derived = derive_group_specs(len(ids), algorithm_config, groups)
    if isinstance(derived, EngineFailure):
        logger.info(f"Generation rejected: {derived.message}")
        return derived
    group_specs, capacity_mode = derived

    preferences = list(preferences)
    model = build_constraint_model(ids, preferences, group_specs)
    generation_logger = GenerationLogger(debug_mode=os.getenv("LOG_LEVEL", "").upper() in ("DEBUG", "TRACE"))

    infeasible = check_feasibility(ids, group_specs, model, generation_logger)
    if infeasible is not None:
        return infeasible

    seed = resolve_seed(algorithm_config.seed)
    trials_per_student = (
        algorithm_config.swap_trials_per_student
        if algorithm_config.swap_trials_per_student is not None
        else config.get_int("local_search.trials_per_student")
    )

    logger.info(
        f"Generating partition: {len(ids)} students, {len(group_specs)} groups, "
        f"algorithm={algorithm_id}, seed={seed}"
    )

    try:
        filled = run_heuristic(
            ids,
            group_specs,
            model,
            variant,
            seed,
            trials_per_student,
            ObjectiveWeights.from_config(config),
            generation_logger,
        )
    except Exception as e:
        logger.error(f"Heuristic run failed for algorithm={algorithm_id} seed={seed}: {e}", exc_info=True)
        return EngineFailure.invariant_violation(
            f"Heuristic run failed: {e}", algorithm=algorithm_id, seed=seed
        )

    violation = check_partition(ids, filled)
    if violation is not None:
        logger.error(f"Invariant violation after generation (algorithm={algorithm_id}, seed={seed}): {violation.details}")
        return violation

    logger.debug(f"Generation summary: {generation_logger.get_summary()}")

    return Partition(
        groups=filled,
        participant_snapshot=ids,
        algorithm=algorithm_id,
        seed=seed,
        capacity_mode=capacity_mode,
    )
