"""
Group sizing - derive GroupSpecs when the caller gives a count or target size.

Capacities are spread with ceiling rounding so that they differ by at most
one and add up to the roster size.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from grouping.models import AlgorithmConfig, CapacityMode, GroupSpec
from grouping.results import EngineFailure

logger = logging.getLogger(__name__)


def split_capacities(student_count: int, group_count: int) -> list[int]:
    """Capacities for ``group_count`` groups holding ``student_count`` students.

    >>> split_capacities(22, 5)
    [5, 5, 4, 4, 4]
    """
    capacities = []
    remaining = student_count
    for index in range(group_count):
        remaining_groups = group_count - index
        capacity = math.ceil(remaining / remaining_groups)
        capacities.append(capacity)
        remaining -= capacity
    return capacities


def derive_group_specs(
    student_count: int,
    config: AlgorithmConfig,
    groups: Sequence[GroupSpec] | None = None,
) -> tuple[list[GroupSpec], CapacityMode] | EngineFailure:
    """Resolve the groups for a run.

    Precedence: explicit groups (argument, then ``config.groups``), then
    ``group_count``, then ``target_group_size``.
    """
    explicit = list(groups) if groups else list(config.groups or [])
    if explicit:
        names = [g.name.casefold() for g in explicit]
        ids = [g.id for g in explicit]
        if len(set(names)) != len(names) or len(set(ids)) != len(ids):
            return EngineFailure.input_error(
                "Group ids and names must be unique within a partition",
                group_names=[g.name for g in explicit],
            )
        return [g.model_copy() for g in explicit], CapacityMode.EXPLICIT

    if config.group_count is not None:
        group_count = config.group_count
        mode = CapacityMode.GROUP_COUNT
    elif config.target_group_size is not None:
        group_count = math.ceil(student_count / config.target_group_size)
        mode = CapacityMode.TARGET_SIZE
    else:
        return EngineFailure.input_error(
            "No groups, group_count or target_group_size supplied; cannot decide how many groups to build"
        )

    if group_count > student_count:
        logger.warning(f"Requested {group_count} groups for {student_count} students; using {student_count}")
        group_count = student_count

    if group_count <= 0:
        return EngineFailure.input_error(
            "Zero groups can be derived from the configuration",
            student_count=student_count,
            group_count=config.group_count,
            target_group_size=config.target_group_size,
        )

    specs = [
        GroupSpec(id=f"group-{index}", name=f"Group {index}", capacity=capacity)
        for index, capacity in enumerate(split_capacities(student_count, group_count), start=1)
    ]
    return specs, mode
