"""
Algorithm catalog - the variants the heuristic can run.

A variant picks the seed-phase visiting order, the group chooser and
whether the local search phase runs afterwards.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from . import seeding


@dataclass(frozen=True)
class AlgorithmVariant:
    id: str
    label: str
    order: Callable
    choose: Callable
    improves: bool


ALGORITHM_CATALOG: tuple[AlgorithmVariant, ...] = (
    AlgorithmVariant("balanced", "Balanced", seeding.order_by_weight, seeding.choose_first_wish, True),
    AlgorithmVariant("random", "Random Shuffle", seeding.order_shuffled, seeding.choose_random, False),
    AlgorithmVariant("round-robin", "Round Robin", seeding.order_shuffled, seeding.choose_round_robin, False),
    AlgorithmVariant(
        "preference-first", "Preference-First", seeding.order_shuffled, seeding.choose_first_wish, True
    ),
)

ALGORITHMS_BY_ID = {variant.id: variant for variant in ALGORITHM_CATALOG}


def get_variant(algorithm_id: str) -> AlgorithmVariant | None:
    return ALGORITHMS_BY_ID.get(algorithm_id)


def get_algorithm_label(algorithm_id: str) -> str:
    variant = ALGORITHMS_BY_ID.get(algorithm_id)
    return variant.label if variant else algorithm_id
