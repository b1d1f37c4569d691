"""
Candidate Generator - several alternative partitions for side-by-side comparison.

Candidate i runs the variant at position ``i % len(catalog)`` with seed
``base_seed + i * seed_stride``, so a candidate list is reproducible from its
base seed alone. Each candidate is scored with the satisfaction analytics.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime

from grouping.analytics.satisfaction import score_partition
from grouping.config import ConfigLoader
from grouping.models import AlgorithmConfig, Candidate, GroupSpec, Preference, Student
from grouping.results import EngineFailure

from .catalog import ALGORITHM_CATALOG, get_algorithm_label
from .heuristic import generate_partition, resolve_seed, roster_ids

logger = logging.getLogger(__name__)


def candidate_runs(base_seed: int, count: int, seed_stride: int) -> list[tuple[int, str]]:
    """(seed, algorithm id) for each candidate index."""
    return [
        (base_seed + index * seed_stride, ALGORITHM_CATALOG[index % len(ALGORITHM_CATALOG)].id)
        for index in range(count)
    ]


def clamp_candidate_count(candidate_count: int | None, config: ConfigLoader) -> int:
    max_count = config.get_int("candidates.max_count")
    count = candidate_count if candidate_count is not None else config.get_int("candidates.default_count")
    if count < 1 or count > max_count:
        clamped = min(max(count, 1), max_count)
        logger.warning(f"Candidate count {count} outside [1, {max_count}], using {clamped}")
        return clamped
    return count


def generate_candidates(
    roster: Iterable[str | Student],
    groups: Sequence[GroupSpec] | None,
    preferences: Iterable[Preference],
    candidate_count: int | None = None,
    algorithm_config: AlgorithmConfig | None = None,
    parallel: bool = False,
    config: ConfigLoader | None = None,
) -> list[Candidate] | EngineFailure:
    """Generate and score ``candidate_count`` alternative partitions.

    Args:
        roster: Student ids (or Students) to partition
        groups: Named groups to fill, or None to derive them from the config
        preferences: Preference records shared by every candidate
        candidate_count: Number of candidates; defaults to ``candidates.default_count``
        algorithm_config: Base configuration; its seed (if any) is the base seed
            and its algorithm is ignored in favour of the catalog rotation
        parallel: Run candidates on a thread pool
        config: Engine tunables; defaults to the ConfigLoader singleton

    Returns:
        Candidates in index order, or the first failure encountered
    """
    config = config or ConfigLoader.get_instance()
    algorithm_config = algorithm_config or AlgorithmConfig()
    ids = roster_ids(roster)
    preferences = list(preferences)
    groups = list(groups) if groups is not None else None

    count = clamp_candidate_count(candidate_count, config)
    base_seed = resolve_seed(algorithm_config.seed)
    runs = candidate_runs(base_seed, count, config.get_int("candidates.seed_stride"))

    logger.info(f"Generating {count} candidates for {len(ids)} students (base seed {base_seed}, parallel={parallel})")

    def build(run: tuple[int, str]) -> Candidate | EngineFailure:
        seed, algorithm_id = run
        run_config = algorithm_config.with_run(seed, algorithm_id)
        partition = generate_partition(ids, groups, preferences, run_config, config)
        if isinstance(partition, EngineFailure):
            return partition
        return Candidate(
            id=str(uuid.uuid4()),
            partition=partition,
            score=score_partition(partition.groups, preferences, partition.participant_snapshot),
            algorithm_id=algorithm_id,
            algorithm_label=get_algorithm_label(algorithm_id),
            seed=seed,
            generated_at=datetime.now(UTC),
            algorithm_config=run_config,
        )

    if parallel and count > 1:
        max_workers = min(config.get_int("candidates.max_workers"), count)
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            results = list(executor.map(build, runs))
    else:
        results = []
        for run in runs:
            result = build(run)
            results.append(result)
            if isinstance(result, EngineFailure):
                break

    candidates: list[Candidate] = []
    for result in results:
        if isinstance(result, EngineFailure):
            logger.info(f"Candidate generation aborted: {result}")
            return result
        candidates.append(result)

    return candidates
