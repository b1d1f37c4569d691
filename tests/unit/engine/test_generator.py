"""Tests for the candidate generator."""

from __future__ import annotations

from grouping.config import ConfigLoader
from grouping.engine.generator import candidate_runs, clamp_candidate_count, generate_candidates
from grouping.models import AlgorithmConfig, Candidate, GroupSpec
from grouping.results import EngineFailure, FailureKind


class TestCandidateRuns:
    """Tests for seed and algorithm rotation."""

    def test_seeds_and_rotation(self):
        runs = candidate_runs(1000, 5, 9973)
        assert runs == [
            (1000, "balanced"),
            (10973, "random"),
            (20946, "round-robin"),
            (30919, "preference-first"),
            (40892, "balanced"),
        ]


class TestClampCandidateCount:
    def test_default_from_config(self):
        assert clamp_candidate_count(None, ConfigLoader()) == 5

    def test_clamped_to_max(self):
        assert clamp_candidate_count(50, ConfigLoader()) == 12

    def test_clamped_to_one(self):
        assert clamp_candidate_count(0, ConfigLoader()) == 1

    def test_max_from_config(self):
        assert clamp_candidate_count(9, ConfigLoader(overrides={"candidates.max_count": 3})) == 3


class TestGenerateCandidates:
    """Tests for generate_candidates."""

    def test_generates_scored_candidates(self, test_config, roster, three_groups, preferences):
        result = generate_candidates(roster, three_groups, preferences, algorithm_config=AlgorithmConfig(seed=100))

        assert isinstance(result, list)
        # candidates.default_count is 4 in the test config
        assert len(result) == 4
        assert [c.algorithm_id for c in result] == ["balanced", "random", "round-robin", "preference-first"]
        assert [c.seed for c in result] == [100, 10073, 20046, 30019]
        assert result[0].algorithm_label == "Balanced"
        assert len({c.id for c in result}) == 4
        for candidate in result:
            assert isinstance(candidate, Candidate)
            assert candidate.algorithm_config.seed == candidate.seed
            assert candidate.algorithm_config.algorithm == candidate.algorithm_id
            assert candidate.partition.seed == candidate.seed
            assert candidate.score.students_with_preferences == 6

    def test_regenerating_from_candidate_config_is_deterministic(self, test_config, roster, three_groups, preferences):
        from grouping.engine import generate_partition

        candidates = generate_candidates(roster, three_groups, preferences, 2, AlgorithmConfig(seed=5))
        assert isinstance(candidates, list)

        for candidate in candidates:
            again = generate_partition(roster, three_groups, preferences, candidate.algorithm_config)
            assert again.assignment_map() == candidate.partition.assignment_map()

    def test_parallel_matches_sequential(self, test_config, roster, three_groups, preferences):
        config = AlgorithmConfig(seed=77)
        sequential = generate_candidates(roster, three_groups, preferences, 6, config)
        parallel = generate_candidates(roster, three_groups, preferences, 6, config, parallel=True)

        assert isinstance(sequential, list)
        assert isinstance(parallel, list)
        assert [c.seed for c in parallel] == [c.seed for c in sequential]
        assert [c.partition.assignment_map() for c in parallel] == [
            c.partition.assignment_map() for c in sequential
        ]

    def test_base_config_options_carried_to_every_candidate(self, test_config):
        roster = [f"s{i}" for i in range(9)]
        result = generate_candidates(roster, None, [], 3, AlgorithmConfig(seed=1, group_count=3))

        assert isinstance(result, list)
        for candidate in result:
            assert candidate.algorithm_config.group_count == 3
            assert len(candidate.partition.groups) == 3

    def test_failure_aborts(self, test_config, roster):
        groups = [GroupSpec(id="a", name="A", capacity=1)]
        result = generate_candidates(roster, groups, [], 3, AlgorithmConfig(seed=1))

        assert isinstance(result, EngineFailure)
        assert result.kind == FailureKind.INFEASIBLE

    def test_failure_aborts_in_parallel(self, test_config):
        result = generate_candidates([], None, [], 3, AlgorithmConfig(seed=1), parallel=True)

        assert isinstance(result, EngineFailure)
        assert result.kind == FailureKind.INPUT_ERROR
