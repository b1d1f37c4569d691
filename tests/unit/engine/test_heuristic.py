"""Tests for the assignment heuristic entry point."""

from __future__ import annotations

from collections import Counter

import pytest

from grouping.engine.catalog import ALGORITHM_CATALOG
from grouping.engine.heuristic import check_partition, generate_partition, roster_ids
from grouping.models import AlgorithmConfig, CapacityMode, Group, GroupSpec, Partition, Preference, Student
from grouping.results import EngineFailure, FailureKind

ALGORITHM_IDS = [variant.id for variant in ALGORITHM_CATALOG]


def assert_valid_partition(partition: Partition, roster: list[str]) -> None:
    placed = Counter(member for group in partition.groups for member in group.member_ids)
    assert set(placed) == set(roster)
    assert all(count == 1 for count in placed.values())
    for group in partition.groups:
        if group.capacity is not None:
            assert len(group.member_ids) <= group.capacity


class TestRosterIds:
    def test_accepts_students_and_ids(self):
        ids = roster_ids([Student(id="a", first_name="Ada"), "b", "a"])
        assert ids == ["a", "b"]


class TestCheckPartition:
    """Tests for the post-generation invariant check."""

    def test_valid(self):
        groups = [Group(id="g1", name="G1", capacity=2, member_ids=["a", "b"])]
        assert check_partition(["a", "b"], groups) is None

    def test_reports_every_problem(self):
        groups = [
            Group(id="g1", name="G1", capacity=1, member_ids=["a", "x"]),
            Group(id="g2", name="G2", member_ids=["a"]),
        ]
        failure = check_partition(["a", "b"], groups)

        assert failure is not None
        assert failure.kind == FailureKind.INVARIANT_VIOLATION
        assert failure.details["duplicates"] == ["a"]
        assert failure.details["missing"] == ["b"]
        assert failure.details["extraneous"] == ["x"]
        assert failure.details["over_capacity"] == {"g1": 2}


class TestGeneratePartition:
    """Tests for generate_partition invariants and failures."""

    @pytest.mark.parametrize("algorithm", ALGORITHM_IDS)
    def test_every_student_placed_once_within_capacity(self, test_config, roster, three_groups, preferences, algorithm):
        result = generate_partition(
            roster, three_groups, preferences, AlgorithmConfig(seed=42, algorithm=algorithm)
        )

        assert isinstance(result, Partition)
        assert_valid_partition(result, roster)
        assert result.algorithm == algorithm
        assert result.seed == 42
        assert result.capacity_mode == CapacityMode.EXPLICIT
        assert result.participant_snapshot == roster

    @pytest.mark.parametrize("algorithm", ALGORITHM_IDS)
    def test_deterministic_for_same_seed(self, test_config, roster, three_groups, preferences, algorithm):
        config = AlgorithmConfig(seed=7, algorithm=algorithm)
        first = generate_partition(roster, three_groups, preferences, config)
        second = generate_partition(roster, three_groups, preferences, config)

        assert isinstance(first, Partition)
        assert isinstance(second, Partition)
        assert first.assignment_map() == second.assignment_map()

    def test_default_algorithm_from_config(self, test_config, roster, three_groups):
        result = generate_partition(roster, three_groups, [], AlgorithmConfig(seed=1))
        assert isinstance(result, Partition)
        assert result.algorithm == "balanced"

    def test_seed_resolved_when_absent(self, test_config, roster, three_groups):
        result = generate_partition(roster, three_groups, [], AlgorithmConfig())
        assert isinstance(result, Partition)
        assert result.seed > 0

    def test_group_count_derivation(self, test_config):
        roster = [f"s{i}" for i in range(22)]
        result = generate_partition(roster, None, [], AlgorithmConfig(group_count=5, seed=3))

        assert isinstance(result, Partition)
        assert result.capacity_mode == CapacityMode.GROUP_COUNT
        assert sorted(len(g.member_ids) for g in result.groups) == [4, 4, 4, 5, 5]
        assert_valid_partition(result, roster)

    def test_unlimited_groups(self, test_config, roster):
        groups = [GroupSpec(id="a", name="A"), GroupSpec(id="b", name="B")]
        result = generate_partition(roster, groups, [], AlgorithmConfig(seed=5))

        assert isinstance(result, Partition)
        assert_valid_partition(result, roster)

    def test_stale_preference_references_ignored(self, test_config, three_groups):
        prefs = [
            Preference(student_id="s01", ranked_groups=["g-gone", "g-art"], avoid_student_ids=["left-school"]),
            Preference(student_id="not-enrolled", ranked_groups=["g-art"]),
        ]
        result = generate_partition(["s01", "s02"], three_groups, prefs, AlgorithmConfig(seed=1))

        assert isinstance(result, Partition)
        assert result.assignment_map()["s01"] == "g-art"
        assert "not-enrolled" not in result.assignment_map()

    def test_balanced_honours_first_choices_when_possible(self, test_config, three_groups):
        roster = ["s1", "s2", "s3"]
        prefs = [
            Preference(student_id="s1", ranked_groups=["g-art"]),
            Preference(student_id="s2", ranked_groups=["g-chess"]),
            Preference(student_id="s3", ranked_groups=["g-drama"]),
        ]
        result = generate_partition(roster, three_groups, prefs, AlgorithmConfig(seed=9, algorithm="balanced"))

        assert isinstance(result, Partition)
        assert result.assignment_map() == {"s1": "g-art", "s2": "g-chess", "s3": "g-drama"}

    def test_balanced_separates_avoiding_students(self, test_config):
        groups = [GroupSpec(id="a", name="A", capacity=2), GroupSpec(id="b", name="B", capacity=2)]
        prefs = [Preference(student_id="s1", avoid_student_ids=["s2"])]
        result = generate_partition(["s1", "s2", "s3", "s4"], groups, prefs, AlgorithmConfig(seed=11))

        assert isinstance(result, Partition)
        assignment = result.assignment_map()
        assert assignment["s1"] != assignment["s2"]

    def test_unsatisfiable_avoidance_still_places_everyone(self, test_config):
        groups = [GroupSpec(id="only", name="Only", capacity=3)]
        prefs = [
            Preference(student_id="s1", avoid_student_ids=["s2", "s3"], avoid_group_ids=["only"]),
        ]
        result = generate_partition(["s1", "s2", "s3"], groups, prefs, AlgorithmConfig(seed=1))

        assert isinstance(result, Partition)
        assert_valid_partition(result, ["s1", "s2", "s3"])

    def test_empty_roster(self, test_config, three_groups):
        result = generate_partition([], three_groups, [], AlgorithmConfig(seed=1))

        assert isinstance(result, EngineFailure)
        assert result.kind == FailureKind.INPUT_ERROR

    def test_unknown_algorithm(self, test_config, roster, three_groups):
        result = generate_partition(roster, three_groups, [], AlgorithmConfig(algorithm="first-choice-only"))

        assert isinstance(result, EngineFailure)
        assert result.kind == FailureKind.INPUT_ERROR
        assert "balanced" in result.details["known_algorithms"]

    def test_no_sizing_information(self, test_config, roster):
        result = generate_partition(roster, None, [], AlgorithmConfig(seed=1))

        assert isinstance(result, EngineFailure)
        assert result.kind == FailureKind.INPUT_ERROR

    def test_insufficient_capacity(self, test_config, roster):
        groups = [GroupSpec(id="a", name="A", capacity=5), GroupSpec(id="b", name="B", capacity=5)]
        result = generate_partition(roster, groups, [], AlgorithmConfig(seed=1))

        assert isinstance(result, EngineFailure)
        assert result.kind == FailureKind.INFEASIBLE
        assert result.details["roster_size"] == 12
        assert result.details["total_capacity"] == 10
        assert result.details["shortfall"] == 2

    def test_heuristic_crash_reported_as_invariant_violation(self, test_config, roster, three_groups, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr("grouping.engine.heuristic.run_heuristic", explode)
        result = generate_partition(roster, three_groups, [], AlgorithmConfig(seed=1))

        assert isinstance(result, EngineFailure)
        assert result.kind == FailureKind.INVARIANT_VIOLATION

    def test_swap_trials_override(self, test_config, roster, three_groups, preferences):
        result = generate_partition(
            roster, three_groups, preferences, AlgorithmConfig(seed=1, swap_trials_per_student=0)
        )
        assert isinstance(result, Partition)
        assert_valid_partition(result, roster)
