"""Tests for ConfigLoader value resolution and validation."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import patch

import pytest

from grouping.config import (
    CONFIG_SCHEMA,
    ConfigLoader,
    UnknownKeyError,
    ValidationError,
    get_defaults,
    validate_key,
)


class TestPrecedence:
    """Override -> environment -> database -> default."""

    def test_schema_default(self):
        assert ConfigLoader().get_int("local_search.trials_per_student") == 30

    def test_environment_beats_default(self):
        with patch.dict("os.environ", {"CONFIG_LOCAL_SEARCH_TRIALS_PER_STUDENT": "12"}):
            assert ConfigLoader().get_int("local_search.trials_per_student") == 12

    def test_override_beats_environment(self):
        with patch.dict("os.environ", {"CONFIG_CANDIDATES_DEFAULT_COUNT": "7"}):
            loader = ConfigLoader(overrides={"candidates.default_count": 3})
            assert loader.get_int("candidates.default_count") == 3

    def test_database_value(self, mock_pocketbase):
        collection = mock_pocketbase.collection.return_value
        collection.get_first_list_item.return_value = SimpleNamespace(value=45)

        loader = ConfigLoader(pb_client=mock_pocketbase)

        assert loader.get_int("local_search.trials_per_student") == 45
        mock_pocketbase.collection.assert_called_with("config")
        collection.get_first_list_item.assert_called_with(
            'category = "local_search" && config_key = "trials_per_student"'
        )

    def test_database_value_cached(self, mock_pocketbase):
        collection = mock_pocketbase.collection.return_value
        collection.get_first_list_item.return_value = SimpleNamespace(value=45)
        loader = ConfigLoader(pb_client=mock_pocketbase)

        loader.get_int("local_search.trials_per_student")
        loader.get_int("local_search.trials_per_student")

        assert collection.get_first_list_item.call_count == 1

        loader.invalidate_cache()
        loader.get_int("local_search.trials_per_student")
        assert collection.get_first_list_item.call_count == 2

    def test_database_unreachable_falls_back_to_default(self, mock_pocketbase):
        collection = mock_pocketbase.collection.return_value
        collection.get_first_list_item.side_effect = Exception("connection refused")

        assert ConfigLoader(pb_client=mock_pocketbase).get_int("candidates.max_count") == 12


class TestValidation:
    """Invalid values fail fast."""

    def test_unknown_key(self):
        with pytest.raises(UnknownKeyError):
            ConfigLoader().get("engine.time_limit")

    def test_out_of_range_override(self):
        with pytest.raises(ValidationError):
            ConfigLoader(overrides={"candidates.max_count": 0})

    def test_bad_environment_type(self):
        with patch.dict("os.environ", {"CONFIG_CANDIDATES_SEED_STRIDE": "lots"}):
            with pytest.raises(ValidationError):
                ConfigLoader().get_int("candidates.seed_stride")

    def test_unknown_algorithm_rejected(self):
        with pytest.raises(ValidationError):
            ConfigLoader().update_config("engine.default_algorithm", "first-choice-only")

    def test_bool_is_not_an_int(self):
        with pytest.raises(ValidationError):
            ConfigLoader().update_config("objective.rank_weight", True)

    def test_validate_key_helper(self):
        assert validate_key("objective.rank_weight", 3) is None
        assert validate_key("objective.rank_weight", -1) is not None


class TestSingleton:
    def test_get_instance_auto_initializes(self):
        loader = ConfigLoader.get_instance()
        assert ConfigLoader.get_instance() is loader

    def test_use_restores_previous_instance(self):
        original = ConfigLoader.get_instance()
        replacement = ConfigLoader(overrides={"candidates.default_count": 2})

        with ConfigLoader.use(replacement):
            assert ConfigLoader.get_instance().get_int("candidates.default_count") == 2

        assert ConfigLoader.get_instance() is original

    def test_snapshot_covers_schema(self):
        snapshot = ConfigLoader().snapshot()

        assert set(snapshot) == set(CONFIG_SCHEMA)
        assert snapshot == get_defaults()


class TestSchema:
    def test_algorithm_ids_match_catalog(self):
        from grouping.config import ALGORITHM_IDS
        from grouping.engine import ALGORITHM_CATALOG

        assert ALGORITHM_IDS == [variant.id for variant in ALGORITHM_CATALOG]
