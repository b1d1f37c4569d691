"""
Root test configuration and fixtures for the grouping project.

This conftest.py provides common fixtures for all unit tests:
- PocketBase is mocked for every test so nothing talks to a real server
- The ConfigLoader singleton is reset between tests
- Small rosters, groups and preferences shared across engine, analytics
  and lifecycle tests

Note: sys.path manipulation is handled here to ensure imports work correctly.
"""

from __future__ import annotations

import os
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

# Add project root to path to allow imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


def create_mock_pocketbase():
    """Create a comprehensive mock PocketBase instance."""
    mock_pb = Mock()

    # Collection mock with chaining support
    mock_collection = Mock()

    # Collection auth (for _superusers collection)
    mock_collection.auth_with_password = Mock(return_value=True)

    # Collection methods
    mock_collection.get_full_list = Mock(return_value=[])
    mock_collection.get_one = Mock()

    # Make get_first_list_item return a mock config record
    mock_record = Mock()
    mock_record.id = "mock-config-id"
    mock_record.value = "30"
    mock_record.category = "local_search"
    mock_record.config_key = "trials_per_student"

    mock_collection.get_first_list_item = Mock(return_value=mock_record)
    mock_collection.create = Mock(return_value=Mock(id="mock-id"))
    mock_collection.update = Mock()
    mock_collection.delete = Mock()

    # Make collection callable to return itself for chaining
    mock_pb.collection = Mock(return_value=mock_collection)

    # Auth store
    mock_pb.auth_store = Mock()
    mock_pb.auth_store.base_token = "mock-token"

    return mock_pb


@pytest.fixture
def mock_pocketbase():
    """Create a mock PocketBase instance for tests that need it."""
    return create_mock_pocketbase()


@pytest.fixture(autouse=True)
def mock_all_external_services():
    """Automatically mock PocketBase to prevent real connections.

    Set SKIP_MOCKING=true to run against a real server.
    """
    if os.environ.get("SKIP_MOCKING") == "true":
        yield {}
        return

    mock_pb = create_mock_pocketbase()

    with patch("pocketbase.PocketBase") as mock_pb_class:
        mock_pb_class.return_value = mock_pb
        yield {"pocketbase": mock_pb}


# =============================================================================
# Configuration Fixtures
# =============================================================================

# Engine tunables for tests; smaller local-search budget keeps tests fast
TEST_CONFIG = {
    "local_search.trials_per_student": 20,
    "candidates.default_count": 4,
}


@pytest.fixture
def test_config():
    """
    Activate a ConfigLoader with test overrides for the duration of a test.

    Usage:
        def test_something(test_config):
            from grouping.config import ConfigLoader
            assert ConfigLoader.get_instance().get_int("candidates.default_count") == 4
    """
    from grouping.config import ConfigLoader

    loader = ConfigLoader(overrides=TEST_CONFIG)
    with ConfigLoader.use(loader):
        yield loader


@pytest.fixture(autouse=True)
def reset_config_singleton():
    """Reset ConfigLoader singleton between tests."""
    yield
    from grouping.config import ConfigLoader

    ConfigLoader.reset()


# =============================================================================
# Domain Fixtures
# =============================================================================


@pytest.fixture
def roster() -> list[str]:
    """Twelve students, s01..s12."""
    return [f"s{i:02d}" for i in range(1, 13)]


@pytest.fixture
def three_groups():
    """Three named groups of four seats each."""
    from grouping.models import GroupSpec

    return [
        GroupSpec(id="g-art", name="Art", capacity=4),
        GroupSpec(id="g-chess", name="Chess", capacity=4),
        GroupSpec(id="g-drama", name="Drama", capacity=4),
    ]


@pytest.fixture
def preferences():
    """Mixed preferences: ranked wishes, by-name wishes, avoidances, an empty list."""
    from grouping.models import Preference

    return [
        Preference(student_id="s01", ranked_groups=["g-art", "g-chess"]),
        Preference(student_id="s02", ranked_groups=["g-art"], avoid_student_ids=["s01"]),
        Preference(student_id="s03", ranked_groups=["chess", "g-drama"]),
        Preference(student_id="s04", ranked_groups=["g-drama"]),
        Preference(student_id="s05", ranked_groups=["g-chess", "g-art", "g-drama"]),
        Preference(student_id="s06", avoid_group_ids=["g-drama"]),
        Preference(student_id="s07", ranked_groups=[]),
        Preference(student_id="s08", ranked_groups=["g-drama", "g-art"], avoid_student_ids=["s04"]),
    ]


class FakeClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 6, 14, 5, 52, tzinfo=UTC)

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
