"""
Scenario and placement stores.

The lifecycle talks to storage only through these two narrow contracts.
``create_if_absent`` must be atomic: it is the store half of the
single-active-scenario rule.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Protocol

from grouping.models import Placement, Scenario

logger = logging.getLogger(__name__)


class ScenarioStore(Protocol):
    def get(self, scenario_id: str) -> Scenario | None: ...

    def get_active_for_activity(self, activity_id: str) -> Scenario | None: ...

    def list_for_activity(self, activity_id: str) -> list[Scenario]: ...

    def create_if_absent(self, scenario: Scenario) -> bool:
        """Store ``scenario`` unless its activity already has a non-archived one."""
        ...

    def update(self, scenario: Scenario) -> None: ...

    def delete(self, scenario_id: str) -> bool: ...


class PlacementStore(Protocol):
    def save_batch(self, placements: list[Placement]) -> None: ...

    def list_for_scenario(self, scenario_id: str) -> list[Placement]: ...

    def delete_for_scenario(self, scenario_id: str) -> int: ...


class InMemoryScenarioStore:
    """Process-local scenario store guarded by a single lock."""

    def __init__(self) -> None:
        self._scenarios: dict[str, Scenario] = {}
        self._lock = threading.RLock()

    def get(self, scenario_id: str) -> Scenario | None:
        with self._lock:
            return self._scenarios.get(scenario_id)

    def get_active_for_activity(self, activity_id: str) -> Scenario | None:
        with self._lock:
            return next(
                (s for s in self._scenarios.values() if s.activity_id == activity_id and s.is_active),
                None,
            )

    def list_for_activity(self, activity_id: str) -> list[Scenario]:
        with self._lock:
            scenarios = [s for s in self._scenarios.values() if s.activity_id == activity_id]
        return sorted(scenarios, key=lambda s: s.created_at)

    def create_if_absent(self, scenario: Scenario) -> bool:
        with self._lock:
            if self.get_active_for_activity(scenario.activity_id) is not None:
                return False
            self._scenarios[scenario.id] = scenario
            return True

    def update(self, scenario: Scenario) -> None:
        with self._lock:
            if scenario.id not in self._scenarios:
                raise KeyError(f"Scenario {scenario.id} not found")
            self._scenarios[scenario.id] = scenario

    def delete(self, scenario_id: str) -> bool:
        with self._lock:
            return self._scenarios.pop(scenario_id, None) is not None


class InMemoryPlacementStore:
    def __init__(self) -> None:
        self._by_scenario: dict[str, list[Placement]] = defaultdict(list)
        self._lock = threading.Lock()

    def save_batch(self, placements: list[Placement]) -> None:
        with self._lock:
            for placement in placements:
                self._by_scenario[placement.scenario_id].append(placement)

    def list_for_scenario(self, scenario_id: str) -> list[Placement]:
        with self._lock:
            return list(self._by_scenario.get(scenario_id, []))

    def delete_for_scenario(self, scenario_id: str) -> int:
        with self._lock:
            return len(self._by_scenario.pop(scenario_id, []))
