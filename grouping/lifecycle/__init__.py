"""Scenario lifecycle and the stores behind it."""

from .pocketbase_store import PocketBasePlacementStore, PocketBaseScenarioStore
from .service import ScenarioLifecycle
from .store import InMemoryPlacementStore, InMemoryScenarioStore, PlacementStore, ScenarioStore

__all__ = [
    "InMemoryPlacementStore",
    "InMemoryScenarioStore",
    "PlacementStore",
    "PocketBasePlacementStore",
    "PocketBaseScenarioStore",
    "ScenarioLifecycle",
    "ScenarioStore",
]
