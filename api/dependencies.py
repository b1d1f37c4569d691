"""
Shared dependencies for the Grouping API.

This module provides:
- PocketBase client management (global instance, admin authentication)
- The scenario lifecycle wired to the configured scenario store
"""

from __future__ import annotations

import asyncio
import logging
from functools import lru_cache

from pocketbase import PocketBase

from grouping.lifecycle import (
    InMemoryPlacementStore,
    InMemoryScenarioStore,
    PocketBasePlacementStore,
    PocketBaseScenarioStore,
    ScenarioLifecycle,
)

from .settings import get_settings

logger = logging.getLogger(__name__)

# ========================================
# PocketBase Client
# ========================================

_settings = get_settings()
pb_url = _settings.pocketbase_url
pb = PocketBase(pb_url)


async def authenticate_pb() -> None:
    """Authenticate with PocketBase as admin."""
    settings = get_settings()
    try:
        await asyncio.to_thread(
            pb.collection("_superusers").auth_with_password,
            settings.pocketbase_admin_email,
            settings.pocketbase_admin_password,
        )
        logger.info("Successfully authenticated with PocketBase")
    except Exception as e:
        logger.error(f"Failed to authenticate with PocketBase: {e}")
        raise


# ========================================
# Scenario Lifecycle
# ========================================


def build_lifecycle(scenario_store: str) -> ScenarioLifecycle:
    """Lifecycle backed by the named store ('memory' or 'pocketbase')."""
    if scenario_store == "pocketbase":
        logger.info(f"Scenario store: PocketBase at {pb_url}")
        return ScenarioLifecycle(PocketBaseScenarioStore(pb), PocketBasePlacementStore(pb))
    logger.info("Scenario store: in-memory (scenarios are lost on restart)")
    return ScenarioLifecycle(InMemoryScenarioStore(), InMemoryPlacementStore())


@lru_cache
def get_lifecycle() -> ScenarioLifecycle:
    """FastAPI dependency returning the process-wide scenario lifecycle."""
    return build_lifecycle(get_settings().scenario_store)


__all__ = [
    "pb",
    "pb_url",
    "authenticate_pb",
    "build_lifecycle",
    "get_lifecycle",
]
