"""
PocketBase-backed scenario and placement stores.

Collections:
- ``grouping_scenarios``: one record per scenario. ``groups``,
  ``participant_snapshot`` and ``algorithm_config`` are JSON fields.
  ``active_key`` holds the activity id while the scenario is active and the
  scenario id once archived; the collection carries a UNIQUE index on it,
  which makes ``create_if_absent`` atomic across processes.
- ``grouping_placements``: one record per placement.

Our own ids are stored in ``scenario_id`` / ``placement_id`` so they do not
depend on PocketBase's record id format.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any

from pocketbase import PocketBase
from pocketbase.client import ClientResponseError  # type: ignore[attr-defined]

from grouping.models import Group, Placement, Scenario, ScenarioStatus

logger = logging.getLogger(__name__)

SCENARIOS_COLLECTION = "grouping_scenarios"
PLACEMENTS_COLLECTION = "grouping_placements"


def _escape_filter_value(value: str) -> str:
    """Escape a string for use inside a double-quoted PocketBase filter literal."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _eq_filter(field: str, value: str) -> str:
    return f'{field} = "{_escape_filter_value(value)}"'


def _parse_datetime(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _format_datetime(value: datetime | None) -> str:
    return value.isoformat() if value else ""


def _active_key(scenario: Scenario) -> str:
    return scenario.activity_id if scenario.is_active else f"archived:{scenario.id}"


def scenario_to_record(scenario: Scenario) -> dict[str, Any]:
    return {
        "scenario_id": scenario.id,
        "activity_id": scenario.activity_id,
        "active_key": _active_key(scenario),
        "status": scenario.status.value,
        "groups": [group.model_dump() for group in scenario.groups],
        "participant_snapshot": list(scenario.participant_snapshot),
        "created_at": _format_datetime(scenario.created_at),
        "last_modified_at": _format_datetime(scenario.last_modified_at),
        "adopted_at": _format_datetime(scenario.adopted_at),
        "archived_at": _format_datetime(scenario.archived_at),
        "created_by": scenario.created_by or "",
        "algorithm_config": scenario.algorithm_config,
    }


def record_to_scenario(record: Any) -> Scenario:
    return Scenario(
        id=str(getattr(record, "scenario_id")),
        activity_id=str(getattr(record, "activity_id")),
        status=ScenarioStatus(getattr(record, "status", ScenarioStatus.DRAFT.value)),
        groups=[Group.model_validate(g) for g in getattr(record, "groups", None) or []],
        participant_snapshot=list(getattr(record, "participant_snapshot", None) or []),
        created_at=_parse_datetime(getattr(record, "created_at", None)),
        last_modified_at=_parse_datetime(getattr(record, "last_modified_at", None)),
        adopted_at=_parse_datetime(getattr(record, "adopted_at", None)),
        archived_at=_parse_datetime(getattr(record, "archived_at", None)),
        created_by=getattr(record, "created_by", None) or None,
        algorithm_config=getattr(record, "algorithm_config", None) or {},
    )


def placement_to_record(placement: Placement) -> dict[str, Any]:
    return {
        "placement_id": placement.id,
        "scenario_id": placement.scenario_id,
        "activity_id": placement.activity_id,
        "student_id": placement.student_id,
        "group_id": placement.group_id,
        "group_name": placement.group_name,
        "preference_rank": placement.preference_rank,
        "preference_snapshot": list(placement.preference_snapshot),
        "assigned_at": _format_datetime(placement.assigned_at),
        "assigned_by": placement.assigned_by or "",
    }


def record_to_placement(record: Any) -> Placement:
    return Placement(
        id=str(getattr(record, "placement_id")),
        scenario_id=str(getattr(record, "scenario_id")),
        activity_id=str(getattr(record, "activity_id")),
        student_id=str(getattr(record, "student_id")),
        group_id=str(getattr(record, "group_id")),
        group_name=str(getattr(record, "group_name", "")),
        # PocketBase number fields read back as 0 when unset
        preference_rank=getattr(record, "preference_rank", None) or None,
        preference_snapshot=tuple(getattr(record, "preference_snapshot", None) or ()),
        assigned_at=_parse_datetime(getattr(record, "assigned_at", None)),
        assigned_by=getattr(record, "assigned_by", None) or None,
    )


class PocketBaseScenarioStore:
    def __init__(self, pb: PocketBase):
        self.pb = pb
        self._lock = threading.Lock()

    def _collection(self) -> Any:
        return self.pb.collection(SCENARIOS_COLLECTION)

    def _find_record(self, scenario_id: str) -> Any | None:
        try:
            return self._collection().get_first_list_item(_eq_filter("scenario_id", scenario_id))
        except ClientResponseError as e:
            if e.status == 404:
                return None
            raise

    def get(self, scenario_id: str) -> Scenario | None:
        record = self._find_record(scenario_id)
        return record_to_scenario(record) if record is not None else None

    def get_active_for_activity(self, activity_id: str) -> Scenario | None:
        records = self._collection().get_full_list(
            query_params={"filter": _eq_filter("active_key", activity_id)},
        )
        return record_to_scenario(records[0]) if records else None

    def list_for_activity(self, activity_id: str) -> list[Scenario]:
        records = self._collection().get_full_list(
            query_params={"filter": _eq_filter("activity_id", activity_id), "sort": "created_at"},
        )
        return [record_to_scenario(record) for record in records]

    def create_if_absent(self, scenario: Scenario) -> bool:
        with self._lock:
            if self.get_active_for_activity(scenario.activity_id) is not None:
                return False
            try:
                self._collection().create(scenario_to_record(scenario))
            except ClientResponseError as e:
                # Unique index on active_key rejected a concurrent create
                if e.status == 400 and scenario.is_active:
                    logger.warning(f"Concurrent scenario create rejected for activity {scenario.activity_id}: {e}")
                    return False
                raise
            return True

    def update(self, scenario: Scenario) -> None:
        record = self._find_record(scenario.id)
        if record is None:
            raise KeyError(f"Scenario {scenario.id} not found")
        self._collection().update(record.id, scenario_to_record(scenario))

    def delete(self, scenario_id: str) -> bool:
        record = self._find_record(scenario_id)
        if record is None:
            return False
        self._collection().delete(record.id)
        return True


class PocketBasePlacementStore:
    def __init__(self, pb: PocketBase):
        self.pb = pb

    def save_batch(self, placements: list[Placement]) -> None:
        collection = self.pb.collection(PLACEMENTS_COLLECTION)
        for placement in placements:
            collection.create(placement_to_record(placement))
        logger.info(f"Saved {len(placements)} placements")

    def list_for_scenario(self, scenario_id: str) -> list[Placement]:
        records = self.pb.collection(PLACEMENTS_COLLECTION).get_full_list(
            query_params={"filter": _eq_filter("scenario_id", scenario_id), "sort": "student_id"},
        )
        return [record_to_placement(record) for record in records]

    def delete_for_scenario(self, scenario_id: str) -> int:
        collection = self.pb.collection(PLACEMENTS_COLLECTION)
        records = collection.get_full_list(query_params={"filter": _eq_filter("scenario_id", scenario_id)})
        for record in records:
            collection.delete(record.id)
        return len(records)
