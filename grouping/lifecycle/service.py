"""
Scenario Lifecycle - DRAFT -> ADOPTED -> ARCHIVED for one activity's partition.

An activity has at most one non-archived scenario. Generation and reset for
an activity run under that activity's lock, and the store's atomic
``create_if_absent`` backs the rule up across processes.

Publishing freezes the outcome as one Placement per student, capturing the
student's rank and resolved wish-list at that moment so later preference
edits do not rewrite history.
"""

from __future__ import annotations

import logging
import threading
import uuid
import weakref
from collections.abc import Callable, Iterable, Iterator, Sequence
from contextlib import contextmanager
from datetime import UTC, datetime

from grouping.analytics.satisfaction import resolve_preference_rank
from grouping.config import ConfigLoader
from grouping.engine.constraint_model import build_constraint_model
from grouping.engine.heuristic import check_partition, generate_partition
from grouping.models import (
    AlgorithmConfig,
    GroupSpec,
    Partition,
    Placement,
    Preference,
    Scenario,
    ScenarioStatus,
    Student,
)
from grouping.results import EngineFailure

from .store import PlacementStore, ScenarioStore

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return str(uuid.uuid4())


class ScenarioLifecycle:
    """Status-tracked scenarios on top of a scenario store and a placement store."""

    def __init__(
        self,
        store: ScenarioStore,
        placement_store: PlacementStore,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
        config: ConfigLoader | None = None,
    ):
        self.store = store
        self.placement_store = placement_store
        self.clock = clock or _utc_now
        self.id_factory = id_factory or _new_id
        self.config = config
        # Entries drop out once no caller holds the lock
        self._locks: weakref.WeakValueDictionary[str, threading.RLock] = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    @contextmanager
    def _activity_lock(self, activity_id: str) -> Iterator[None]:
        with self._locks_guard:
            lock = self._locks.setdefault(activity_id, threading.RLock())
        with lock:
            yield

    def _scenario_from_partition(
        self, activity_id: str, partition: Partition, created_by: str | None
    ) -> Scenario:
        now = self.clock()
        return Scenario(
            id=self.id_factory(),
            activity_id=activity_id,
            status=ScenarioStatus.DRAFT,
            groups=partition.groups,
            participant_snapshot=partition.participant_snapshot,
            created_at=now,
            last_modified_at=now,
            created_by=created_by,
            algorithm_config=partition.run_config(),
        )

    def _store_new(self, activity_id: str, partition: Partition, created_by: str | None) -> Scenario | EngineFailure:
        scenario = self._scenario_from_partition(activity_id, partition, created_by)
        if not self.store.create_if_absent(scenario):
            return EngineFailure.already_exists(
                f"Activity {activity_id} already has an active scenario", activity_id=activity_id
            )
        logger.info(
            f"Created DRAFT scenario {scenario.id} for activity {activity_id} "
            f"({len(scenario.participant_snapshot)} students, {len(scenario.groups)} groups)"
        )
        return scenario

    def _existing_failure(self, activity_id: str) -> EngineFailure | None:
        existing = self.store.get_active_for_activity(activity_id)
        if existing is None:
            return None
        return EngineFailure.already_exists(
            f"Activity {activity_id} already has a {existing.status.value} scenario",
            activity_id=activity_id,
            scenario_id=existing.id,
        )

    def generate(
        self,
        activity_id: str,
        roster: Iterable[str | Student],
        groups: Sequence[GroupSpec] | None,
        preferences: Iterable[Preference],
        algorithm_config: AlgorithmConfig | None = None,
        created_by: str | None = None,
    ) -> Scenario | EngineFailure:
        """Generate a partition and store it as the activity's DRAFT."""
        with self._activity_lock(activity_id):
            existing = self._existing_failure(activity_id)
            if existing is not None:
                return existing

            partition = generate_partition(roster, groups, preferences, algorithm_config, self.config)
            if isinstance(partition, EngineFailure):
                return partition
            return self._store_new(activity_id, partition, created_by)

    def create_from_partition(
        self, activity_id: str, partition: Partition, created_by: str | None = None
    ) -> Scenario | EngineFailure:
        """Store an already generated partition (e.g. a chosen candidate) as the DRAFT.

        The partition comes from the caller, possibly hand-edited, so it is
        checked like a freshly generated one before anything is stored.
        """
        violation = check_partition(partition.participant_snapshot, partition.groups)
        if violation is not None:
            logger.info(f"Rejected partition for activity {activity_id}: {violation.details}")
            return EngineFailure.input_error(
                "Partition must place every snapshot student exactly once within group capacity",
                activity_id=activity_id,
                **violation.details,
            )

        with self._activity_lock(activity_id):
            existing = self._existing_failure(activity_id)
            if existing is not None:
                return existing
            return self._store_new(activity_id, partition, created_by)

    def reset(
        self,
        activity_id: str,
        roster: Iterable[str | Student],
        groups: Sequence[GroupSpec] | None,
        preferences: Iterable[Preference],
        algorithm_config: AlgorithmConfig | None = None,
        created_by: str | None = None,
    ) -> Scenario | EngineFailure:
        """Replace the activity's DRAFT with a fresh one built from the current roster.

        With no current scenario this behaves like ``generate``. An ADOPTED
        scenario is never replaced. If generation fails the existing DRAFT
        is left untouched.
        """
        with self._activity_lock(activity_id):
            current = self.store.get_active_for_activity(activity_id)
            if current is not None and current.status != ScenarioStatus.DRAFT:
                return EngineFailure.not_in_draft(
                    f"Scenario {current.id} is {current.status.value}; only a DRAFT can be reset",
                    scenario_id=current.id,
                )

            partition = generate_partition(roster, groups, preferences, algorithm_config, self.config)
            if isinstance(partition, EngineFailure):
                return partition

            if current is not None:
                self.store.delete(current.id)
                logger.info(f"Deleted DRAFT scenario {current.id} for activity {activity_id} on reset")

            return self._store_new(activity_id, partition, created_by)

    def publish(
        self,
        scenario_id: str,
        preferences: Iterable[Preference],
        published_by: str | None = None,
    ) -> Scenario | EngineFailure:
        """Adopt a DRAFT and record one Placement per assigned student."""
        scenario = self.store.get(scenario_id)
        if scenario is None:
            return EngineFailure.not_found(f"Scenario {scenario_id} not found", scenario_id=scenario_id)

        with self._activity_lock(scenario.activity_id):
            scenario = self.store.get(scenario_id)
            if scenario is None:
                return EngineFailure.not_found(f"Scenario {scenario_id} not found", scenario_id=scenario_id)
            if scenario.status != ScenarioStatus.DRAFT:
                return EngineFailure.not_in_draft(
                    f"Scenario {scenario_id} is {scenario.status.value}; only a DRAFT can be published",
                    scenario_id=scenario_id,
                )

            now = self.clock()
            model = build_constraint_model(scenario.participant_snapshot, preferences, scenario.groups)
            placements = [
                Placement(
                    id=self.id_factory(),
                    scenario_id=scenario.id,
                    activity_id=scenario.activity_id,
                    student_id=student_id,
                    group_id=group.id,
                    group_name=group.name,
                    preference_rank=resolve_preference_rank(model, student_id, group),
                    preference_snapshot=model.constraints_for(student_id).ranked_groups,
                    assigned_at=now,
                    assigned_by=published_by,
                )
                for group in scenario.groups
                for student_id in group.member_ids
            ]

            adopted = scenario.model_copy(
                update={"status": ScenarioStatus.ADOPTED, "adopted_at": now, "last_modified_at": now}
            )
            self.store.update(adopted)
            try:
                self.placement_store.save_batch(placements)
            except Exception as e:
                logger.error(f"Saving placements for scenario {scenario_id} failed, restoring DRAFT: {e}")
                self.placement_store.delete_for_scenario(scenario_id)
                self.store.update(scenario)
                raise

        logger.info(f"Published scenario {scenario_id}: {len(placements)} placements")
        return adopted

    def archive(self, scenario_id: str) -> Scenario | EngineFailure:
        """Move a DRAFT or ADOPTED scenario to ARCHIVED; archiving twice is a no-op."""
        scenario = self.store.get(scenario_id)
        if scenario is None:
            return EngineFailure.not_found(f"Scenario {scenario_id} not found", scenario_id=scenario_id)

        with self._activity_lock(scenario.activity_id):
            scenario = self.store.get(scenario_id)
            if scenario is None:
                return EngineFailure.not_found(f"Scenario {scenario_id} not found", scenario_id=scenario_id)
            if scenario.status == ScenarioStatus.ARCHIVED:
                return scenario

            now = self.clock()
            archived = scenario.model_copy(
                update={"status": ScenarioStatus.ARCHIVED, "archived_at": now, "last_modified_at": now}
            )
            self.store.update(archived)

        logger.info(f"Archived scenario {scenario_id} for activity {archived.activity_id}")
        return archived

    def get(self, scenario_id: str) -> Scenario | EngineFailure:
        scenario = self.store.get(scenario_id)
        if scenario is None:
            return EngineFailure.not_found(f"Scenario {scenario_id} not found", scenario_id=scenario_id)
        return scenario

    def current(self, activity_id: str) -> Scenario | None:
        return self.store.get_active_for_activity(activity_id)

    def history(self, activity_id: str) -> list[Scenario]:
        return self.store.list_for_activity(activity_id)

    def placements(self, scenario_id: str) -> list[Placement] | EngineFailure:
        if self.store.get(scenario_id) is None:
            return EngineFailure.not_found(f"Scenario {scenario_id} not found", scenario_id=scenario_id)
        return self.placement_store.list_for_scenario(scenario_id)
