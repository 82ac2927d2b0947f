"""Active set of supervised units and their state machines."""

from datetime import datetime
from typing import Any, Protocol

from ..logging_config import get_logger
from ..models import (
    STATUS_VOCABULARY,
    ErrorKind,
    Outcome,
    RunState,
    SupervisedUnit,
)
from ..registry import IUnitRegistry
from ..topics import normalize, relative_segments

logger = get_logger(__name__)


class IActiveSet(Protocol):
    """Units currently under supervision."""

    def add(self, name_or_id: str, start_running: bool = True) -> Outcome:
        """Start supervising a registered unit."""
        ...

    def remove(self, name_or_id: str) -> Outcome:
        """Stop supervising a unit."""
        ...

    def set_run_state(self, unit_id: str, target: RunState | str) -> Outcome:
        """Switch a unit between Running and Stopped."""
        ...

    def units(self) -> list[SupervisedUnit]:
        """Snapshot of supervised units, in insertion order."""
        ...


class ActiveSet:
    """In-memory active set, keyed by unit id."""

    def __init__(self, registry: IUnitRegistry):
        self._registry = registry
        self._units: dict[str, SupervisedUnit] = {}

    def add(self, name_or_id: str, start_running: bool = True) -> Outcome:
        """Start supervising a registered unit with all features Unknown."""
        descriptor = self._registry.lookup(name_or_id)
        if descriptor is None:
            return Outcome.failure(
                ErrorKind.NOT_FOUND, f"{name_or_id} is not registered"
            )
        if descriptor.id in self._units:
            return Outcome.failure(
                ErrorKind.ALREADY_ACTIVE, f"{name_or_id} is already supervised"
            )

        unit = SupervisedUnit(
            descriptor=descriptor,
            run_state=RunState.RUNNING if start_running else RunState.STOPPED,
        )
        self._units[descriptor.id] = unit
        logger.info(
            "Supervising %s (run_state=%s)",
            unit.name,
            unit.run_state.value,
            extra={"context": {"unit_id": unit.id}},
        )
        return Outcome.success(unit)

    def find(self, name_or_id: str) -> SupervisedUnit | None:
        """Find a supervised unit by id or name (case-insensitive)."""
        if name_or_id in self._units:
            return self._units[name_or_id]
        lower = (name_or_id or "").lower()
        for unit in self._units.values():
            if unit.id.lower() == lower or unit.name.lower() == lower:
                return unit
        return None

    def get(self, unit_id: str) -> SupervisedUnit | None:
        return self._units.get(unit_id)

    def remove(self, name_or_id: str) -> Outcome:
        """Detach a supervised unit; its cached telemetry goes with it."""
        unit = self.find(name_or_id)
        if unit is None:
            return Outcome.failure(
                ErrorKind.NOT_FOUND, f"{name_or_id} is not supervised"
            )
        del self._units[unit.id]
        unit.latest_data = None
        logger.info("Stopped supervising %s", unit.name, extra={"context": {"unit_id": unit.id}})
        return Outcome.success(unit)

    def set_run_state(self, unit_id: str, target: RunState | str) -> Outcome:
        """
        Switch a unit's run state.

        Stopping discards the cached generic telemetry value; feature
        statuses are kept.
        """
        unit = self.find(unit_id)
        if unit is None:
            return Outcome.failure(ErrorKind.NOT_FOUND, f"{unit_id} is not supervised")

        try:
            target = RunState(target)
        except ValueError:
            return Outcome.failure(ErrorKind.INVALID_RUN_STATE, f"invalid run state: {target}")
        if target == RunState.STOPPED:
            unit.latest_data = None
        if unit.run_state != target:
            logger.info(
                "%s: %s -> %s",
                unit.name,
                unit.run_state.value,
                target.value,
                extra={"context": {"unit_id": unit.id}},
            )
        unit.run_state = target
        return Outcome.success(unit)

    def units(self) -> list[SupervisedUnit]:
        return list(self._units.values())

    def running(self) -> list[SupervisedUnit]:
        return [u for u in self._units.values() if u.running]

    def owner_of(self, topic: str) -> SupervisedUnit | None:
        """Unit whose base topic is the longest segment-aligned prefix of topic."""
        owner = None
        owner_len = -1
        for unit in self._units.values():
            base = normalize(unit.base_topic)
            if not base or relative_segments(base, topic) is None:
                continue
            if len(base) > owner_len:
                owner, owner_len = unit, len(base)
        return owner

    def __contains__(self, unit_id: str) -> bool:
        return unit_id in self._units

    def __len__(self) -> int:
        return len(self._units)


def apply_feature_state(
    unit: SupervisedUnit,
    feature_key: str,
    raw_status: str,
    timestamp: datetime,
    details: dict[str, Any] | None,
) -> bool:
    """
    Apply a decoded state message to one feature.

    The status changes only when raw_status is in the feature's allowed
    vocabulary (case-insensitive) and maps to a known status; the update
    time and details are recorded either way. Returns True if the status
    was accepted.
    """
    descriptor = unit.descriptor.feature(feature_key)
    state = unit.features.get(feature_key)
    if descriptor is None or state is None:
        return False

    state.last_update = timestamp
    state.last_details = details

    status_key = (raw_status or "").strip().lower()
    new_status = STATUS_VOCABULARY.get(status_key)
    if status_key not in descriptor.allowed_statuses or new_status is None:
        logger.warning(
            "%s/%s: ignoring status %r",
            unit.name,
            feature_key,
            raw_status,
            extra={"context": {"unit_id": unit.id, "feature": feature_key}},
        )
        return False

    state.status = new_status
    return True
