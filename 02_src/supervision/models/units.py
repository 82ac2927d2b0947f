"""Unit and feature data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class RunState(str, Enum):
    """Supervisor-local run state of a unit."""

    STOPPED = "stopped"
    RUNNING = "running"


class FeatureStatus(str, Enum):
    """Lifecycle status of a unit feature."""

    UNKNOWN = "unknown"
    WAITING = "waiting"
    ACTIVE = "active"
    FAILURE = "failure"
    MAINTENANCE = "maintenance"


# Wire vocabulary (lower-cased) -> status
STATUS_VOCABULARY: dict[str, FeatureStatus] = {
    "espera": FeatureStatus.WAITING,
    "waiting": FeatureStatus.WAITING,
    "idle": FeatureStatus.WAITING,
    "ativo": FeatureStatus.ACTIVE,
    "active": FeatureStatus.ACTIVE,
    "ok": FeatureStatus.ACTIVE,
    "rodando": FeatureStatus.ACTIVE,
    "running": FeatureStatus.ACTIVE,
    "falha": FeatureStatus.FAILURE,
    "failure": FeatureStatus.FAILURE,
    "fault": FeatureStatus.FAILURE,
    "manutencao": FeatureStatus.MAINTENANCE,
    "maintenance": FeatureStatus.MAINTENANCE,
}

DEFAULT_ALLOWED_STATUSES = frozenset({"espera", "falha", "manutencao"})


@dataclass(frozen=True)
class FeatureDescriptor:
    """A named sub-capability of a unit, reported on its own state topic."""

    key: str
    name: str
    description: str
    state_topic: str
    allowed_statuses: frozenset[str] = DEFAULT_ALLOWED_STATUSES


@dataclass(frozen=True)
class UnitDescriptor:
    """Immutable description of a unit, as registered."""

    id: str
    name: str
    description: str
    bus_endpoint: str
    base_topic: str
    features: tuple[FeatureDescriptor, ...] = ()

    def feature(self, key: str) -> FeatureDescriptor | None:
        """Find a feature by key."""
        for feat in self.features:
            if feat.key == key:
                return feat
        return None


@dataclass
class FeatureState:
    """Mutable status of one feature of a supervised unit."""

    status: FeatureStatus = FeatureStatus.UNKNOWN
    last_update: datetime | None = None
    last_details: dict[str, Any] | None = None


@dataclass
class SupervisedUnit:
    """A unit currently under supervision."""

    descriptor: UnitDescriptor
    run_state: RunState = RunState.STOPPED
    features: dict[str, FeatureState] = field(default_factory=dict)
    latest_data: Any = None  # last generic telemetry value (dict or raw text)

    def __post_init__(self) -> None:
        for feat in self.descriptor.features:
            self.features.setdefault(feat.key, FeatureState())

    @property
    def id(self) -> str:
        return self.descriptor.id

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def base_topic(self) -> str:
        return self.descriptor.base_topic

    @property
    def running(self) -> bool:
        return self.run_state == RunState.RUNNING
