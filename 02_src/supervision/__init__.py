"""Supervision engine for units observed over a pub/sub bus."""

from .active_set import ActiveSet, IActiveSet
from .alerts import AlertBuffer
from .bus import BusEvent, IBusConnection, MqttBusConnection
from .engine import ISupervisionEngine, SupervisionEngine
from .models import (
    Alert,
    ErrorKind,
    FeatureDescriptor,
    FeatureState,
    FeatureStatus,
    Outcome,
    RunState,
    Severity,
    SupervisedUnit,
    UnitDescriptor,
)
from .registry import IUnitRegistry, UnitRegistry
from .router import MessageRouter
from .subscriptions import SubscriptionReconciler

__all__ = [
    # Engine
    "ISupervisionEngine",
    "SupervisionEngine",
    # Models
    "UnitDescriptor",
    "FeatureDescriptor",
    "SupervisedUnit",
    "FeatureState",
    "FeatureStatus",
    "RunState",
    "Alert",
    "Severity",
    "ErrorKind",
    "Outcome",
    # Components
    "IUnitRegistry",
    "UnitRegistry",
    "IActiveSet",
    "ActiveSet",
    "AlertBuffer",
    "SubscriptionReconciler",
    "MessageRouter",
    "IBusConnection",
    "BusEvent",
    "MqttBusConnection",
]
