"""Core data models for the CPS supervisor."""

from .alerts import Alert, Severity
from .results import ErrorKind, Outcome
from .units import (
    DEFAULT_ALLOWED_STATUSES,
    STATUS_VOCABULARY,
    FeatureDescriptor,
    FeatureState,
    FeatureStatus,
    RunState,
    SupervisedUnit,
    UnitDescriptor,
)

__all__ = [
    # Units
    "UnitDescriptor",
    "FeatureDescriptor",
    "SupervisedUnit",
    "FeatureState",
    "FeatureStatus",
    "RunState",
    "STATUS_VOCABULARY",
    "DEFAULT_ALLOWED_STATUSES",
    # Alerts
    "Alert",
    "Severity",
    # Results
    "ErrorKind",
    "Outcome",
]
