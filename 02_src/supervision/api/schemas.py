"""Response models for the REST surface."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from ..models import Alert, SupervisedUnit, UnitDescriptor


class StatusResponse(BaseModel):
    """Response model for plain acknowledgements."""

    status: str


class FeatureResponse(BaseModel):
    """A feature with its current state."""

    key: str
    name: str
    description: str
    state_topic: str
    allowed_statuses: list[str]
    status: str | None = None
    last_update: datetime | None = None
    last_details: dict[str, Any] | None = None


class DescriptorResponse(BaseModel):
    """A registered unit descriptor."""

    id: str
    name: str
    description: str
    bus_endpoint: str
    base_topic: str
    features: list[FeatureResponse]


class UnitResponse(DescriptorResponse):
    """A supervised unit with run state and feature states."""

    run_state: str
    latest_data: Any = None


class AlertResponse(BaseModel):
    """A raised alert."""

    id: str
    unit_id: str
    unit_name: str
    component: str
    severity: str
    timestamp: datetime
    raw: Any = None


class RunStateRequest(BaseModel):
    """Request model for a run-state change."""

    state: str


class SummaryResponse(BaseModel):
    """Per-unit textual overview."""

    summary: str


def descriptor_to_response(descriptor: UnitDescriptor) -> dict:
    return {
        "id": descriptor.id,
        "name": descriptor.name,
        "description": descriptor.description,
        "bus_endpoint": descriptor.bus_endpoint,
        "base_topic": descriptor.base_topic,
        "features": [
            {
                "key": f.key,
                "name": f.name,
                "description": f.description,
                "state_topic": f.state_topic,
                "allowed_statuses": sorted(f.allowed_statuses),
            }
            for f in descriptor.features
        ],
    }


def unit_to_response(unit: SupervisedUnit) -> dict:
    data = descriptor_to_response(unit.descriptor)
    for feat in data["features"]:
        state = unit.features[feat["key"]]
        feat["status"] = state.status.value
        feat["last_update"] = state.last_update
        feat["last_details"] = state.last_details if isinstance(state.last_details, dict) else None
    data["run_state"] = unit.run_state.value
    data["latest_data"] = unit.latest_data
    return data


def alert_to_response(alert: Alert) -> dict:
    return {
        "id": alert.id,
        "unit_id": alert.unit_id,
        "unit_name": alert.unit_name,
        "component": alert.component,
        "severity": alert.severity.value,
        "timestamp": alert.timestamp,
        "raw": alert.raw,
    }
