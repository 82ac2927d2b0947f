"""MessageRouter: classifies inbound bus messages and dispatches them."""

import json
from datetime import datetime, timezone
from typing import Any, Callable

from ..active_set import ActiveSet, apply_feature_state
from ..alerts import AlertBuffer
from ..errors import DecodeFailure
from ..logging_config import get_logger
from ..models import Alert, FeatureStatus, Severity, SupervisedUnit
from ..topics import (
    ACK_SUFFIX,
    DATA_SUFFIX,
    STATUS_SUFFIX,
    match_feature_state,
    match_suffix,
    normalize,
)

logger = get_logger(__name__)

FEATURE_ALERT_SEVERITY = {
    FeatureStatus.FAILURE: Severity.HIGH,
    FeatureStatus.MAINTENANCE: Severity.MEDIUM,
}

ALERT_MARKER = "alert"
STATUS_COMPONENT = "Status"
DATA_COMPONENT = "Data"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_millis(ts: datetime) -> int:
    return int(ts.timestamp() * 1000)


def _text(payload: bytes | str) -> str:
    if isinstance(payload, bytes):
        return payload.decode("utf-8", errors="replace")
    return str(payload)


def decode_object(topic: str, payload: bytes | str) -> dict[str, Any]:
    """Decode a JSON object payload; anything else is a DecodeFailure."""
    try:
        data = json.loads(payload)
    except (TypeError, ValueError) as e:
        raise DecodeFailure(topic, str(e)) from e
    if not isinstance(data, dict):
        raise DecodeFailure(topic, f"expected an object, got {type(data).__name__}")
    return data


def parse_timestamp(value: Any, default: datetime) -> datetime:
    """Epoch milliseconds or ISO-8601 string; default when absent or invalid."""
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, timezone.utc)
        except (OverflowError, OSError, ValueError):
            return default
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return default
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return default


class MessageRouter:
    """Routes (topic, payload) events to unit state and the alert buffer."""

    def __init__(
        self,
        active_set: ActiveSet,
        alerts: AlertBuffer,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._active_set = active_set
        self._alerts = alerts
        self._clock = clock

    def handle(self, topic: str, payload: bytes | str) -> None:
        """Handle one inbound message. Never raises on bad content."""
        t = normalize(topic)
        owner = self._active_set.owner_of(t)
        if owner is None:
            return
        # A stopped unit may still be transmitting
        if not owner.running:
            logger.debug("Dropping message for stopped unit %s on %s", owner.name, t)
            return

        feature_key = match_feature_state(owner.base_topic, t)
        try:
            if feature_key:
                self._handle_feature_state(owner, t, feature_key, payload)
            elif match_suffix(owner.base_topic, t, DATA_SUFFIX):
                self._handle_data(owner, t, payload)
            elif match_suffix(owner.base_topic, t, STATUS_SUFFIX):
                self._handle_status(owner, t, payload)
            elif match_suffix(owner.base_topic, t, ACK_SUFFIX):
                pass  # reserved
        except DecodeFailure as e:
            logger.warning("%s", e, extra={"context": {"unit_id": owner.id, "topic": t}})

    def _handle_feature_state(
        self,
        owner: SupervisedUnit,
        topic: str,
        feature_key: str,
        payload: bytes | str,
    ) -> None:
        feature = owner.descriptor.feature(feature_key)
        if feature is None:
            logger.debug("%s has no feature %r", owner.name, feature_key)
            return

        data = decode_object(topic, payload)
        raw_status = str(data.get("status") or "")
        ts = data.get("ts")
        arrival = self._clock()
        timestamp = parse_timestamp(ts, arrival)
        details = data.get("details")

        if not apply_feature_state(owner, feature_key, raw_status, timestamp, details):
            return

        status = owner.features[feature_key].status
        severity = FEATURE_ALERT_SEVERITY.get(status)
        if severity is None:
            return

        stamp = ts if isinstance(ts, (int, float)) and not isinstance(ts, bool) else _to_millis(timestamp)
        self._alerts.raise_alert(
            Alert(
                id=f"{owner.id}-{feature_key}-{stamp}",
                unit_id=owner.id,
                unit_name=owner.name,
                component=feature.name,
                severity=severity,
                timestamp=timestamp,
                raw={
                    "type": "feature_state",
                    "status": raw_status.lower(),
                    "feature_key": feature_key,
                    "details": details,
                },
            )
        )

    def _handle_data(self, owner: SupervisedUnit, topic: str, payload: bytes | str) -> None:
        try:
            data = json.loads(payload)
        except (TypeError, ValueError):
            owner.latest_data = _text(payload)
            return

        if not (isinstance(data, dict) and data.get("type") == ALERT_MARKER):
            owner.latest_data = data
            return

        now = self._clock()
        self._alerts.raise_alert(
            Alert(
                id=str(data.get("correlation_id") or f"{owner.id}-{_to_millis(now)}"),
                unit_id=owner.id,
                unit_name=owner.name,
                component=str(data.get("component") or DATA_COMPONENT),
                severity=Severity.parse(data.get("severity"), Severity.LOW),
                timestamp=parse_timestamp(data.get("timestamp"), now),
                raw=data,
            )
        )

    def _handle_status(self, owner: SupervisedUnit, topic: str, payload: bytes | str) -> None:
        data = decode_object(topic, payload)
        default = Severity.LOW if data.get("below_threshold") is True else Severity.MEDIUM
        severity = Severity.parse(data.get("severity"), default)
        variable = data.get("variable") or "variable"
        now = self._clock()

        self._alerts.raise_alert(
            Alert(
                id=str(data.get("correlation_id") or f"{owner.id}-{variable}-{_to_millis(now)}"),
                unit_id=owner.id,
                unit_name=owner.name,
                component=str(data.get("component") or STATUS_COMPONENT),
                severity=severity,
                timestamp=parse_timestamp(data.get("timestamp"), now),
                raw=data,
            )
        )
