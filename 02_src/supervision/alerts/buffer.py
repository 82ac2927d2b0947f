"""AlertBuffer implementation."""

from ..config import DEFAULT_ALERT_CAPACITY
from ..logging_config import get_logger
from ..models import Alert

logger = get_logger(__name__)


class AlertBuffer:
    """Bounded, newest-first sequence of raised Alerts."""

    def __init__(self, capacity: int = DEFAULT_ALERT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._alerts: list[Alert] = []

    @property
    def capacity(self) -> int:
        return self._capacity

    def raise_alert(self, alert: Alert) -> None:
        """Prepend an alert, evicting the oldest beyond capacity."""
        self._alerts.insert(0, alert)
        del self._alerts[self._capacity:]
        logger.info(
            "Alert %s: %s / %s (%s)",
            alert.id,
            alert.unit_name,
            alert.component,
            alert.severity.value,
            extra={"context": {"unit_id": alert.unit_id, "severity": alert.severity.value}},
        )

    def acknowledge(self, alert_id: str) -> int:
        """Remove every alert with this id. Returns how many were removed."""
        before = len(self._alerts)
        self._alerts = [a for a in self._alerts if a.id != alert_id]
        removed = before - len(self._alerts)
        logger.info("Alert acknowledged (%s, removed=%d)", alert_id, removed)
        return removed

    def clear(self) -> None:
        """Remove all alerts."""
        self._alerts.clear()
        logger.info("All alerts cleared")

    def list(self) -> list[Alert]:
        """Newest-first snapshot."""
        return self._alerts.copy()

    def __len__(self) -> int:
        return len(self._alerts)
