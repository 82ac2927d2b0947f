"""Tests for AlertBuffer."""

from datetime import datetime, timezone

import pytest

from supervision.alerts import AlertBuffer
from supervision.models import Alert, Severity


def make_alert(n: int, alert_id: str | None = None) -> Alert:
    return Alert(
        id=alert_id or f"a{n}",
        unit_id="U1",
        unit_name="U",
        component="Welding",
        severity=Severity.HIGH,
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


class TestRaise:
    """Tests for AlertBuffer.raise_alert()."""

    def test_newest_first(self, alert_buffer):
        """Test alerts are listed newest first."""
        alert_buffer.raise_alert(make_alert(1))
        alert_buffer.raise_alert(make_alert(2))
        assert [a.id for a in alert_buffer.list()] == ["a2", "a1"]

    def test_capacity_evicts_oldest(self, alert_buffer):
        """Test 201 raises leave 200 entries with the first one evicted."""
        for n in range(201):
            alert_buffer.raise_alert(make_alert(n))

        alerts = alert_buffer.list()
        assert len(alerts) == 200
        assert alerts[0].id == "a200"
        assert alerts[-1].id == "a1"
        assert "a0" not in {a.id for a in alerts}

    def test_custom_capacity(self):
        """Test a smaller buffer evicts by insertion order."""
        buffer = AlertBuffer(capacity=2)
        for n in range(3):
            buffer.raise_alert(make_alert(n))
        assert [a.id for a in buffer.list()] == ["a2", "a1"]

    def test_invalid_capacity(self):
        """Test a non-positive capacity is rejected."""
        with pytest.raises(ValueError):
            AlertBuffer(capacity=0)


class TestAcknowledge:
    """Tests for AlertBuffer.acknowledge()."""

    def test_acknowledge_removes_matching(self, alert_buffer):
        """Test acknowledging removes only the matching alert."""
        alert_buffer.raise_alert(make_alert(1))
        alert_buffer.raise_alert(make_alert(2))
        assert alert_buffer.acknowledge("a1") == 1
        assert [a.id for a in alert_buffer.list()] == ["a2"]

    def test_acknowledge_duplicates(self, alert_buffer):
        """Test every alert sharing the id is removed."""
        alert_buffer.raise_alert(make_alert(1, "dup"))
        alert_buffer.raise_alert(make_alert(2, "dup"))
        alert_buffer.raise_alert(make_alert(3))
        assert alert_buffer.acknowledge("dup") == 2
        assert len(alert_buffer) == 1

    def test_acknowledge_unknown(self, alert_buffer):
        """Test acknowledging an unknown id is a no-op."""
        alert_buffer.raise_alert(make_alert(1))
        assert alert_buffer.acknowledge("zzz") == 0
        assert len(alert_buffer) == 1


class TestClearAndList:
    """Tests for clear() and list()."""

    def test_clear(self, alert_buffer):
        """Test clear empties the buffer."""
        alert_buffer.raise_alert(make_alert(1))
        alert_buffer.clear()
        assert alert_buffer.list() == []

    def test_list_is_snapshot(self, alert_buffer):
        """Test mutating the listed sequence does not affect the buffer."""
        alert_buffer.raise_alert(make_alert(1))
        snapshot = alert_buffer.list()
        snapshot.clear()
        assert len(alert_buffer) == 1
