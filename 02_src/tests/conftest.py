"""Pytest configuration and fixtures."""

import json
import sys
from pathlib import Path
from typing import Any

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from supervision.bus import BusEvent, ListenerMixin  # noqa: E402


class FakeBus(ListenerMixin):
    """Bus connection that records calls instead of talking to a broker."""

    def __init__(self, connected: bool = True):
        self._init_listeners()
        self._connected = connected
        self.subscribed: list[set[str]] = []
        self.unsubscribed: list[set[str]] = []
        self.published: list[tuple[str, Any]] = []
        self.closed = False

    @property
    def connected(self) -> bool:
        return self._connected

    def subscribe(self, topics):
        self.subscribed.append(set(topics))

    def unsubscribe(self, topics):
        self.unsubscribed.append(set(topics))

    def publish(self, topic, payload):
        self.published.append((topic, payload))

    async def connect(self):
        self.go_online(BusEvent.CONNECT)

    async def close(self):
        self.closed = True
        self._connected = False

    # Test drivers

    def go_online(self, event: BusEvent = BusEvent.RECONNECT):
        self._connected = True
        self._emit(event)

    def go_offline(self):
        self._connected = False
        self._emit(BusEvent.DISCONNECT)

    def deliver(self, topic: str, payload):
        if isinstance(payload, dict):
            payload = json.dumps(payload)
        if isinstance(payload, str):
            payload = payload.encode()
        self._emit(BusEvent.MESSAGE, topic, payload)

    def reset_calls(self):
        self.subscribed.clear()
        self.unsubscribed.clear()

    @property
    def call_count(self) -> int:
        return len(self.subscribed) + len(self.unsubscribed)


def build_definition(
    cps_id: str = "CPS-001",
    name: str = "U",
    base_topic: str | None = "cps/x/u1",
    features: dict[str, tuple[str, str]] | None = None,
) -> dict:
    """Raw definition: features maps key -> (display name, allowed statuses)."""
    props = [
        {"modelType": "Property", "idShort": "CpsId", "value": cps_id},
        {"modelType": "Property", "idShort": "Name", "value": name},
        {"modelType": "Property", "idShort": "Description", "value": f"{name} unit"},
        {"modelType": "Property", "idShort": "MqttServer", "value": "broker.test"},
    ]
    if base_topic is not None:
        props.append({"modelType": "Property", "idShort": "MqttBaseTopic", "value": base_topic})

    if features is None:
        features = {"weld": ("Welding", "espera|falha|manutencao")}
    elements = [
        {
            "modelType": "SubmodelElementCollection",
            "idShort": key,
            "value": [
                {"modelType": "Property", "idShort": "Name", "value": display},
                {"modelType": "Property", "idShort": "AllowedStatuses", "value": allowed},
            ],
        }
        for key, (display, allowed) in features.items()
    ]
    return {
        "submodels": [
            {"idShort": "DataConnection", "submodelElements": props},
            {"idShort": "Functions", "submodelElements": elements},
        ]
    }


@pytest.fixture
def definition():
    """Factory for raw unit definitions."""
    return build_definition


@pytest.fixture
def bus():
    """Connected fake bus."""
    return FakeBus()


@pytest.fixture
def registry():
    """Empty unit registry."""
    from supervision.registry import UnitRegistry

    return UnitRegistry()


@pytest.fixture
def active_set(registry):
    """Active set backed by the registry fixture."""
    from supervision.active_set import ActiveSet

    return ActiveSet(registry)


@pytest.fixture
def alert_buffer():
    """Alert buffer with default capacity."""
    from supervision.alerts import AlertBuffer

    return AlertBuffer()


@pytest.fixture
def router(active_set, alert_buffer):
    """Message router over the active set and alert buffer fixtures."""
    from supervision.router import MessageRouter

    return MessageRouter(active_set, alert_buffer)


@pytest.fixture
async def engine(bus):
    """Started engine on the fake bus."""
    from supervision.engine import SupervisionEngine

    eng = SupervisionEngine(bus=bus)
    await eng.start()
    yield eng
    await eng.shutdown()
