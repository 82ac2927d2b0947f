"""Bus connection module."""

from .connection import (
    BusEvent,
    BusHandler,
    IBusConnection,
    ListenerMixin,
    MqttBusConnection,
    encode_payload,
)

__all__ = [
    "BusEvent",
    "BusHandler",
    "IBusConnection",
    "ListenerMixin",
    "MqttBusConnection",
    "encode_payload",
]
