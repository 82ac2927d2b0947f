"""Bus connection: pub/sub over an MQTT broker (paho-mqtt)."""

import asyncio
import json
from enum import Enum
from typing import Any, Callable, Iterable, Protocol

import paho.mqtt.client as mqtt
from paho.mqtt.enums import CallbackAPIVersion

from ..config import BusSettings
from ..errors import BusConnectionError
from ..logging_config import get_logger

logger = get_logger(__name__)


class BusEvent(str, Enum):
    """Events emitted by a bus connection."""

    CONNECT = "connect"
    RECONNECT = "reconnect"
    DISCONNECT = "disconnect"
    ERROR = "error"
    MESSAGE = "message"


# MESSAGE handlers receive (topic, payload); ERROR handlers receive the
# exception; the others receive nothing.
BusHandler = Callable[..., None]


class IBusConnection(Protocol):
    """Broker connection used by the supervision engine."""

    @property
    def connected(self) -> bool:
        """True while the broker session is up."""
        ...

    def add_listener(self, event: BusEvent, handler: BusHandler) -> None:
        """Register a handler for a connection event."""
        ...

    def subscribe(self, topics: Iterable[str]) -> None:
        """Subscribe to topics (fire-and-forget)."""
        ...

    def unsubscribe(self, topics: Iterable[str]) -> None:
        """Unsubscribe from topics (fire-and-forget)."""
        ...

    def publish(self, topic: str, payload: Any) -> None:
        """Publish a payload (dicts are JSON-encoded)."""
        ...

    async def connect(self) -> None:
        """Open the broker session."""
        ...

    async def close(self) -> None:
        """Close the broker session."""
        ...


class ListenerMixin:
    """Listener bookkeeping shared by bus connections."""

    def _init_listeners(self) -> None:
        self._listeners: dict[BusEvent, list[BusHandler]] = {e: [] for e in BusEvent}

    def add_listener(self, event: BusEvent, handler: BusHandler) -> None:
        """Register a handler for a connection event."""
        self._listeners[BusEvent(event)].append(handler)

    def _emit(self, event: BusEvent, *args: Any) -> None:
        """Call every handler; a failing handler never stops the others."""
        for handler in self._listeners[event]:
            try:
                handler(*args)
            except Exception:
                logger.exception("Error in %s handler", event.value)


def encode_payload(payload: Any) -> bytes:
    if isinstance(payload, bytes):
        return payload
    if isinstance(payload, str):
        return payload.encode("utf-8")
    return json.dumps(payload).encode("utf-8")


class MqttBusConnection(ListenerMixin):
    """
    MQTT connection driven by paho's network thread.

    Every paho callback is handed over to the asyncio loop that called
    connect(), so listeners run one at a time in the loop thread.
    """

    def __init__(self, settings: BusSettings | None = None, qos: int = 0):
        self._settings = settings or BusSettings.from_env()
        self._qos = qos
        self._loop: asyncio.AbstractEventLoop | None = None
        self._connected = False
        self._ever_connected = False
        self._init_listeners()

        self._client = mqtt.Client(
            callback_api_version=CallbackAPIVersion.VERSION2,
            client_id=self._settings.client_id,
            clean_session=True,
            transport=self._settings.transport,
        )
        self._client.reconnect_delay_set(
            min_delay=self._settings.reconnect_delay, max_delay=30
        )
        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._client.on_message = self._on_message
        self._client.on_subscribe = self._on_subscribe
        self._client.on_unsubscribe = self._on_unsubscribe

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def settings(self) -> BusSettings:
        return self._settings

    async def connect(self) -> None:
        """Start the network loop and connect asynchronously."""
        self._loop = asyncio.get_running_loop()
        try:
            self._client.connect_async(
                self._settings.host,
                self._settings.port,
                keepalive=self._settings.keepalive,
            )
        except (OSError, ValueError) as e:
            error = BusConnectionError(f"cannot connect to {self._settings.host}: {e}")
            logger.error("%s", error)
            self._emit(BusEvent.ERROR, error)
            return
        self._client.loop_start()
        logger.info(
            "Connecting to %s:%s (%s)",
            self._settings.host,
            self._settings.port,
            self._settings.transport,
        )

    async def close(self) -> None:
        """Disconnect and stop the network loop."""
        self._client.disconnect()
        self._client.loop_stop()
        self._connected = False
        logger.info("MQTT connection closed")

    def subscribe(self, topics: Iterable[str]) -> None:
        topics = sorted(set(topics))
        if not topics:
            return
        result, mid = self._client.subscribe([(t, self._qos) for t in topics])
        if result != mqtt.MQTT_ERR_SUCCESS:
            logger.error("Subscribe failed (rc=%s) for %d topics", result, len(topics))
            return
        logger.debug("Subscribe sent (mid=%s): %s", mid, ", ".join(topics))

    def unsubscribe(self, topics: Iterable[str]) -> None:
        topics = sorted(set(topics))
        if not topics:
            return
        result, mid = self._client.unsubscribe(topics)
        if result != mqtt.MQTT_ERR_SUCCESS:
            logger.error("Unsubscribe failed (rc=%s) for %d topics", result, len(topics))
            return
        logger.debug("Unsubscribe sent (mid=%s): %s", mid, ", ".join(topics))

    def publish(self, topic: str, payload: Any) -> None:
        info = self._client.publish(topic, encode_payload(payload), qos=self._qos)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            logger.warning("Publish to %s failed (rc=%s)", topic, info.rc)

    # paho callbacks (network thread)

    def _call_in_loop(self, callback: Callable[..., None], *args: Any) -> None:
        if self._loop is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(callback, *args)

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            error = BusConnectionError(f"connection refused: {reason_code}")
            self._call_in_loop(self._handle_error, error)
            return
        self._call_in_loop(self._handle_connect)

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        self._call_in_loop(self._handle_disconnect, str(reason_code))

    def _on_message(self, client, userdata, msg):
        self._call_in_loop(self._emit, BusEvent.MESSAGE, msg.topic, msg.payload)

    def _on_subscribe(self, client, userdata, mid, reason_codes, properties=None):
        failed = [rc for rc in reason_codes if rc.is_failure]
        if failed:
            logger.error("Subscription mid=%s rejected: %s", mid, failed)
        else:
            logger.debug("Subscription mid=%s confirmed", mid)

    def _on_unsubscribe(self, client, userdata, mid, reason_codes, properties=None):
        logger.debug("Unsubscription mid=%s confirmed", mid)

    # loop-thread handlers

    def _handle_connect(self) -> None:
        self._connected = True
        event = BusEvent.RECONNECT if self._ever_connected else BusEvent.CONNECT
        self._ever_connected = True
        logger.info("MQTT %s to %s", event.value, self._settings.host)
        self._emit(event)

    def _handle_disconnect(self, reason: str) -> None:
        self._connected = False
        logger.warning("MQTT disconnected: %s", reason)
        self._emit(BusEvent.DISCONNECT)

    def _handle_error(self, error: BusConnectionError) -> None:
        self._connected = False
        logger.error("MQTT error: %s", error)
        self._emit(BusEvent.ERROR, error)
