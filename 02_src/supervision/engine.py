"""Supervision engine bootstrap and lifecycle management."""

import json
from typing import Any, Protocol

from .active_set import ActiveSet
from .alerts import AlertBuffer
from .bus import BusEvent, IBusConnection, MqttBusConnection
from .config import DEFAULT_ALERT_CAPACITY
from .logging_config import get_logger
from .models import Alert, ErrorKind, Outcome, RunState, SupervisedUnit, UnitDescriptor
from .registry import UnitRegistry
from .router import MessageRouter
from .subscriptions import SubscriptionReconciler, desired_topics

logger = get_logger(__name__)


class ISupervisionEngine(Protocol):
    """Bootstrap, lifecycle operations and read-only views."""

    async def start(self) -> None:
        """Wire bus listeners and connect."""
        ...

    async def shutdown(self) -> None:
        """Drop subscriptions and release the bus connection."""
        ...

    def register(self, raw: Any) -> Outcome:
        """Register one raw unit definition."""
        ...

    def add(self, name_or_id: str, start_running: bool = True) -> Outcome:
        """Start supervising a registered unit."""
        ...

    def remove(self, name_or_id: str) -> Outcome:
        """Stop supervising a unit."""
        ...

    def set_run_state(self, unit_id: str, target: RunState | str) -> Outcome:
        """Switch a unit between Running and Stopped."""
        ...

    def unplug(self, name_or_id: str) -> Outcome:
        """Remove a unit and forget its definition."""
        ...

    def acknowledge(self, alert_id: str) -> int:
        """Dismiss alerts by id."""
        ...

    def clear_alerts(self) -> None:
        """Dismiss every alert."""
        ...


class SupervisionEngine:
    """Owns the registry, active set and alert buffer, and talks to the bus."""

    def __init__(
        self,
        bus: IBusConnection | None = None,
        alert_capacity: int = DEFAULT_ALERT_CAPACITY,
    ):
        self._bus = bus if bus is not None else MqttBusConnection()
        self._registry = UnitRegistry()
        self._active_set = ActiveSet(self._registry)
        self._alerts = AlertBuffer(alert_capacity)
        self._reconciler = SubscriptionReconciler(self._bus)
        self._router = MessageRouter(self._active_set, self._alerts)
        self._started = False
        self._wired = False

    async def start(self) -> None:
        """Wire bus listeners and connect."""
        if self._started:
            return
        logger.info("Starting supervision engine")
        if not self._wired:
            self._wire_bus()
        self._started = True
        await self._bus.connect()

    def _wire_bus(self) -> None:
        self._bus.add_listener(BusEvent.CONNECT, self._on_connected)
        self._bus.add_listener(BusEvent.RECONNECT, self._on_connected)
        self._bus.add_listener(BusEvent.DISCONNECT, self._on_connection_lost)
        self._bus.add_listener(BusEvent.ERROR, self._on_connection_error)
        self._bus.add_listener(BusEvent.MESSAGE, self._router.handle)
        self._wired = True

    async def shutdown(self) -> None:
        """Drop subscriptions and release the bus connection."""
        if not self._started:
            return
        self._reconciler.reconcile(set())
        await self._bus.close()
        self._started = False
        logger.info("Supervision engine stopped")

    # Bus lifecycle

    def _on_connected(self) -> None:
        # Broker-side subscriptions do not survive a reconnect
        self._reconciler.reconcile(desired_topics(self._active_set.units()), previous=set())

    def _on_connection_lost(self) -> None:
        self._reconciler.invalidate()

    def _on_connection_error(self, error: Exception) -> None:
        logger.error("Bus error: %s", error)
        self._reconciler.invalidate()

    def _sync_subscriptions(self) -> None:
        self._reconciler.reconcile(desired_topics(self._active_set.units()))

    # Lifecycle operations

    def register(self, raw: Any) -> Outcome:
        """Register one raw unit definition."""
        return self._registry.register(raw)

    def add(self, name_or_id: str, start_running: bool = True) -> Outcome:
        """Start supervising a registered unit."""
        outcome = self._active_set.add(name_or_id, start_running=start_running)
        if outcome:
            self._sync_subscriptions()
        return outcome

    def remove(self, name_or_id: str) -> Outcome:
        """Stop supervising a unit and unsubscribe its topics."""
        outcome = self._active_set.remove(name_or_id)
        if outcome:
            self._sync_subscriptions()
        return outcome

    def set_run_state(self, unit_id: str, target: RunState | str) -> Outcome:
        """Switch a unit between Running and Stopped."""
        outcome = self._active_set.set_run_state(unit_id, target)
        if outcome:
            self._sync_subscriptions()
        return outcome

    def start_unit(self, unit_id: str) -> Outcome:
        return self.set_run_state(unit_id, RunState.RUNNING)

    def stop_unit(self, unit_id: str) -> Outcome:
        return self.set_run_state(unit_id, RunState.STOPPED)

    def unplug(self, name_or_id: str) -> Outcome:
        """Remove a unit from supervision and from the registry."""
        outcome = self.remove(name_or_id)
        if not outcome:
            return outcome
        unit: SupervisedUnit = outcome.value
        self._registry.unregister(unit.id)
        self._registry.unregister(unit.name)
        logger.info(
            "Unplugged %s (the unit keeps operating on its own)",
            unit.name,
            extra={"context": {"unit_id": unit.id}},
        )
        return outcome

    def acknowledge(self, alert_id: str) -> int:
        return self._alerts.acknowledge(alert_id)

    def clear_alerts(self) -> None:
        self._alerts.clear()

    # Read-only views

    def names(self) -> list[str]:
        return self._registry.names()

    def descriptors(self) -> list[UnitDescriptor]:
        return self._registry.descriptors()

    def units(self) -> list[SupervisedUnit]:
        return self._active_set.units()

    def alerts(self) -> list[Alert]:
        return self._alerts.list()

    def subscribed_topics(self) -> set[str]:
        return self._reconciler.current

    def describe(self, name: str) -> Outcome:
        """Description of a supervised or registered unit."""
        unit = self._active_set.find(name)
        descriptor = unit.descriptor if unit else self._registry.lookup(name)
        if descriptor is None:
            return Outcome.failure(ErrorKind.NOT_FOUND, f"{name} is unknown")
        return Outcome.success(descriptor)

    def operations_summary(self) -> str:
        """One paragraph per supervised unit: run state, telemetry, features."""
        units = self._active_set.units()
        if not units:
            return "No units supervised. Connect to the broker to receive data."

        blocks = []
        for unit in units:
            feats = ", ".join(
                f"{f.name}={unit.features[f.key].status.value}"
                for f in unit.descriptor.features
            )
            feat_line = f" | Features: [{feats}]" if feats else ""
            where = f"{unit.name} ({unit.descriptor.bus_endpoint}/{unit.base_topic})"

            if not unit.running:
                blocks.append(f"{where}: Stopped{feat_line}")
            elif isinstance(unit.latest_data, (dict, list)):
                blocks.append(f"{where}: {json.dumps(unit.latest_data)}{feat_line}")
            else:
                last = unit.latest_data or "Waiting..."
                blocks.append(f"{where}: Last message: {last}{feat_line}")
        return "\n\n".join(blocks)

    @property
    def bus(self) -> IBusConnection:
        return self._bus

    @property
    def registry(self) -> UnitRegistry:
        return self._registry

    @property
    def active_set(self) -> ActiveSet:
        return self._active_set

    @property
    def alert_buffer(self) -> AlertBuffer:
        return self._alerts

    @property
    def router(self) -> MessageRouter:
        return self._router

    @property
    def reconciler(self) -> SubscriptionReconciler:
        return self._reconciler
