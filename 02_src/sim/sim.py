"""SIM implementation - simulated units publishing feature state."""

import asyncio
import random
import time
from typing import Callable, Protocol

from supervision.bus import IBusConnection
from supervision.logging_config import get_logger
from supervision.models import UnitDescriptor

logger = get_logger(__name__)


class ISim(Protocol):
    """Play the part of running units on the bus."""

    async def start(self) -> None:
        """Start publishing."""
        ...

    async def stop(self) -> None:
        """Stop publishing."""
        ...


class Sim:
    """Publishes random $state messages for registered units."""

    def __init__(
        self,
        bus: IBusConnection,
        units: Callable[[], list[UnitDescriptor]],
        interval: float = 2.0,
        rng: random.Random | None = None,
    ):
        self._bus = bus
        self._units = units
        self._interval = interval
        self._rng = rng or random.Random()
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the background publishing task."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info("SIM started (interval=%.1fs)", self._interval)

    async def stop(self) -> None:
        """Stop the background publishing task."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _run(self) -> None:
        while self._running:
            self.tick()
            # Jitter so units don't report in lockstep
            await asyncio.sleep(self._interval * self._rng.uniform(0.5, 1.5))

    def tick(self) -> bool:
        """Publish one state message for a random feature. False if none exist."""
        candidates = [(u, f) for u in self._units() for f in u.features if f.allowed_statuses]
        if not candidates or not self._bus.connected:
            return False

        unit, feature = self._rng.choice(candidates)
        status = self._rng.choice(sorted(feature.allowed_statuses))
        payload = {
            "status": status,
            "ts": int(time.time() * 1000),
            "details": {"source": "sim"},
        }
        self._bus.publish(feature.state_topic, payload)
        logger.debug("SIM: %s/%s -> %s", unit.name, feature.key, status)
        return True
