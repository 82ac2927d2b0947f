"""Subscription reconciler: keeps broker subscriptions equal to the desired set."""

from typing import Iterable

from ..bus import IBusConnection
from ..logging_config import get_logger
from ..models import SupervisedUnit
from ..topics import union_topics

logger = get_logger(__name__)


def desired_topics(units: Iterable[SupervisedUnit]) -> set[str]:
    """Union of subscription topics over Running units."""
    return union_topics(u.descriptor for u in units if u.running)


def diff_topics(previous: set[str], desired: set[str]) -> tuple[set[str], set[str]]:
    """Return (to_unsubscribe, to_subscribe)."""
    return previous - desired, desired - previous


class SubscriptionReconciler:
    """
    Issues the minimal subscribe/unsubscribe calls against the bus.

    Tracks what the broker is believed to hold. While the connection is
    down that belief is empty; the next connect resends the whole
    desired set.
    """

    def __init__(self, bus: IBusConnection):
        self._bus = bus
        self._current: set[str] = set()
        self._desired: set[str] = set()

    @property
    def current(self) -> set[str]:
        return set(self._current)

    def reconcile(
        self,
        desired: set[str],
        previous: set[str] | None = None,
    ) -> tuple[set[str], set[str]]:
        """
        Bring subscriptions from previous (default: current) to desired.

        Returns the (unsubscribed, subscribed) topic sets; both are empty
        when nothing changed or the bus is down.
        """
        self._desired = set(desired)
        if not self._bus.connected:
            logger.debug("Bus down, deferring %d topics", len(self._desired))
            return set(), set()

        if previous is None:
            previous = self._current
        to_unsubscribe, to_subscribe = diff_topics(previous, self._desired)
        if to_unsubscribe:
            self._bus.unsubscribe(to_unsubscribe)
        if to_subscribe:
            self._bus.subscribe(to_subscribe)
        self._current = set(self._desired)

        if to_unsubscribe or to_subscribe:
            logger.info(
                "Subscriptions reconciled (+%d, -%d, total=%d)",
                len(to_subscribe),
                len(to_unsubscribe),
                len(self._current),
            )
        return to_unsubscribe, to_subscribe

    def resubscribe(self) -> None:
        """Resend the whole desired set after a (re)connect."""
        self._current = set()
        self.reconcile(self._desired, previous=set())

    def invalidate(self) -> None:
        """Forget broker-side state; called on disconnect or error."""
        if self._current:
            logger.warning("Subscription state void (%d topics)", len(self._current))
        self._current = set()
