"""
In-process update broker.

Carries a single event type, "attachments changed for case X", between the
catalog browser and the attachment list so that neither needs a reference
to the other.

Delivery is synchronous and in subscription order. Events are not retained:
a subscriber only sees events published while it is subscribed. Filtering
by case is left to each subscriber.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttachmentChangedEvent:
    """Attachments of a case were added or submitted."""
    case_id: int
    source: str


Handler = Callable[[AttachmentChangedEvent], None]


class Subscription:
    """Handle returned by UpdateBroker.subscribe."""

    def __init__(self, broker: "UpdateBroker", handler: Handler):
        self._broker = broker
        self.handler = handler
        self.active = True

    def release(self) -> None:
        """Stop delivery to this subscription. Safe to call more than once."""
        if not self.active:
            return
        self.active = False
        self._broker._remove(self)


class UpdateBroker:
    """Single-channel, multi-subscriber publish/subscribe broker.

    One broker is created per session and closed with it; there is no
    module-level instance.
    """

    def __init__(self):
        self._subscriptions: List[Subscription] = []
        self._closed = False

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, handler: Handler) -> Subscription:
        """Register a handler for every subsequently published event.

        Raises:
            RuntimeError: If the broker has been closed
        """
        if self._closed:
            raise RuntimeError("Cannot subscribe to a closed broker")
        subscription = Subscription(self, handler)
        self._subscriptions.append(subscription)
        return subscription

    def publish(self, event: AttachmentChangedEvent) -> int:
        """Deliver an event to every current subscriber, in order.

        A failing handler is logged and does not stop delivery to the
        others. Subscriptions released by an earlier handler during this
        delivery are skipped.

        Returns:
            Number of handlers the event was delivered to
        """
        if self._closed:
            logger.debug("Dropping %s published on a closed broker", event)
            return 0

        delivered = 0
        for subscription in list(self._subscriptions):
            if not subscription.active:
                continue
            delivered += 1
            try:
                subscription.handler(event)
            except Exception:
                logger.warning(
                    "Subscriber %r failed handling %s", subscription.handler, event,
                    exc_info=True
                )
        logger.debug("Delivered %s to %d subscriber(s)", event, delivered)
        return delivered

    def close(self) -> None:
        """Release every subscription. Later publishes are dropped."""
        for subscription in list(self._subscriptions):
            subscription.release()
        self._closed = True

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
