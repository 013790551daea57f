import inspect
import logging
from typing import Any, Awaitable, Callable, List, Union

log = logging.getLogger(__name__)

Listener = Callable[[Any], Union[None, Awaitable[None]]]


class Subscription:
    def __init__(self, channel: "EventChannel", callback: Listener):
        self._channel = channel
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        """Detach the listener; calling it again is a no-op."""
        if not self.active:
            return
        self.active = False
        self._channel._discard(self)


class EventChannel:
    """In-process publish/subscribe. Listeners run in subscription order.

    A failing listener is logged and skipped so the others still see the event.
    """

    def __init__(self, name: str = ""):
        self.name = name
        self._subscriptions: List[Subscription] = []

    def subscribe(self, callback: Listener) -> Subscription:
        subscription = Subscription(self, callback)
        self._subscriptions.append(subscription)
        return subscription

    async def publish(self, event) -> None:
        for subscription in list(self._subscriptions):
            if not subscription.active:
                continue
            try:
                result = subscription.callback(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                log.exception("[channel] listener failed on %s for %s", self.name, type(event).__name__)

    def close(self) -> None:
        for subscription in list(self._subscriptions):
            subscription.unsubscribe()

    def __len__(self) -> int:
        return len(self._subscriptions)

    def _discard(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
