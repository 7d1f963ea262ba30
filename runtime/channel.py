import logging
from typing import Callable, List

log = logging.getLogger("falcone.session")

class Subscription:
    """Handle returned by ResetChannel.subscribe; unsubscribe on teardown."""

    def __init__(self, channel: "ResetChannel", callback: Callable[[], None]):
        self._channel = channel
        self._callback = callback
        self.closed = False

    def unsubscribe(self):
        if self.closed:
            return
        self._channel._remove(self._callback)
        self.closed = True

class ResetChannel:
    """In-process pub/sub signal telling every subscribed session to reset."""

    def __init__(self):
        self._subscribers: List[Callable[[], None]] = []

    def subscribe(self, callback: Callable[[], None]) -> Subscription:
        self._subscribers.append(callback)
        return Subscription(self, callback)

    def _remove(self, callback: Callable[[], None]):
        try:
            self._subscribers.remove(callback)
        except ValueError:
            pass

    def publish(self) -> int:
        """Deliver a reset to every subscriber; returns how many received it."""
        subscribers = list(self._subscribers)
        for cb in subscribers:
            cb()
        log.debug(f"Reset published to {len(subscribers)} subscriber(s)")
        return len(subscribers)

    def __len__(self) -> int:
        return len(self._subscribers)
