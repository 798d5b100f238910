from typing import Any, Callable, List

import structlog


class Subscription:
    """A handle whose `release()` undoes one connection. Releasing twice is a no-op."""

    def __init__(self, release: Callable[[], None]):
        self._release = release
        self.released = False

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        self._release()


class SubscriptionSet:
    """
    Collects signal handlers, file watches and listener registrations owned by
    one surface and releases them together, newest first.
    """

    def __init__(self, logger: Any = None):
        self.logger = logger or structlog.get_logger(__name__)
        self._subscriptions: List[Subscription] = []
        self.closed = False

    def __len__(self) -> int:
        return len([s for s in self._subscriptions if not s.released])

    def add(self, release: Callable[[], None]) -> Subscription:
        subscription = Subscription(release)
        if self.closed:
            subscription.release()
        else:
            self._subscriptions.append(subscription)
        return subscription

    def adopt(self, subscription: Subscription) -> Subscription:
        return self.add(subscription.release)

    def connect(self, obj: Any, signal: str, handler: Callable, *args) -> Subscription:
        """Connects a GObject signal and records the handler id for disconnection."""
        handler_id = obj.connect(signal, handler, *args)
        return self.add(lambda: obj.disconnect(handler_id))

    def release_all(self) -> None:
        self.closed = True
        while self._subscriptions:
            subscription = self._subscriptions.pop()
            try:
                subscription.release()
            except Exception as e:
                self.logger.error(f"Error releasing subscription: {e}", exc_info=True)
