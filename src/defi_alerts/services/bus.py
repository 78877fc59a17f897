"""In-process publish/subscribe channel for newly created notifications."""
import logging
import threading
from collections.abc import Callable

from defi_alerts.schemas import NotificationEvent

logger = logging.getLogger(__name__)

NotificationHandler = Callable[[NotificationEvent], None]


class NotificationBus:
    """Fan-out of NotificationEvents to whoever is subscribed at publish time.

    Nothing is buffered or replayed. ``publish`` iterates a snapshot of the
    registry, so subscribing or unsubscribing from inside a handler (or from
    another thread) never disturbs an in-flight publish.
    """

    EVENT = "notification"

    def __init__(self) -> None:
        self._handlers: list[NotificationHandler] = []
        self._lock = threading.Lock()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._handlers)

    def subscribe(self, handler: NotificationHandler) -> Callable[[], None]:
        """Register ``handler``; returns a callable that unregisters it (idempotent)."""
        with self._lock:
            self._handlers.append(handler)
        removed = False

        def unsubscribe() -> None:
            nonlocal removed
            if not removed:
                removed = True
                self.unsubscribe(handler)

        return unsubscribe

    def unsubscribe(self, handler: NotificationHandler) -> bool:
        """Remove one registration of ``handler``. False if it was not registered."""
        with self._lock:
            try:
                self._handlers.remove(handler)
            except ValueError:
                return False
        return True

    def on(self, event: str, handler: NotificationHandler) -> None:
        """Emitter-style alias of subscribe for the ``notification`` event."""
        self._check_event(event)
        self.subscribe(handler)

    def off(self, event: str, handler: NotificationHandler) -> None:
        """Emitter-style alias of unsubscribe."""
        self._check_event(event)
        self.unsubscribe(handler)

    def publish(self, event: NotificationEvent) -> int:
        """Call every current handler once with ``event``; returns how many succeeded.

        A failing handler is logged and skipped.
        """
        with self._lock:
            handlers = tuple(self._handlers)
        delivered = 0
        for handler in handlers:
            try:
                handler(event)
            except Exception:  # pylint: disable=broad-except
                logger.exception(
                    "Notification handler failed for alert %s", event.alert_id
                )
                continue
            delivered += 1
        return delivered

    def _check_event(self, event: str) -> None:
        if event != self.EVENT:
            raise ValueError(f"Unknown event {event!r}; only {self.EVENT!r} is published")
