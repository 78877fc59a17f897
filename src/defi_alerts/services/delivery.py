"""One live push connection receiving notification events."""
import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from enum import Enum

from defi_alerts import config
from defi_alerts.schemas import NotificationEvent
from defi_alerts.services.bus import NotificationBus
from defi_alerts.services.utils import HEARTBEAT_FRAME, format_sse
from defi_alerts.utils import utcnow

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Delivery session lifecycle."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class DeliverySession:
    """Subscribes to the bus and turns matching events into SSE frames.

    Frames go through a per-session queue, so each client sees events in
    publish order. A session bound to a user only gets that user's events;
    an anonymous session gets all of them. The queue is bounded; a client
    that stops reading until it fills up is closed.

    ``close()`` unsubscribes and cancels the heartbeat; ``frames()`` calls it
    on every exit path, including cancellation when the client goes away.
    """

    def __init__(
        self,
        bus: NotificationBus,
        user_id: int | None = None,
        *,
        heartbeat_seconds: float | None = None,
        max_queued: int | None = None,
    ) -> None:
        self._bus = bus
        self.user_id = user_id
        self._heartbeat_seconds = (
            heartbeat_seconds
            if heartbeat_seconds is not None
            else config.SSE_HEARTBEAT_SECONDS
        )
        self._queue: asyncio.Queue[str] = asyncio.Queue(
            maxsize=max_queued if max_queued is not None else config.SSE_QUEUE_MAXSIZE
        )
        self._unsubscribe: Callable[[], None] | None = None
        self._heartbeat: asyncio.Task | None = None
        self.state = SessionState.CONNECTING

    @property
    def label(self) -> str:
        return f"user: {self.user_id}" if self.user_id is not None else "anonymous"

    @property
    def heartbeat_task(self) -> asyncio.Task | None:
        return self._heartbeat

    def accepts(self, event: NotificationEvent) -> bool:
        return self.user_id is None or event.user_id == self.user_id

    def open(self) -> None:
        """Subscribe, start the heartbeat and queue the ``connected`` frame."""
        if self.state is not SessionState.CONNECTING:
            return
        self.state = SessionState.OPEN
        self._queue.put_nowait(
            format_sse(
                {
                    "type": "connected",
                    "message": "SSE stream established",
                    "timestamp": utcnow().isoformat(),
                }
            )
        )
        self._unsubscribe = self._bus.subscribe(self._on_event)
        self._heartbeat = asyncio.get_running_loop().create_task(
            self._beat(), name="sse-heartbeat"
        )
        logger.info("SSE client connected (%s)", self.label)

    def close(self) -> None:
        """Unsubscribe and cancel the heartbeat. Safe to call more than once."""
        if self.state is SessionState.CLOSED:
            return
        was_open = self.state is SessionState.OPEN
        self.state = SessionState.CLOSED
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._heartbeat is not None:
            self._heartbeat.cancel()
        if was_open:
            logger.info("SSE client disconnected (%s)", self.label)

    async def frames(self) -> AsyncIterator[str]:
        """Yield SSE frames until the session is closed or the consumer stops."""
        self.open()
        try:
            while self.state is SessionState.OPEN:
                yield await self._queue.get()
        finally:
            self.close()

    def _on_event(self, event: NotificationEvent) -> None:
        if self.state is not SessionState.OPEN or not self.accepts(event):
            return
        if self._push(format_sse(event.to_payload(), event="notification")):
            logger.info("SSE notification queued for user %s", event.user_id)

    async def _beat(self) -> None:
        while self.state is SessionState.OPEN:
            await asyncio.sleep(self._heartbeat_seconds)
            self._push(HEARTBEAT_FRAME)

    def _push(self, frame: str) -> bool:
        """Queue ``frame``; a client that lets the queue fill up is dropped."""
        try:
            self._queue.put_nowait(frame)
        except asyncio.QueueFull:
            logger.warning(
                "SSE client (%s) is not reading, dropping after %d queued frames",
                self.label,
                self._queue.maxsize,
            )
            self.close()
            return False
        return True
