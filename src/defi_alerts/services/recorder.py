"""Turns triggered verdicts into stored notifications and bus events."""
import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from defi_alerts import config
from defi_alerts.schemas import (AlertDefinition, NotificationDraft,
                                 NotificationEvent, NotificationRecord)
from defi_alerts.services.bus import NotificationBus
from defi_alerts.services.protocols import AlertStore
from defi_alerts.utils import utcnow

logger = logging.getLogger(__name__)


class NotificationRecorder:
    """Stores at most one notification per alert per dedup window, then publishes it."""

    def __init__(
        self,
        store: AlertStore,
        bus: NotificationBus,
        *,
        dedup_window: timedelta | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._bus = bus
        self._dedup_window = (
            dedup_window
            if dedup_window is not None
            else timedelta(minutes=config.NOTIFICATION_DEDUP_WINDOW_MINUTES)
        )
        self._clock = clock

    async def record(
        self, alert: AlertDefinition, draft: NotificationDraft
    ) -> NotificationRecord | None:
        """Persist and publish ``draft`` unless the alert already notified recently.

        Returns the stored record, or None when suppressed or on failure.
        Errors are logged, never raised.
        """
        try:
            if await self._notified_recently(alert):
                logger.debug(
                    "Skipping duplicate notification for alert %s (already triggered in last %s)",
                    alert.id,
                    self._dedup_window,
                )
                return None

            stored = await self._store.insert_notification(
                NotificationRecord(
                    user_id=alert.user_id,
                    alert_id=alert.id,
                    title=draft.title,
                    message=draft.message,
                    severity=draft.severity,
                    is_read=False,
                    metadata=draft.metadata,
                    created_at=self._clock(),
                )
            )
        except Exception:  # pylint: disable=broad-except
            logger.exception("Error creating notification for alert %s", alert.id)
            return None

        event = NotificationEvent(
            user_id=alert.user_id,
            alert_id=alert.id,
            notification=stored,
            timestamp=self._clock(),
        )
        delivered = self._bus.publish(event)
        logger.info(
            "Notification %s stored for user %s (alert %s), delivered to %d sessions",
            stored.id,
            alert.user_id,
            alert.id,
            delivered,
        )
        return stored

    async def _notified_recently(self, alert: AlertDefinition) -> bool:
        since = self._clock() - self._dedup_window
        recent = await self._store.list_notifications(alert.user_id, since=since)
        return any(record.alert_id == alert.id for record in recent)
