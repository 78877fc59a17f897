"""Protocols for the data store the alert pipeline reads from and writes to."""
from datetime import datetime
from typing import Protocol

from defi_alerts.db.models import PortfolioAlert
from defi_alerts.schemas import NotificationRecord


class AlertStore(Protocol):
    """Alert, wallet and notification persistence.

    Alert and wallet rows are owned by the user-facing API; the pipeline only
    reads them. Notifications are inserted by the recorder and flipped to read
    by the inbox routes.
    """

    async def list_active_alerts(self) -> list[PortfolioAlert]:
        """All alerts with ``is_active`` set, in a stable order."""
        ...

    async def find_active_wallet(self, user_id: int) -> str | None:
        """Address of the user's active wallet, or None."""
        ...

    async def list_notifications(
        self,
        user_id: int,
        *,
        since: datetime | None = None,
        include_read: bool = True,
        limit: int | None = None,
    ) -> list[NotificationRecord]:
        """User's notifications, newest first."""
        ...

    async def insert_notification(self, record: NotificationRecord) -> NotificationRecord:
        """Persist a notification and return it with its id."""
        ...

    async def mark_notification_read(
        self, user_id: int, notification_id: int
    ) -> NotificationRecord | None:
        """Flag one of the user's notifications as read; None if not theirs."""
        ...

    async def mark_all_notifications_read(self, user_id: int) -> int:
        """Flag every unread notification of the user; returns the count."""
        ...
