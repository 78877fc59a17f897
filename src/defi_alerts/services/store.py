"""SQLModel-backed alert store.

Sessions are synchronous; each query runs in a worker thread so the event
loop driving the scheduler and live sessions never blocks on the database.
"""
import asyncio
from datetime import datetime

from sqlalchemy.engine import Engine
from sqlmodel import col, select

from defi_alerts.db.models import AlertNotification, PortfolioAlert, Wallet
from defi_alerts.db.sessions import get_session
from defi_alerts.schemas import NotificationRecord, Severity
from defi_alerts.utils import as_utc


def _to_record(row: AlertNotification) -> NotificationRecord:
    return NotificationRecord(
        id=row.id,
        user_id=row.user_id,
        alert_id=row.alert_id,
        title=row.title,
        message=row.message,
        severity=Severity(row.severity),
        is_read=row.is_read,
        metadata=row.details or {},
        created_at=as_utc(row.created_at),
    )


class SqlAlertStore:
    """AlertStore over a SQLAlchemy engine."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    async def list_active_alerts(self) -> list[PortfolioAlert]:
        return await asyncio.to_thread(self._list_active_alerts)

    async def find_active_wallet(self, user_id: int) -> str | None:
        return await asyncio.to_thread(self._find_active_wallet, user_id)

    async def list_notifications(
        self,
        user_id: int,
        *,
        since: datetime | None = None,
        include_read: bool = True,
        limit: int | None = None,
    ) -> list[NotificationRecord]:
        return await asyncio.to_thread(
            self._list_notifications, user_id, since, include_read, limit
        )

    async def insert_notification(self, record: NotificationRecord) -> NotificationRecord:
        return await asyncio.to_thread(self._insert_notification, record)

    async def mark_notification_read(
        self, user_id: int, notification_id: int
    ) -> NotificationRecord | None:
        return await asyncio.to_thread(self._mark_read, user_id, notification_id)

    async def mark_all_notifications_read(self, user_id: int) -> int:
        return await asyncio.to_thread(self._mark_all_read, user_id)

    def _list_active_alerts(self) -> list[PortfolioAlert]:
        with get_session(self._engine) as session:
            statement = (
                select(PortfolioAlert)
                .where(col(PortfolioAlert.is_active).is_(True))
                .order_by(col(PortfolioAlert.id))
            )
            return list(session.exec(statement).all())

    def _find_active_wallet(self, user_id: int) -> str | None:
        with get_session(self._engine) as session:
            statement = (
                select(Wallet)
                .where(Wallet.user_id == user_id, col(Wallet.is_active).is_(True))
                .order_by(col(Wallet.id))
            )
            wallet = session.exec(statement).first()
            return wallet.address if wallet else None

    def _list_notifications(
        self,
        user_id: int,
        since: datetime | None,
        include_read: bool,
        limit: int | None,
    ) -> list[NotificationRecord]:
        with get_session(self._engine) as session:
            statement = select(AlertNotification).where(
                AlertNotification.user_id == user_id
            )
            if since is not None:
                statement = statement.where(AlertNotification.created_at > as_utc(since))
            if not include_read:
                statement = statement.where(col(AlertNotification.is_read).is_(False))
            statement = statement.order_by(
                col(AlertNotification.created_at).desc(), col(AlertNotification.id).desc()
            )
            if limit is not None:
                statement = statement.limit(limit)
            return [_to_record(row) for row in session.exec(statement).all()]

    def _insert_notification(self, record: NotificationRecord) -> NotificationRecord:
        row = AlertNotification(
            user_id=record.user_id,
            alert_id=record.alert_id,
            title=record.title,
            message=record.message,
            severity=record.severity.value,
            is_read=record.is_read,
            details=record.metadata,
            created_at=as_utc(record.created_at),
        )
        with get_session(self._engine) as session:
            session.add(row)
            session.flush()
            session.refresh(row)
            return _to_record(row)

    def _mark_read(self, user_id: int, notification_id: int) -> NotificationRecord | None:
        with get_session(self._engine) as session:
            row = session.get(AlertNotification, notification_id)
            if row is None or row.user_id != user_id:
                return None
            row.is_read = True
            session.add(row)
            session.flush()
            return _to_record(row)

    def _mark_all_read(self, user_id: int) -> int:
        with get_session(self._engine) as session:
            statement = select(AlertNotification).where(
                AlertNotification.user_id == user_id,
                col(AlertNotification.is_read).is_(False),
            )
            rows = list(session.exec(statement).all())
            for row in rows:
                row.is_read = True
                session.add(row)
            return len(rows)
