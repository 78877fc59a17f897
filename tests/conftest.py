"""Pytest configuration and shared fixtures."""
import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from defi_alerts.db.models import PortfolioAlert
from defi_alerts.providers.core import (PortfolioProviderABC,
                                        PortfolioProviderError)
from defi_alerts.schemas import (NotificationRecord, PortfolioBalance,
                                 PortfolioToken)
from defi_alerts.services import (AlertScheduler, NotificationBus,
                                  NotificationRecorder)


class FakeClock:
    """Callable clock the tests move by hand."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeAlertStore:
    """In-memory AlertStore."""

    def __init__(self) -> None:
        self.alerts: list[PortfolioAlert] = []
        self.wallets: dict[int, str] = {}
        self.notifications: list[NotificationRecord] = []
        self.fail_inserts = False
        self.list_active_error: Exception | None = None

    def add_alert(self, alert_id: int, user_id: int, alert_type, rules, *, is_active=True):
        row = PortfolioAlert(
            id=alert_id,
            user_id=user_id,
            name=f"alert {alert_id}",
            alert_type=alert_type,
            rules=rules,
            is_active=is_active,
        )
        self.alerts.append(row)
        return row

    async def list_active_alerts(self) -> list[PortfolioAlert]:
        if self.list_active_error is not None:
            raise self.list_active_error
        return [alert for alert in self.alerts if alert.is_active]

    async def find_active_wallet(self, user_id: int) -> str | None:
        return self.wallets.get(user_id)

    async def list_notifications(self, user_id, *, since=None, include_read=True, limit=None):
        rows = [
            n
            for n in self.notifications
            if n.user_id == user_id
            and (since is None or n.created_at > since)
            and (include_read or not n.is_read)
        ]
        rows.sort(key=lambda n: n.created_at, reverse=True)
        return rows[:limit] if limit is not None else rows

    async def insert_notification(self, record: NotificationRecord) -> NotificationRecord:
        if self.fail_inserts:
            raise RuntimeError("database unavailable")
        stored = record.model_copy(update={"id": len(self.notifications) + 1})
        self.notifications.append(stored)
        return stored

    async def mark_notification_read(self, user_id, notification_id):
        for index, record in enumerate(self.notifications):
            if record.id == notification_id and record.user_id == user_id:
                self.notifications[index] = record.model_copy(update={"is_read": True})
                return self.notifications[index]
        return None

    async def mark_all_notifications_read(self, user_id) -> int:
        count = 0
        for index, record in enumerate(self.notifications):
            if record.user_id == user_id and not record.is_read:
                self.notifications[index] = record.model_copy(update={"is_read": True})
                count += 1
        return count


class StubPortfolioProvider(PortfolioProviderABC):
    """Returns canned portfolios per address; values may be exceptions.

    ``gate`` (an asyncio.Event) makes every fetch wait until it is set.
    ``delay`` sleeps before answering.
    """

    def __init__(self) -> None:
        self.portfolios: dict[str, PortfolioBalance | Exception] = {}
        self.calls: list[str] = []
        self.delay: float = 0.0
        self.gate: asyncio.Event | None = None
        self.closed = False

    def set_tokens(self, address: str, **usd_by_symbol: float) -> None:
        self.portfolios[address] = PortfolioBalance(
            address=address,
            tokens=[PortfolioToken(symbol=s, usd=v) for s, v in usd_by_symbol.items()],
        )

    async def get_portfolio_balance(self, address: str) -> PortfolioBalance:
        self.calls.append(address)
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        result = self.portfolios.get(address)
        if result is None:
            raise PortfolioProviderError(f"unknown address {address}", status_code=404)
        if isinstance(result, Exception):
            raise result
        return result

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> FakeAlertStore:
    return FakeAlertStore()


@pytest.fixture
def provider() -> StubPortfolioProvider:
    return StubPortfolioProvider()


@pytest.fixture
def bus() -> NotificationBus:
    return NotificationBus()


@pytest.fixture
def published(bus):
    """Every event published on ``bus`` during the test."""
    events = []
    bus.subscribe(events.append)
    return events


@pytest.fixture
def recorder(store, bus, clock) -> NotificationRecorder:
    return NotificationRecorder(store, bus, dedup_window=timedelta(hours=1), clock=clock)


@pytest.fixture
def scheduler(store, provider, recorder) -> AlertScheduler:
    return AlertScheduler(
        store,
        provider,
        recorder,
        interval_seconds=300,
        warmup_delay_seconds=5,
        fetch_timeout_seconds=1,
    )


@pytest.fixture
def engine():
    """In-memory SQLite engine shared across threads."""
    db_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(db_engine)
    yield db_engine
    db_engine.dispose()
