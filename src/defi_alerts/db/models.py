"""Database models for the alert pipeline.

Alerts and wallets are owned by the user-facing API; the scheduler only reads
them. Notifications are written by the recorder and flipped to read by the
inbox routes.
"""
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

from defi_alerts.utils import utcnow


def _timestamp(*, index: bool = False) -> Column:
    """Timezone-aware timestamp column; each table needs its own Column object."""
    return Column(DateTime(timezone=True), nullable=False, index=index)


class Wallet(SQLModel, table=True):
    """A user's wallet; at most one per user is flagged active."""

    __tablename__ = "wallets"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    address: str = Field(max_length=42)
    label: str = Field(default="", max_length=50)
    is_active: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, sa_column=_timestamp())


class PortfolioAlert(SQLModel, table=True):
    """User-authored alert definition. ``rules`` is ``{"type", "conditions"}``."""

    __tablename__ = "portfolio_alerts"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    name: str = Field(default="", max_length=100)
    alert_type: str = Field(max_length=50)
    rules: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))
    is_active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_column=_timestamp())
    updated_at: datetime = Field(default_factory=utcnow, sa_column=_timestamp())


class AlertNotification(SQLModel, table=True):
    """Notification produced by a triggered alert."""

    __tablename__ = "alert_notifications"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    alert_id: int | None = Field(default=None, foreign_key="portfolio_alerts.id", index=True)
    title: str = Field(max_length=200)
    message: str
    severity: str = Field(default="info", max_length=20)
    is_read: bool = Field(default=False)
    # "metadata" is reserved on declarative classes; keep the column name.
    details: dict[str, Any] = Field(default_factory=dict, sa_column=Column("metadata", JSON))
    created_at: datetime = Field(default_factory=utcnow, sa_column=_timestamp(index=True))
