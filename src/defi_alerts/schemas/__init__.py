"""Pydantic schemas for API and runtime use. Not persisted to DB."""
from datetime import datetime

from pydantic import BaseModel

from defi_alerts.schemas.alerts import (AlertDefinition, AlertRule, AlertType,
                                        CustomRule, Direction,
                                        InvalidAlertRulesError,
                                        LiquidationRiskRule, PortfolioValueRule,
                                        PriceChangeRule, parse_alert)
from defi_alerts.schemas.notifications import (NotificationDraft,
                                               NotificationEvent,
                                               NotificationRecord, Severity)
from defi_alerts.schemas.portfolio import PortfolioBalance, PortfolioToken


class CycleSummary(BaseModel):
    """Outcome of one evaluation cycle."""

    trigger: str  # timer | warmup | manual
    started_at: datetime
    checked: int = 0
    triggered: int = 0
    failed: int = 0
    skipped: int = 0
    duration_ms: float = 0.0


class SchedulerStatus(BaseModel):
    """Scheduler lifecycle snapshot for operators."""

    started: bool
    cycle_running: bool
    interval_seconds: float
    last_cycle: CycleSummary | None = None


__all__ = [
    "AlertDefinition",
    "AlertRule",
    "AlertType",
    "CustomRule",
    "CycleSummary",
    "Direction",
    "InvalidAlertRulesError",
    "LiquidationRiskRule",
    "NotificationDraft",
    "NotificationEvent",
    "NotificationRecord",
    "PortfolioBalance",
    "PortfolioToken",
    "PortfolioValueRule",
    "PriceChangeRule",
    "SchedulerStatus",
    "Severity",
    "parse_alert",
]
