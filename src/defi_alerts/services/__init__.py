"""Alert pipeline services: evaluation, recording, fan-out and delivery."""
from defi_alerts.services.bus import NotificationBus, NotificationHandler
from defi_alerts.services.delivery import DeliverySession, SessionState
from defi_alerts.services.evaluators import (AlertEvaluator,
                                             PortfolioValueEvaluator,
                                             PriceChangeEvaluator,
                                             UnsupportedEvaluator, Verdict,
                                             default_evaluators)
from defi_alerts.services.portfolio_service import PortfolioService
from defi_alerts.services.protocols import AlertStore
from defi_alerts.services.recorder import NotificationRecorder
from defi_alerts.services.scheduler import AlertScheduler
from defi_alerts.services.store import SqlAlertStore

__all__ = [
    "AlertEvaluator",
    "AlertScheduler",
    "AlertStore",
    "DeliverySession",
    "NotificationBus",
    "NotificationHandler",
    "NotificationRecorder",
    "PortfolioService",
    "PortfolioValueEvaluator",
    "PriceChangeEvaluator",
    "SessionState",
    "SqlAlertStore",
    "UnsupportedEvaluator",
    "Verdict",
    "default_evaluators",
]
