"""Database package: models and session management."""
from defi_alerts.db.models import AlertNotification, PortfolioAlert, Wallet

__all__ = ["AlertNotification", "PortfolioAlert", "Wallet"]
