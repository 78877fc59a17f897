"""Shared utilities for the alert pipeline."""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Normalize to aware UTC; naive values (e.g. read back from SQLite) are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_amount(value: float) -> str:
    """Render a user-entered amount without a trailing '.0' (3000.0 -> '3000')."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return str(value)
