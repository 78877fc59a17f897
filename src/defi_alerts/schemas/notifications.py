"""Notification records and the in-flight event pushed to live sessions."""
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from defi_alerts.utils import utcnow


class Severity(str, Enum):
    """Notification severity levels."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class NotificationDraft(BaseModel):
    """What an evaluator wants to tell the user; not yet persisted."""

    title: str
    message: str
    severity: Severity = Severity.INFO
    metadata: dict[str, Any] = Field(default_factory=dict)


class NotificationRecord(BaseModel):
    """Persisted notification. Serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int | None = None
    user_id: int
    alert_id: int | None = None
    title: str
    message: str
    severity: Severity = Severity.INFO
    is_read: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)


class NotificationEvent(BaseModel):
    """Published on the notification bus once per newly stored notification."""

    user_id: int
    alert_id: int | None
    notification: NotificationRecord
    timestamp: datetime = Field(default_factory=utcnow)

    def to_payload(self) -> dict[str, Any]:
        """JSON body of the ``notification`` push event."""
        return {
            "type": "alert_notification",
            "userId": self.user_id,
            "alertId": self.alert_id,
            "notification": self.notification.model_dump(mode="json", by_alias=True),
            "timestamp": self.timestamp.isoformat(),
        }
