"""Domain entity representing a delivery attempt."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class DeliveryStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"


@dataclass
class DeliveryRecord:
    """Audit entry for one attempt to deliver a notification through a channel."""

    id: str
    notification_id: str
    channel: str
    status: str
    attempt_count: int = 1
    last_attempt_at: datetime | None = None
    failure_reason: str | None = None
    created_at: datetime | None = None


__all__ = ["DeliveryRecord", "DeliveryStatus"]
