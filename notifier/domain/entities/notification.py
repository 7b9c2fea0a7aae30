"""Domain entities describing user notifications."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

FALLBACK_ID_PREFIX = "fallback_"


class ActionType(str, Enum):
    """User actions that trigger a notification for the content owner."""

    LIKE = "LIKE"
    FAVORITE = "FAVORITE"
    COMMENT = "COMMENT"
    REPLY = "REPLY"
    DOWNLOAD = "DOWNLOAD"

    @classmethod
    def parse(cls, value: "ActionType | str") -> "ActionType | None":
        """Return the matching member or ``None`` for extension types."""

        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            return None


class Channel(str, Enum):
    """Delivery medium of a notification."""

    IN_APP = "in_app"
    EMAIL = "email"
    PUSH = "push"


class Priority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class NotificationSourceTag(str, Enum):
    """Origin of a page of notifications returned by the query pipeline."""

    PRIMARY = "primary"
    FALLBACK = "fallback"
    FALLBACK_EMPTY = "fallback_empty"
    FALLBACK_ERROR = "fallback_error"


@dataclass
class Notification:
    """Information message delivered to a specific user."""

    id: str
    user_email: str
    action_type: str
    message: str
    actor_email: str | None = None
    notification_type: str | None = None
    related_media_id: str | None = None
    channel: str = Channel.IN_APP.value
    priority: str = Priority.NORMAL.value
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    is_read: bool = False
    read_at: datetime | None = None
    read_channels: dict[str, bool] = field(default_factory=dict)
    fallback: bool = False

    def __post_init__(self) -> None:
        if self.notification_type is None:
            self.notification_type = self.action_type


@dataclass
class ReadReceipt:
    """Echo returned after a notification was marked as read.

    Receipts for synthesized notifications carry ``fallback=True`` and no stored
    notification, since nothing was written.
    """

    notification_id: str
    user_email: str
    read_at: datetime
    is_read: bool = True
    fallback: bool = False
    notification: Notification | None = None


def is_fallback_id(notification_id: str) -> bool:
    """Return ``True`` when ``notification_id`` was synthesized by the fallback path."""

    return str(notification_id).startswith(FALLBACK_ID_PREFIX)


@dataclass
class NotificationPage:
    """A paginated slice of notifications plus where it came from."""

    notifications: list[Notification]
    page: int
    limit: int
    total: int
    source: NotificationSourceTag = NotificationSourceTag.PRIMARY
    fallback_reason: str | None = None
    error: str | None = None

    @property
    def pages(self) -> int:
        if self.limit <= 0:
            return 0
        return math.ceil(self.total / self.limit)

    @classmethod
    def empty(
        cls,
        page: int,
        limit: int,
        *,
        source: NotificationSourceTag,
        error: str | None = None,
    ) -> "NotificationPage":
        return cls(
            notifications=[],
            page=page,
            limit=limit,
            total=0,
            source=source,
            error=error,
        )


__all__ = [
    "ActionType",
    "Channel",
    "FALLBACK_ID_PREFIX",
    "Notification",
    "NotificationPage",
    "NotificationSourceTag",
    "Priority",
    "ReadReceipt",
    "is_fallback_id",
]
