"""Utility helpers to push notifications to websocket subscribers."""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime
from typing import Any

from notifier.domain.entities import Notification, NotificationPage

from .manager import ConnectionRegistry

logger = logging.getLogger(__name__)

NEW_NOTIFICATION_EVENT = "new_notification"
UNREAD_COUNT_EVENT = "unread_count"
SYSTEM_NOTIFICATION_EVENT = "system_notification"


class NotificationPublisher:
    """Serialize notifications and deliver them through the registry."""

    def __init__(self, registry: ConnectionRegistry) -> None:
        self._registry = registry

    async def deliver(self, notification: Notification) -> bool:
        """Push ``notification`` to its recipient if they are online."""

        delivered = await self._registry.push_to_user(
            notification.user_email,
            NEW_NOTIFICATION_EVENT,
            serialize_notification(notification),
        )
        if delivered:
            logger.info("Real-time notification sent to %s", notification.user_email)
        else:
            logger.debug(
                "User %s not connected; real-time notification %s skipped",
                notification.user_email,
                notification.id,
            )
        return delivered

    async def send_unread_count(self, email: str, count: int) -> bool:
        return await self._registry.push_to_user(email, UNREAD_COUNT_EVENT, {"count": count})

    async def broadcast_system(self, payload: dict[str, Any]) -> int:
        return await self._registry.broadcast(SYSTEM_NOTIFICATION_EVENT, normalize(payload))


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the wire representation for ``notification``."""

    return {
        "notification_id": notification.id,
        "user_email": notification.user_email,
        "notification_type": notification.notification_type,
        "message": notification.message,
        "related_media_id": notification.related_media_id,
        "notification_channel": notification.channel,
        "priority": notification.priority,
        "actor_email": notification.actor_email,
        "action_type": notification.action_type,
        "metadata": normalize(dict(notification.metadata or {})),
        "created_at": _iso_or_none(notification.created_at),
        "is_read": notification.is_read,
        "read_at": _iso_or_none(notification.read_at),
        "read_channels": dict(notification.read_channels or {}),
        "fallback": notification.fallback,
    }


def serialize_page(page: NotificationPage) -> dict[str, Any]:
    """Return the wire representation for a page of notifications."""

    payload: dict[str, Any] = {
        "notifications": [serialize_notification(item) for item in page.notifications],
        "pagination": {
            "page": page.page,
            "limit": page.limit,
            "total": page.total,
            "pages": page.pages,
        },
        "source": page.source.value,
    }
    if page.fallback_reason:
        payload["fallback_reason"] = page.fallback_reason
    if page.error:
        payload["error"] = page.error
    return payload


def normalize(data: Any) -> Any:
    """Convert dataclasses and ``datetime`` values nested in ``data`` into JSON types."""

    if hasattr(data, "__dataclass_fields__"):
        data = asdict(data)
    if isinstance(data, dict):
        return {key: normalize(value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [normalize(item) for item in data]
    if hasattr(data, "isoformat"):
        return data.isoformat()
    return data


def _iso_or_none(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


__all__ = [
    "NEW_NOTIFICATION_EVENT",
    "NotificationPublisher",
    "SYSTEM_NOTIFICATION_EVENT",
    "UNREAD_COUNT_EVENT",
    "normalize",
    "serialize_notification",
    "serialize_page",
]
