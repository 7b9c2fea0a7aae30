"""Realtime notification helpers for the infrastructure layer."""

from .manager import ConnectionRegistry, SessionHandle
from .publisher import (
    NEW_NOTIFICATION_EVENT,
    SYSTEM_NOTIFICATION_EVENT,
    UNREAD_COUNT_EVENT,
    NotificationPublisher,
    normalize,
    serialize_notification,
    serialize_page,
)

__all__ = [
    "ConnectionRegistry",
    "NEW_NOTIFICATION_EVENT",
    "NotificationPublisher",
    "SYSTEM_NOTIFICATION_EVENT",
    "SessionHandle",
    "UNREAD_COUNT_EVENT",
    "normalize",
    "serialize_notification",
    "serialize_page",
]
