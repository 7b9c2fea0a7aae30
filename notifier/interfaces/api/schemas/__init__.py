from .notification import (
    MarkAllReadResponse,
    MarkReadRequest,
    MarkReadResponse,
    NotificationEventCreate,
    NotificationEventResult,
    NotificationPageRead,
    NotificationRead,
    OnlineUsersRead,
    PaginationRead,
    PreferenceRead,
    PreferenceUpdate,
    SystemNotificationRequest,
    SystemNotificationResponse,
    UnreadCountRead,
)

__all__ = [
    "MarkAllReadResponse",
    "MarkReadRequest",
    "MarkReadResponse",
    "NotificationEventCreate",
    "NotificationEventResult",
    "NotificationPageRead",
    "NotificationRead",
    "OnlineUsersRead",
    "PaginationRead",
    "PreferenceRead",
    "PreferenceUpdate",
    "SystemNotificationRequest",
    "SystemNotificationResponse",
    "UnreadCountRead",
]
