"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime, time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from notifier.domain.entities import Channel, Priority


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    notification_id: str
    user_email: str
    notification_type: str
    message: str
    related_media_id: str | None = None
    notification_channel: str
    priority: str
    actor_email: str | None = None
    action_type: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None
    is_read: bool = False
    read_at: datetime | None = None
    read_channels: dict[str, bool] = Field(default_factory=dict)
    fallback: bool = False


class PaginationRead(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class NotificationPageRead(BaseModel):
    """A page of notifications and the source that produced it."""

    notifications: list[NotificationRead]
    pagination: PaginationRead
    source: str
    fallback_reason: str | None = None
    error: str | None = None


class UnreadCountRead(BaseModel):
    count: int


class MarkReadRequest(BaseModel):
    channel: Channel = Channel.IN_APP


class MarkReadResponse(BaseModel):
    notification_id: str
    user_email: str
    is_read: bool = True
    read_at: datetime
    fallback: bool = False


class MarkAllReadResponse(BaseModel):
    updated: int


class PreferenceRead(BaseModel):
    """Notification preferences of the authenticated user."""

    model_config = ConfigDict(from_attributes=True)

    email: str
    email_notifications: bool
    push_notifications: bool
    in_app_notifications: bool
    like_notifications: bool
    favorite_notifications: bool
    comment_notifications: bool
    reply_notifications: bool
    download_notifications: bool
    frequency_digest: bool
    quiet_hours_start: time | None = None
    quiet_hours_end: time | None = None
    min_interval_minutes: int
    max_daily_notifications: int


class PreferenceUpdate(BaseModel):
    """Partial preference update; fields that cannot be updated are ignored."""

    model_config = ConfigDict(extra="ignore")

    email_notifications: bool | None = None
    push_notifications: bool | None = None
    in_app_notifications: bool | None = None
    like_notifications: bool | None = None
    favorite_notifications: bool | None = None
    comment_notifications: bool | None = None
    reply_notifications: bool | None = None
    download_notifications: bool | None = None
    frequency_digest: bool | None = None
    quiet_hours_start: time | None = None
    quiet_hours_end: time | None = None
    min_interval_minutes: int | None = Field(default=None, ge=0)
    max_daily_notifications: int | None = Field(default=None, ge=0)

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class NotificationEventCreate(BaseModel):
    """User action performed by the authenticated actor on someone else's media."""

    recipient_email: str = Field(..., min_length=3)
    action_type: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    media_id: str | None = None
    media_title: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    priority: Priority = Priority.NORMAL


class NotificationEventResult(BaseModel):
    created: bool
    status: str
    reason: str | None = None
    detail: str | None = None
    degraded: list[str] = Field(default_factory=list)
    notification: NotificationRead | None = None


class SystemNotificationRequest(BaseModel):
    """Announcement broadcast to every connected user."""

    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    priority: Priority = Priority.NORMAL
    metadata: dict[str, Any] = Field(default_factory=dict)


class SystemNotificationResponse(BaseModel):
    delivered: int


class OnlineUsersRead(BaseModel):
    count: int
    users: list[str]


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
