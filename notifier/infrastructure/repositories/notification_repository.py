"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from notifier.domain.entities import Notification
from notifier.infrastructure.models import NotificationModel
from notifier.utils import ensure_app_naive_datetime, ensure_app_timezone


class NotificationRepository:
    """Provide storage operations for :class:`Notification` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list_recent(
        self,
        user_email: str,
        *,
        limit: int,
        unread_only: bool = False,
    ) -> Sequence[Notification]:
        """Return the ``limit`` newest notifications for ``user_email``."""

        query = self._user_query(user_email, unread_only=unread_only).order_by(
            NotificationModel.created_at.desc(),
            NotificationModel.notification_id.desc(),
        )
        return [self._to_entity(model) for model in query.limit(limit).all()]

    def count(self, user_email: str, *, unread_only: bool = False) -> int:
        return self._user_query(user_email, unread_only=unread_only).count()

    def count_created_between(
        self, user_email: str, *, start: datetime, end: datetime
    ) -> int:
        return (
            self.session.query(func.count(NotificationModel.notification_id))
            .filter(NotificationModel.user_email == user_email)
            .filter(NotificationModel.created_at >= ensure_app_naive_datetime(start))
            .filter(NotificationModel.created_at < ensure_app_naive_datetime(end))
            .scalar()
            or 0
        )

    def create(self, notification: Notification) -> Notification:
        model = NotificationModel()
        self._apply_entity_to_model(model, notification)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def mark_as_read(
        self,
        notification_id: str,
        *,
        user_email: str,
        channel: str,
        read_at: datetime,
    ) -> Notification | None:
        model = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.notification_id == notification_id)
            .filter(NotificationModel.user_email == user_email)
            .one_or_none()
        )
        if model is None:
            return None
        model.is_read = True
        model.read_at = ensure_app_naive_datetime(read_at)
        model.read_channels = {**(model.read_channels or {}), channel: True}
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def mark_all_as_read(self, user_email: str, *, read_at: datetime) -> int:
        updated = (
            self._user_query(user_email, unread_only=True).update(
                {
                    NotificationModel.is_read: True,
                    NotificationModel.read_at: ensure_app_naive_datetime(read_at),
                },
                synchronize_session=False,
            )
        )
        self.session.commit()
        return updated

    def _user_query(self, user_email: str, *, unread_only: bool):
        query = self.session.query(NotificationModel).filter(
            NotificationModel.user_email == user_email
        )
        if unread_only:
            query = query.filter(NotificationModel.is_read.is_(False))
        return query

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationModel, notification: Notification
    ) -> None:
        model.notification_id = notification.id
        model.user_email = notification.user_email
        model.notification_type = notification.notification_type or notification.action_type
        model.message = notification.message
        model.related_media_id = notification.related_media_id
        model.notification_channel = notification.channel
        model.priority = notification.priority
        model.actor_email = notification.actor_email
        model.action_type = notification.action_type
        model.notification_metadata = notification.metadata or {}
        model.created_at = ensure_app_naive_datetime(notification.created_at)
        model.is_read = notification.is_read
        model.read_at = ensure_app_naive_datetime(notification.read_at)
        model.read_channels = notification.read_channels or None

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.notification_id,
            user_email=model.user_email,
            action_type=model.action_type or model.notification_type,
            notification_type=model.notification_type,
            message=model.message,
            actor_email=model.actor_email,
            related_media_id=model.related_media_id,
            channel=model.notification_channel,
            priority=model.priority,
            metadata=dict(model.notification_metadata or {}),
            created_at=ensure_app_timezone(model.created_at),
            is_read=bool(model.is_read),
            read_at=ensure_app_timezone(model.read_at),
            read_channels=dict(model.read_channels or {}),
        )


__all__ = ["NotificationRepository"]
