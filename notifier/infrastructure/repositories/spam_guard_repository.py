"""Persistence helpers for duplicate-notification records."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session

from notifier.infrastructure.models import SpamGuardModel
from notifier.utils import ensure_app_naive_datetime, ensure_app_timezone


class SpamGuardRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def latest_since(
        self,
        *,
        recipient_email: str,
        actor_email: str | None,
        action_type: str,
        related_media_id: str | None,
        since: datetime,
    ) -> datetime | None:
        """Return the newest matching record created after ``since``."""

        query = (
            self.session.query(SpamGuardModel.created_at)
            .filter(SpamGuardModel.recipient_email == recipient_email)
            .filter(SpamGuardModel.actor_email == actor_email)
            .filter(SpamGuardModel.action_type == action_type)
            .filter(SpamGuardModel.related_media_id == related_media_id)
            .filter(SpamGuardModel.created_at > ensure_app_naive_datetime(since))
            .order_by(SpamGuardModel.created_at.desc())
        )
        row = query.first()
        return ensure_app_timezone(row[0]) if row else None

    def record(
        self,
        *,
        recipient_email: str,
        actor_email: str | None,
        action_type: str,
        related_media_id: str | None,
        created_at: datetime,
    ) -> None:
        self.session.add(
            SpamGuardModel(
                recipient_email=recipient_email,
                actor_email=actor_email,
                action_type=action_type,
                related_media_id=related_media_id,
                created_at=ensure_app_naive_datetime(created_at),
            )
        )
        self.session.commit()


__all__ = ["SpamGuardRepository"]
