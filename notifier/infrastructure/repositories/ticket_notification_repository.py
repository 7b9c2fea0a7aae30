"""Read access to notifications written by the ticketing flow."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from notifier.domain.entities import Channel, Notification, Priority
from notifier.infrastructure.models import TicketNotificationModel
from notifier.utils import ensure_app_timezone

TICKET_ACTION_TYPE = "TICKET"


class TicketNotificationRepository:
    """Expose ticket notifications with the same shape as engine notifications.

    Ticket notifications carry no read state, so they are always reported as
    unread.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def list_recent(self, user_email: str, *, limit: int) -> Sequence[Notification]:
        query = (
            self.session.query(TicketNotificationModel)
            .filter(TicketNotificationModel.user_email == user_email)
            .order_by(TicketNotificationModel.sent_at.desc())
            .limit(limit)
        )
        return [self._to_entity(model) for model in query.all()]

    def count(self, user_email: str) -> int:
        return (
            self.session.query(TicketNotificationModel)
            .filter(TicketNotificationModel.user_email == user_email)
            .count()
        )

    @staticmethod
    def _to_entity(model: TicketNotificationModel) -> Notification:
        return Notification(
            id=model.notification_id,
            user_email=model.user_email,
            action_type=TICKET_ACTION_TYPE,
            notification_type=model.notification_type,
            message=model.message,
            related_media_id=model.ticket_id,
            channel=Channel.IN_APP.value,
            priority=Priority.NORMAL.value,
            metadata={"transaction_ref": model.transaction_ref},
            created_at=ensure_app_timezone(model.sent_at),
            is_read=False,
        )


__all__ = ["TICKET_ACTION_TYPE", "TicketNotificationRepository"]
