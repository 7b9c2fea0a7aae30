"""Persistence helpers for delivery audit records."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from notifier.domain.entities import DeliveryRecord
from notifier.infrastructure.models import DeliveryModel
from notifier.utils import ensure_app_naive_datetime, ensure_app_timezone


class DeliveryRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, record: DeliveryRecord) -> DeliveryRecord:
        model = DeliveryModel(
            delivery_id=record.id,
            notification_id=record.notification_id,
            channel=record.channel,
            status=record.status,
            attempt_count=record.attempt_count,
            last_attempt_at=ensure_app_naive_datetime(record.last_attempt_at),
            failure_reason=record.failure_reason,
            created_at=ensure_app_naive_datetime(record.created_at),
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def list_for_notification(self, notification_id: str) -> Sequence[DeliveryRecord]:
        query = (
            self.session.query(DeliveryModel)
            .filter(DeliveryModel.notification_id == notification_id)
            .order_by(DeliveryModel.created_at.asc(), DeliveryModel.channel.asc())
        )
        return [self._to_entity(model) for model in query.all()]

    @staticmethod
    def _to_entity(model: DeliveryModel) -> DeliveryRecord:
        return DeliveryRecord(
            id=model.delivery_id,
            notification_id=model.notification_id,
            channel=model.channel,
            status=model.status,
            attempt_count=model.attempt_count,
            last_attempt_at=ensure_app_timezone(model.last_attempt_at),
            failure_reason=model.failure_reason,
            created_at=ensure_app_timezone(model.created_at),
        )


__all__ = ["DeliveryRepository"]
