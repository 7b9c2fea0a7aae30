"""SQLAlchemy model for notification delivery attempts."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from notifier.infrastructure.database import Base


class DeliveryModel(Base):
    """Append-only audit row for one delivery attempt."""

    __tablename__ = "notification_deliveries"

    delivery_id = Column(String(50), primary_key=True)
    notification_id = Column(
        String(50),
        ForeignKey("notifications.notification_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    channel = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default="sent")
    attempt_count = Column(Integer, nullable=False, default=1)
    last_attempt_at = Column(DateTime, nullable=True)
    failure_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False)


__all__ = ["DeliveryModel"]
