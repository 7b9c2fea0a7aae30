"""SQLAlchemy model for persisted notifications."""

from sqlalchemy import JSON, Boolean, Column, DateTime, Index, String, Text

from notifier.infrastructure.database import Base


class NotificationModel(Base):
    """Database representation for user notifications."""

    __tablename__ = "notifications"
    __table_args__ = (
        Index("idx_notifications_user_unread", "user_email", "is_read"),
        Index("idx_notifications_created_at", "created_at"),
    )

    notification_id = Column(String(50), primary_key=True)
    user_email = Column(String(255), nullable=False, index=True)
    notification_type = Column(String(50), nullable=False)
    message = Column(Text, nullable=False)
    related_media_id = Column(String(50), nullable=True)
    notification_channel = Column(String(20), nullable=False, default="in_app")
    priority = Column(String(10), nullable=False, default="normal")
    actor_email = Column(String(255), nullable=True)
    action_type = Column(String(50), nullable=True, index=True)
    notification_metadata = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(), nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime(), nullable=True)
    read_channels = Column(JSON, nullable=True)


__all__ = ["NotificationModel"]
