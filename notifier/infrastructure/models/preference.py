"""SQLAlchemy model for user notification preferences."""

from datetime import time

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Time, func

from notifier.infrastructure.database import Base


class PreferenceModel(Base):
    """One row of notification settings per user email."""

    __tablename__ = "user_notification_preferences"

    email = Column(String(255), primary_key=True)
    email_notifications = Column(Boolean, nullable=False, default=True)
    push_notifications = Column(Boolean, nullable=False, default=True)
    in_app_notifications = Column(Boolean, nullable=False, default=True)
    like_notifications = Column(Boolean, nullable=False, default=True)
    favorite_notifications = Column(Boolean, nullable=False, default=True)
    comment_notifications = Column(Boolean, nullable=False, default=True)
    reply_notifications = Column(Boolean, nullable=False, default=True)
    download_notifications = Column(Boolean, nullable=False, default=True)
    frequency_digest = Column(Boolean, nullable=False, default=False)
    quiet_hours_start = Column(Time, nullable=True, default=time(22, 0))
    quiet_hours_end = Column(Time, nullable=True, default=time(8, 0))
    min_interval_minutes = Column(Integer, nullable=False, default=5)
    max_daily_notifications = Column(Integer, nullable=False, default=100)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=True, onupdate=func.now())


__all__ = ["PreferenceModel"]
