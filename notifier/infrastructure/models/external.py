"""SQLAlchemy models for tables owned by the media and ticketing services.

The notification service only reads these tables: user display names, the
media a user uploaded, the likes/favorites and comments left on it, and the
ticket notifications written by the ticketing flow.
"""

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, func

from notifier.infrastructure.database import Base


class UserModel(Base):
    __tablename__ = "users"

    email = Column(String(255), primary_key=True)
    full_name = Column(String(255), nullable=True)


class MediaModel(Base):
    __tablename__ = "media"

    media_id = Column(String(50), primary_key=True)
    title = Column(String(255), nullable=False)
    uploader_email = Column(String(255), nullable=False, index=True)


class MediaInteractionModel(Base):
    __tablename__ = "media_interactions"

    interaction_id = Column(String(50), primary_key=True)
    media_id = Column(String(50), ForeignKey("media.media_id"), nullable=False, index=True)
    user_email = Column(String(255), nullable=False)
    interaction_type = Column(String(20), nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())


class MediaCommentModel(Base):
    __tablename__ = "media_comments"

    comment_id = Column(String(50), primary_key=True)
    media_id = Column(String(50), ForeignKey("media.media_id"), nullable=False, index=True)
    user_email = Column(String(255), nullable=False)
    comment_text = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())


class TicketNotificationModel(Base):
    __tablename__ = "ticket_notifications"

    notification_id = Column(String(50), primary_key=True)
    user_email = Column(String(255), nullable=False, index=True)
    notification_type = Column(String(50), nullable=False)
    message = Column(Text, nullable=False)
    ticket_id = Column(String(50), nullable=True)
    transaction_ref = Column(String(100), nullable=True)
    sent_at = Column(DateTime, nullable=False, server_default=func.now())


__all__ = [
    "MediaCommentModel",
    "MediaInteractionModel",
    "MediaModel",
    "TicketNotificationModel",
    "UserModel",
]
