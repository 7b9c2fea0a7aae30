"""SQLAlchemy model for the duplicate-notification guard."""

from sqlalchemy import Column, DateTime, Index, Integer, String

from notifier.infrastructure.database import Base


class SpamGuardModel(Base):
    __tablename__ = "notification_spam_prevention"
    __table_args__ = (
        Index(
            "idx_spam_prevention_lookup",
            "recipient_email",
            "actor_email",
            "action_type",
            "related_media_id",
            "created_at",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    recipient_email = Column(String(255), nullable=False)
    actor_email = Column(String(255), nullable=True)
    action_type = Column(String(50), nullable=False)
    related_media_id = Column(String(50), nullable=True)
    created_at = Column(DateTime, nullable=False)


__all__ = ["SpamGuardModel"]
