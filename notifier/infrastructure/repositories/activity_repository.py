"""Read access to media ownership, interactions and comments."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from notifier.domain.entities import CommentActivity, InteractionActivity
from notifier.infrastructure.models import (
    MediaCommentModel,
    MediaInteractionModel,
    MediaModel,
    UserModel,
)
from notifier.utils import ensure_app_timezone


class ActivityRepository:
    """Query the activity other users left on the media owned by a user."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def owned_media_ids(self, owner_email: str) -> list[str]:
        rows = (
            self.session.query(MediaModel.media_id)
            .filter(MediaModel.uploader_email == owner_email)
            .all()
        )
        return [row[0] for row in rows]

    def list_interactions(
        self, media_ids: Sequence[str], *, exclude_email: str, limit: int
    ) -> list[InteractionActivity]:
        """Return the ``limit`` newest interactions on ``media_ids``."""

        if not media_ids:
            return []
        query = (
            self.session.query(
                MediaInteractionModel, MediaModel.title, UserModel.full_name
            )
            .join(MediaModel, MediaInteractionModel.media_id == MediaModel.media_id)
            .outerjoin(UserModel, MediaInteractionModel.user_email == UserModel.email)
            .filter(MediaInteractionModel.media_id.in_(list(media_ids)))
            .filter(MediaInteractionModel.user_email != exclude_email)
            .order_by(MediaInteractionModel.created_at.desc())
            .limit(limit)
        )
        return [
            InteractionActivity(
                interaction_id=str(model.interaction_id),
                interaction_type=model.interaction_type,
                media_id=model.media_id,
                media_title=title,
                actor_email=model.user_email,
                actor_name=full_name,
                created_at=ensure_app_timezone(model.created_at),
            )
            for model, title, full_name in query.all()
        ]

    def list_comments(
        self, media_ids: Sequence[str], *, exclude_email: str, limit: int
    ) -> list[CommentActivity]:
        """Return the ``limit`` newest comments on ``media_ids``."""

        if not media_ids:
            return []
        query = (
            self.session.query(MediaCommentModel, MediaModel.title, UserModel.full_name)
            .join(MediaModel, MediaCommentModel.media_id == MediaModel.media_id)
            .outerjoin(UserModel, MediaCommentModel.user_email == UserModel.email)
            .filter(MediaCommentModel.media_id.in_(list(media_ids)))
            .filter(MediaCommentModel.user_email != exclude_email)
            .order_by(MediaCommentModel.created_at.desc())
            .limit(limit)
        )
        return [
            CommentActivity(
                comment_id=str(model.comment_id),
                comment_text=model.comment_text,
                media_id=model.media_id,
                media_title=title,
                actor_email=model.user_email,
                actor_name=full_name,
                created_at=ensure_app_timezone(model.created_at),
            )
            for model, title, full_name in query.all()
        ]

    def count_interactions(self, media_ids: Sequence[str], *, exclude_email: str) -> int:
        if not media_ids:
            return 0
        return (
            self.session.query(MediaInteractionModel)
            .filter(MediaInteractionModel.media_id.in_(list(media_ids)))
            .filter(MediaInteractionModel.user_email != exclude_email)
            .count()
        )

    def count_comments(self, media_ids: Sequence[str], *, exclude_email: str) -> int:
        if not media_ids:
            return 0
        return (
            self.session.query(MediaCommentModel)
            .filter(MediaCommentModel.media_id.in_(list(media_ids)))
            .filter(MediaCommentModel.user_email != exclude_email)
            .count()
        )

    def get_full_name(self, email: str) -> str | None:
        row = (
            self.session.query(UserModel.full_name)
            .filter(UserModel.email == email)
            .first()
        )
        return row[0] if row else None


__all__ = ["ActivityRepository"]
