"""Sources the query pipeline reads notifications from.

``PrimaryNotificationSource`` reads persisted notifications together with the
ticket notifications written by the ticketing flow. ``FallbackSynthesizer``
derives notification-shaped records from the likes, favorites and comments
left on the media a user owns; it is used when the primary source is empty or
unavailable.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from typing import Callable, Protocol

from sqlalchemy.orm import Session

from notifier.domain.entities import (
    FALLBACK_ID_PREFIX,
    Channel,
    CommentActivity,
    InteractionActivity,
    Notification,
    NotificationPage,
    NotificationSourceTag,
    Priority,
)
from notifier.infrastructure.database import run_in_session
from notifier.infrastructure.repositories import (
    ActivityRepository,
    NotificationRepository,
    TicketNotificationRepository,
)

logger = logging.getLogger(__name__)

FALLBACK_REASON = "Notifications table unavailable, displaying interactions and comments"
COMMENT_PREVIEW_LENGTH = 50

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


class NotificationSource(Protocol):
    async def fetch(
        self, email: str, page: int, limit: int, unread_only: bool = False
    ) -> NotificationPage: ...

    async def unread_count(self, email: str) -> int: ...


def _offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def merge_newest_first(
    groups: Iterable[Sequence[Notification]], *, offset: int, limit: int
) -> list[Notification]:
    """Merge already-fetched groups, newest first, and cut one page out of them."""

    merged = [item for group in groups for item in group]
    merged.sort(key=lambda item: item.created_at or _OLDEST, reverse=True)
    return merged[offset : offset + limit]


class PrimaryNotificationSource:
    """Persisted notifications unioned with ticket notifications."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    async def fetch(
        self, email: str, page: int, limit: int, unread_only: bool = False
    ) -> NotificationPage:
        offset = _offset(page, limit)

        def _query(session: Session) -> NotificationPage:
            notifications = NotificationRepository(session)
            tickets = TicketNotificationRepository(session)
            window = offset + limit
            items = merge_newest_first(
                (
                    notifications.list_recent(email, limit=window, unread_only=unread_only),
                    tickets.list_recent(email, limit=window),
                ),
                offset=offset,
                limit=limit,
            )
            total = notifications.count(email, unread_only=unread_only) + tickets.count(email)
            return NotificationPage(
                notifications=items,
                page=page,
                limit=limit,
                total=total,
                source=NotificationSourceTag.PRIMARY,
            )

        return await run_in_session(self._session_factory, _query)

    async def unread_count(self, email: str) -> int:
        def _count(session: Session) -> int:
            return NotificationRepository(session).count(
                email, unread_only=True
            ) + TicketNotificationRepository(session).count(email)

        return await run_in_session(self._session_factory, _count)


def interaction_to_notification(owner_email: str, activity: InteractionActivity) -> Notification:
    actor_name = activity.actor_name or activity.actor_email
    action_type = "LIKE" if activity.interaction_type.upper() == "LIKE" else "FAVORITE"
    return Notification(
        id=f"{FALLBACK_ID_PREFIX}interaction_{activity.interaction_id}",
        user_email=owner_email,
        action_type=activity.interaction_type,
        notification_type=action_type,
        message=(
            f"{actor_name} {activity.interaction_type.lower()}d your content "
            f'"{activity.media_title}"'
        ),
        actor_email=activity.actor_email,
        related_media_id=activity.media_id,
        channel=Channel.IN_APP.value,
        priority=Priority.NORMAL.value,
        metadata={
            "mediaTitle": activity.media_title,
            "actorName": actor_name,
            "fallback": True,
            "source": "media_interactions",
        },
        created_at=activity.created_at,
        is_read=False,
        fallback=True,
    )


def comment_to_notification(owner_email: str, activity: CommentActivity) -> Notification:
    actor_name = activity.actor_name or activity.actor_email
    preview = activity.comment_text
    if len(preview) > COMMENT_PREVIEW_LENGTH:
        preview = preview[:COMMENT_PREVIEW_LENGTH] + "..."
    return Notification(
        id=f"{FALLBACK_ID_PREFIX}comment_{activity.comment_id}",
        user_email=owner_email,
        action_type="COMMENT",
        message=(
            f'{actor_name} commented on your content "{activity.media_title}": "{preview}"'
        ),
        actor_email=activity.actor_email,
        related_media_id=activity.media_id,
        channel=Channel.IN_APP.value,
        priority=Priority.NORMAL.value,
        metadata={
            "mediaTitle": activity.media_title,
            "actorName": actor_name,
            "commentText": activity.comment_text,
            "fallback": True,
            "source": "media_comments",
        },
        created_at=activity.created_at,
        is_read=False,
        fallback=True,
    )


class FallbackSynthesizer:
    """Build notifications on demand from interaction and comment history.

    Synthesized notifications are never persisted and always unread.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    async def fetch(
        self, email: str, page: int, limit: int, unread_only: bool = False
    ) -> NotificationPage:
        try:
            return await run_in_session(
                self._session_factory,
                lambda session: self._synthesize(session, email, page, limit),
            )
        except Exception as exc:
            logger.error("Error getting fallback notifications for %s: %s", email, exc)
            return NotificationPage.empty(
                page, limit, source=NotificationSourceTag.FALLBACK_ERROR, error=str(exc)
            )

    async def unread_count(self, email: str) -> int:
        def _count(session: Session) -> int:
            activity = ActivityRepository(session)
            media_ids = activity.owned_media_ids(email)
            if not media_ids:
                return 0
            return activity.count_interactions(
                media_ids, exclude_email=email
            ) + activity.count_comments(media_ids, exclude_email=email)

        return await run_in_session(self._session_factory, _count)

    @staticmethod
    def _synthesize(session: Session, email: str, page: int, limit: int) -> NotificationPage:
        activity = ActivityRepository(session)
        media_ids = activity.owned_media_ids(email)
        if not media_ids:
            return NotificationPage.empty(
                page, limit, source=NotificationSourceTag.FALLBACK_EMPTY
            )

        offset = _offset(page, limit)
        window = offset + limit
        interactions = [
            interaction_to_notification(email, item)
            for item in activity.list_interactions(media_ids, exclude_email=email, limit=window)
        ]
        comments = [
            comment_to_notification(email, item)
            for item in activity.list_comments(media_ids, exclude_email=email, limit=window)
        ]
        total = activity.count_interactions(
            media_ids, exclude_email=email
        ) + activity.count_comments(media_ids, exclude_email=email)

        return NotificationPage(
            notifications=merge_newest_first((interactions, comments), offset=offset, limit=limit),
            page=page,
            limit=limit,
            total=total,
            source=NotificationSourceTag.FALLBACK,
            fallback_reason=FALLBACK_REASON,
        )


__all__ = [
    "FALLBACK_REASON",
    "FallbackSynthesizer",
    "NotificationSource",
    "PrimaryNotificationSource",
    "comment_to_notification",
    "interaction_to_notification",
    "merge_newest_first",
]
