"""Domain entity holding the notification settings of a user."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time
from typing import Final

from .notification import ActionType

UPDATABLE_PREFERENCE_FIELDS: Final[tuple[str, ...]] = (
    "email_notifications",
    "push_notifications",
    "in_app_notifications",
    "like_notifications",
    "favorite_notifications",
    "comment_notifications",
    "reply_notifications",
    "download_notifications",
    "frequency_digest",
    "quiet_hours_start",
    "quiet_hours_end",
    "min_interval_minutes",
    "max_daily_notifications",
)

ACTION_PREFERENCE_FIELDS: Final[dict[ActionType, str]] = {
    ActionType.LIKE: "like_notifications",
    ActionType.FAVORITE: "favorite_notifications",
    ActionType.COMMENT: "comment_notifications",
    ActionType.REPLY: "reply_notifications",
    ActionType.DOWNLOAD: "download_notifications",
}


@dataclass
class Preference:
    """Per-user notification preferences."""

    email: str
    email_notifications: bool = True
    push_notifications: bool = True
    in_app_notifications: bool = True
    like_notifications: bool = True
    favorite_notifications: bool = True
    comment_notifications: bool = True
    reply_notifications: bool = True
    download_notifications: bool = True
    frequency_digest: bool = False
    quiet_hours_start: time | None = field(default_factory=lambda: time(22, 0))
    quiet_hours_end: time | None = field(default_factory=lambda: time(8, 0))
    min_interval_minutes: int = 5
    max_daily_notifications: int = 100

    def allows(self, action_type: ActionType | str) -> bool:
        """Return whether notifications for ``action_type`` are enabled."""

        action = ActionType.parse(action_type)
        if action is None:
            return True
        return bool(getattr(self, ACTION_PREFERENCE_FIELDS[action]))


def default_preference(email: str) -> Preference:
    """Return the built-in preference set used when storage is unavailable."""

    return Preference(email=email)


__all__ = [
    "ACTION_PREFERENCE_FIELDS",
    "Preference",
    "UPDATABLE_PREFERENCE_FIELDS",
    "default_preference",
]
