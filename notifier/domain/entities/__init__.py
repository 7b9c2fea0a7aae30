"""Domain entities exposed by the application."""

from .activity import CommentActivity, InteractionActivity
from .delivery import DeliveryRecord, DeliveryStatus
from .notification import (
    FALLBACK_ID_PREFIX,
    ActionType,
    Channel,
    Notification,
    NotificationPage,
    NotificationSourceTag,
    Priority,
    ReadReceipt,
    is_fallback_id,
)
from .outcome import CreationResult, Outcome, OutcomeStatus, SkipReason
from .preference import (
    ACTION_PREFERENCE_FIELDS,
    UPDATABLE_PREFERENCE_FIELDS,
    Preference,
    default_preference,
)

__all__ = [
    "ACTION_PREFERENCE_FIELDS",
    "ActionType",
    "Channel",
    "CommentActivity",
    "CreationResult",
    "DeliveryRecord",
    "DeliveryStatus",
    "FALLBACK_ID_PREFIX",
    "InteractionActivity",
    "Notification",
    "NotificationPage",
    "NotificationSourceTag",
    "Outcome",
    "OutcomeStatus",
    "Preference",
    "Priority",
    "ReadReceipt",
    "SkipReason",
    "UPDATABLE_PREFERENCE_FIELDS",
    "default_preference",
    "is_fallback_id",
]
