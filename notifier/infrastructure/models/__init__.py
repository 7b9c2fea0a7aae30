"""ORM models used by the application infrastructure."""

from .delivery import DeliveryModel
from .external import (
    MediaCommentModel,
    MediaInteractionModel,
    MediaModel,
    TicketNotificationModel,
    UserModel,
)
from .notification import NotificationModel
from .preference import PreferenceModel
from .spam_guard import SpamGuardModel

__all__ = [
    "DeliveryModel",
    "MediaCommentModel",
    "MediaInteractionModel",
    "MediaModel",
    "NotificationModel",
    "PreferenceModel",
    "SpamGuardModel",
    "TicketNotificationModel",
    "UserModel",
]
