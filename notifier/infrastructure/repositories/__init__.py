"""Repository implementations for infrastructure layer."""

from .activity_repository import ActivityRepository
from .delivery_repository import DeliveryRepository
from .notification_repository import NotificationRepository
from .preference_repository import PreferenceRepository
from .spam_guard_repository import SpamGuardRepository
from .ticket_notification_repository import (
    TICKET_ACTION_TYPE,
    TicketNotificationRepository,
)

__all__ = [
    "ActivityRepository",
    "DeliveryRepository",
    "NotificationRepository",
    "PreferenceRepository",
    "SpamGuardRepository",
    "TICKET_ACTION_TYPE",
    "TicketNotificationRepository",
]
