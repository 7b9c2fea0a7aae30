"""Notification use cases: policies, delivery, sources and the engine."""

from .delivery import (
    ChannelDispatcher,
    DeliverySink,
    DeliveryTracker,
    EmailDeliverySink,
    LoggingDeliverySink,
    build_default_sinks,
    channels_to_attempt,
)
from .engine import DeferralSink, LoggingDeferralSink, NotificationEngine, RealtimeDelivery
from .policies import (
    SpamDecision,
    SpamGuard,
    enabled_channels,
    is_quiet_hours,
    select_channel,
    should_send,
)
from .preferences import PreferenceStore, clean_preference_changes
from .sources import (
    FALLBACK_REASON,
    FallbackSynthesizer,
    NotificationSource,
    PrimaryNotificationSource,
    comment_to_notification,
    interaction_to_notification,
    merge_newest_first,
)

__all__ = [
    "ChannelDispatcher",
    "DeferralSink",
    "DeliverySink",
    "DeliveryTracker",
    "EmailDeliverySink",
    "FALLBACK_REASON",
    "FallbackSynthesizer",
    "LoggingDeferralSink",
    "LoggingDeliverySink",
    "NotificationEngine",
    "NotificationSource",
    "PreferenceStore",
    "PrimaryNotificationSource",
    "RealtimeDelivery",
    "SpamDecision",
    "SpamGuard",
    "build_default_sinks",
    "channels_to_attempt",
    "clean_preference_changes",
    "comment_to_notification",
    "enabled_channels",
    "interaction_to_notification",
    "is_quiet_hours",
    "merge_newest_first",
    "select_channel",
    "should_send",
]
