"""Notification engine composing the creation and query pipelines."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Any, Callable, Protocol

from sqlalchemy.orm import Session

from notifier.domain.entities import (
    ActionType,
    Channel,
    CreationResult,
    Notification,
    NotificationPage,
    Outcome,
    Preference,
    Priority,
    ReadReceipt,
    SkipReason,
    is_fallback_id,
)
from notifier.infrastructure.database import run_in_session
from notifier.infrastructure.repositories import ActivityRepository, NotificationRepository
from notifier.utils import now_in_app_timezone, start_of_day

from .delivery import ChannelDispatcher, DeliverySink, DeliveryTracker, build_default_sinks
from .policies import SpamGuard, is_quiet_hours, select_channel, should_send
from .preferences import PreferenceStore
from .sources import FallbackSynthesizer, NotificationSource, PrimaryNotificationSource

logger = logging.getLogger(__name__)


class RealtimeDelivery(Protocol):
    """Pushes a freshly created notification to its recipient's live session."""

    async def deliver(self, notification: Notification) -> bool: ...


class DeferralSink(Protocol):
    async def defer(self, payload: dict[str, Any], *, reason: str) -> None: ...


class LoggingDeferralSink:
    """Log notifications held back by quiet hours.

    Nothing is scheduled for redelivery: a deferred notification is dropped
    once it has been logged.
    """

    async def defer(self, payload: dict[str, Any], *, reason: str) -> None:
        logger.info("Notification queued for later delivery (%s): %s", reason, payload)


class NotificationEngine:
    """Decide, persist and deliver notifications for user-action events.

    Policy rejections (self-notification, disabled action type, spam guard,
    daily limit, quiet hours) are reported through :class:`CreationResult` and
    never raised. Preference, spam and daily-count lookups fail open.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        realtime: RealtimeDelivery | None = None,
        sinks: Mapping[Channel, DeliverySink] | None = None,
        deferral: DeferralSink | None = None,
        clock: Callable[[], datetime] | None = None,
        primary_source: NotificationSource | None = None,
        fallback_source: NotificationSource | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock or now_in_app_timezone
        self.realtime = realtime
        self.preferences = PreferenceStore(session_factory)
        self.spam_guard = SpamGuard(session_factory)
        self.delivery_tracker = DeliveryTracker(session_factory)
        self.dispatcher = ChannelDispatcher(
            self.delivery_tracker,
            build_default_sinks() if sinks is None else sinks,
            self._clock,
        )
        self.deferral = deferral or LoggingDeferralSink()
        self.primary_source = primary_source or PrimaryNotificationSource(session_factory)
        self.fallback_source = fallback_source or FallbackSynthesizer(session_factory)

    def now(self) -> datetime:
        return self._clock()

    # ------------------------------------------------------------------
    # Creation pipeline
    # ------------------------------------------------------------------
    async def create(
        self,
        *,
        recipient_email: str,
        actor_email: str | None,
        action_type: ActionType | str,
        media_id: str | None = None,
        media_title: str | None = None,
        message: str,
        metadata: Mapping[str, Any] | None = None,
        priority: Priority | str = Priority.NORMAL,
    ) -> CreationResult:
        """Run the creation pipeline and report what happened."""

        action = action_type.value if isinstance(action_type, ActionType) else str(action_type)
        priority_value = priority.value if isinstance(priority, Priority) else str(priority)
        result = CreationResult()

        if recipient_email == actor_email:
            result.reason = SkipReason.SELF_NOTIFICATION
            return result

        loaded = await self.preferences.load(recipient_email)
        if loaded.is_degraded:
            result.degraded.append("preferences")
        preference = loaded.value

        if not should_send(preference, action):
            logger.info("%s notifications disabled for %s", action, recipient_email)
            result.reason = SkipReason.ACTION_DISABLED
            return result

        now = self.now()
        spam = await self.spam_guard.check(
            recipient_email=recipient_email,
            actor_email=actor_email,
            action_type=action,
            related_media_id=media_id,
            min_interval_minutes=preference.min_interval_minutes,
            now=now,
        )
        if spam.is_degraded:
            result.degraded.append("spam_guard")
        if not spam.value.allowed:
            logger.info("Notification blocked by spam prevention: %s", spam.value.reason)
            result.reason = SkipReason.SPAM_BLOCKED
            result.detail = spam.value.reason
            return result

        daily = await self._daily_count(recipient_email, now)
        if daily.is_degraded:
            result.degraded.append("daily_count")
        if daily.value >= preference.max_daily_notifications:
            logger.info("Daily notification limit reached for %s", recipient_email)
            result.reason = SkipReason.DAILY_LIMIT
            result.detail = f"{daily.value} >= {preference.max_daily_notifications}"
            return result

        if is_quiet_hours(preference, now):
            payload = {
                "recipient_email": recipient_email,
                "actor_email": actor_email,
                "action_type": action,
                "media_id": media_id,
                "media_title": media_title,
                "message": message,
                "metadata": dict(metadata or {}),
                "priority": priority_value,
            }
            await self.deferral.defer(payload, reason="quiet_hours")
            result.reason = SkipReason.QUIET_HOURS_DEFERRED
            result.deferred_payload = payload
            return result

        notification = Notification(
            id=str(uuid.uuid4()),
            user_email=recipient_email,
            action_type=action,
            message=message,
            actor_email=actor_email,
            related_media_id=media_id,
            channel=select_channel(preference, action).value,
            priority=priority_value,
            metadata={
                "mediaTitle": media_title,
                "actorName": await self._actor_name(actor_email),
                **dict(metadata or {}),
            },
            created_at=now,
            is_read=False,
        )
        try:
            notification = await run_in_session(
                self._session_factory,
                lambda session: NotificationRepository(session).create(notification),
            )
        except Exception:
            logger.exception("Error creating notification for %s", recipient_email)
            raise

        if not await self.spam_guard.record(
            recipient_email=recipient_email,
            actor_email=actor_email,
            action_type=action,
            related_media_id=media_id,
            created_at=now,
        ):
            result.degraded.append("spam_guard_record")

        await self.dispatcher.dispatch(notification, preference)
        await self._push_realtime(notification)

        result.notification = notification
        return result

    async def create_notification(self, **params: Any) -> Notification | None:
        """Create a notification; ``None`` when a policy declined it."""

        return (await self.create(**params)).notification

    async def _daily_count(self, email: str, now: datetime) -> Outcome[int]:
        start = start_of_day(now)
        end = start + timedelta(days=1)
        try:
            count = await run_in_session(
                self._session_factory,
                lambda session: NotificationRepository(session).count_created_between(
                    email, start=start, end=end
                ),
            )
        except Exception as exc:
            logger.warning("Error getting daily count for %s: %s", email, exc)
            return Outcome.degraded(0, exc)
        return Outcome.ok(count)

    async def _actor_name(self, actor_email: str | None) -> str | None:
        if not actor_email:
            return None
        try:
            name = await run_in_session(
                self._session_factory,
                lambda session: ActivityRepository(session).get_full_name(actor_email),
            )
        except Exception as exc:
            logger.warning("Error getting user name for %s: %s", actor_email, exc)
            return actor_email
        return name or actor_email

    async def _push_realtime(self, notification: Notification) -> bool:
        if self.realtime is None:
            return False
        try:
            return await self.realtime.deliver(notification)
        except Exception:
            logger.exception("Error emitting real-time notification %s", notification.id)
            return False

    # ------------------------------------------------------------------
    # Query pipeline
    # ------------------------------------------------------------------
    async def get_user_notifications(
        self,
        email: str,
        page: int = 1,
        limit: int = 20,
        unread_only: bool = False,
    ) -> NotificationPage:
        """Return a page from the primary source, or synthesized ones as a fallback."""

        page = max(page, 1)
        limit = max(limit, 1)
        try:
            result = await self.primary_source.fetch(email, page, limit, unread_only)
        except Exception as exc:
            logger.warning(
                "Error accessing notifications table for %s, using fallback: %s", email, exc
            )
            return await self.get_fallback_notifications(email, page, limit)

        if result.notifications:
            return result

        logger.info("No stored notifications for %s, using fallback", email)
        return await self.get_fallback_notifications(email, page, limit)

    async def get_fallback_notifications(
        self, email: str, page: int = 1, limit: int = 20
    ) -> NotificationPage:
        return await self.fallback_source.fetch(email, max(page, 1), max(limit, 1))

    async def count_unread(self, email: str) -> Outcome[int]:
        try:
            return Outcome.ok(await self.primary_source.unread_count(email))
        except Exception as exc:
            logger.warning("Error getting unread count for %s: %s", email, exc)
            primary_error = exc

        try:
            count = await self.fallback_source.unread_count(email)
        except Exception as exc:
            logger.error("Error getting fallback unread count for %s: %s", email, exc)
            return Outcome.degraded(0, exc)
        return Outcome.degraded(count, primary_error)

    async def get_unread_count(self, email: str) -> int:
        return (await self.count_unread(email)).value

    # ------------------------------------------------------------------
    # Read state
    # ------------------------------------------------------------------
    async def mark_as_read(
        self, notification_id: str, email: str, channel: Channel | str = Channel.IN_APP
    ) -> ReadReceipt | None:
        """Mark one notification as read.

        Synthesized notifications have nothing stored, so they get a successful
        echo without touching storage. ``None`` means no such notification for
        ``email``.
        """

        channel_value = channel.value if isinstance(channel, Channel) else str(channel)
        read_at = self.now()
        if is_fallback_id(notification_id):
            logger.debug("Fallback notification %s marked as read without storage", notification_id)
            return ReadReceipt(
                notification_id=notification_id,
                user_email=email,
                read_at=read_at,
                fallback=True,
            )

        notification = await run_in_session(
            self._session_factory,
            lambda session: NotificationRepository(session).mark_as_read(
                notification_id, user_email=email, channel=channel_value, read_at=read_at
            ),
        )
        if notification is None:
            return None
        return ReadReceipt(
            notification_id=notification.id,
            user_email=email,
            read_at=notification.read_at or read_at,
            notification=notification,
        )

    async def mark_all_as_read(self, email: str) -> int:
        read_at = self.now()
        return await run_in_session(
            self._session_factory,
            lambda session: NotificationRepository(session).mark_all_as_read(
                email, read_at=read_at
            ),
        )

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------
    async def get_user_preferences(self, email: str) -> Preference:
        return (await self.preferences.load(email)).value

    async def update_user_preferences(
        self, email: str, changes: Mapping[str, Any]
    ) -> Preference:
        return await self.preferences.update(email, changes)


__all__ = [
    "DeferralSink",
    "LoggingDeferralSink",
    "NotificationEngine",
    "RealtimeDelivery",
]
