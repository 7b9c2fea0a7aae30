"""Channel dispatch and delivery tracking."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from datetime import datetime
from typing import Callable, Protocol

import anyio
from sqlalchemy.orm import Session

from notifier.domain.entities import (
    Channel,
    DeliveryRecord,
    DeliveryStatus,
    Notification,
    Preference,
)
from notifier.infrastructure.database import run_in_session
from notifier.infrastructure.email import is_email_configured, send_notification_email
from notifier.infrastructure.repositories import DeliveryRepository

logger = logging.getLogger(__name__)


class DeliverySink(Protocol):
    """Opaque provider integration for one channel; raises when delivery fails."""

    async def send(self, notification: Notification) -> None: ...


class LoggingDeliverySink:
    """Sink for channels without a provider integration; it only logs."""

    def __init__(self, channel: Channel) -> None:
        self.channel = channel

    async def send(self, notification: Notification) -> None:
        logger.info("%s notification sent: %s", self.channel.value, notification.id)


class EmailDeliverySink:
    """Deliver notifications by email through SendGrid."""

    async def send(self, notification: Notification) -> None:
        await anyio.to_thread.run_sync(send_notification_email, notification)
        logger.info("Email notification sent: %s", notification.id)


def build_default_sinks() -> dict[Channel, DeliverySink]:
    email_sink: DeliverySink
    if is_email_configured():
        email_sink = EmailDeliverySink()
    else:
        email_sink = LoggingDeliverySink(Channel.EMAIL)
    return {
        Channel.IN_APP: LoggingDeliverySink(Channel.IN_APP),
        Channel.EMAIL: email_sink,
        Channel.PUSH: LoggingDeliverySink(Channel.PUSH),
    }


class DeliveryTracker:
    """Append one audit record per delivery attempt."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    async def record(
        self,
        notification_id: str,
        channel: Channel,
        *,
        status: DeliveryStatus,
        attempted_at: datetime,
        failure_reason: str | None = None,
    ) -> DeliveryRecord | None:
        record = DeliveryRecord(
            id=str(uuid.uuid4()),
            notification_id=notification_id,
            channel=channel.value,
            status=status.value,
            attempt_count=1,
            last_attempt_at=attempted_at,
            failure_reason=failure_reason,
            created_at=attempted_at,
        )
        try:
            return await run_in_session(
                self._session_factory,
                lambda session: DeliveryRepository(session).create(record),
            )
        except Exception as exc:
            logger.error(
                "Error recording %s delivery for %s: %s", channel.value, notification_id, exc
            )
            return None

    async def list_for_notification(self, notification_id: str) -> list[DeliveryRecord]:
        return list(
            await run_in_session(
                self._session_factory,
                lambda session: DeliveryRepository(session).list_for_notification(
                    notification_id
                ),
            )
        )


def channels_to_attempt(notification: Notification, preference: Preference) -> list[Channel]:
    """In-app always; email and push when selected or enabled in ``preference``."""

    channels = [Channel.IN_APP]
    if notification.channel == Channel.EMAIL.value or preference.email_notifications:
        channels.append(Channel.EMAIL)
    if notification.channel == Channel.PUSH.value or preference.push_notifications:
        channels.append(Channel.PUSH)
    return channels


class ChannelDispatcher:
    """Send a persisted notification through every eligible channel.

    Sink failures are logged and recorded as failed deliveries; they are never
    retried and never propagate to the caller.
    """

    def __init__(
        self,
        tracker: DeliveryTracker,
        sinks: Mapping[Channel, DeliverySink],
        clock: Callable[[], datetime],
    ) -> None:
        self._tracker = tracker
        self._sinks = dict(sinks)
        self._clock = clock

    async def dispatch(
        self, notification: Notification, preference: Preference
    ) -> dict[Channel, DeliveryStatus]:
        results: dict[Channel, DeliveryStatus] = {}
        for channel in channels_to_attempt(notification, preference):
            sink = self._sinks.get(channel)
            if sink is None:
                continue
            failure_reason = None
            try:
                await sink.send(notification)
            except Exception as exc:
                logger.exception(
                    "Error sending %s notification %s", channel.value, notification.id
                )
                status = DeliveryStatus.FAILED
                failure_reason = str(exc) or exc.__class__.__name__
            else:
                status = DeliveryStatus.SENT
            await self._tracker.record(
                notification.id,
                channel,
                status=status,
                attempted_at=self._clock(),
                failure_reason=failure_reason,
            )
            results[channel] = status
        return results


__all__ = [
    "ChannelDispatcher",
    "DeliverySink",
    "DeliveryTracker",
    "EmailDeliverySink",
    "LoggingDeliverySink",
    "build_default_sinks",
    "channels_to_attempt",
]
