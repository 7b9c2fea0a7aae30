"""Policies deciding whether and how a notification is delivered."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Callable

from sqlalchemy.orm import Session

from notifier.domain.entities import ActionType, Channel, Outcome, Preference
from notifier.infrastructure.database import run_in_session
from notifier.infrastructure.repositories import SpamGuardRepository
from notifier.utils import ensure_app_timezone, parse_time_of_day

logger = logging.getLogger(__name__)


def should_send(preference: Preference, action_type: ActionType | str) -> bool:
    """Return whether ``preference`` allows notifications for ``action_type``.

    Action types outside :class:`ActionType` are always allowed.
    """

    return preference.allows(action_type)


def _minutes_since_midnight(value: time) -> int:
    return value.hour * 60 + value.minute


def is_quiet_hours(preference: Preference, now: datetime) -> bool:
    """Return whether ``now`` falls inside the do-not-disturb window.

    Both bounds are inclusive. A window whose start is after its end wraps
    midnight (22:00-06:00 covers 23:00 and 05:00).
    """

    start = parse_time_of_day(preference.quiet_hours_start)
    end = parse_time_of_day(preference.quiet_hours_end)
    if start is None or end is None:
        return False

    local_now = ensure_app_timezone(now)
    current = local_now.hour * 60 + local_now.minute
    start_minutes = _minutes_since_midnight(start)
    end_minutes = _minutes_since_midnight(end)

    if start_minutes > end_minutes:
        return current >= start_minutes or current <= end_minutes
    return start_minutes <= current <= end_minutes


def enabled_channels(preference: Preference) -> list[Channel]:
    flags = (
        (Channel.IN_APP, preference.in_app_notifications),
        (Channel.EMAIL, preference.email_notifications),
        (Channel.PUSH, preference.push_notifications),
    )
    return [channel for channel, enabled in flags if enabled]


def select_channel(preference: Preference, action_type: ActionType | str) -> Channel:
    """Pick the primary channel of a notification; never returns "no channel"."""

    if ActionType.parse(action_type) is ActionType.DOWNLOAD and preference.email_notifications:
        return Channel.EMAIL
    channels = enabled_channels(preference)
    if Channel.IN_APP in channels:
        return Channel.IN_APP
    return channels[0] if channels else Channel.IN_APP


@dataclass(frozen=True)
class SpamDecision:
    allowed: bool
    reason: str | None = None


class SpamGuard:
    """Minimum-interval de-duplication of (recipient, actor, action, subject).

    The check and the later ``record`` call are not atomic; two concurrent
    creations for the same tuple may both be allowed.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    async def check(
        self,
        *,
        recipient_email: str,
        actor_email: str | None,
        action_type: str,
        related_media_id: str | None,
        min_interval_minutes: int,
        now: datetime,
    ) -> Outcome[SpamDecision]:
        """Return whether a new notification for the tuple may be created.

        Lookup failures allow the notification and report a degraded outcome.
        """

        if min_interval_minutes <= 0:
            return Outcome.ok(SpamDecision(allowed=True))

        since = now - timedelta(minutes=min_interval_minutes)
        try:
            last_created = await run_in_session(
                self._session_factory,
                lambda session: SpamGuardRepository(session).latest_since(
                    recipient_email=recipient_email,
                    actor_email=actor_email,
                    action_type=action_type,
                    related_media_id=related_media_id,
                    since=since,
                ),
            )
        except Exception as exc:
            logger.warning("Error checking spam prevention: %s", exc)
            return Outcome.degraded(SpamDecision(allowed=True), exc)

        if last_created is None:
            return Outcome.ok(SpamDecision(allowed=True))

        minutes_since_last = (now - last_created).total_seconds() / 60
        return Outcome.ok(
            SpamDecision(
                allowed=False,
                reason=(
                    "Too soon since last notification "
                    f"({minutes_since_last:.1f}m < {min_interval_minutes}m)"
                ),
            )
        )

    async def record(
        self,
        *,
        recipient_email: str,
        actor_email: str | None,
        action_type: str,
        related_media_id: str | None,
        created_at: datetime,
    ) -> bool:
        """Store a guard entry for the tuple; failures are logged and reported."""

        try:
            await run_in_session(
                self._session_factory,
                lambda session: SpamGuardRepository(session).record(
                    recipient_email=recipient_email,
                    actor_email=actor_email,
                    action_type=action_type,
                    related_media_id=related_media_id,
                    created_at=created_at,
                ),
            )
        except Exception as exc:
            logger.warning("Error recording spam prevention: %s", exc)
            return False
        return True


__all__ = [
    "SpamDecision",
    "SpamGuard",
    "enabled_channels",
    "is_quiet_hours",
    "select_channel",
    "should_send",
]
