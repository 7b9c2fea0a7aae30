"""Loading and updating per-user notification preferences."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable

from sqlalchemy.orm import Session

from notifier.domain.entities import (
    UPDATABLE_PREFERENCE_FIELDS,
    Outcome,
    Preference,
    default_preference,
)
from notifier.infrastructure.database import run_in_session
from notifier.infrastructure.repositories import PreferenceRepository
from notifier.utils import parse_time_of_day

logger = logging.getLogger(__name__)

_BOOLEAN_FIELDS = frozenset(
    {
        "email_notifications",
        "push_notifications",
        "in_app_notifications",
        "like_notifications",
        "favorite_notifications",
        "comment_notifications",
        "reply_notifications",
        "download_notifications",
        "frequency_digest",
    }
)
_TIME_FIELDS = frozenset({"quiet_hours_start", "quiet_hours_end"})
_INTEGER_FIELDS = frozenset({"min_interval_minutes", "max_daily_notifications"})


def clean_preference_changes(changes: Mapping[str, Any]) -> dict[str, Any]:
    """Keep the whitelisted fields of ``changes`` and coerce their values.

    Unknown fields are dropped silently. Raises ``ValueError`` for values that
    cannot be stored in the whitelisted fields.
    """

    cleaned: dict[str, Any] = {}
    for name, value in changes.items():
        if name not in UPDATABLE_PREFERENCE_FIELDS:
            continue
        if name in _BOOLEAN_FIELDS:
            if not isinstance(value, bool):
                raise ValueError(f"{name} must be a boolean")
            cleaned[name] = value
        elif name in _TIME_FIELDS:
            cleaned[name] = parse_time_of_day(value)
        elif name in _INTEGER_FIELDS:
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"{name} must be a non-negative integer")
            cleaned[name] = value
    return cleaned


class PreferenceStore:
    """Async access to the preference rows, creating defaults lazily."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    async def load(self, email: str) -> Outcome[Preference]:
        """Return the preferences of ``email``.

        When the store is unavailable the built-in defaults are returned with a
        degraded status so notification creation is never blocked by it.
        """

        try:
            preference = await run_in_session(
                self._session_factory,
                lambda session: PreferenceRepository(session).get_or_create(email),
            )
        except Exception as exc:
            logger.warning("Error getting user preferences for %s: %s", email, exc)
            return Outcome.degraded(default_preference(email), exc)
        return Outcome.ok(preference)

    async def update(self, email: str, changes: Mapping[str, Any]) -> Preference:
        """Apply the whitelisted ``changes`` and return the refreshed preferences."""

        cleaned = clean_preference_changes(changes)
        ignored = sorted(set(changes) - set(cleaned))
        if ignored:
            logger.debug("Ignoring non-updatable preference fields for %s: %s", email, ignored)
        return await run_in_session(
            self._session_factory,
            lambda session: PreferenceRepository(session).update(email, cleaned),
        )


__all__ = ["PreferenceStore", "clean_preference_changes"]
