"""Unit tests for preference, quiet-hour and channel policies."""

from __future__ import annotations

from datetime import datetime, time, timezone

import pytest

from notifier.application.notifications import (
    channels_to_attempt,
    clean_preference_changes,
    is_quiet_hours,
    select_channel,
    should_send,
)
from notifier.domain.entities import ActionType, Channel, Notification, Preference


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 5, 10, hour, minute, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    ("start", "end", "hour", "minute", "expected"),
    [
        (time(22, 0), time(6, 0), 23, 0, True),
        (time(22, 0), time(6, 0), 5, 0, True),
        (time(22, 0), time(6, 0), 22, 0, True),
        (time(22, 0), time(6, 0), 6, 0, True),
        (time(22, 0), time(6, 0), 6, 1, False),
        (time(22, 0), time(6, 0), 12, 0, False),
        (time(9, 0), time(17, 0), 12, 0, True),
        (time(9, 0), time(17, 0), 8, 59, False),
        (None, time(6, 0), 23, 0, False),
    ],
)
def test_is_quiet_hours(start, end, hour, minute, expected):
    preference = Preference(email="user@example.com", quiet_hours_start=start, quiet_hours_end=end)

    assert is_quiet_hours(preference, _at(hour, minute)) is expected


def test_should_send_follows_action_toggles():
    preference = Preference(email="user@example.com", favorite_notifications=False)

    assert should_send(preference, ActionType.LIKE)
    assert not should_send(preference, "FAVORITE")
    assert not should_send(preference, "favorite")
    assert should_send(preference, "SHARE")


def test_select_channel():
    preference = Preference(email="user@example.com")
    assert select_channel(preference, "DOWNLOAD") is Channel.EMAIL
    assert select_channel(preference, "LIKE") is Channel.IN_APP

    email_only = Preference(
        email="user@example.com", in_app_notifications=False, push_notifications=False
    )
    assert select_channel(email_only, "LIKE") is Channel.EMAIL

    nothing = Preference(
        email="user@example.com",
        in_app_notifications=False,
        email_notifications=False,
        push_notifications=False,
    )
    assert select_channel(nothing, "LIKE") is Channel.IN_APP


def test_channels_to_attempt_includes_selected_channel():
    preference = Preference(
        email="user@example.com", email_notifications=False, push_notifications=False
    )
    notification = Notification(
        id="n1",
        user_email="user@example.com",
        action_type="LIKE",
        message="hello",
        channel=Channel.PUSH.value,
    )

    assert channels_to_attempt(notification, preference) == [Channel.IN_APP, Channel.PUSH]


def test_clean_preference_changes_filters_and_validates():
    cleaned = clean_preference_changes(
        {
            "like_notifications": False,
            "quiet_hours_start": "23:30",
            "min_interval_minutes": 10,
            "email": "attacker@example.com",
            "created_at": "now",
        }
    )

    assert cleaned == {
        "like_notifications": False,
        "quiet_hours_start": time(23, 30),
        "min_interval_minutes": 10,
    }


@pytest.mark.parametrize(
    "changes",
    [
        {"like_notifications": "yes"},
        {"quiet_hours_end": "25:00"},
        {"max_daily_notifications": -1},
        {"min_interval_minutes": True},
    ],
)
def test_clean_preference_changes_rejects_bad_values(changes):
    with pytest.raises(ValueError):
        clean_preference_changes(changes)
