"""Tests for the notification query pipeline and its fallback."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from notifier.application.notifications import FALLBACK_REASON
from notifier.domain.entities import NotificationSourceTag
from notifier.infrastructure.models import MediaModel

pytestmark = pytest.mark.anyio

OWNER = "owner@example.com"
BOB = "bob@example.com"
CAROL = "carol@example.com"
NOON = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)

LONG_COMMENT = "This is a really long comment that goes past the preview length limit"


class BrokenSource:
    async def fetch(self, email, page, limit, unread_only=False):
        raise RuntimeError("notifications table unavailable")

    async def unread_count(self, email):
        raise RuntimeError("notifications table unavailable")


@pytest.fixture
def activity(seed):
    seed.user(BOB, "Bob Smith")
    seed.media("media-1", OWNER, "Sunset")
    seed.interaction("i1", "media-1", BOB, "LIKE", NOON - timedelta(hours=3))
    seed.comment("c1", "media-1", BOB, LONG_COMMENT, NOON - timedelta(hours=2))
    seed.interaction("i2", "media-1", CAROL, "FAVORITE", NOON - timedelta(hours=1))
    seed.interaction("i3", "media-1", OWNER, "LIKE", NOON)
    return seed


async def test_fallback_pages_are_sorted_newest_first(engine, activity):
    first = await engine.get_user_notifications(OWNER, page=1, limit=2)

    assert first.source is NotificationSourceTag.FALLBACK
    assert first.fallback_reason == FALLBACK_REASON
    assert first.total == 3
    assert first.pages == 2
    assert [item.id for item in first.notifications] == [
        "fallback_interaction_i2",
        "fallback_comment_c1",
    ]

    second = await engine.get_user_notifications(OWNER, page=2, limit=2)
    assert [item.id for item in second.notifications] == ["fallback_interaction_i1"]


async def test_fallback_messages(engine, activity):
    page = await engine.get_user_notifications(OWNER, page=1, limit=10)
    by_id = {item.id: item for item in page.notifications}

    like = by_id["fallback_interaction_i1"]
    assert like.message == 'Bob Smith liked your content "Sunset"'
    assert like.notification_type == "LIKE"
    assert like.fallback is True
    assert like.is_read is False

    favorite = by_id["fallback_interaction_i2"]
    assert favorite.message == f'{CAROL} favorited your content "Sunset"'
    assert favorite.notification_type == "FAVORITE"

    comment = by_id["fallback_comment_c1"]
    assert comment.message == (
        f'Bob Smith commented on your content "Sunset": "{LONG_COMMENT[:50]}..."'
    )
    assert comment.metadata["commentText"] == LONG_COMMENT


async def test_fallback_empty_when_user_owns_no_media(engine):
    page = await engine.get_user_notifications("nobody@example.com")

    assert page.source is NotificationSourceTag.FALLBACK_EMPTY
    assert page.notifications == []
    assert page.total == 0


async def test_fallback_error_when_activity_is_unreadable(engine, db_engine):
    MediaModel.__table__.drop(bind=db_engine)

    page = await engine.get_user_notifications(OWNER)

    assert page.source is NotificationSourceTag.FALLBACK_ERROR
    assert page.notifications == []
    assert page.error


async def test_primary_failure_uses_fallback(engine, activity):
    engine.primary_source = BrokenSource()

    page = await engine.get_user_notifications(OWNER, page=1, limit=10)

    assert page.source is NotificationSourceTag.FALLBACK
    assert len(page.notifications) == 3


async def test_primary_merges_ticket_notifications(engine, seed):
    seed.notification("n1", OWNER, NOON - timedelta(minutes=30))
    seed.notification("n2", OWNER, NOON - timedelta(minutes=10), is_read=True)
    seed.ticket("t1", OWNER, "Your ticket is confirmed", NOON - timedelta(minutes=20), "TX-1")

    page = await engine.get_user_notifications(OWNER, page=1, limit=10)

    assert page.source is NotificationSourceTag.PRIMARY
    assert page.total == 3
    assert [item.id for item in page.notifications] == ["n2", "t1", "n1"]
    ticket = page.notifications[1]
    assert ticket.action_type == "TICKET"
    assert ticket.metadata == {"transaction_ref": "TX-1"}
    assert ticket.is_read is False

    unread = await engine.get_user_notifications(OWNER, unread_only=True)
    assert [item.id for item in unread.notifications] == ["t1", "n1"]


async def test_primary_pagination_across_sources(engine, seed):
    for index in range(3):
        seed.notification(f"n{index}", OWNER, NOON - timedelta(minutes=10 * index))
    seed.ticket("t1", OWNER, "Ticket", NOON - timedelta(minutes=15), "TX-1")

    second = await engine.get_user_notifications(OWNER, page=2, limit=2)

    assert [item.id for item in second.notifications] == ["t1", "n2"]
    assert second.pages == 2


async def test_mark_fallback_notification_as_read(engine, session_factory):
    receipt = await engine.mark_as_read("fallback_comment_c1", OWNER)

    assert receipt.fallback is True
    assert receipt.is_read is True
    assert receipt.notification_id == "fallback_comment_c1"
    assert receipt.notification is None


async def test_mark_as_read_records_channel(engine, seed):
    seed.notification("n1", OWNER, NOON)

    receipt = await engine.mark_as_read("n1", OWNER, "email")

    assert receipt.fallback is False
    assert receipt.notification.is_read is True
    assert receipt.notification.read_channels == {"email": True}
    assert await engine.mark_as_read("n1", "intruder@example.com") is None
    assert await engine.mark_as_read("missing", OWNER) is None


async def test_mark_all_as_read(engine, seed):
    seed.notification("n1", OWNER, NOON)
    seed.notification("n2", OWNER, NOON)
    seed.notification("n3", OWNER, NOON, is_read=True)

    assert await engine.mark_all_as_read(OWNER) == 2
    assert await engine.get_unread_count(OWNER) == 0


async def test_unread_count_includes_tickets(engine, seed):
    seed.notification("n1", OWNER, NOON)
    seed.notification("n2", OWNER, NOON, is_read=True)
    seed.ticket("t1", OWNER, "Ticket", NOON, "TX-1")

    assert await engine.get_unread_count(OWNER) == 2


async def test_unread_count_falls_back_to_activity(engine, activity):
    engine.primary_source = BrokenSource()

    outcome = await engine.count_unread(OWNER)

    assert outcome.value == 3
    assert outcome.is_degraded


async def test_unread_count_is_zero_when_everything_fails(engine):
    engine.primary_source = BrokenSource()
    engine.fallback_source = BrokenSource()

    assert await engine.get_unread_count(OWNER) == 0
