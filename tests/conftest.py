"""Shared fixtures for the notification service tests."""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone

os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["APP_TIMEZONE"] = "UTC"
os.environ.pop("SENDGRID_API_KEY", None)
os.environ.pop("SENDGRID_SENDER", None)

import pytest
from sqlalchemy.orm import sessionmaker

from notifier.application.notifications import NotificationEngine
from notifier.config import reset_settings_cache
from notifier.domain.entities import Channel, Notification
from notifier.infrastructure.database import build_engine, initialize_database
from notifier.infrastructure.models import (
    MediaCommentModel,
    MediaInteractionModel,
    MediaModel,
    TicketNotificationModel,
    UserModel,
)
from notifier.infrastructure.repositories import NotificationRepository

NOON = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)


class FixedClock:
    """Clock returning a settable instant."""

    def __init__(self, now: datetime = NOON) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now = self.now + timedelta(**delta)

    def set_time(self, hour: int, minute: int = 0) -> None:
        self.now = self.now.replace(hour=hour, minute=minute)


class RecordingSink:
    def __init__(self, error: Exception | None = None) -> None:
        self.sent: list[Notification] = []
        self.error = error

    async def send(self, notification: Notification) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append(notification)


class RecordingRealtime:
    def __init__(self) -> None:
        self.delivered: list[Notification] = []

    async def deliver(self, notification: Notification) -> bool:
        self.delivered.append(notification)
        return True


class RecordingDeferral:
    def __init__(self) -> None:
        self.deferred: list[tuple[dict, str]] = []

    async def defer(self, payload: dict, *, reason: str) -> None:
        self.deferred.append((payload, reason))


class Seeder:
    """Insert rows owned by the media and ticketing services."""

    def __init__(self, session_factory) -> None:
        self._session_factory = session_factory

    def _add(self, *models) -> None:
        with self._session_factory() as session:
            session.add_all(models)
            session.commit()

    def user(self, email: str, full_name: str | None) -> None:
        self._add(UserModel(email=email, full_name=full_name))

    def media(self, media_id: str, owner: str, title: str) -> None:
        self._add(MediaModel(media_id=media_id, uploader_email=owner, title=title))

    def interaction(
        self, interaction_id: str, media_id: str, actor: str, kind: str, created_at: datetime
    ) -> None:
        self._add(
            MediaInteractionModel(
                interaction_id=interaction_id,
                media_id=media_id,
                user_email=actor,
                interaction_type=kind,
                created_at=created_at.replace(tzinfo=None),
            )
        )

    def comment(
        self, comment_id: str, media_id: str, actor: str, text: str, created_at: datetime
    ) -> None:
        self._add(
            MediaCommentModel(
                comment_id=comment_id,
                media_id=media_id,
                user_email=actor,
                comment_text=text,
                created_at=created_at.replace(tzinfo=None),
            )
        )

    def ticket(
        self, notification_id: str, email: str, message: str, sent_at: datetime, ref: str
    ) -> None:
        self._add(
            TicketNotificationModel(
                notification_id=notification_id,
                user_email=email,
                notification_type="TICKET_PURCHASED",
                message=message,
                ticket_id="ticket-1",
                transaction_ref=ref,
                sent_at=sent_at.replace(tzinfo=None),
            )
        )

    def notification(
        self,
        notification_id: str,
        email: str,
        created_at: datetime,
        *,
        is_read: bool = False,
        message: str = "stored notification",
    ) -> Notification:
        with self._session_factory() as session:
            return NotificationRepository(session).create(
                Notification(
                    id=notification_id,
                    user_email=email,
                    action_type="LIKE",
                    message=message,
                    actor_email="someone@example.com",
                    created_at=created_at,
                    is_read=is_read,
                )
            )


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def db_engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'notifications.db'}")
    initialize_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def seed(session_factory) -> Seeder:
    return Seeder(session_factory)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def sinks() -> dict[Channel, RecordingSink]:
    return {channel: RecordingSink() for channel in Channel}


@pytest.fixture
def realtime() -> RecordingRealtime:
    return RecordingRealtime()


@pytest.fixture
def deferral() -> RecordingDeferral:
    return RecordingDeferral()


@pytest.fixture
def engine(session_factory, sinks, realtime, deferral, clock) -> NotificationEngine:
    return NotificationEngine(
        session_factory,
        realtime=realtime,
        sinks=sinks,
        deferral=deferral,
        clock=clock,
    )
