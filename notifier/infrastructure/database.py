"""Database configuration and session management."""

from __future__ import annotations

from collections.abc import Callable
from functools import lru_cache
from typing import TypeVar

import anyio
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session

from notifier.config import get_settings

T = TypeVar("T")


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""


def build_engine(database_url: str) -> Engine:
    """Create an engine for ``database_url``.

    SQLite connections are shared with the worker threads that run repository
    calls, so the same-thread check is disabled for them.
    """

    connect_args: dict[str, object] = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Return the process-wide engine built from the configured URL."""

    return build_engine(get_settings().database_url)


def initialize_database(engine: Engine | None = None) -> None:
    """Ensure all ORM models have corresponding database tables."""

    from notifier.infrastructure import models  # noqa: F401  # ensure models are imported

    Base.metadata.create_all(bind=engine or get_engine(), checkfirst=True)


async def run_in_session(
    session_factory: Callable[[], Session], operation: Callable[[Session], T]
) -> T:
    """Run ``operation`` with a fresh session in a worker thread.

    The calling task is suspended until the store answers; the event loop keeps
    serving other tasks meanwhile.
    """

    def _call() -> T:
        with session_factory() as session:
            return operation(session)

    return await anyio.to_thread.run_sync(_call)


__all__ = [
    "Base",
    "build_engine",
    "get_engine",
    "initialize_database",
    "run_in_session",
]
