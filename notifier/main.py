"""FastAPI application factory for the notification service."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from notifier.application.notifications import DeliverySink, NotificationEngine
from notifier.config import get_settings
from notifier.domain.entities import Channel
from notifier.infrastructure.database import get_engine, initialize_database
from notifier.infrastructure.notifications import ConnectionRegistry, NotificationPublisher
from notifier.interfaces.api.routes import register_routes

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def create_app(
    *,
    db_engine: Engine | None = None,
    sinks: Mapping[Channel, DeliverySink] | None = None,
    clock: Callable[[], datetime] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``db_engine``, ``sinks`` and ``clock`` default to the configured database,
    the provider sinks and the application-timezone clock.
    """

    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)
        bound_engine = db_engine or get_engine()
        initialize_database(bound_engine)

        registry = ConnectionRegistry()
        publisher = NotificationPublisher(registry)
        app.state.registry = registry
        app.state.publisher = publisher
        app.state.engine = NotificationEngine(
            sessionmaker(autocommit=False, autoflush=False, bind=bound_engine),
            realtime=publisher,
            sinks=sinks,
            clock=clock,
        )
        yield
        bound_engine.dispose()

    app = FastAPI(title="Notification Service", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_routes(app)
    return app
