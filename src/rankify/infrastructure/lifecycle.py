"""Application lifespan: builds and tears down the process-wide resources.

app.state after startup:
- settings        Settings (set by create_app)
- db              Database (engine + session factory)
- broker          NotificationBroker (realtime push channel)
- catalog_client  SpotifyCatalogClient (shared app token cache)
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI

from rankify.config import Settings
from rankify.infrastructure.integrations import SpotifyCatalogClient
from rankify.infrastructure.notifications import NotificationBroker
from rankify.infrastructure.observability import configure_logging
from rankify.infrastructure.persistence import Database

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings

    configure_logging(
        log_level=settings.observability.log_level,
        json_format=settings.observability.log_json_format,
        app_name=settings.app_name,
    )
    logger.info("Starting application: %s", settings.app_name)

    db = Database(settings)
    app.state.db = db
    if settings.database.create_tables_on_startup:
        await db.create_tables()
        logger.info("Database tables created")

    app.state.broker = NotificationBroker(
        queue_size=settings.notifications.subscriber_queue_size
    )

    # A client injected by create_app (tests) wins over the configured one
    if getattr(app.state, "catalog_client", None) is None:
        app.state.catalog_client = SpotifyCatalogClient(settings.spotify)
    if not settings.spotify.is_configured:
        logger.warning("Spotify credentials not configured; catalog endpoints will return 503")

    app.state.startup_time = datetime.now(UTC)
    try:
        yield
    finally:
        logger.info("Shutting down application")
        await app.state.catalog_client.close()
        await db.close()
