from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import router
from app.live import router as live_router
from datastore.sql_store import ReadingStore, StartupError, build_store
from logging_config import configure_logging
from services.broadcaster import Broadcaster
from services.ingestion import IngestionService
from services.queries import QueryService
from settings import Settings, get_settings

logger = logging.getLogger(__name__)


def _build_lifespan(
    settings: Settings, store: Optional[ReadingStore]
) -> Callable[[FastAPI], AsyncContextManager[None]]:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        reading_store = store if store is not None else build_store(settings)
        # A StartupError escapes here, so the server never starts accepting traffic.
        try:
            await reading_store.ensure_schema()
        except StartupError:
            logger.critical("Failed to initialize", exc_info=True)
            await reading_store.dispose()
            raise

        broadcaster = Broadcaster()
        app.state.store = reading_store
        app.state.broadcaster = broadcaster
        app.state.ingestion = IngestionService(reading_store, broadcaster)
        app.state.queries = QueryService(reading_store, max_limit=settings.max_recent_limit)
        logger.info("Store ready", extra={"database": reading_store.url.database})
        try:
            yield
        finally:
            await reading_store.dispose()

    return lifespan


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ReadingStore] = None,
) -> FastAPI:
    configure_logging()
    settings = settings or get_settings()
    app = FastAPI(
        title="Sensor Feed",
        description="Stores sensor readings and streams new ones to live subscribers.",
        version="0.1.0",
        lifespan=_build_lifespan(settings, store),
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.include_router(router)
    app.include_router(live_router)
    return app


app = create_app()
