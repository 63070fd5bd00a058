"""
events/main.py -- FastAPI application for the calendar events service.

Run with:  python main.py events --port 8082
           uvicorn asgi:events_app --port 8082
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from core.config import get_settings
from core.http import install_error_handlers
from core.log import configure_logging, get_logger
from events.routes import router
from events.service import EventService
from events.store import EventStore

logger = get_logger("events")

RPC_PREFIX = "/rpc/v1/events"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logger.info("events service starting up")
    store = EventStore(settings.events_db_url, timeout=settings.db_timeout, logger=get_logger("events.store"))
    app.state.event_service = EventService(store, logger=get_logger("events.service"))

    yield

    store.close()
    logger.info("events service shutdown complete")


def create_app(app_lifespan=lifespan) -> FastAPI:
    """Build the events RPC app. Tests pass their own lifespan to inject stores."""
    configure_logging(get_settings().log_level)
    app = FastAPI(
        title="Calendarium events service",
        version="1.0.0",
        lifespan=app_lifespan,
        docs_url=None,
        redoc_url=None,
    )
    install_error_handlers(app, logger)
    app.include_router(router, prefix=RPC_PREFIX, tags=["Events RPC"])
    return app


app = create_app()
