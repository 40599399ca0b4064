import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from hotkey_tracker.api import data, health, ingest, sessions
from hotkey_tracker.core.config import Settings, settings as default_settings
from hotkey_tracker.core.exceptions import StoreFailure, TrackerError
from hotkey_tracker.core.limiter import limiter
from hotkey_tracker.core.logging_config import CorrelationIdMiddleware, init_application_logging
from hotkey_tracker.db.init_db import init_database
from hotkey_tracker.db.session import create_db_engine, create_session_factory
from hotkey_tracker.services.announcer import Announcer, create_announcer
from hotkey_tracker.services.export import ReadGateway
from hotkey_tracker.services.ingestion import TelemetryIngestionService
from hotkey_tracker.services.lifecycle import SessionLifecycleManager
from hotkey_tracker.services.session_store import SessionStore

logger = logging.getLogger("hotkey_tracker.main")


async def tracker_error_handler(request: Request, exc: TrackerError) -> JSONResponse:
    if isinstance(exc, StoreFailure):
        logger.error(f"Store failure on {request.url.path}: {exc}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request", "errors": jsonable_encoder(exc.errors())},
    )


def create_app(
    settings: Optional[Settings] = None,
    announcer: Optional[Announcer] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration; defaults to the environment-derived settings
        announcer: Announcement channel; built from settings when omitted
    """
    app_settings = settings or default_settings
    init_application_logging(app_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Open the store and services on startup, release them on shutdown"""
        logger.info(f"Starting {app_settings.app_name}")
        engine = create_db_engine(app_settings.database_url)
        init_database(engine)

        store = SessionStore(create_session_factory(engine))
        purged = store.purge_older_than(timedelta(days=app_settings.session_retention_days))
        logger.info(f"Purged {purged} sessions older than {app_settings.session_retention_days} days")

        session_announcer = announcer or create_announcer(app_settings)
        lifecycle = SessionLifecycleManager(store, session_announcer, app_settings.max_sessions)

        app.state.store = store
        app.state.lifecycle = lifecycle
        app.state.ingestion = TelemetryIngestionService(
            store,
            lifecycle,
            max_logs_per_session=app_settings.max_logs_per_session,
            max_clicks_per_session=app_settings.max_clicks_per_session,
        )
        app.state.gateway = ReadGateway(store, app_settings.display_timezone)

        yield

        logger.info(f"Shutting down {app_settings.app_name}")
        try:
            await session_announcer.close()
        finally:
            engine.dispose()

    app = FastAPI(
        title=app_settings.app_name,
        description="Session lifecycle and telemetry ingestion for hotkey monitoring",
        version=app_settings.version,
        lifespan=lifespan,
    )
    app.state.settings = app_settings

    # Attach limiter to app.state for access in route decorators
    limiter.enabled = app_settings.rate_limit_enabled
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(TrackerError, tracker_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    logger.info(
        "Rate limiting initialized with configuration: ingest=%s, read=%s, admin=%s",
        app_settings.rate_limit_ingest_endpoints,
        app_settings.rate_limit_read_endpoints,
        app_settings.rate_limit_admin_endpoints,
    )

    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(ingest.router)
    app.include_router(data.router)
    app.include_router(sessions.router)
    app.include_router(health.router)

    return app


app = create_app()
