"""
FastAPI application factory.

Creates and configures the reminder sync server.
"""

import asyncio
import contextlib
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from remindsync import __version__
from remindsync.api.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from remindsync.api.middleware.error_handler import setup_exception_handlers
from remindsync.api.routes import devices_router, health_router, reminders_router
from remindsync.application.services import build_server_services
from remindsync.config import configure_logging, get_logger, get_settings
from remindsync.core.exceptions import RemindSyncError
from remindsync.core.services import SyncFanout

logger = get_logger(__name__)


async def sweep_stale_devices_forever(fanout: SyncFanout, interval_seconds: float) -> None:
    """Prune inactive device registrations once per interval."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await fanout.sweep_stale_devices()
        except RemindSyncError as e:
            logger.warning("stale_device_sweep_skipped", error=str(e))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan handler.

    Builds the server container on startup (unless one was injected) and
    runs the stale-device sweep until shutdown.
    """
    settings = get_settings()
    logger.info(
        "application_starting",
        host=settings.api.host,
        port=settings.api.port,
        environment=settings.environment,
    )

    owned = getattr(app.state, "services", None) is None
    if owned:
        try:
            app.state.services = await build_server_services(settings)
        except RemindSyncError as e:
            logger.error("database_init_failed", error=str(e))
            raise
    services = app.state.services

    sweeper = asyncio.ensure_future(
        sweep_stale_devices_forever(
            services.fanout, settings.sync.sweep_interval_hours * 3600
        )
    )
    logger.info("application_started")

    yield

    logger.info("application_stopping")
    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper
    if owned:
        await services.close()
        app.state.services = None
    logger.info("application_stopped")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()

    app = FastAPI(
        title="RemindSync API",
        description="Reminder documents, device registry and change fan-out",
        version=__version__,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )
    app.state.services = None

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)

    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    setup_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(reminders_router)
    app.include_router(devices_router)

    return app


def run(host: str | None = None, port: int | None = None) -> None:
    """Serve the API with uvicorn."""
    import uvicorn

    settings = get_settings()
    configure_logging(surface="server")
    uvicorn.run(
        "remindsync.api.main:create_app",
        factory=True,
        host=host or settings.api.host,
        port=port or settings.api.port,
        reload=settings.api.debug,
    )


if __name__ == "__main__":
    run()
