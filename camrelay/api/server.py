"""FastAPI application factory for the camera relay service."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from camrelay import __version__
from camrelay.api.routes import health, streams, system
from camrelay.config import Settings, get_settings
from camrelay.relay.client import RelayClient
from camrelay.streams.registry import StreamRegistry
from camrelay.telemetry.sampler import TelemetrySampler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    settings: Settings = app.state.settings

    logger.info("Relay mediator starting...")
    logger.info(f"Relay API: {settings.relay.api_url}")
    if settings.relay.uses_default_credentials:
        logger.warning(
            "Relay API is using the default admin/admin credentials; "
            "set RELAY_USERNAME and RELAY_PASSWORD"
        )

    yield

    logger.info("Relay mediator shutting down...")
    await app.state.registry.relay.close()
    logger.info("Relay mediator stopped")


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies as 400 with an error message."""
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


def create_app(
    settings: Optional[Settings] = None,
    relay: Optional[RelayClient] = None,
    sampler: Optional[TelemetrySampler] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Service settings (uses global if not provided)
        relay: Relay client (built from settings if not provided)
        sampler: Telemetry sampler (built from settings if not provided)

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()

    if relay is None:
        relay = RelayClient(
            base_url=settings.relay.api_url,
            username=settings.relay.username,
            password=settings.relay.password,
            timeout_seconds=settings.relay.timeout_seconds,
        )
    if sampler is None:
        sampler = TelemetrySampler(
            disk_path=settings.telemetry.disk_path,
            disk_method=settings.telemetry.disk_method,
            df_timeout_seconds=settings.telemetry.df_timeout_seconds,
        )

    app = FastAPI(
        title=settings.service_name,
        description=(
            "Registers IP-camera RTSP sources with an external media relay "
            "and reports host telemetry."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.registry = StreamRegistry(relay)
    app.state.sampler = sampler

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(streams.router, prefix="/api/streams", tags=["Streams"])
    app.include_router(system.router, prefix="/api", tags=["System"])

    return app


# Create default app instance for uvicorn
app = create_app()
