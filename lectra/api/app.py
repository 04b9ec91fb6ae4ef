"""
FastAPI application factory.

``create_app()`` assembles the application with CORS, rate limiting, error
handlers, routers, and the health endpoint. The module-level ``app`` instance
allows ``uvicorn lectra.api.app:app --reload``.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from lectra.api.middleware.error_handler import register_error_handlers
from lectra.api.middleware.rate_limit import RateLimitMiddleware
from lectra.api.routes import transcription
from lectra.core.config import Settings, get_settings
from lectra.core.models import HealthResponse
from lectra.services.recognition import BaseRecognizer, create_recognizer
from lectra.services.storage.database import StoreClient, init_store, teardown_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown lifecycle.

    Startup: build the StoreClient unless one was injected (tests).
    Shutdown: dispose the store if this lifespan created it.
    """
    owned = app.state.store is None
    if owned:
        app.state.store = await init_store(app.state.settings)
        logger.info("Store initialized (%s)", app.state.settings.storage_provider)
    yield
    if owned:
        await teardown_store(app.state.store)
        app.state.store = None


def create_app(
    settings: Settings | None = None,
    store: StoreClient | None = None,
    recognizer: BaseRecognizer | None = None,
) -> FastAPI:
    """Build and return a fully configured FastAPI application.

    Args:
        settings: Optional settings override (defaults to ``get_settings()``).
        store: Pre-built StoreClient; when given, the lifespan neither
            creates nor disposes it.
        recognizer: Recognition provider override.

    Returns:
        FastAPI: The configured application, ready for ``uvicorn``.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Lectra",
        description="Voice-note transcription with searchable, editable history.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.recognizer = recognizer or create_recognizer(
        settings.recognizer_provider, settings=settings
    )

    # -- Rate limiting (/api/ only) --
    app.add_middleware(
        RateLimitMiddleware,
        limit=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )

    # -- CORS (outermost, so 429 responses carry CORS headers) --
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -- Error handlers --
    register_error_handlers(app)

    # -- Health check (root-level, not under /api) --
    @app.get("/health", response_model=HealthResponse, tags=["system"])
    async def health() -> HealthResponse:
        return HealthResponse(
            message="Lectra backend server is running",
            timestamp=datetime.now(UTC),
        )

    # -- REST routes --
    app.include_router(transcription.router, prefix="/api")

    # -- Locally stored audio --
    if settings.storage_provider == "local":
        app.mount(
            "/audio",
            StaticFiles(directory=settings.audio_storage_dir, check_dir=False),
            name="audio",
        )

    return app


app = create_app()
