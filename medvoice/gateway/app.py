# MedVoice - Multi-Tenant Healthcare Voice AI Backend
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
FastAPI Gateway Application

Main entry point for the MedVoice API.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..core.async_base import Lifecycle
from ..core.exceptions import (
    MedVoiceError,
    ProviderError,
    ProviderNotConfiguredError,
    ResourceNotFoundError,
    TTSError,
    TTSNotConfiguredError,
    UnsupportedProviderError,
    UnsupportedTTSProviderError,
)
from ..core.settings import get_settings
from ..data.postgres import close_database, init_database
from ..observability import RequestContextMiddleware, configure_logging, init_metrics
from ..services.ai_service import close_ai_service
from ..services.tts_service import close_tts_service
from .ai_status_routes import router as ai_status_router
from .conversation_routes import router as conversation_router
from .health import router as health_router
from .voice_routes import router as voice_router

logger = logging.getLogger(__name__)


# ============================================================
# LIFECYCLE
# ============================================================

lifecycle = Lifecycle()


@lifecycle.on_startup
async def startup_observability():
    """Configure logging and the metrics registry."""
    settings = get_settings()
    configure_logging(
        level="DEBUG" if settings.debug else settings.observability.log_level,
        format="human" if settings.is_development else settings.observability.log_format,
    )
    init_metrics(
        namespace=settings.observability.metrics_namespace,
        app_version=settings.app_version,
        environment=settings.environment,
    )
    logger.info("Observability initialized")


@lifecycle.on_startup
async def startup_database():
    """Initialize database connection pool."""
    await init_database()


@lifecycle.on_shutdown
async def shutdown_database():
    """Close database connections."""
    await close_database()


@lifecycle.on_shutdown
async def shutdown_ai_service():
    """Close pooled LLM provider clients."""
    await close_ai_service()
    logger.info("AI providers closed")


@lifecycle.on_shutdown
async def shutdown_tts_service():
    """Close the TTS HTTP client."""
    await close_tts_service()
    logger.info("TTS client closed")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """FastAPI lifespan context manager."""
    await lifecycle.startup()
    yield
    await lifecycle.shutdown()


# ============================================================
# ERROR MAPPING
# ============================================================


def status_code_for(exc: MedVoiceError) -> int:
    """HTTP status for a domain error."""
    if isinstance(exc, ResourceNotFoundError):
        return 404
    if isinstance(
        exc,
        (
            ProviderNotConfiguredError,
            UnsupportedProviderError,
            TTSNotConfiguredError,
            UnsupportedTTSProviderError,
        ),
    ):
        return 400
    if isinstance(exc, (ProviderError, TTSError)):
        return 502
    return 500


def _error_response(request: Request, status_code: int, error, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "status_code": status_code,
            "request_id": getattr(request.state, "request_id", None),
            **extra,
        },
    )


# ============================================================
# APPLICATION
# ============================================================


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Multi-Tenant Healthcare Voice AI Backend",
        version=settings.app_version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    # --------------------------------------------------------
    # MIDDLEWARE
    # --------------------------------------------------------

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request ID propagation, per-request logging and metrics
    app.add_middleware(
        RequestContextMiddleware,
        excluded_paths=["/health", "/metrics", "/docs", "/redoc", "/openapi.json"],
    )

    # --------------------------------------------------------
    # EXCEPTION HANDLERS
    # --------------------------------------------------------

    @app.exception_handler(MedVoiceError)
    async def medvoice_error_handler(request: Request, exc: MedVoiceError):
        status_code = status_code_for(exc)
        if status_code >= 500:
            logger.error(f"{type(exc).__name__}: {exc.message}")
        else:
            logger.warning(f"{type(exc).__name__}: {exc.message}")
        return _error_response(request, status_code, exc.message, details=exc.details)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": exc.detail,
                "status_code": exc.status_code,
                "request_id": getattr(request.state, "request_id", None),
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception: {exc}")
        return _error_response(request, 500, "Internal server error")

    # --------------------------------------------------------
    # ROUTES
    # --------------------------------------------------------

    # Health check endpoints (no auth required)
    app.include_router(health_router, tags=["Health"])

    app.include_router(conversation_router, prefix="/api")
    app.include_router(ai_status_router, prefix="/api")
    app.include_router(voice_router, prefix="/api")

    return app


# Create app instance
app = create_app()


__all__ = ["app", "create_app", "lifecycle", "status_code_for"]
