"""
Inkwell Backend: FastAPI Application Factory
=============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers and routers;
       `lifespan` runs startup and shutdown.
Who:   Served by uvicorn (`uvicorn inkwell.main:app` or `python -m inkwell`).

Lifecycle:
    Startup:
    1. Initialize logging
    2. Log the effective configuration (token masked)
    3. Create the posts table if it is missing
    4. Register the base URL if none is configured

    Shutdown:
    1. Close the GitHub HTTP client
    2. Dispose the database engine

Error payloads:
    Every handled error is rendered as
        {"err": {"type": ..., "message": ..., "details": ..., "request_id": ...}}
    with a status code matching the error kind.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from inkwell import __version__
from inkwell.config import settings
from inkwell.database import create_tables_if_missing, dispose_engine
from inkwell.exceptions import (
    DeserializationError,
    InkwellError,
    MissingIdentifier,
    RemoteFetchError,
    StoreError,
    ValidationError,
)
from inkwell.middleware.logging import RequestLoggingMiddleware
from inkwell.middleware.request_id import HEADER, RequestIDMiddleware, current_request_id
from inkwell.routes import github, health, posts
from inkwell.services.base_url import base_url_service
from inkwell.services.github_service import github_service

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Manage application lifecycle: startup and shutdown procedures.

    Code before `yield` runs on startup, code after it on shutdown.
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("Inkwell Backend %s starting up...", __version__)
    logger.info("Configuration: %s", settings.describe())

    await create_tables_if_missing()

    try:
        base_url = await base_url_service.ensure_registered()
        logger.info("API base URL: %s", base_url)
    except OSError as e:
        # The API still works; only the persisted base URL is missing
        logger.error("Could not record the base URL in %s: %s", settings.env_file_path, e)

    logger.info("Listening on port %d", settings.port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Inkwell Backend shutting down...")
    await github_service.close()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def request_id_of(request: Request) -> str:
    """
    The request ID set by RequestIDMiddleware.

    The catch-all handler runs outside that middleware, after the ContextVar
    was reset, so the copy kept in `request.state` is used there.
    """
    return current_request_id() or getattr(request.state, "request_id", "")


def error_response(
    request: Request, status_code: int, code: str, message: str, details=None
) -> JSONResponse:
    """Build the `{"err": {...}}` envelope shared by every error."""
    rid = request_id_of(request)
    return JSONResponse(
        status_code=status_code,
        headers={HEADER: rid} if rid else None,
        content=jsonable_encoder({
            "err": {
                "type": code,
                "message": message,
                "details": details,
                "request_id": rid,
            }
        }),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes.

    Handler hierarchy:
        ValidationError         → 400 Bad Request
        MissingIdentifier       → 400 Bad Request
        RequestValidationError  → 422 Unprocessable Entity (body schema)
        StoreError (all kinds)  → 500 Internal Server Error
        DeserializationError    → 500 Internal Server Error
        RemoteFetchError        → 502 Bad Gateway
        InkwellError (base)     → 500 Internal Server Error
        Exception (fallback)    → 500 Internal Server Error
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("Validation error: %s", exc.message)
        return error_response(request, 400, exc.code, exc.message, exc.context)

    @app.exception_handler(MissingIdentifier)
    async def handle_missing_identifier(request: Request, exc: MissingIdentifier):
        logger.warning("Missing identifier for %s", exc.operation)
        return error_response(request, 400, exc.code, exc.message, exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return error_response(
            request, 422, "request_validation_error", "Request body failed validation", exc.errors()
        )

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError):
        logger.error("Store error (%s): %s | Context: %s", exc.code, exc.message, exc.context)
        return error_response(request, 500, exc.code, exc.message, exc.context)

    @app.exception_handler(DeserializationError)
    async def handle_deserialization_error(request: Request, exc: DeserializationError):
        logger.error("Corrupt meta in post %s: %s", exc.post_id, exc.context)
        return error_response(request, 500, exc.code, exc.message, exc.context)

    @app.exception_handler(RemoteFetchError)
    async def handle_remote_fetch_error(request: Request, exc: RemoteFetchError):
        logger.error("Remote fetch error: %s | Context: %s", exc.message, exc.context)
        return error_response(request, 502, exc.code, exc.message, exc.context)

    @app.exception_handler(InkwellError)
    async def handle_inkwell_error(request: Request, exc: InkwellError):
        logger.error("Unhandled application error: %s", exc.message)
        return error_response(request, 500, exc.code, exc.message, exc.context)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("Unexpected error: %s", str(exc), exc_info=True)
        return error_response(
            request,
            500,
            "internal_server_error",
            "An unexpected error occurred.",
            {"error_type": type(exc).__name__},
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Middleware executes in reverse order of addition, so requests pass
    Request ID → Logging → GZip → CORS before reaching a route.
    """
    app = FastAPI(
        title="Inkwell API",
        description=(
            "Stores posts in a local SQLite database and discovers markdown and "
            "text files in GitHub repositories."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    origins = settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Browsers reject credentials with a wildcard origin
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(posts.router)
    app.include_router(github.router)
    app.include_router(health.router)

    return app


app = create_app()
