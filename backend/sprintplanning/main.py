"""
Sprint Planning Backend — FastAPI Application Factory
=======================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn sprintplanning.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────────┐ ┌──────────┐ ┌──────┐ ┌──────┐             │
    │  │ Req ID   │→│ Logging  │→│ GZip │→│ CORS │             │
    │  └──────────┘ └──────────┘ └──────┘ └──────┘             │
    │                                                          │
    │  Routes:                                                 │
    │  ┌────────────────────┐ ┌──────────────┐ ┌────────────┐  │
    │  │ POST create*       │ │ /negotiate   │ │ GET /health│  │
    │  │ GET getSprint...   │ │ WS /client/  │ │            │  │
    │  └────────────────────┘ └──────────────┘ └────────────┘  │
    │                                                          │
    │  Exception Handlers:                                     │
    │  ┌────────────────────────────────────────────────────┐  │
    │  │ Incomplete→200 empty │ NotFound→404 │ Hub auth→401 │  │
    │  │ Validation→400 │ everything else→500 (one body)    │  │
    │  └────────────────────────────────────────────────────┘  │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → configuration check → create document table
    Shutdown: close hub subscribers → dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, Response

from sprintplanning import __version__
from sprintplanning.config import settings
from sprintplanning.database import dispose_engine, init_models
from sprintplanning.exceptions import (
    HubAuthenticationError,
    IncompleteRecordError,
    NotFoundError,
    SprintPlanningError,
    ValidationError,
)
from sprintplanning.middleware.logging import RequestLoggingMiddleware
from sprintplanning.middleware.request_id import RequestIDMiddleware, request_id_var
from sprintplanning.routes import health, hub, sprint_plans
from sprintplanning.services.websocket_hub import broadcast_hub

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: 2024-01-15T12:00:00 [INFO] sprintplanning.services...: message
    Called once during app startup, before any other initialization.
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
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Sprint Planning Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving; tokens are still signed, just with a weak key
        logger.error("Configuration error: %s", str(e))

    await init_models()
    logger.info("Document table '%s' ready", settings.db_table_name)
    logger.info("Hub '%s' accepting clients at %s", settings.hub_name, broadcast_hub.client_url)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Sprint Planning Backend shutting down...")
    await broadcast_hub.close_all()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _server_error_response(rid: str) -> JSONResponse:
    """The single 500 body; parse, store and broadcast failures look alike."""
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": GENERIC_ERROR_MESSAGE,
            "request_id": rid,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP responses.

    Handler hierarchy:
        IncompleteRecordError   → 200 empty body (400 with REJECT_INCOMPLETE_WRITES)
        ValidationError         → 400
        NotFoundError           → 404
        HubAuthenticationError  → 401
        SprintPlanningError     → 500 (store, broadcast, malformed payload)
        Exception (fallback)    → 500
    """

    @app.exception_handler(IncompleteRecordError)
    async def handle_incomplete_record(request: Request, exc: IncompleteRecordError):
        rid = request_id_var.get("")
        if not settings.reject_incomplete_writes:
            logger.info("[%s] Write skipped: %s", rid, exc.message)
            return Response(status_code=200)
        logger.warning("[%s] Write rejected: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(HubAuthenticationError)
    async def handle_hub_authentication(request: Request, exc: HubAuthenticationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Hub authentication failed: %s", rid, exc.message)
        return JSONResponse(
            status_code=401,
            content={
                "error": "unauthorized",
                "message": exc.message,
                "request_id": rid,
            },
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(SprintPlanningError)
    async def handle_application_error(request: Request, exc: SprintPlanningError):
        rid = request_id_var.get("")
        logger.error(
            "[%s] Could not process %s %s. %s: %s | Context: %s",
            rid,
            request.method,
            request.url.path,
            type(exc).__name__,
            exc.message,
            exc.context,
        )
        return _server_error_response(rid)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return _server_error_response(rid)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Sprint Planning API",
        description=(
            "Team sprint-planning estimation backend. Records team members and story "
            "points per sprint and pushes every change to connected planning boards."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(sprint_plans.router)
    app.include_router(hub.router)
    app.include_router(hub.client_router)
    app.include_router(health.router)

    return app


app = create_app()
