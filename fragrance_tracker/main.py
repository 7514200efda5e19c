"""
Fragrance Tracker Backend: FastAPI Application Factory
=======================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   uvicorn (`uvicorn fragrance_tracker.main:app`) and the test suite,
       which builds its own app around a temporary database.
When:  Once at server startup.

Application Architecture:
    ┌─────────────────────────────────────────────────────────────┐
    │                        FastAPI App                          │
    │                                                             │
    │  Middleware:   Request ID → Logging → GZip → CORS           │
    │                                                             │
    │  Routes:                                                    │
    │  ┌────────────────┐ ┌─────────────────┐ ┌────────────────┐  │
    │  │ /api/inventory │ │ /api/fragrances │ │ /api/daily-wear│  │
    │  └────────────────┘ └─────────────────┘ └────────────────┘  │
    │                         GET /health                         │
    │                                                             │
    │  app.state:  session_factory │ sweep_scheduler │ search     │
    │                                                             │
    │  Exception Handlers → {success: false, error, request_id}   │
    └─────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:   logging → create tables (DB_AUTO_CREATE) → start sweep
    Shutdown:  stop sweep → close search HTTP client → dispose engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.exceptions import HTTPException as StarletteHTTPException

from fragrance_tracker import __version__
from fragrance_tracker.config import settings
from fragrance_tracker.database import async_session_factory, dispose_engine, engine_for, init_models
from fragrance_tracker.exceptions import DatabaseError, FragranceTrackerError
from fragrance_tracker.middleware.logging import RequestLoggingMiddleware
from fragrance_tracker.middleware.request_id import RequestIDMiddleware, request_id_var
from fragrance_tracker.routes import daily_wear, fragrances, health, inventory
from fragrance_tracker.schemas.common import ErrorDetail, ErrorResponse
from fragrance_tracker.services.scheduler import SweepScheduler
from fragrance_tracker.services.search_service import FragranceSearchService

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."

_HTTP_ERROR_CODES = {
    400: "VALIDATION_ERROR",
    404: "NOT_FOUND",
    405: "VALIDATION_ERROR",
    409: "CONFLICT",
}


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole application.

    Format: 2026-01-15T12:00:00 [INFO] fragrance_tracker.services.scheduler: ...
    Called once during startup before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries log every operation at DEBUG/INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Setup logging
        2. Create missing tables when DB_AUTO_CREATE is on (on the engine
           behind app.state.session_factory)
        3. Start the daily remaining-days sweep

    Shutdown:
        1. Stop the sweep scheduler
        2. Close the search service's HTTP client
        3. Dispose the database engine
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Fragrance Tracker Backend %s starting up...", __version__)

    # The injected session factory owns the engine for the whole lifecycle
    bound_engine = engine_for(app.state.session_factory)
    if settings.db_auto_create:
        await init_models(bound_engine)
        logger.info("Database tables verified")

    scheduler: SweepScheduler = app.state.sweep_scheduler
    scheduler.start()

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Fragrance Tracker Backend shutting down...")
    scheduler.stop()
    await app.state.search_service.aclose()
    await dispose_engine(bound_engine)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return request_id_var.get("") or getattr(request.state, "request_id", "")


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=ErrorDetail(code=code, message=message, details=details or None),
        request_id=_request_id(request) or None,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions onto the error envelope.

    Handler hierarchy:
        FragranceTrackerError    → its own status and code
            DatabaseError / 5xx  → generic message, context logged only
        RequestValidationError   → 400 VALIDATION_ERROR with per-field errors
        HTTPException            → envelope around Starlette's status
        Exception (fallback)     → 500 INTERNAL_ERROR

    Internal details (stack traces, SQL) never reach the client.
    """

    @app.exception_handler(FragranceTrackerError)
    async def handle_app_error(request: Request, exc: FragranceTrackerError):
        rid = _request_id(request)
        if isinstance(exc, DatabaseError) or exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
            return error_response(request, 500, "INTERNAL_ERROR", GENERIC_ERROR_MESSAGE)
        if exc.status_code >= 400 and exc.status_code != 404:
            logger.warning("[%s] %s: %s", rid, exc.code, exc.message)
        return error_response(request, exc.status_code, exc.code, exc.message, exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        logger.warning("[%s] Request validation failed: %s", _request_id(request), errors)
        return error_response(
            request,
            400,
            "VALIDATION_ERROR",
            "Request validation failed",
            {"errors": errors},
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        code = _HTTP_ERROR_CODES.get(exc.status_code, "INTERNAL_ERROR" if exc.status_code >= 500 else "VALIDATION_ERROR")
        return error_response(request, exc.status_code, code, str(exc.detail))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", _request_id(request), str(exc), exc_info=True)
        return error_response(request, 500, "INTERNAL_ERROR", GENERIC_ERROR_MESSAGE)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    search_service: Optional[FragranceSearchService] = None,
    scheduler: Optional[SweepScheduler] = None,
) -> FastAPI:
    """
    Assemble the application.

    Args:
        session_factory: Sessions for request handlers, the sweep and the
                         health probe. Defaults to the configured database.
        search_service:  External search client. Tests pass one built on
                         `httpx.MockTransport`.
        scheduler:       Sweep scheduler; built from settings when omitted.
    """
    factory = session_factory or async_session_factory

    app = FastAPI(
        title="Fragrance Tracker API",
        description=(
            "Track a fragrance collection: bottle fill levels, usage, "
            "low-stock alerts, a daily wear calendar and external search."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.session_factory = factory
    app.state.sweep_scheduler = scheduler or SweepScheduler(
        factory,
        hour=settings.sweep_hour,
        minute=settings.sweep_minute,
        enabled=settings.sweep_enabled,
    )
    app.state.search_service = search_service or FragranceSearchService()

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS
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

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(inventory.router)
    app.include_router(fragrances.router)
    app.include_router(daily_wear.router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn imports `fragrance_tracker.main:app`
app = create_app()
