"""
Yellow Book API: FastAPI Application Factory
=============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() builds the Database and YellowBookGateway once, stores
       them on app.state, registers middleware, exception handlers and routes.
Who:   uvicorn (`yellowbook.main:app`), the `yellowbook serve` command, tests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  app.state: settings, database, gateway             │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌──────────────┐ ┌─────────────────┐  │
    │  │ Req ID   │→│  Rate Limit  │→│  Logging        │  │
    │  └──────────┘ └──────────────┘ └─────────────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  ┌─────────────────┐ ┌──────────────┐ ┌──────────┐  │
    │  │ /yellow-books   │ │ /yellow-books│ │ / health │  │
    │  │ GET, POST       │ │ /{id} GET    │ │          │  │
    │  └─────────────────┘ └──────────────┘ └──────────┘  │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ Schema/Id→400 │ NotFound→404 │ Storage→500   │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:   logging → (optional) create missing tables → ready
    Shutdown:  dispose the database engine (all pooled connections closed)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from yellowbook import __version__
from yellowbook.config import Settings, settings as default_settings
from yellowbook.database import Database
from yellowbook.exceptions import (
    DataIntegrityError,
    InvalidIdentifierError,
    NotFoundError,
    SchemaViolationError,
    StorageError,
    YellowBookError,
)
from yellowbook.gateway import YellowBookGateway
from yellowbook.middleware.logging import RequestLoggingMiddleware
from yellowbook.middleware.rate_limit import RateLimitMiddleware
from yellowbook.middleware.request_id import RequestIDMiddleware, request_id_var
from yellowbook.routes import health, yellow_books

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout (container runtimes collect it)
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-request/per-statement chatter from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Setup logging
        2. Create missing tables when db_create_tables is on
    Shutdown:
        1. Dispose the database engine before the process exits
    """
    app_settings: Settings = app.state.settings
    database: Database = app.state.database

    setup_logging(app_settings.log_level)
    logger.info("Yellow Book API %s starting up...", __version__)

    if app_settings.db_create_tables:
        await database.create_all()
        logger.info("Database tables ensured")

    logger.info("Server ready at http://%s:%d", app_settings.api_host, app_settings.api_port)

    try:
        yield
    finally:
        logger.info("Yellow Book API shutting down...")
        await database.dispose()
        logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(message: str, details=None) -> dict:
    body = {"success": False, "error": message, "request_id": request_id_var.get("")}
    if details is not None:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and `{success: false, ...}` bodies.

    Handler hierarchy:
        SchemaViolationError    → 400 (details = field violations)
        InvalidIdentifierError  → 400
        RequestValidationError  → 400 (malformed JSON / non-object body)
        NotFoundError           → 404
        StorageError            → 500 (driver details logged only)
        DataIntegrityError      → 500 (violations logged only)
        YellowBookError (base)  → 500
        Exception (fallback)    → 500
    """

    @app.exception_handler(SchemaViolationError)
    async def handle_schema_violation(request: Request, exc: SchemaViolationError):
        logger.warning("[%s] Validation failed: %s", request_id_var.get(""), exc.violations)
        return JSONResponse(status_code=400, content=_error_body(exc.message, exc.violations))

    @app.exception_handler(InvalidIdentifierError)
    async def handle_invalid_identifier(request: Request, exc: InvalidIdentifierError):
        return JSONResponse(status_code=400, content=_error_body(exc.message, exc.violations))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        violations = [
            {
                "field": ".".join(str(part) for part in error["loc"] if part != "body") or "body",
                "message": error["msg"],
            }
            for error in exc.errors()
        ]
        logger.warning("[%s] Request rejected: %s", request_id_var.get(""), violations)
        return JSONResponse(
            status_code=400,
            content=_error_body("Invalid request", violations),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content=_error_body(exc.message))

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError):
        logger.error(
            "[%s] Storage error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return JSONResponse(status_code=500, content=_error_body(exc.message))

    @app.exception_handler(DataIntegrityError)
    async def handle_integrity_error(request: Request, exc: DataIntegrityError):
        logger.error(
            "[%s] Stored data failed validation: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return JSONResponse(status_code=500, content=_error_body(exc.message))

    @app.exception_handler(YellowBookError)
    async def handle_app_error(request: Request, exc: YellowBookError):
        logger.error("[%s] Application error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(status_code=500, content=_error_body(exc.message))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Stack trace goes to the log; the client gets a generic message."""
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content=_error_body("An unexpected error occurred. Please try again later."),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: defaults to the module-level settings singleton
        database: defaults to Database.from_settings(settings); the app owns
                  it either way and disposes it on shutdown
    """
    app_settings = settings or default_settings
    app_database = database or Database.from_settings(app_settings)

    app = FastAPI(
        title="Yellow Book API",
        description="Business directory: list, fetch and create directory entries.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = app_settings
    app.state.database = app_database
    app.state.gateway = YellowBookGateway(app_database)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → RateLimit → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    if app_settings.rate_limit_enabled:
        app.add_middleware(
            RateLimitMiddleware,
            max_requests=app_settings.rate_limit_requests,
            window_seconds=app_settings.rate_limit_window,
        )
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(yellow_books.router)

    return app


# uvicorn expects `yellowbook.main:app` to be importable
app = create_app()
