"""
Modern Blog API — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() assembles middleware, exception handlers and routers.
       The lifespan opens the database on startup and disposes it on shutdown.
Who:   uvicorn (`uvicorn blog_api.main:app`) and the test suite.

Application Layout:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware: RequestID → AccessLog → RateLimit → GZip → CORS
    │                                                          │
    │  Routes:                                                 │
    │    /api/posts  /api/categories  /api/auth                │
    │    /api/upload /api/health                               │
    │                                                          │
    │  Exception Handlers:                                     │
    │    Validation/Conflict→400  Auth→401  Permission→403     │
    │    NotFound→404  Database/Storage/*→500                  │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → settings check → Database on app.state → bootstrap admin
    Shutdown: dispose the engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from blog_api import __version__
from blog_api.config import settings
from blog_api.database import Database
from blog_api.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    FileStorageError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from blog_api.middleware.logging import RequestLoggingMiddleware
from blog_api.middleware.rate_limit import RateLimitMiddleware
from blog_api.middleware.request_id import RequestIDMiddleware, request_id_var
from blog_api.routes import auth, categories, health, posts, upload
from blog_api.services.auth_service import auth_service

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure root logging once, before anything else logs.

    Format: 2025-10-19T12:00:00 [INFO] blog_api.services.post_service: message
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Our access log replaces uvicorn's
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

async def bootstrap_admin(database: Database) -> None:
    """Create or promote the configured admin account, if one is configured."""
    if not (settings.admin_username and settings.admin_password):
        return
    email = settings.admin_email or f"{settings.admin_username}@localhost"
    async with database.session() as session:
        await auth_service.ensure_admin(
            session,
            username=settings.admin_username,
            email=email,
            password=settings.admin_password,
        )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("Modern Blog API %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Development setups run on defaults; the warning is enough
        logger.warning("%s", str(e))

    # A database injected before startup (tests) is left in place
    owns_database = getattr(app.state, "database", None) is None
    if owns_database:
        app.state.database = Database(settings.database_url)
    database: Database = app.state.database

    if await database.ping():
        logger.info("Database connected")
        await bootstrap_admin(database)
    else:
        logger.error("Database unreachable at startup; requests will fail until it recovers")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Modern Blog API shutting down...")
    if owns_database:
        await database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    # The catch-all handler runs outside RequestIDMiddleware, after the
    # ContextVar is reset; request.state still carries the id there
    return request_id_var.get("") or getattr(request.state, "request_id", "")


def _error_body(
    request: Request,
    error: str,
    message: str,
    details: Optional[dict] = None,
    errors: Optional[List[dict]] = None,
) -> dict:
    body = {"error": error, "message": message, "request_id": _request_id(request)}
    if details:
        body["details"] = details
    if errors is not None:
        body["errors"] = errors
    return body


def _format_validation_errors(exc: RequestValidationError) -> List[dict]:
    """
    Flatten FastAPI/Pydantic errors into [{"field", "message"}].

    The leading "body" segment is dropped so body fields read as "title";
    query and path parameters keep their prefix ("query.limit", "path.post_id").
    """
    formatted = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] == "body":
            loc = loc[1:]
        formatted.append({"field": ".".join(loc) or "body", "message": err.get("msg", "Invalid value")})
    return formatted


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to HTTP responses.

    Response bodies never contain stack traces, SQL or file paths; those go
    to the server log together with the request id.
    """

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = _format_validation_errors(exc)
        logger.info("[%s] Invalid request: %s", _request_id(request), errors)
        return JSONResponse(
            status_code=400,
            content=_error_body(request, "validation_error", "Invalid request", errors=errors),
        )

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.info("[%s] Validation error: %s", _request_id(request), exc.message)
        return JSONResponse(
            status_code=400,
            content=_error_body(request, "validation_error", exc.message, errors=exc.errors),
        )

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        logger.info("[%s] Conflict: %s | %s", _request_id(request), exc.message, exc.context)
        return JSONResponse(
            status_code=400,
            content=_error_body(request, "already_exists", exc.message),
        )

    @app.exception_handler(AuthenticationError)
    async def handle_authentication(request: Request, exc: AuthenticationError):
        return JSONResponse(
            status_code=401,
            content=_error_body(request, "unauthorized", exc.message),
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(PermissionDeniedError)
    async def handle_permission_denied(request: Request, exc: PermissionDeniedError):
        return JSONResponse(
            status_code=403,
            content=_error_body(request, "forbidden", exc.message),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content=_error_body(request, "not_found", exc.message),
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s", _request_id(request), exc.message, exc.context
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(
                request, "server_error", "An internal error occurred. Please try again later."
            ),
        )

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        logger.error(
            "[%s] File storage error: %s | Context: %s",
            _request_id(request),
            exc.message,
            exc.context,
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(request, "server_error", exc.message),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            _request_id(request),
            str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(
                request,
                "internal_server_error",
                "An unexpected error occurred. Please try again later.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Build a configured FastAPI application.

    Args:
        database: Pre-built Database to use instead of one created from
                  settings at startup (tests pass a SQLite-backed one).
    """
    app = FastAPI(
        title="Modern Blog API",
        description="Posts, categories, comments and authentication for the Modern Blog front end.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.database = database

    # Execution order is the reverse of registration:
    # RequestID → Logging → RateLimit → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(posts.router)
    app.include_router(categories.router)
    app.include_router(auth.router)
    app.include_router(upload.router)
    app.include_router(health.router)

    return app


app = create_app()
