# Secure Vault - FastAPI Backend
#
# Composition root: create_app() builds the one Database, repository factory
# and identity service for the process, stores them on app.state, and
# registers the auth and vault routers. Handlers reach shared services only
# through the dependencies in api/security.py.

import logging
from contextlib import asynccontextmanager
from typing import Optional, Set

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import Match

from .. import __version__
from ..core import (
    EventSeverity,
    EventType,
    Settings,
    configure_audit_logger,
    get_audit_logger,
    get_settings,
)
from ..db import Database, RepositoryFactory
from .auth_routes import router as auth_router
from .https_middleware import SecurityHeadersMiddleware, apply_security_headers
from .security import IdentityService
from .vault_routes import router as vault_router

logger = logging.getLogger(__name__)

INTERNAL_ERROR = "An internal server error occurred."


def _allowed_methods(request: Request) -> Set[str]:
    """Every method routed for the request path, across all routes."""
    methods: Set[str] = set()
    for route in request.app.router.routes:
        route_methods = getattr(route, "methods", None)
        if not route_methods:
            continue
        match, _ = route.matches(request.scope)
        if match != Match.NONE:
            methods.update(route_methods)
    return methods


async def _http_error_handler(request: Request, exc: StarletteHTTPException):
    """405 responses list the methods of every route sharing the path."""
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        allowed = _allowed_methods(request)
        return JSONResponse(
            status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
            content={"detail": f"Method {request.method} not allowed."},
            headers={"Allow": ", ".join(sorted(allowed))},
        )
    return await http_exception_handler(request, exc)


async def _unhandled_error_handler(request: Request, exc: Exception):
    """Log the full failure server-side; the client gets a generic 500."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    get_audit_logger().log_event(
        event_type=EventType.SYSTEM_ERROR,
        severity=EventSeverity.CRITICAL,
        message=f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}",
    )
    response = JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": INTERNAL_ERROR},
    )
    return apply_security_headers(
        response,
        request.url.path,
        enable_hsts=request.app.state.settings.secure_cookies,
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Explicit settings; read from the environment when None

    Raises:
        ConfigurationError: If DATABASE_URL or JWT_SECRET is missing
    """
    settings = settings or get_settings()
    configure_audit_logger(settings.audit_log_dir)

    database = Database(
        settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        get_audit_logger().log_event(
            event_type=EventType.SYSTEM_START,
            severity=EventSeverity.INFO,
            message="Secure Vault API server starting",
            details={"version": __version__, "environment": settings.environment},
        )
        yield
        await app.state.database.close()
        get_audit_logger().log_event(
            event_type=EventType.SYSTEM_STOP,
            severity=EventSeverity.INFO,
            message="Secure Vault API server shutting down",
        )

    app = FastAPI(
        title="Secure Vault API",
        description="Personal password vault with client-side encryption",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.database = database
    app.state.repositories = RepositoryFactory(database)
    app.state.identity = IdentityService(
        settings.jwt_secret,
        ttl_seconds=settings.token_ttl_seconds,
    )

    if settings.is_development:
        # Local frontends only; production serves the client same-origin
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE"],
            allow_headers=["Content-Type"],
        )
    app.add_middleware(SecurityHeadersMiddleware, enable_hsts=settings.secure_cookies)

    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    app.include_router(auth_router)
    app.include_router(vault_router)

    @app.get("/api/health")
    async def health():
        """Liveness probe. Does not touch the database."""
        return {"status": "ok", "version": __version__}

    return app


def start_api_server(host: str = "127.0.0.1", port: int = 8000):
    """
    Start the API server.

    Settings are loaded before the server binds, so missing configuration
    aborts startup.

    Args:
        host: Host to bind to (default: localhost only)
        port: Port to listen on
    """
    app = create_app()
    uvicorn.run(app, host=host, port=port, log_level="info")
