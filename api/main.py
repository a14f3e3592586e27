"""
api/main.py -- FastAPI application factory for the marketplace API.

Run with:      uvicorn asgi:app --reload

create_app(settings) builds a fully wired app from an explicit Settings
object. asgi.py calls it once with get_settings(); tests call it with their own
Settings pointing at an isolated database.

Middleware stack (outermost to innermost):
  1. CORSMiddleware     -- adds CORS headers for the configured browser origins
  2. SlowAPIMiddleware  -- enforces per-route rate limits from api.limiter
  3. log_requests       -- one access-log line per request

Lifespan opens the stores on startup and disposes them on shutdown.

Error mapping: every error leaves through one of the exception handlers below
as {"message": ...}. AppError subclasses carry their own status and a
client-safe message; anything else becomes a generic 500 and the details go to
the log only.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import HealthResponse, MessageResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.products import router as products_router
from auth.admin import UserAdmin
from auth.identity import IdentityService
from auth.store import UserStore
from catalog.service import ProductService
from catalog.store import ProductStore
from core.config import Settings
from core.errors import AppError

API_VERSION = "1.0.0"

logger = logging.getLogger("marketplace.api")


# ---------------------------------------------------------------------------
# Lifespan -- modern startup / shutdown pattern (replaces @app.on_event)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the stores and build the services on startup; dispose on shutdown.

    Services are attached to app.state so route handlers reach them through
    request.app.state without module-level singletons.
    """
    settings: Settings = app.state.settings
    logger.info("Marketplace API starting up")

    user_store = UserStore(settings.database_url)
    product_store = ProductStore(settings.database_url)
    app.state.user_store = user_store
    app.state.product_store = product_store
    app.state.identity = IdentityService(user_store, settings)
    app.state.user_admin = UserAdmin(user_store)
    app.state.products = ProductService(product_store, user_store)
    logger.info("Stores initialized")

    yield

    product_store.close()
    user_store.close()
    logger.info("Marketplace API shutdown complete")


# ---------------------------------------------------------------------------
# Error formatting helpers
# ---------------------------------------------------------------------------


def _message(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=MessageResponse(message=message).model_dump(),
        headers=headers,
    )


def _describe_validation_errors(errors: list[dict]) -> str:
    """Turn pydantic's error list into one readable sentence.

    Only the first error is reported; location segments "body"/"query"/"path"
    are dropped so the client sees the field name it sent.
    """
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    if first.get("type") == "missing" and not loc:
        return "Request body is required"
    field = ".".join(loc)
    return f"Invalid value for {field}: {first.get('msg', 'invalid')}" if field else str(first.get("msg"))


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(settings: Settings) -> FastAPI:
    """Build the FastAPI application for the given settings."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    app = FastAPI(
        title="Marketplace API",
        description="Product marketplace with JWT authentication and role-based access control.",
        version=API_VERSION,
        lifespan=lifespan,
        docs_url="/api-docs",
        redoc_url=None,
    )
    app.state.settings = settings

    # -----------------------------------------------------------------------
    # Middleware stack
    #
    # Starlette wraps middleware so the LAST add_middleware() call is the
    # outermost layer. Register innermost first: SlowAPI, then CORS.
    # -----------------------------------------------------------------------

    # SlowAPI looks for app.state.limiter by convention. Settings.rate_limit_enabled
    # is consulted per request through api.limiter.limits_disabled.
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=3600,
    )

    # -----------------------------------------------------------------------
    # Request logging middleware
    #
    # Interceptor: every request passes through this coroutine before reaching
    # a route handler. Wall-clock time around call_next gives the latency.
    # -----------------------------------------------------------------------

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s %d %.1fms %s",
            request.method,
            request.url.path,
            response.status_code,
            ms,
            request.client.host if request.client else "unknown",
        )
        return response

    # -----------------------------------------------------------------------
    # Router registration
    # -----------------------------------------------------------------------

    app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
    app.include_router(products_router, prefix="/api/v1", tags=["Products"])

    # -----------------------------------------------------------------------
    # Health endpoint
    #
    # Defined directly on the app (not in a router) and outside /api/v1 so load
    # balancers can probe it without knowing the API version. Not rate limited.
    # -----------------------------------------------------------------------

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    def health() -> HealthResponse:
        """Liveness probe."""
        return HealthResponse(version=API_VERSION)

    # -----------------------------------------------------------------------
    # Exception handlers
    #
    # All handlers return the same {"message": ...} envelope so clients can
    # parse errors without inspecting the status code first.
    # -----------------------------------------------------------------------

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return _message(exc.status_code, exc.message, headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed bodies, params or path values are client input errors: 400."""
        return _message(400, _describe_validation_errors(exc.errors()))

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        """Return 429 and tell the client how long to wait."""
        retry_after = exc.limit.limit.get_expiry() if exc.limit is not None else 60
        return _message(429, "Too many requests, please try again later", {"Retry-After": str(retry_after)})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Framework-raised HTTP errors. Unmatched routes get the fixed 404 body."""
        if exc.status_code == 404:
            return _message(404, "Route not found")
        return _message(exc.status_code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unexpected server errors.

        The exception and traceback go to the log; the client receives only a
        generic message so storage or library details never leak.
        """
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return _message(500, "Internal server error")

    return app
