"""
api/main.py -- FastAPI application factory for the auth service.

Run with:      uvicorn asgi:app --reload
               python main.py --reload

create_app() builds a fresh application from an explicit Settings (and,
optionally, an already-open UserStore). Nothing is read from module-level
singletons, so tests build isolated apps side by side.

Middleware stack (outermost to innermost):
  1. CORSMiddleware   -- CORS headers for configured browser origins
  2. GZipMiddleware   -- compresses responses above 1 KB
  3. security_headers -- nosniff, frame deny, referrer policy
  4. log_requests     -- one log line per request with latency; renders
                         unexpected route errors so layers 1-3 still apply

Lifespan opens the credential store (with retries and linear backoff),
wires the auth service into app.state, and closes the store on shutdown.

Every error path -- AppError from the auth service, StoreFault from the
store, framework HTTP errors, request schema errors, and anything unexpected --
goes through the same ErrorNormalizer so clients always see one envelope.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio.to_thread
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import HealthResponse
from api.routes.v1.auth import router as auth_router
from auth.passwords import PasswordHasher
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import TokenIssuer
from core.config import Settings, get_settings
from core.errors import AppError, NotFoundError, SchemaValidationFault, StoreFault
from core.log import configure_logging, get_logger
from core.normalizer import ErrorNormalizer

VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Store bootstrap
# ---------------------------------------------------------------------------


async def connect_store(settings: Settings, logger: logging.Logger) -> UserStore:
    """Open the credential store, retrying with linear backoff.

    Waits delay * attempt seconds between attempts and re-raises the last
    driver error once db_connect_retries attempts have failed.
    """
    retries = settings.db_connect_retries
    for attempt in range(1, retries + 1):
        try:
            store = await anyio.to_thread.run_sync(UserStore, settings.database_url)
            await anyio.to_thread.run_sync(store.ping)
        except SQLAlchemyError as exc:
            logger.error("Database connect attempt %d/%d failed: %s", attempt, retries, exc)
            if attempt == retries:
                logger.error("Exhausted database connect retries")
                raise
            await asyncio.sleep(settings.db_connect_delay_seconds * attempt)
        else:
            logger.info("Database connected")
            return store
    raise RuntimeError("unreachable")  # loop either returns or raises


# ---------------------------------------------------------------------------
# Error translation helpers
# ---------------------------------------------------------------------------


def _schema_fault(exc: RequestValidationError) -> SchemaValidationFault:
    errors: dict[str, str] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        field = ".".join(loc) or "body"
        errors.setdefault(field, f"{field}: {err.get('msg', 'invalid value')}")
    return SchemaValidationFault(errors)


def _http_error(request: Request, exc: StarletteHTTPException) -> AppError:
    if exc.status_code == 404:
        return NotFoundError(f"Route {request.url.path} not found")
    return AppError(str(exc.detail), exc.status_code)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_app(settings: Settings | None = None, store: UserStore | None = None) -> FastAPI:
    """Build the ASGI application.

    Args:
        settings: Configuration; defaults to get_settings().
        store:    An already-open UserStore. When given, the app uses it as-is
                  and leaves closing it to the caller (tests). Otherwise the
                  lifespan connects to settings.database_url and owns the store.
    """
    settings = settings or get_settings()
    configure_logging(settings)
    logger = get_logger("api")
    normalizer = ErrorNormalizer(settings.environment, get_logger("errors"))

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("%s starting up (environment=%s)", settings.service_name, settings.environment)
        owns_store = store is None
        user_store = await connect_store(settings, logger) if owns_store else store
        hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
        app.state.user_store = user_store
        app.state.auth_service = AuthService(
            store=user_store,
            hasher=hasher,
            tokens=TokenIssuer(settings),
            logger=get_logger("auth"),
        )

        yield

        if owns_store:
            user_store.close()
            logger.info("Database disconnected")
        logger.info("%s shutdown complete", settings.service_name)

    app = FastAPI(
        title="StudyTube Auth API",
        description="Sign-up, sign-in, sign-out and current-user endpoints with cookie sessions.",
        version=VERSION,
        lifespan=lifespan,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None,
    )
    app.state.settings = settings
    app.state.normalizer = normalizer

    def _respond(exc: BaseException) -> JSONResponse:
        status_code, body = normalizer.render(exc)
        return JSONResponse(status_code=status_code, content=body)

    # -----------------------------------------------------------------------
    # Middleware stack -- registered innermost first; Starlette wraps each new
    # middleware around the previous ones.
    # -----------------------------------------------------------------------

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            # Rendered inside the stack so security headers and CORS still apply.
            response = _respond(exc)
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

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        return response

    app.add_middleware(GZipMiddleware, minimum_size=1024)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=3600,
    )

    # -----------------------------------------------------------------------
    # Exception handlers -- all delegate to the ErrorNormalizer.
    # -----------------------------------------------------------------------

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return _respond(exc)

    @app.exception_handler(StoreFault)
    async def store_fault_handler(request: Request, exc: StoreFault) -> JSONResponse:
        return _respond(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _respond(_schema_fault(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        response = _respond(_http_error(request, exc))
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for errors raised by the middleware itself.

        Route errors are rendered by log_requests. The normalizer logs the
        traceback; in production the client only sees the generic message.
        """
        return _respond(exc)

    # -----------------------------------------------------------------------
    # Routes
    # -----------------------------------------------------------------------

    app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])

    @app.get("/api/v1/health", tags=["Health"])
    async def health(request: Request) -> HealthResponse:
        """Return API liveness, version and database reachability."""
        components = {"app": "ok", "database": "ok"}
        try:
            await anyio.to_thread.run_sync(request.app.state.user_store.ping)
        except SQLAlchemyError as exc:
            logger.warning("Health check database ping failed: %s", exc)
            components["database"] = "error"
        return HealthResponse(version=VERSION, components=components)

    return app
