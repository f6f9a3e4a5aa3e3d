"""FastAPI application factory.

`create_app(settings)` wires every component explicitly:

    engine ──> CredentialStore ──> AuthorizationGate, AccountService
           └─> TaskStore ───────> TaskService

and registers the exception handlers that turn anything escaping a route into
the standard envelope. Startup waits for the database (with retries) and
creates missing tables.
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
from sqlalchemy.ext.asyncio import AsyncEngine
from starlette.exceptions import HTTPException as StarletteHTTPException
from tasktrack_auth.accounts import AccountService
from tasktrack_auth.gate import AuthorizationGate
from tasktrack_auth.jwt import TokenService
from tasktrack_auth.passwords import PasswordHasher
from tasktrack_data_access.client import create_engine, ensure_schema, verify_connection
from tasktrack_data_access.credentials import CredentialStore
from tasktrack_data_access.tasks import TaskStore
from tasktrack_shared.errors import TaskTrackError, Unauthorized
from tasktrack_shared.models import FieldError, PlatformResult
from tasktrack_shared.settings import Settings
from tasktrack_task_service.service import TaskService

from tasktrack_api.routes import AVAILABLE_ROUTES, respond, router

logger = logging.getLogger(__name__)


async def _task_track_error(request: Request, exc: TaskTrackError) -> JSONResponse:
    errors = getattr(exc, "errors", None)
    # The reason for a 401 stays in the logs.
    error = None if isinstance(exc, Unauthorized) else str(exc)
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return respond(
        request,
        PlatformResult.failure(exc.status_code, exc.public_message, error=error, errors=errors),
    )


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        result = PlatformResult.failure(
            404, "Route not found", data={"availableRoutes": AVAILABLE_ROUTES}
        )
    elif exc.status_code == 405:
        result = PlatformResult.failure(405, f"Method {request.method} not allowed")
    else:
        result = PlatformResult.failure(exc.status_code, str(exc.detail))
    response = respond(request, result)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        FieldError(field=str(err["loc"][-1]) if err.get("loc") else "body", message=err["msg"])
        for err in exc.errors()
    ]
    return respond(request, PlatformResult.failure(400, "Validation failed", errors=errors))


async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"{request.method} {request.url.path} raised", exc_info=exc)
    return respond(
        request, PlatformResult.failure(500, "Internal server error", error=str(exc))
    )


def create_app(settings: Settings, *, engine: AsyncEngine | None = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Process configuration.
        engine: Use this engine instead of building one from
            `settings.database_url` (tests pass a temporary SQLite engine).
    """
    engine = engine if engine is not None else create_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Connecting to database")
        await verify_connection(engine)
        await ensure_schema(engine)
        logger.info(f"TaskTrack API ready (environment={settings.environment})")
        yield
        logger.info("Shutting down, closing database connections")
        await engine.dispose()

    app = FastAPI(
        title="TaskTrack API",
        description="Multi-tenant task tracking: sign up, log in, manage your own todos.",
        version="1.0.0",
        docs_url="/api-docs",
        openapi_url="/api-docs/openapi.json",
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    tokens = TokenService(
        settings.jwt_secret,
        audience=settings.jwt_audience,
        lifetime=settings.jwt_expires_in,
    )
    credentials = CredentialStore(
        engine,
        PasswordHasher(settings.bcrypt_rounds),
        timeout=settings.store_timeout_seconds,
    )
    task_store = TaskStore(engine, timeout=settings.store_timeout_seconds)

    app.state.settings = settings
    app.state.engine = engine
    app.state.gate = AuthorizationGate(tokens, credentials)
    app.state.accounts = AccountService(credentials, tokens)
    app.state.tasks = TaskService(task_store)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)"
        )
        return response

    app.add_exception_handler(TaskTrackError, _task_track_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(Exception, _unhandled_error)

    app.include_router(router)
    return app
