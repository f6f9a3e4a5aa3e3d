"""HTTP routes.

Handlers are thin: read the request, call a service, turn the returned
PlatformResult into a JSONResponse. Components live on `app.state`, built by
`create_app()`.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
from tasktrack_shared.auth_models import User
from tasktrack_shared.errors import InputValidationError, PayloadTooLarge
from tasktrack_shared.models import FieldError, PlatformResult

AVAILABLE_ROUTES = [
    "GET /",
    "GET /api/health",
    "GET /api-docs",
    "POST /api/auth/signup",
    "POST /api/auth/login",
    "GET /api/todos",
    "GET /api/todos/:id",
    "POST /api/todos",
    "PUT /api/todos/:id",
    "DELETE /api/todos/:id",
]

MAX_BODY_BYTES = 10 * 1024 * 1024
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

router = APIRouter()


def respond(request: Request, result: PlatformResult) -> JSONResponse:
    """Serialize an envelope, hiding diagnostics in production."""
    settings = request.app.state.settings
    return JSONResponse(
        status_code=result.status_code,
        content=result.to_body(include_diagnostics=not settings.is_production),
    )


async def read_body(request: Request) -> Any:
    """Parsed request body: JSON, or a URL-encoded form. An empty body reads as `{}`.

    Bodies over MAX_BODY_BYTES are refused before they are parsed.
    """
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > MAX_BODY_BYTES:
        raise PayloadTooLarge(f"declared body of {declared} bytes")
    raw = await request.body()
    if len(raw) > MAX_BODY_BYTES:
        raise PayloadTooLarge(f"body of {len(raw)} bytes")
    if not raw.strip():
        return {}
    content_type = request.headers.get("content-type", "")
    if content_type.split(";")[0].strip().lower() == FORM_CONTENT_TYPE:
        return dict(await request.form())
    try:
        return json.loads(raw)
    except ValueError as e:
        raise InputValidationError(
            [FieldError(field="body", message="Request body must be valid JSON")]
        ) from e


async def require_caller(
    request: Request, authorization: str | None = Header(default=None)
) -> User:
    """Dependency for protected routes: the authenticated caller or a 401."""
    return await request.app.state.gate.authenticate(authorization)


# ============================================================================
# Public
# ============================================================================


@router.get("/")
async def welcome(request: Request):
    return respond(
        request,
        PlatformResult.ok(
            "Welcome to the TaskTrack API",
            {
                "documentation": "/api-docs",
                "endpoints": {
                    "health": "GET /api/health",
                    "auth": {
                        "signup": "POST /api/auth/signup",
                        "login": "POST /api/auth/login",
                    },
                    "todos": {
                        "getAll": "GET /api/todos",
                        "getById": "GET /api/todos/:id",
                        "create": "POST /api/todos",
                        "update": "PUT /api/todos/:id",
                        "delete": "DELETE /api/todos/:id",
                    },
                },
            },
        ),
    )


@router.get("/api/health")
async def health(request: Request):
    return respond(
        request,
        PlatformResult.ok(
            "Server is running",
            {
                "timestamp": datetime.now(UTC).isoformat(),
                "environment": request.app.state.settings.environment,
            },
        ),
    )


@router.post("/api/auth/signup", status_code=201)
async def signup(request: Request):
    payload = await read_body(request)
    return respond(request, await request.app.state.accounts.signup(payload))


@router.post("/api/auth/login")
async def login(request: Request):
    payload = await read_body(request)
    return respond(request, await request.app.state.accounts.login(payload))


# ============================================================================
# Todos (authenticated)
# ============================================================================


@router.get("/api/todos")
async def list_todos(request: Request, caller: User = Depends(require_caller)):
    result = await request.app.state.tasks.list_todos(caller, request.query_params)
    return respond(request, result)


@router.get("/api/todos/{task_id}")
async def get_todo(task_id: str, request: Request, caller: User = Depends(require_caller)):
    return respond(request, await request.app.state.tasks.get_todo(caller, task_id))


@router.post("/api/todos", status_code=201)
async def create_todo(request: Request, caller: User = Depends(require_caller)):
    payload = await read_body(request)
    return respond(request, await request.app.state.tasks.create_todo(caller, payload))


@router.put("/api/todos/{task_id}")
async def update_todo(task_id: str, request: Request, caller: User = Depends(require_caller)):
    payload = await read_body(request)
    result = await request.app.state.tasks.update_todo(caller, task_id, payload)
    return respond(request, result)


@router.delete("/api/todos/{task_id}")
async def delete_todo(task_id: str, request: Request, caller: User = Depends(require_caller)):
    return respond(request, await request.app.state.tasks.delete_todo(caller, task_id))
