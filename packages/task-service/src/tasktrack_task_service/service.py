"""Task Service: CRUD over the caller's own tasks.

Each operation takes the authenticated caller from the Authorization Gate,
validates its input against a declarative model, calls the Task Store scoped
to the caller, and returns a PlatformResult. Expected failures (bad input,
not found) come back as envelopes; unexpected ones are logged and returned as
a 500 envelope with the exception text in `error`.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from tasktrack_shared.auth_models import User
from tasktrack_shared.errors import NOT_FOUND_MESSAGE, TaskTrackError
from tasktrack_shared.models import FieldError, PlatformResult
from tasktrack_shared.task_models import TaskCreateRequest, TaskListQuery, TaskUpdateRequest
from tasktrack_shared.validation import Invalid, parse

if TYPE_CHECKING:
    from tasktrack_data_access.tasks import TaskStore

logger = logging.getLogger(__name__)

INVALID_ID_MESSAGE = "Invalid todo ID"


def _validation_failure(errors: list[FieldError]) -> PlatformResult:
    return PlatformResult.failure(400, "Validation failed", errors=errors)


def _invalid_id() -> PlatformResult:
    return _validation_failure([FieldError(field="id", message=INVALID_ID_MESSAGE)])


def _not_found() -> PlatformResult:
    return PlatformResult.failure(404, NOT_FOUND_MESSAGE)


def _server_error(message: str, e: Exception) -> PlatformResult:
    if isinstance(e, TaskTrackError):
        logger.error(f"{message}: {e}")
        return PlatformResult.failure(e.status_code, e.public_message, error=str(e))
    logger.exception(message)
    return PlatformResult.failure(500, message, error=str(e))


def is_task_id(value: str) -> bool:
    try:
        uuid.UUID(value)
    except (TypeError, ValueError, AttributeError):
        return False
    return True


class TaskService:
    def __init__(self, store: TaskStore) -> None:
        self._store = store

    async def list_todos(self, caller: User, params: Mapping[str, Any]) -> PlatformResult:
        """GET /api/todos: filter, paginate, newest first."""
        parsed = parse(TaskListQuery, dict(params))
        if isinstance(parsed, Invalid):
            return _validation_failure(parsed.errors)
        query = parsed.value

        try:
            page = await self._store.list(
                caller.id, query.to_filter(), page=query.page, limit=query.limit
            )
        except Exception as e:
            return _server_error("Server error while fetching todos", e)

        return PlatformResult.ok(
            "Todos retrieved successfully",
            {
                "todos": [task.to_public() for task in page.items],
                "total": page.total,
                "page": page.page,
                "limit": page.limit,
                "pages": page.pages,
            },
        )

    async def get_todo(self, caller: User, task_id: str) -> PlatformResult:
        if not is_task_id(task_id):
            return _invalid_id()
        try:
            task = await self._store.get(task_id, caller.id)
        except Exception as e:
            return _server_error("Server error while fetching todo", e)
        if task is None:
            return _not_found()
        return PlatformResult.ok("Todo retrieved successfully", {"todo": task.to_public()})

    async def create_todo(self, caller: User, payload: Any) -> PlatformResult:
        parsed = parse(TaskCreateRequest, payload)
        if isinstance(parsed, Invalid):
            return _validation_failure(parsed.errors)
        try:
            task = await self._store.create(caller.id, parsed.value)
        except Exception as e:
            return _server_error("Server error while creating todo", e)
        logger.info(f"User {caller.id} created todo {task.id}")
        return PlatformResult.ok(
            "Todo created successfully", {"todo": task.to_public()}, status_code=201
        )

    async def update_todo(self, caller: User, task_id: str, payload: Any) -> PlatformResult:
        """PUT /api/todos/{id}: apply only the fields present in the body."""
        if not is_task_id(task_id):
            return _invalid_id()
        parsed = parse(TaskUpdateRequest, payload)
        if isinstance(parsed, Invalid):
            return _validation_failure(parsed.errors)
        try:
            task = await self._store.update(task_id, caller.id, parsed.value.changes())
        except Exception as e:
            return _server_error("Server error while updating todo", e)
        if task is None:
            return _not_found()
        return PlatformResult.ok("Todo updated successfully", {"todo": task.to_public()})

    async def delete_todo(self, caller: User, task_id: str) -> PlatformResult:
        if not is_task_id(task_id):
            return _invalid_id()
        try:
            deleted = await self._store.delete(task_id, caller.id)
        except Exception as e:
            return _server_error("Server error while deleting todo", e)
        if not deleted:
            return _not_found()
        logger.info(f"User {caller.id} deleted todo {task_id}")
        return PlatformResult.ok("Todo deleted successfully")
