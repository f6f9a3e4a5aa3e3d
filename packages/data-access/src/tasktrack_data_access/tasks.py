"""Task Store: owner-scoped task records.

Every query carries `user_id = :owner` in its WHERE clause. A task that exists
but belongs to someone else is indistinguishable from one that doesn't exist,
so callers can only ever answer "not found".
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Mapping
from contextlib import AbstractAsyncContextManager
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine
from tasktrack_shared.task_models import (
    MAX_LIMIT,
    MAX_PAGE,
    Task,
    TaskCreateRequest,
    TaskFilter,
    TaskPage,
    TaskPriority,
    ensure_utc,
)

from tasktrack_data_access.client import bounded_transaction
from tasktrack_data_access.tables import tasks

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"title", "description", "completed", "priority", "due_date"})


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _row_to_task(row: Mapping[str, Any]) -> Task:
    due_date = row["due_date"]
    return Task(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        completed=row["completed"],
        priority=TaskPriority(row["priority"]),
        due_date=ensure_utc(due_date) if due_date is not None else None,
        user_id=row["user_id"],
        created_at=ensure_utc(row["created_at"]),
        updated_at=ensure_utc(row["updated_at"]),
    )


def _column_value(name: str, value: Any) -> Any:
    if name == "priority" and isinstance(value, TaskPriority):
        return value.value
    if name == "due_date" and value is not None:
        return ensure_utc(value)
    return value


class TaskStore:
    """CRUD over the `tasks` table, always constrained to one owner."""

    def __init__(
        self,
        engine: AsyncEngine,
        *,
        timeout: float = 5.0,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._engine = engine
        self._timeout = timeout
        self._clock = clock

    def _transaction(self, operation: str) -> AbstractAsyncContextManager[AsyncConnection]:
        return bounded_transaction(self._engine, timeout=self._timeout, operation=operation)

    async def list(
        self,
        owner_id: str,
        task_filter: TaskFilter | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> TaskPage:
        """One page of the owner's tasks, newest first.

        `total` counts every task matching the filter, not just this page.
        Ties on `created_at` are broken by `id` so pages never overlap.

        Raises:
            ValueError: page outside [1, MAX_PAGE] or limit outside [1, MAX_LIMIT].
        """
        if not 1 <= page <= MAX_PAGE:
            raise ValueError(f"page must be between 1 and {MAX_PAGE}, got {page}")
        if not 1 <= limit <= MAX_LIMIT:
            raise ValueError(f"limit must be between 1 and {MAX_LIMIT}, got {limit}")

        conditions = [tasks.c.user_id == owner_id]
        if task_filter is not None:
            if task_filter.completed is not None:
                conditions.append(tasks.c.completed == task_filter.completed)
            if task_filter.priority is not None:
                conditions.append(tasks.c.priority == task_filter.priority.value)

        async with self._transaction("list tasks") as conn:
            total = (
                await conn.execute(select(func.count()).select_from(tasks).where(*conditions))
            ).scalar_one()
            result = await conn.execute(
                select(tasks)
                .where(*conditions)
                .order_by(tasks.c.created_at.desc(), tasks.c.id.desc())
                .limit(limit)
                .offset((page - 1) * limit)
            )
            items = [_row_to_task(row) for row in result.mappings()]

        logger.debug(f"Listed {len(items)}/{total} tasks for owner={owner_id} page={page}")
        return TaskPage(items=items, total=total, page=page, limit=limit)

    async def get(self, task_id: str, owner_id: str) -> Task | None:
        async with self._transaction("get task") as conn:
            result = await conn.execute(
                select(tasks).where(tasks.c.id == task_id, tasks.c.user_id == owner_id)
            )
            row = result.mappings().fetchone()
        return _row_to_task(row) if row else None

    async def create(self, owner_id: str, fields: TaskCreateRequest) -> Task:
        now = self._clock()
        task = Task(
            id=str(uuid.uuid4()),
            title=fields.title,
            description=fields.description,
            completed=False,
            priority=fields.priority,
            due_date=fields.due_date,
            user_id=owner_id,
            created_at=now,
            updated_at=now,
        )
        async with self._transaction("create task") as conn:
            await conn.execute(
                insert(tasks).values(
                    id=task.id,
                    title=task.title,
                    description=task.description,
                    completed=task.completed,
                    priority=task.priority.value,
                    due_date=_column_value("due_date", task.due_date),
                    user_id=task.user_id,
                    created_at=task.created_at,
                    updated_at=task.updated_at,
                )
            )
        logger.debug(f"Created task id={task.id} owner={owner_id}")
        return task

    async def update(
        self, task_id: str, owner_id: str, changes: Mapping[str, Any]
    ) -> Task | None:
        """Apply `changes` to one owned task in a single statement.

        Only the keys present in `changes` are written; `None` values are
        written as NULL. An empty mapping returns the current record.

        Raises:
            ValueError: `changes` names a field that can't be updated.
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"cannot update fields: {', '.join(sorted(unknown))}")
        if not changes:
            return await self.get(task_id, owner_id)

        values = {name: _column_value(name, value) for name, value in changes.items()}
        values["updated_at"] = self._clock()

        async with self._transaction("update task") as conn:
            result = await conn.execute(
                update(tasks)
                .where(tasks.c.id == task_id, tasks.c.user_id == owner_id)
                .values(**values)
                .returning(*tasks.c)
            )
            row = result.mappings().fetchone()

        if row is None:
            return None
        logger.debug(f"Updated task id={task_id} fields={sorted(changes)}")
        return _row_to_task(row)

    async def delete(self, task_id: str, owner_id: str) -> bool:
        async with self._transaction("delete task") as conn:
            result = await conn.execute(
                delete(tasks).where(tasks.c.id == task_id, tasks.c.user_id == owner_id)
            )
            deleted = result.rowcount > 0
        if deleted:
            logger.debug(f"Deleted task id={task_id} owner={owner_id}")
        return deleted
