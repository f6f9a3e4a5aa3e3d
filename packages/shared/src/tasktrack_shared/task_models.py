"""Task domain models and the request shapes of the /api/todos endpoints.

JSON uses camelCase (`dueDate`, `userId`, `createdAt`); Python uses snake_case.
Every model accepts either spelling on input.

Partial updates depend on Pydantic's `model_fields_set`: a key that is absent
from the body is not in the set, while a key sent as `null` is. That is the
only reliable way to tell "leave unchanged" from "clear it", so nothing here
tests fields for truthiness.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
# Keeps (page - 1) * limit inside a signed 64-bit SQL OFFSET.
MAX_PAGE = (2**63 - 1) // MAX_LIMIT


class TaskPriority(str, Enum):
    """Task priority levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def ensure_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_due_date(value: Any) -> datetime | None:
    """Accept an ISO-8601 date or datetime string (or a datetime)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str):
        try:
            return ensure_utc(datetime.fromisoformat(value.strip()))
        except ValueError as exc:
            raise ValueError("not an ISO-8601 date") from exc
    raise ValueError("not an ISO-8601 date")


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Task(_CamelModel):
    """A stored task, as returned to its owner."""

    id: str
    title: str
    description: str | None = None
    completed: bool = False
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None
    user_id: str
    created_at: datetime
    updated_at: datetime

    def to_public(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ============================================================================
# Request bodies
# ============================================================================

_TASK_FIELD_MESSAGES: dict[str, str] = {
    "title": "Title is required",
    "title.string_type": "Title must be a string",
    "title.string_too_long": f"Title cannot be more than {TITLE_MAX_LENGTH} characters",
    "description": f"Description cannot be more than {DESCRIPTION_MAX_LENGTH} characters",
    "description.string_type": "Description must be a string",
    "completed": "Completed must be a boolean value",
    "priority": "Priority must be low, medium, or high",
    "dueDate": "Due date must be a valid date",
}


class TaskCreateRequest(_CamelModel):
    """Body of POST /api/todos."""

    field_messages: ClassVar[dict[str, str]] = _TASK_FIELD_MESSAGES

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("due_date", mode="before")
    @classmethod
    def _parse_due_date(cls, value: Any) -> datetime | None:
        return parse_due_date(value)


class TaskUpdateRequest(_CamelModel):
    """Body of PUT /api/todos/{id}. Any subset of the fields may be present."""

    field_messages: ClassVar[dict[str, str]] = {
        **_TASK_FIELD_MESSAGES,
        "title": "Title cannot be empty",
    }

    title: str | None = Field(default=None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    completed: bool | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None

    @field_validator("title", "completed", "priority", mode="before")
    @classmethod
    def _reject_null(cls, value: Any) -> Any:
        # These columns are NOT NULL; only description and dueDate can be cleared.
        if value is None:
            raise ValueError("cannot be null")
        return value.strip() if isinstance(value, str) else value

    @field_validator("due_date", mode="before")
    @classmethod
    def _parse_due_date(cls, value: Any) -> datetime | None:
        return parse_due_date(value)

    def changes(self) -> dict[str, Any]:
        """Only the fields the client actually sent, explicit nulls included."""
        return {name: getattr(self, name) for name in self.model_fields_set}


# ============================================================================
# List query
# ============================================================================


class TaskFilter(BaseModel):
    """Optional constraints on a listing. Absent fields impose nothing."""

    completed: bool | None = None
    priority: TaskPriority | None = None


def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class TaskListQuery(BaseModel):
    """Query string of GET /api/todos.

    Unparseable `page`/`limit` fall back to the defaults; integers are clamped
    to `1 <= page <= MAX_PAGE` and `1 <= limit <= MAX_LIMIT`.
    """

    field_messages: ClassVar[dict[str, str]] = {
        "completed": "Completed must be true or false",
        "priority": "Priority must be low, medium, or high",
    }

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    completed: bool | None = None
    priority: TaskPriority | None = None

    @field_validator("page", mode="before")
    @classmethod
    def _clamp_page(cls, value: Any) -> int:
        return min(MAX_PAGE, max(1, _to_int(value, DEFAULT_PAGE)))

    @field_validator("limit", mode="before")
    @classmethod
    def _clamp_limit(cls, value: Any) -> int:
        return min(MAX_LIMIT, max(1, _to_int(value, DEFAULT_LIMIT)))

    @field_validator("completed", mode="before")
    @classmethod
    def _parse_completed(cls, value: Any) -> bool | None:
        if value is None or isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text == "":
            return None
        if text in ("true", "1"):
            return True
        if text in ("false", "0"):
            return False
        raise ValueError("expected true or false")

    @field_validator("priority", mode="before")
    @classmethod
    def _blank_priority(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    def to_filter(self) -> TaskFilter:
        return TaskFilter(completed=self.completed, priority=self.priority)


class TaskPage(BaseModel):
    """One page of a filtered, owner-scoped listing."""

    items: list[Task]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0
