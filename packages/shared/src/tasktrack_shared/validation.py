"""Declarative request parsing.

Each endpoint declares a Pydantic model for its input. `parse()` validates a
raw payload against that model and returns either `Parsed(value)` or
`Invalid(errors)`; callers branch on the type instead of catching exceptions.

Models may declare `field_messages` to replace Pydantic's generic wording with
client-facing text. Keys are either `"<field>"` or `"<field>.<error_type>"`,
the more specific key winning:

    field_messages: ClassVar[dict[str, str]] = {
        "title": "Title is required",
        "title.string_too_long": "Title cannot be more than 100 characters",
    }
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from tasktrack_shared.errors import InputValidationError
from tasktrack_shared.models import FieldError

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class Parsed(Generic[M]):
    value: M


@dataclass(frozen=True)
class Invalid:
    errors: list[FieldError]

    def to_exception(self) -> InputValidationError:
        return InputValidationError(self.errors)


def _field_name(loc: tuple[Any, ...]) -> str:
    if not loc:
        return "body"
    return ".".join(str(part) for part in loc)


def _message_for(model: type[BaseModel], field: str, error_type: str, default: str) -> str:
    messages: dict[str, str] = getattr(model, "field_messages", {}) or {}
    for key in (f"{field}.{error_type}", field):
        if key in messages:
            return messages[key]
    # Pydantic prefixes messages raised from validators.
    return default.removeprefix("Value error, ")


def field_errors(model: type[BaseModel], exc: ValidationError) -> list[FieldError]:
    """Flatten a Pydantic ValidationError into one message per field."""
    errors: list[FieldError] = []
    seen: set[str] = set()
    for err in exc.errors():
        field = _field_name(tuple(err.get("loc", ())))
        if field in seen:
            continue
        seen.add(field)
        if field == "body" and err.get("type") == "model_type":
            message = "Request body must be a JSON object"
        else:
            message = _message_for(model, field, err.get("type", ""), err.get("msg", "Invalid value"))
        errors.append(FieldError(field=field, message=message))
    return errors


def parse(model: type[M], payload: Any) -> Parsed[M] | Invalid:
    """Validate `payload` against `model`."""
    try:
        return Parsed(model.model_validate(payload))
    except ValidationError as exc:
        return Invalid(field_errors(model, exc))
