"""Pydantic base models shared across components.

These are the contract types that flow between the HTTP layer and the
services. Using Pydantic gives us validation at component boundaries: a
service that builds a malformed envelope fails fast instead of sending
garbage to the client.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class FieldError(BaseModel):
    """One per-field validation message, as returned in `errors`."""

    field: str
    message: str


class PlatformResult(BaseModel):
    """Standard result envelope returned by every endpoint.

    Every service operation returns this (or builds one via the helpers below)
    so the HTTP layer has a single interface for success and failure without
    catching exceptions for expected business failures.

    `status_code` never leaves the process; the HTTP layer uses it to pick the
    response status.
    """

    success: bool
    message: str
    data: dict[str, Any] | None = None
    error: str | None = None
    errors: list[FieldError] | None = None
    status_code: int = Field(default=200, exclude=True)

    @classmethod
    def ok(
        cls, message: str, data: dict[str, Any] | None = None, status_code: int = 200
    ) -> PlatformResult:
        return cls(success=True, message=message, data=data, status_code=status_code)

    @classmethod
    def failure(
        cls,
        status_code: int,
        message: str,
        *,
        error: str | None = None,
        errors: list[FieldError] | None = None,
        data: dict[str, Any] | None = None,
    ) -> PlatformResult:
        return cls(
            success=False,
            message=message,
            error=error,
            errors=errors,
            data=data,
            status_code=status_code,
        )

    def to_body(self, *, include_diagnostics: bool = True) -> dict[str, Any]:
        """Serialize to the JSON body. Diagnostics (`error`) are optional."""
        body = self.model_dump(mode="json", exclude_none=True)
        if not include_diagnostics:
            body.pop("error", None)
        return body
