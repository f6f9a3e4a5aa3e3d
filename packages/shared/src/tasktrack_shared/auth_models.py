"""Auth domain models: users, session claims, and the signup/login payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

USERNAME_PATTERN = r"^[A-Za-z0-9_]+$"
BCRYPT_MAX_BYTES = 72


def normalize_email(email: str) -> str:
    """Canonical form used for storage and lookup."""
    return email.strip().lower()


class User(BaseModel):
    """A registered user. `password_hash` is never serialized."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    username: str
    email: str
    password_hash: str = Field(exclude=True, repr=False)
    created_at: datetime
    updated_at: datetime

    def to_public(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class SessionClaim(BaseModel):
    """Decoded access-token claims. Lives for one request only."""

    user_id: str
    exp: int


class SignupRequest(BaseModel):
    """Body of POST /api/auth/signup."""

    field_messages: ClassVar[dict[str, str]] = {
        "username": "Username must be between 3 and 30 characters",
        "username.string_pattern_mismatch": (
            "Username can only contain letters, numbers, and underscores"
        ),
        "email": "Please provide a valid email",
        "password": "Password must be at least 6 characters long",
        "password.value_error": f"Password must be at most {BCRYPT_MAX_BYTES} bytes long",
    }

    username: str = Field(min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    email: EmailStr
    password: str = Field(min_length=6)

    @field_validator("email")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return normalize_email(value)

    @field_validator("password")
    @classmethod
    def _fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValueError("password too long")
        return value


class LoginRequest(BaseModel):
    """Body of POST /api/auth/login."""

    field_messages: ClassVar[dict[str, str]] = {
        "email": "Please provide a valid email",
        "password": "Password is required",
    }

    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return normalize_email(value)
