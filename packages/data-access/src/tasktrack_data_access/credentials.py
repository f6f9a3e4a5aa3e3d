"""Credential Store: user identity records.

Uniqueness of username and email is enforced twice: a lookup inside the
registration transaction gives a precise per-field error, and the table's
unique constraints catch the race where two signups interleave. Either way
the caller sees DuplicateIdentity, never a generic server error.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import insert, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine
from tasktrack_auth.passwords import PasswordHasher
from tasktrack_shared.auth_models import User, normalize_email
from tasktrack_shared.errors import DuplicateIdentity, InputValidationError
from tasktrack_shared.models import FieldError
from tasktrack_shared.task_models import ensure_utc

from tasktrack_data_access.client import bounded_transaction
from tasktrack_data_access.tables import users

logger = logging.getLogger(__name__)

EMAIL_TAKEN = "User with this email already exists"
USERNAME_TAKEN = "Username is already taken"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _row_to_user(row: Mapping[str, Any]) -> User:
    return User(
        id=row["id"],
        username=row["username"],
        email=row["email"],
        password_hash=row["password_hash"],
        created_at=ensure_utc(row["created_at"]),
        updated_at=ensure_utc(row["updated_at"]),
    )


def _collision(exc: IntegrityError) -> DuplicateIdentity:
    detail = str(exc.orig if exc.orig is not None else exc).lower()
    if "email" in detail:
        return DuplicateIdentity("email", EMAIL_TAKEN)
    return DuplicateIdentity("username", USERNAME_TAKEN)


class CredentialStore:
    """Persists users with salted password hashes."""

    def __init__(
        self,
        engine: AsyncEngine,
        hasher: PasswordHasher,
        *,
        timeout: float = 5.0,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._engine = engine
        self._hasher = hasher
        self._timeout = timeout
        self._clock = clock

    async def register(self, username: str, email: str, raw_password: str) -> User:
        """Create a user.

        Raises:
            InputValidationError: a field is blank.
            DuplicateIdentity: username or email already registered.
        """
        username = username.strip()
        email = normalize_email(email)
        missing = [
            FieldError(field=name, message=f"{name.capitalize()} is required")
            for name, value in (("username", username), ("email", email), ("password", raw_password))
            if not value
        ]
        if missing:
            raise InputValidationError(missing)

        # Hash outside the transaction so the connection isn't held during bcrypt.
        password_hash = await self._hasher.hash(raw_password)
        now = self._clock()
        user = User(
            id=str(uuid.uuid4()),
            username=username,
            email=email,
            password_hash=password_hash,
            created_at=now,
            updated_at=now,
        )

        try:
            async with bounded_transaction(
                self._engine, timeout=self._timeout, operation="register user"
            ) as conn:
                result = await conn.execute(
                    select(users.c.username, users.c.email).where(
                        or_(users.c.username == username, users.c.email == email)
                    )
                )
                taken = result.mappings().all()
                if any(row["email"] == email for row in taken):
                    raise DuplicateIdentity("email", EMAIL_TAKEN)
                if taken:
                    raise DuplicateIdentity("username", USERNAME_TAKEN)

                await conn.execute(
                    insert(users).values(
                        id=user.id,
                        username=user.username,
                        email=user.email,
                        password_hash=user.password_hash,
                        created_at=user.created_at,
                        updated_at=user.updated_at,
                    )
                )
        except IntegrityError as e:
            raise _collision(e) from e

        logger.info(f"Registered user id={user.id} username={user.username}")
        return user

    async def find_by_email(self, email: str) -> User | None:
        async with bounded_transaction(
            self._engine, timeout=self._timeout, operation="find user by email"
        ) as conn:
            result = await conn.execute(
                select(users).where(users.c.email == normalize_email(email))
            )
            row = result.mappings().fetchone()
        return _row_to_user(row) if row else None

    async def find_by_id(self, user_id: str) -> User | None:
        async with bounded_transaction(
            self._engine, timeout=self._timeout, operation="find user by id"
        ) as conn:
            result = await conn.execute(select(users).where(users.c.id == user_id))
            row = result.mappings().fetchone()
        return _row_to_user(row) if row else None

    async def verify_password(self, user: User, raw_password: str) -> bool:
        return await self._hasher.verify(raw_password, user.password_hash)
