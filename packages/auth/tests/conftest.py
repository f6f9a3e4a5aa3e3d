"""Test fixtures for the auth package.

Provides an in-memory stand-in for CredentialStore so the gate and the account
service can be tested without a database. It keeps the store's contract:
duplicate detection by email first, then username, and bcrypt hashing through
the real PasswordHasher.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

import pytest
from tasktrack_auth.jwt import TokenService
from tasktrack_auth.passwords import PasswordHasher
from tasktrack_shared.auth_models import User, normalize_email
from tasktrack_shared.errors import DuplicateIdentity

SECRET = "auth-tests-signing-secret-0123456789abcdef"


class InMemoryCredentials:
    """Mimics CredentialStore with a dict."""

    def __init__(self, hasher: PasswordHasher) -> None:
        self._hasher = hasher
        self.users: dict[str, User] = {}
        self.fail_with: Exception | None = None

    async def register(self, username: str, email: str, raw_password: str) -> User:
        if self.fail_with is not None:
            raise self.fail_with
        email = normalize_email(email)
        if any(u.email == email for u in self.users.values()):
            raise DuplicateIdentity("email", "User with this email already exists")
        if any(u.username == username for u in self.users.values()):
            raise DuplicateIdentity("username", "Username is already taken")
        now = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)
        user = User(
            id=str(uuid.uuid4()),
            username=username,
            email=email,
            password_hash=await self._hasher.hash(raw_password),
            created_at=now,
            updated_at=now,
        )
        self.users[user.id] = user
        return user

    async def find_by_email(self, email: str) -> User | None:
        if self.fail_with is not None:
            raise self.fail_with
        email = normalize_email(email)
        return next((u for u in self.users.values() if u.email == email), None)

    async def find_by_id(self, user_id: str) -> User | None:
        if self.fail_with is not None:
            raise self.fail_with
        return self.users.get(user_id)

    async def verify_password(self, user: User, raw_password: str) -> bool:
        return await self._hasher.verify(raw_password, user.password_hash)


@pytest.fixture
def hasher() -> PasswordHasher:
    """Minimum bcrypt cost keeps the suite fast."""
    return PasswordHasher(rounds=4)


@pytest.fixture
def credentials(hasher: PasswordHasher) -> InMemoryCredentials:
    return InMemoryCredentials(hasher)


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(SECRET, audience="tasktrack")
