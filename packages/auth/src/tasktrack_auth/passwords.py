"""bcrypt password hashing.

bcrypt is deliberately slow, so both calls run in a worker thread to keep the
event loop free. bcrypt only looks at the first 72 bytes of a password; longer
inputs are rejected at signup and never match at login.
"""

from __future__ import annotations

import asyncio

import bcrypt
from tasktrack_shared.auth_models import BCRYPT_MAX_BYTES

DEFAULT_ROUNDS = 12


def hash_password_sync(raw_password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    encoded = raw_password.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_BYTES:
        raise ValueError(f"password exceeds {BCRYPT_MAX_BYTES} bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds)).decode("ascii")


def check_password_sync(raw_password: str, password_hash: str) -> bool:
    encoded = raw_password.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode("ascii"))
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


class PasswordHasher:
    """Salted bcrypt hashing with a configurable cost factor."""

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self.rounds = rounds

    async def hash(self, raw_password: str) -> str:
        return await asyncio.to_thread(hash_password_sync, raw_password, self.rounds)

    async def verify(self, raw_password: str, password_hash: str) -> bool:
        return await asyncio.to_thread(check_password_sync, raw_password, password_hash)
