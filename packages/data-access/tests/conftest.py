"""Test fixtures for the Data Access stores.

Stores run against a real SQLite database (aiosqlite) in a per-test temporary
directory, so every statement the stores build is actually executed. Time is
controlled with `TickingClock`, which advances one second per call so
creation order is deterministic.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from tasktrack_auth.passwords import PasswordHasher
from tasktrack_data_access.client import create_engine, ensure_schema
from tasktrack_data_access.credentials import CredentialStore
from tasktrack_data_access.tasks import TaskStore


class TickingClock:
    """Returns a later UTC timestamp on every call."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)):
        self.now = start or datetime(2026, 3, 1, 9, 0, tzinfo=UTC)
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + self.step
        return current


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Fresh database with the schema created."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'tasktrack.db'}")
    await ensure_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def credential_store(engine, clock) -> CredentialStore:
    return CredentialStore(engine, PasswordHasher(rounds=4), clock=clock)


@pytest.fixture
def task_store(engine, clock) -> TaskStore:
    return TaskStore(engine, clock=clock)


@pytest_asyncio.fixture
async def jane(credential_store):
    return await credential_store.register("jane_doe", "jane@x.com", "s3cret!")


@pytest_asyncio.fixture
async def bob(credential_store):
    return await credential_store.register("bob_smith", "bob@y.com", "hunter22")
