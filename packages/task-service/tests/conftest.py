"""Test fixtures for the Task Service: a real TaskStore on temporary SQLite."""

from __future__ import annotations

import pytest
import pytest_asyncio
from tasktrack_auth.passwords import PasswordHasher
from tasktrack_data_access.client import create_engine, ensure_schema
from tasktrack_data_access.credentials import CredentialStore
from tasktrack_data_access.tasks import TaskStore
from tasktrack_task_service.service import TaskService


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'tasktrack.db'}")
    await ensure_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def service(engine) -> TaskService:
    return TaskService(TaskStore(engine))


@pytest_asyncio.fixture
async def users(engine):
    """Two registered callers: (jane, bob)."""
    credentials = CredentialStore(engine, PasswordHasher(rounds=4))
    jane = await credentials.register("jane_doe", "jane@x.com", "s3cret!")
    bob = await credentials.register("bob_smith", "bob@y.com", "hunter22")
    return jane, bob
