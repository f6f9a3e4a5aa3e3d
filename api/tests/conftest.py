"""Test fixtures for the HTTP API.

The app is driven in-process through httpx's ASGITransport. ASGITransport
doesn't run the lifespan, so the fixture creates the schema itself.
"""

from __future__ import annotations

import httpx
import pytest
import pytest_asyncio
from tasktrack_api.app import create_app
from tasktrack_data_access.client import create_engine, ensure_schema
from tasktrack_shared.settings import Settings


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'tasktrack.db'}",
        jwt_secret="api-tests-signing-secret-0123456789abcdef",
        bcrypt_rounds=4,
    )


@pytest_asyncio.fixture
async def app(settings):
    engine = create_engine(settings.database_url)
    await ensure_schema(engine)
    yield create_app(settings, engine=engine)
    await engine.dispose()


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def signup(client):
    """Register a user and return (auth headers, user body)."""

    async def _signup(username: str, email: str, password: str = "s3cret!"):
        response = await client.post(
            "/api/auth/signup",
            json={"username": username, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return {"Authorization": f"Bearer {data['token']}"}, data["user"]

    return _signup
