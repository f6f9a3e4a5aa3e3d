"""Async database engine and transaction helpers for the stores.

The engine is built once at startup by `create_engine()` and injected into the
stores; there is no module-level singleton.

Drivers:
  - PostgreSQL via asyncpg. `postgresql://` and `postgres://` URLs are
    rewritten to `postgresql+asyncpg://`.
  - SQLite via aiosqlite for local development and tests.

Usage in stores:
    async with bounded_transaction(engine, timeout=5.0, operation="list tasks") as conn:
        result = await conn.execute(select(tasks))
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from tasktrack_shared.errors import StoreUnavailable
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from tasktrack_data_access.tables import metadata

logger = logging.getLogger(__name__)

# Errors that mean "the store is unreachable or overloaded", not "your query is wrong".
TRANSIENT_ERRORS = (OperationalError, InterfaceError, PoolTimeoutError, OSError)


def driver_url(database_url: str) -> str:
    """Ensure the URL names an async driver."""
    if not database_url:
        raise RuntimeError(
            "DATABASE_URL is empty. Set it to a postgresql:// or sqlite+aiosqlite:// URL."
        )
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if database_url.startswith("postgres://"):
        return database_url.replace("postgres://", "postgresql+asyncpg://", 1)
    if database_url.startswith("sqlite://"):
        return database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return database_url


def create_engine(database_url: str) -> AsyncEngine:
    """Build the process-wide async engine."""
    url = driver_url(database_url)
    if url.startswith("sqlite"):
        return create_async_engine(url)
    return create_async_engine(
        url,
        pool_size=10,
        max_overflow=0,
        pool_pre_ping=True,
        pool_timeout=10,
    )


@retry(
    retry=retry_if_exception_type(TRANSIENT_ERRORS),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=8),
    stop=stop_after_attempt(5),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def verify_connection(engine: AsyncEngine) -> None:
    """Round-trip `SELECT 1`, retrying while the database comes up."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def ensure_schema(engine: AsyncEngine) -> None:
    """Create any missing tables and indexes. Existing ones are left alone."""
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)


@asynccontextmanager
async def bounded_transaction(
    engine: AsyncEngine, *, timeout: float, operation: str
) -> AsyncIterator[AsyncConnection]:
    """One transaction, bounded in time.

    Commits on normal exit and rolls back on error. A timeout or a transient
    driver failure becomes StoreUnavailable; IntegrityError and anything raised
    by the caller propagate unchanged.
    """
    try:
        async with asyncio.timeout(timeout):
            async with engine.begin() as conn:
                yield conn
    except TimeoutError as e:
        logger.error(f"Store operation '{operation}' timed out after {timeout}s")
        raise StoreUnavailable(f"{operation} timed out after {timeout}s") from e
    except IntegrityError:
        raise
    except TRANSIENT_ERRORS as e:
        logger.error(f"Store operation '{operation}' failed: {e}")
        raise StoreUnavailable(f"{operation} failed: {e}") from e
