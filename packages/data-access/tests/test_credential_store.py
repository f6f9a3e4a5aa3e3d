"""Tests for the Credential Store against a real SQLite database."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select
from tasktrack_data_access.tables import users
from tasktrack_shared.errors import DuplicateIdentity, InputValidationError


class TestRegister:
    @pytest.mark.asyncio
    async def test_persists_user_with_hashed_password(self, credential_store, engine):
        user = await credential_store.register("jane_doe", "  Jane@X.com ", "s3cret!")

        assert user.username == "jane_doe"
        assert user.email == "jane@x.com"
        assert user.created_at == user.updated_at

        async with engine.connect() as conn:
            row = (await conn.execute(select(users).where(users.c.id == user.id))).mappings().one()
        assert row["password_hash"] != "s3cret!"
        assert row["password_hash"].startswith("$2b$04$")

    @pytest.mark.asyncio
    async def test_duplicate_email(self, credential_store, jane):
        with pytest.raises(DuplicateIdentity) as exc_info:
            await credential_store.register("someone_else", "JANE@x.com", "another1")
        assert exc_info.value.field == "email"
        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_duplicate_username(self, credential_store, jane):
        with pytest.raises(DuplicateIdentity) as exc_info:
            await credential_store.register("jane_doe", "jane.other@x.com", "another1")
        assert exc_info.value.field == "username"

    @pytest.mark.asyncio
    async def test_email_reported_when_both_collide(self, credential_store, jane):
        with pytest.raises(DuplicateIdentity) as exc_info:
            await credential_store.register("jane_doe", "jane@x.com", "another1")
        assert exc_info.value.field == "email"

    @pytest.mark.asyncio
    async def test_duplicates_leave_a_single_record(self, credential_store, engine, jane):
        for username, email in (("jane_doe", "jane.other@x.com"), ("someone_else", "JANE@x.com")):
            with pytest.raises(DuplicateIdentity):
                await credential_store.register(username, email, "another1")

        async with engine.connect() as conn:
            ids = (await conn.execute(select(users.c.id))).scalars().all()
            matching = (
                await conn.execute(
                    select(func.count()).select_from(users).where(users.c.email == "jane@x.com")
                )
            ).scalar_one()
        assert ids == [jane.id]
        assert matching == 1
        stored = await credential_store.find_by_email("jane@x.com")
        assert stored.username == "jane_doe"

    @pytest.mark.asyncio
    async def test_blank_fields_rejected(self, credential_store):
        with pytest.raises(InputValidationError) as exc_info:
            await credential_store.register("  ", "", "")
        assert {e.field for e in exc_info.value.errors} == {"username", "email", "password"}


class TestLookup:
    @pytest.mark.asyncio
    async def test_find_by_email_is_case_insensitive(self, credential_store, jane):
        found = await credential_store.find_by_email("JANE@X.COM")
        assert found is not None
        assert found.id == jane.id
        assert found.created_at == jane.created_at

    @pytest.mark.asyncio
    async def test_find_by_id(self, credential_store, jane, bob):
        assert (await credential_store.find_by_id(bob.id)).username == "bob_smith"

    @pytest.mark.asyncio
    async def test_unknown_user(self, credential_store, jane):
        assert await credential_store.find_by_email("nobody@x.com") is None
        assert await credential_store.find_by_id("00000000-0000-4000-8000-000000000000") is None

    @pytest.mark.asyncio
    async def test_verify_password(self, credential_store, jane):
        stored = await credential_store.find_by_id(jane.id)
        assert await credential_store.verify_password(stored, "s3cret!") is True
        assert await credential_store.verify_password(stored, "S3cret!") is False
