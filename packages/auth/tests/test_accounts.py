"""Tests for signup and login."""

from __future__ import annotations

import pytest
from tasktrack_auth.accounts import AccountService
from tasktrack_shared.errors import UNAUTHORIZED_MESSAGE, StoreUnavailable

JANE = {"username": "jane_doe", "email": "Jane@X.com", "password": "s3cret!"}


@pytest.fixture
def accounts(credentials, tokens) -> AccountService:
    return AccountService(credentials, tokens)


class TestSignup:
    @pytest.mark.asyncio
    async def test_returns_user_and_usable_token(self, accounts, tokens):
        result = await accounts.signup(JANE)

        assert result.success is True
        assert result.status_code == 201
        assert result.message == "User registered successfully"
        user = result.data["user"]
        assert user["username"] == "jane_doe"
        assert user["email"] == "jane@x.com"
        assert "passwordHash" not in user and "password_hash" not in user
        assert tokens.verify(result.data["token"]).user_id == user["id"]

    @pytest.mark.asyncio
    async def test_password_is_hashed(self, accounts, credentials):
        result = await accounts.signup(JANE)
        stored = credentials.users[result.data["user"]["id"]]
        assert stored.password_hash != "s3cret!"
        assert stored.password_hash.startswith("$2b$")

    @pytest.mark.asyncio
    async def test_duplicate_email_is_409(self, accounts):
        await accounts.signup(JANE)
        result = await accounts.signup({**JANE, "username": "jane_two", "email": "jane@x.com"})

        assert result.status_code == 409
        assert result.success is False
        assert [e.field for e in result.errors] == ["email"]

    @pytest.mark.asyncio
    async def test_duplicate_username_is_409(self, accounts):
        await accounts.signup(JANE)
        result = await accounts.signup({**JANE, "email": "other@x.com"})

        assert result.status_code == 409
        assert result.errors[0].field == "username"
        assert result.errors[0].message == "Username is already taken"

    @pytest.mark.asyncio
    async def test_invalid_input_is_400(self, accounts, credentials):
        result = await accounts.signup({"username": "jd", "email": "nope", "password": "1"})

        assert result.status_code == 400
        assert result.message == "Validation failed"
        assert {e.field for e in result.errors} == {"username", "email", "password"}
        assert credentials.users == {}

    @pytest.mark.asyncio
    async def test_store_failure_is_500(self, accounts, credentials):
        credentials.fail_with = StoreUnavailable("register user timed out after 5.0s")
        result = await accounts.signup(JANE)

        assert result.status_code == 500
        assert result.message == "Service temporarily unavailable"
        assert "timed out" in result.error

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_500(self, accounts, credentials):
        credentials.fail_with = RuntimeError("disk on fire")
        result = await accounts.signup(JANE)

        assert result.status_code == 500
        assert result.error == "disk on fire"


class TestLogin:
    @pytest.mark.asyncio
    async def test_success(self, accounts, tokens):
        signup = await accounts.signup(JANE)
        result = await accounts.login({"email": "JANE@x.com", "password": "s3cret!"})

        assert result.status_code == 200
        assert result.message == "Login successful"
        assert result.data["user"]["id"] == signup.data["user"]["id"]
        assert tokens.verify(result.data["token"]).user_id == signup.data["user"]["id"]

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_email_look_the_same(self, accounts):
        await accounts.signup(JANE)
        wrong_password = await accounts.login({"email": "jane@x.com", "password": "guess"})
        unknown_email = await accounts.login({"email": "bob@y.com", "password": "s3cret!"})

        for result in (wrong_password, unknown_email):
            assert result.status_code == 401
            assert result.message == UNAUTHORIZED_MESSAGE
            assert result.data is None
            assert result.error is None

    @pytest.mark.asyncio
    async def test_invalid_input_is_400(self, accounts):
        result = await accounts.login({"email": "not-an-email"})
        assert result.status_code == 400
        assert {e.field for e in result.errors} == {"email", "password"}
