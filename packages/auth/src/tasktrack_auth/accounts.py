"""Account Service: signup and login.

Both operations return a PlatformResult envelope rather than raising, the same
contract the Task Service follows. Login failures are reported with the generic
401 message whether the email is unknown or the password is wrong.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from tasktrack_shared.auth_models import LoginRequest, SignupRequest, User
from tasktrack_shared.errors import (
    UNAUTHORIZED_MESSAGE,
    DuplicateIdentity,
    InputValidationError,
    TaskTrackError,
)
from tasktrack_shared.models import PlatformResult
from tasktrack_shared.validation import Invalid, parse

from tasktrack_auth.jwt import TokenService

if TYPE_CHECKING:
    from tasktrack_data_access.credentials import CredentialStore

logger = logging.getLogger(__name__)


def _session(user: User, token: str) -> dict[str, Any]:
    return {"user": user.to_public(), "token": token}


class AccountService:
    def __init__(self, credentials: CredentialStore, tokens: TokenService) -> None:
        self._credentials = credentials
        self._tokens = tokens

    async def signup(self, payload: Any) -> PlatformResult:
        parsed = parse(SignupRequest, payload)
        if isinstance(parsed, Invalid):
            return PlatformResult.failure(400, "Validation failed", errors=parsed.errors)
        request = parsed.value

        try:
            user = await self._credentials.register(
                request.username, request.email, request.password
            )
            token = self._tokens.issue(user.id)
        except DuplicateIdentity as e:
            logger.info(f"Signup rejected: {e.field} already registered")
            return PlatformResult.failure(409, e.message, errors=e.errors)
        except InputValidationError as e:
            return PlatformResult.failure(400, e.public_message, errors=e.errors)
        except TaskTrackError as e:
            logger.error(f"Signup failed: {e}")
            return PlatformResult.failure(e.status_code, e.public_message, error=str(e))
        except Exception as e:
            logger.exception("Signup failed")
            return PlatformResult.failure(500, "Server error during signup", error=str(e))

        return PlatformResult.ok(
            "User registered successfully", _session(user, token), status_code=201
        )

    async def login(self, payload: Any) -> PlatformResult:
        parsed = parse(LoginRequest, payload)
        if isinstance(parsed, Invalid):
            return PlatformResult.failure(400, "Validation failed", errors=parsed.errors)
        request = parsed.value

        try:
            user = await self._credentials.find_by_email(request.email)
            if user is None or not await self._credentials.verify_password(
                user, request.password
            ):
                logger.info("Login rejected: unknown email or wrong password")
                return PlatformResult.failure(401, UNAUTHORIZED_MESSAGE)
            token = self._tokens.issue(user.id)
        except TaskTrackError as e:
            logger.error(f"Login failed: {e}")
            return PlatformResult.failure(e.status_code, e.public_message, error=str(e))
        except Exception as e:
            logger.exception("Login failed")
            return PlatformResult.failure(500, "Server error during login", error=str(e))

        return PlatformResult.ok("Login successful", _session(user, token))
