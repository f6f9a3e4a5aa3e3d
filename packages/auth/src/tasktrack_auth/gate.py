"""Authorization Gate: turns an Authorization header into the calling User.

Runs once per protected request. Every failure is an `Unauthorized` subclass
so the HTTP layer answers all of them with the same 401; the subclass and the
log line are the only places the reason survives.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tasktrack_shared.auth_models import User
from tasktrack_shared.errors import MissingCredential, Unauthorized, UnknownIdentity

from tasktrack_auth.jwt import TokenService

if TYPE_CHECKING:
    from tasktrack_data_access.credentials import CredentialStore

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


def extract_bearer_token(authorization: str | None) -> str:
    """Return the token from `Bearer <token>`.

    Raises:
        MissingCredential: header absent, another scheme, or no token.
    """
    if not authorization:
        raise MissingCredential("no Authorization header")
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != BEARER_SCHEME:
        raise MissingCredential("Authorization header is not a Bearer credential")
    token = token.strip()
    if not token:
        raise MissingCredential("empty bearer token")
    return token


class AuthorizationGate:
    def __init__(self, tokens: TokenService, credentials: CredentialStore) -> None:
        self._tokens = tokens
        self._credentials = credentials

    async def authenticate(self, authorization: str | None) -> User:
        """Resolve the caller.

        Raises:
            MissingCredential, TokenInvalid, TokenExpired, UnknownIdentity:
                the request is not authenticated.
            StoreUnavailable: the user lookup failed; this is not a 401.
        """
        try:
            token = extract_bearer_token(authorization)
            claim = self._tokens.verify(token)
        except Unauthorized as e:
            logger.info(f"Rejected request: {type(e).__name__}: {e}")
            raise

        user = await self._credentials.find_by_id(claim.user_id)
        if user is None:
            logger.info(f"Rejected request: token subject {claim.user_id} no longer exists")
            raise UnknownIdentity(f"user {claim.user_id} not found")
        return user
