"""Access-token issuing and verification.

Tokens are self-contained HS256 JWTs carrying the user id (`sub`), issue time,
expiry, and audience. There is no server-side session table and no revocation
list: expiry is the only way a token stops working.

The signing key is passed in at construction; it never comes from request data.
"""

from __future__ import annotations

import time
from datetime import timedelta

import jwt as pyjwt
from tasktrack_shared.auth_models import SessionClaim
from tasktrack_shared.errors import TokenExpired, TokenInvalid

ALGORITHM = "HS256"
DEFAULT_LIFETIME = timedelta(days=7)


def issue_token(
    user_id: str,
    secret: str,
    *,
    audience: str,
    lifetime: timedelta = DEFAULT_LIFETIME,
    now: float | None = None,
) -> str:
    """Sign a token for `user_id` that expires after `lifetime`."""
    issued_at = int(now if now is not None else time.time())
    payload = {
        "sub": user_id,
        "iat": issued_at,
        "exp": issued_at + int(lifetime.total_seconds()),
        "aud": audience,
    }
    return pyjwt.encode(payload, secret, algorithm=ALGORITHM)


def verify_token(token: str, secret: str, *, audience: str) -> SessionClaim:
    """Decode and validate a token.

    Args:
        token: The raw JWT string (from the Authorization header).
        secret: The signing key.
        audience: Expected `aud` claim.

    Returns:
        SessionClaim with user_id and expiry.

    Raises:
        TokenExpired: Token has expired.
        TokenInvalid: Bad signature, malformed token, wrong audience, or a
            required claim (sub, exp) is missing.
    """
    try:
        payload = pyjwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            audience=audience,
            options={"require": ["exp", "sub"]},
        )
    except pyjwt.ExpiredSignatureError as e:
        raise TokenExpired("token expired") from e
    except pyjwt.InvalidTokenError as e:
        raise TokenInvalid(f"token rejected: {type(e).__name__}") from e

    user_id = payload["sub"]
    if not isinstance(user_id, str) or not user_id:
        raise TokenInvalid("token rejected: empty subject")

    return SessionClaim(user_id=user_id, exp=payload["exp"])


class TokenService:
    """Issues and verifies tokens with one process-wide key."""

    def __init__(
        self,
        secret: str,
        *,
        audience: str = "tasktrack",
        lifetime: timedelta = DEFAULT_LIFETIME,
    ) -> None:
        if not secret:
            raise ValueError("TokenService requires a non-empty signing secret")
        self._secret = secret
        self.audience = audience
        self.lifetime = lifetime

    def issue(self, user_id: str) -> str:
        return issue_token(user_id, self._secret, audience=self.audience, lifetime=self.lifetime)

    def verify(self, token: str) -> SessionClaim:
        return verify_token(token, self._secret, audience=self.audience)
