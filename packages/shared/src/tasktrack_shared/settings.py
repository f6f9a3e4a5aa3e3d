"""Process configuration.

One Settings object is built at startup (usually via `Settings.from_env()`)
and passed explicitly to `create_app`, which hands the relevant pieces to each
component. Nothing reads the environment after startup, and nothing holds a
module-level engine or signing key.

The runner loads `.env` with python-dotenv before calling `from_env()`, so
local development needs no exported variables.
"""

from __future__ import annotations

import os
import re
from datetime import timedelta

from pydantic import BaseModel, Field, field_validator

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./tasktrack.db"

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$", re.IGNORECASE)
_DURATION_UNITS = {
    "": "seconds",
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
    "w": "weeks",
}


def parse_duration(raw: str) -> timedelta:
    """Parse a token lifetime such as `7d`, `12h`, `30m`, or `3600`.

    A bare number is seconds.
    """
    match = _DURATION_RE.match(raw)
    if not match:
        raise ValueError(f"Invalid duration: {raw!r} (expected e.g. '7d', '12h', '3600')")
    amount, unit = match.groups()
    delta = timedelta(**{_DURATION_UNITS[unit.lower()]: int(amount)})
    if delta.total_seconds() <= 0:
        raise ValueError(f"Duration must be positive: {raw!r}")
    return delta


class Settings(BaseModel):
    """Everything the service needs to start."""

    database_url: str = DEFAULT_DATABASE_URL
    jwt_secret: str = Field(min_length=1)
    jwt_expires_in: timedelta = timedelta(days=7)
    jwt_audience: str = "tasktrack"
    environment: str = "development"
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = ["*"]
    store_timeout_seconds: float = Field(default=5.0, gt=0)
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)
    log_level: str = "INFO"

    @field_validator("environment")
    @classmethod
    def _normalize_environment(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from environment variables.

        Raises:
            ValueError: JWT_SECRET is unset, or a value can't be parsed.
        """
        secret = os.environ.get("JWT_SECRET", "")
        if not secret:
            raise ValueError(
                "JWT_SECRET environment variable is not set. "
                "Set it to a long random string used to sign access tokens."
            )

        origins = [
            o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()
        ]

        return cls(
            database_url=os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL),
            jwt_secret=secret,
            jwt_expires_in=parse_duration(os.environ.get("JWT_EXPIRES_IN", "7d")),
            jwt_audience=os.environ.get("JWT_AUDIENCE", "tasktrack"),
            environment=os.environ.get("APP_ENV", "development"),
            host=os.environ.get("HOST", "0.0.0.0"),
            port=int(os.environ.get("PORT", "3000")),
            cors_origins=origins or ["*"],
            store_timeout_seconds=float(os.environ.get("STORE_TIMEOUT_SECONDS", "5")),
            bcrypt_rounds=int(os.environ.get("BCRYPT_ROUNDS", "12")),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )
