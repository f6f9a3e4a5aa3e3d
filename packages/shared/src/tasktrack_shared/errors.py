"""Error taxonomy.

Each exception carries the HTTP status it maps to and the message a client is
allowed to see. Internal detail stays in `str(exc)` and the logs.

The authentication failures are deliberately collapsed: every `Unauthorized`
subclass produces the same client message so a caller can't tell a missing
token from an expired one or from a deleted account.
"""

from __future__ import annotations

from tasktrack_shared.models import FieldError

UNAUTHORIZED_MESSAGE = "Invalid or missing credentials"
NOT_FOUND_MESSAGE = "Todo not found"


class TaskTrackError(Exception):
    """Base class for every failure the service knows how to report."""

    status_code = 500
    public_message = "Internal server error"
    retryable = False


class InputValidationError(TaskTrackError):
    """Malformed, missing, or out-of-range input."""

    status_code = 400
    public_message = "Validation failed"

    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = errors
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in errors))


class Unauthorized(TaskTrackError):
    status_code = 401
    public_message = UNAUTHORIZED_MESSAGE


class MissingCredential(Unauthorized):
    """No Authorization header, or not of the form `Bearer <token>`."""


class TokenInvalid(Unauthorized):
    """Bad signature, malformed token, wrong audience, or missing claims."""


class TokenExpired(Unauthorized):
    """Token was valid but its `exp` has passed."""


class UnknownIdentity(Unauthorized):
    """Token verified but the user it names no longer exists."""


class InvalidCredentials(Unauthorized):
    """Login with an unknown email or a wrong password."""


class PayloadTooLarge(TaskTrackError):
    """Request body over the size cap."""

    status_code = 413
    public_message = "Request body too large"


class NotFound(TaskTrackError):
    """Absent or not owned by the caller. The two cases are indistinguishable."""

    status_code = 404
    public_message = NOT_FOUND_MESSAGE


class DuplicateIdentity(TaskTrackError):
    """Signup collided with an existing username or email."""

    status_code = 409
    public_message = "User already exists"

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.message = message
        super().__init__(message)

    @property
    def errors(self) -> list[FieldError]:
        return [FieldError(field=self.field, message=self.message)]


class StoreUnavailable(TaskTrackError):
    """The data store timed out or could not be reached. Safe to retry."""

    status_code = 500
    public_message = "Service temporarily unavailable"
    retryable = True
