"""
core/errors.py -- Domain error taxonomy.

Every failure the service reports to a client is one of these. Each class
carries the HTTP status and a stable machine-readable code; api/main.py has a
single exception handler that turns any AppError into the standard
{"error": {"code", "message"}} envelope. Domain code (auth/, blogs/) raises
these without knowing anything about FastAPI.

Layer rule: core/ is the kernel. No imports from api/, web/, auth/, or blogs/.
"""

from __future__ import annotations


class AppError(Exception):
    """Base class. Subclasses override status_code and code."""

    status_code: int = 500
    code: str = "internal_error"
    message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None, *, code: str | None = None) -> None:
        if message is not None:
            self.message = message
        if code is not None:
            self.code = code
        super().__init__(self.message)


class BadRequestError(AppError):
    status_code = 400
    code = "bad_request"
    message = "Malformed request."


class ReservedUsernameError(BadRequestError):
    code = "reserved_username"
    message = "Cannot register with this username."


class UnauthorizedError(AppError):
    status_code = 401
    code = "unauthorized"
    message = "Authentication required."


class InvalidCredentialsError(UnauthorizedError):
    code = "bad_credentials"
    message = "Invalid credentials."


class SocialLoginRequiredError(UnauthorizedError):
    code = "social_login_required"
    message = "This account uses social login. Please sign in with Google."


class ForbiddenError(AppError):
    status_code = 403
    code = "forbidden"
    message = "You do not have permission to perform this action."


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"
    message = "Resource not found."


class ConflictError(AppError):
    status_code = 409
    code = "conflict"
    message = "Resource already exists."


class DuplicateUsernameError(ConflictError):
    # POST /api/auth/register reports a taken username as 400.
    status_code = 400
    message = "Username already exists."


class UpstreamError(AppError):
    """An identity-provider call failed."""

    status_code = 502
    code = "upstream_failure"
    message = "An upstream service call failed."
