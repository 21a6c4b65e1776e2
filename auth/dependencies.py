"""
auth/dependencies.py -- FastAPI Depends() helpers that resolve the caller.

Every request carries its identity in an `Authorization: Bearer <token>`
header. The helpers below turn that header into an explicit Identity value
(or None for anonymous callers) that route handlers receive as an argument.

  get_optional_identity() -- best-effort. No token -> None. An invalid or
      expired token is downgraded to None unless
      Settings.reject_invalid_optional_tokens is set, in which case it is
      rejected like the strict variant. Used by list/create blog routes.
  require_identity() -- strict. Raises 401 when the token is missing,
      expired, or invalid. Used by update/delete blog routes.
  require_admin() -- strict, then 403 unless the role is "admin".

Tokens are verified statelessly from their claims; the user table is not
consulted on each request.

auth/dependencies.py may import from fastapi (for Request) because this
module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import Request

from auth.models import Identity
from auth.tokens import TokenExpiredError, TokenError, decode_access_token
from core.config import get_settings
from core.errors import ForbiddenError, UnauthorizedError

logger = logging.getLogger("inkwell.auth")


def bearer_token(request: Request) -> str | None:
    """Return the raw token from the Authorization header, or None if absent."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
        return token or None
    return None


def _verify(token: str) -> Identity:
    """Decode the token, translating token errors into UnauthorizedError."""
    try:
        return decode_access_token(token).to_identity()
    except TokenExpiredError as exc:
        raise UnauthorizedError("Session has expired. Please log in again.", code="token_expired") from exc
    except TokenError as exc:
        raise UnauthorizedError("Invalid session token.", code="invalid_token") from exc


def get_optional_identity(request: Request) -> Identity | None:
    """Resolve the caller if possible; anonymous callers get None."""
    token = bearer_token(request)
    if token is None:
        return None
    try:
        return _verify(token)
    except UnauthorizedError as exc:
        if get_settings().reject_invalid_optional_tokens:
            raise
        logger.info(
            "Treating request with %s bearer token as anonymous: %s %s",
            exc.code,
            request.method,
            request.url.path,
        )
        return None


def require_identity(request: Request) -> Identity:
    """Require a valid session token. Raises 401 otherwise.

    Use as a FastAPI dependency:
        @router.put("/blogs/{blog_id}")
        def route(identity: Identity = Depends(require_identity)): ...
    """
    token = bearer_token(request)
    if token is None:
        raise UnauthorizedError()
    return _verify(token)


def require_admin(request: Request) -> Identity:
    """Require an admin session. Raises 401 if unauthenticated, 403 if not admin."""
    identity = require_identity(request)
    if not identity.is_admin:
        raise ForbiddenError("Admin access required.")
    return identity
