"""
auth/tokens.py -- JWT session tokens and password hashing.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       id, username, role, and expiry (24h by default). They are stateless:
       nothing about a session is stored server-side, and a token cannot be
       renewed without logging in again.

       decode_access_token() raises a typed error instead of returning None
       so callers can tell an expired session from a forged or garbled one.

  Passwords: bcrypt used directly (no passlib wrapper) with a configurable
       cost factor (BCRYPT_ROUNDS, default 10). The _DUMMY_HASH constant
       enables timing equalization in authenticate_user() so response time
       does not reveal whether a username exists [C1].

  SECRET_KEY: sourced from core.config.get_settings(), which refuses to start
       in production without one [S1].

Layer rule: no imports from api/, web/, or blogs/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from auth.models import SessionClaims
from core.config import get_settings
from core.errors import InvalidCredentialsError, SocialLoginRequiredError

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("inkwell.auth")

_settings = get_settings()

_ALGORITHM = "HS256"

# bcrypt rejects (5.x) or silently truncates (4.x) anything longer.
MAX_PASSWORD_BYTES = 72


class TokenError(Exception):
    """Base class for session token verification failures."""


class TokenExpiredError(TokenError):
    """The token was valid once but its exp claim has passed."""


class InvalidTokenError(TokenError):
    """Bad signature, malformed payload, or missing claims."""


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    Raises ValueError if the UTF-8 encoding exceeds MAX_PASSWORD_BYTES;
    RegisterRequest and Settings reject such passwords before they get here.
    """
    if len(plain.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    salt = bcrypt.gensalt(rounds=_settings.bcrypt_rounds)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash, or a login password over MAX_PASSWORD_BYTES.
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones [C1].
_DUMMY_HASH: str = hash_password("inkwell_timing_dummy")


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(
    user_id: str,
    username: str,
    role: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Encode a signed JWT carrying the caller's identity.

    Args:
        user_id:       Opaque user id stored in the DB.
        username:      Username at issue time.
        role:          "user" or "admin".
        expires_delta: Lifetime of the token. Defaults to
                       Settings.token_expire_seconds (24 hours). Tests pass a
                       negative delta to mint an already-expired token.
    """
    if expires_delta is None:
        expires_delta = timedelta(seconds=_settings.token_expire_seconds)
    expire = datetime.now(timezone.utc) + expires_delta
    payload = {
        "id": user_id,
        "username": username,
        "role": role,
        "exp": expire,
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> SessionClaims:
    """Verify a JWT and return its claims.

    Raises:
        TokenExpiredError: the signature is valid but exp has passed.
        InvalidTokenError: anything else -- bad signature, garbage input,
            or a payload missing id/username/role.
    """
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise TokenExpiredError("Session token has expired.") from exc
    except JWTError as exc:
        raise InvalidTokenError("Session token is invalid.") from exc

    try:
        return SessionClaims(
            id=str(payload["id"]),
            username=str(payload["username"]),
            role=str(payload["role"]),
            exp=int(payload["exp"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidTokenError("Session token is missing required claims.") from exc


# ---------------------------------------------------------------------------
# User authentication (constant-time) [C1]
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, username: str, password: str) -> User:
    """Authenticate a local username/password login with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown username: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Raises:
        SocialLoginRequiredError: the account exists but has no password
            (created through Google sign-in).
        InvalidCredentialsError: unknown username or wrong password.
    """
    user = store.get_by_username(username)
    if user is None:
        verify_password(password, _DUMMY_HASH)
        raise InvalidCredentialsError()
    if user.hashed_password is None:
        verify_password(password, _DUMMY_HASH)
        raise SocialLoginRequiredError()
    if not verify_password(password, user.hashed_password):
        raise InvalidCredentialsError()
    return user
