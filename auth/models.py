"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic beyond trivial
properties). Stores and routes do the work.

Layer rule: no imports from api/, web/, or blogs/.
"""

from __future__ import annotations

from dataclasses import dataclass

ROLE_USER = "user"
ROLE_ADMIN = "admin"

# Reserved for the bootstrap account; never available to self-registration.
RESERVED_USERNAME = "admin"


@dataclass
class User:
    """A persisted account.

    hashed_password is None for Google-only users (they have no local password).
    google_id is None until the user signs in with Google for the first time;
    it may coexist with hashed_password after the accounts are linked.
    """

    username: str
    role: str = ROLE_USER  # "user" or "admin"
    id: str | None = None
    hashed_password: str | None = None  # None = Google-only user
    email: str | None = None
    google_id: str | None = None  # Google's stable subject id
    avatar: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Identity:
    """The authenticated caller of one request, derived from session claims.

    Anonymous callers are represented by None, never by an Identity. Handlers
    receive this explicitly through FastAPI dependencies.
    """

    id: str
    username: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


@dataclass(frozen=True)
class SessionClaims:
    """Decoded contents of a verified session token."""

    id: str
    username: str
    role: str
    exp: int  # Unix timestamp

    def to_identity(self) -> Identity:
        return Identity(id=self.id, username=self.username, role=self.role)


@dataclass(frozen=True)
class GoogleProfile:
    """Profile attributes returned by Google after the code exchange.

    email is None when Google did not return one or did not mark it verified.
    """

    subject: str
    name: str | None = None
    email: str | None = None
    avatar: str | None = None
