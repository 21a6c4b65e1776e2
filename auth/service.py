"""
auth/service.py -- Account registration and bootstrap seeding.

Route handlers call these; they never assemble User records themselves.
Login lives in auth/tokens.py (authenticate_user) next to the timing-safe
password check it depends on.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.models import RESERVED_USERNAME, ROLE_ADMIN, ROLE_USER, User
from auth.store import UserStore
from auth.tokens import MAX_PASSWORD_BYTES, hash_password
from core.errors import BadRequestError, DuplicateUsernameError, ReservedUsernameError

logger = logging.getLogger("inkwell.auth")


def register_user(store: UserStore, username: str, password: str, email: str | None = None) -> User:
    """Create a local-credential account with role "user".

    Raises:
        ReservedUsernameError: username is "admin" in any letter case.
        BadRequestError: the password is longer than bcrypt accepts.
        DuplicateUsernameError: the exact (case-sensitive) username is taken,
            including when a concurrent request wins the insert race.
    """
    if username.lower() == RESERVED_USERNAME:
        raise ReservedUsernameError()
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise BadRequestError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
    if store.get_by_username(username) is not None:
        raise DuplicateUsernameError()

    user = User(
        username=username,
        role=ROLE_USER,
        hashed_password=hash_password(password),
        email=email,
    )
    try:
        store.create_user(user)
    except IntegrityError as exc:
        raise DuplicateUsernameError() from exc
    logger.info("Registered user %r (id=%s)", user.username, user.id)
    return user


def seed_admin(store: UserStore, password: str) -> bool:
    """Create the bootstrap admin account if it does not exist yet.

    The password comes from configuration (ADMIN_PASSWORD); there is no
    built-in default. Returns True if an account was created.
    """
    if store.has_admin_account():
        return False
    try:
        store.create_user(
            User(
                username=RESERVED_USERNAME,
                role=ROLE_ADMIN,
                hashed_password=hash_password(password),
            )
        )
    except IntegrityError:
        # Another worker seeded it between the check and the insert.
        return False
    logger.info("Bootstrap admin account created")
    return True
