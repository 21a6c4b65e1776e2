"""Unit tests for registration, login, and bootstrap seeding.

Covers:
- register_user(): reserved "admin" in any case, duplicates, case-sensitive names
- authenticate_user(): success, wrong password, unknown user, Google-only account
- seed_admin(): creates the admin once and never twice
"""

from __future__ import annotations

import pytest

from auth.models import ROLE_ADMIN, ROLE_USER, User
from auth.service import register_user, seed_admin
from auth.store import UserStore
from auth.tokens import authenticate_user, verify_password
from core.errors import (
    BadRequestError,
    ConflictError,
    DuplicateUsernameError,
    InvalidCredentialsError,
    ReservedUsernameError,
    SocialLoginRequiredError,
)


class TestRegisterUser:
    @pytest.mark.parametrize("name", ["admin", "Admin", "ADMIN", "aDmIn"])
    def test_reserved_username_rejected(self, user_store: UserStore, name: str) -> None:
        with pytest.raises(ReservedUsernameError):
            register_user(user_store, name, "pw")
        assert user_store.get_by_username(name) is None

    def test_creates_user_role(self, user_store: UserStore) -> None:
        user = register_user(user_store, "alice", "pw1")
        assert user.id
        assert user.role == ROLE_USER
        stored = user_store.get_by_username("alice")
        assert stored is not None
        assert stored.id == user.id
        assert verify_password("pw1", stored.hashed_password)

    def test_duplicate_username_rejected(self, user_store: UserStore) -> None:
        register_user(user_store, "alice", "pw1")
        with pytest.raises(DuplicateUsernameError):
            register_user(user_store, "alice", "other")

    def test_duplicate_is_a_conflict_reported_as_400(self) -> None:
        assert issubclass(DuplicateUsernameError, ConflictError)
        assert DuplicateUsernameError.status_code == 400
        assert DuplicateUsernameError.code == "conflict"

    def test_password_over_72_bytes_rejected(self, user_store: UserStore) -> None:
        with pytest.raises(BadRequestError):
            register_user(user_store, "alice", "\u00e9" * 37)
        assert user_store.get_by_username("alice") is None

    def test_usernames_are_case_sensitive(self, user_store: UserStore) -> None:
        first = register_user(user_store, "alice", "pw1")
        second = register_user(user_store, "Alice", "pw2")
        assert first.id != second.id

    def test_optional_email_stored(self, user_store: UserStore) -> None:
        register_user(user_store, "carol", "pw", email="carol@example.com")
        assert user_store.get_by_email("carol@example.com").username == "carol"

    def test_email_lookup_ignores_case(self, user_store: UserStore) -> None:
        register_user(user_store, "carol", "pw", email="Carol@Example.com")
        assert user_store.get_by_email("carol@example.COM").username == "carol"


class TestAuthenticateUser:
    def test_success(self, user_store: UserStore) -> None:
        created = register_user(user_store, "alice", "pw1")
        user = authenticate_user(user_store, "alice", "pw1")
        assert user.id == created.id

    def test_wrong_password(self, user_store: UserStore) -> None:
        register_user(user_store, "alice", "pw1")
        with pytest.raises(InvalidCredentialsError):
            authenticate_user(user_store, "alice", "wrong")

    def test_unknown_user(self, user_store: UserStore) -> None:
        with pytest.raises(InvalidCredentialsError):
            authenticate_user(user_store, "nobody", "pw")

    def test_username_lookup_is_case_sensitive(self, user_store: UserStore) -> None:
        register_user(user_store, "alice", "pw1")
        with pytest.raises(InvalidCredentialsError):
            authenticate_user(user_store, "ALICE", "pw1")

    def test_google_only_account_needs_social_login(self, user_store: UserStore) -> None:
        user_store.create_user(User(username="gina", google_id="g-123", email="gina@example.com"))
        with pytest.raises(SocialLoginRequiredError) as excinfo:
            authenticate_user(user_store, "gina", "anything")
        assert "Google" in excinfo.value.message


class TestSeedAdmin:
    def test_creates_admin_once(self, user_store: UserStore) -> None:
        assert seed_admin(user_store, "bootstrap-pw") is True
        admin = user_store.get_by_username("admin")
        assert admin.role == ROLE_ADMIN
        assert verify_password("bootstrap-pw", admin.hashed_password)

        assert seed_admin(user_store, "different-pw") is False
        assert user_store.count_users() == 1
        # The original password still works; re-seeding never overwrites it.
        assert authenticate_user(user_store, "admin", "bootstrap-pw").role == ROLE_ADMIN
