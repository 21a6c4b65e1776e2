"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper (same as blogs/store.py).
UserStore is the repository; _row_to_user is the mapper.
Route and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  google_id uniqueness is enforced in code rather than SQL: SQLite treats two
  NULL values as distinct in UNIQUE constraints, and most rows have no Google
  linkage. resolve_google_user() looks up by google_id before linking.

The Engine is injected, never created here -- see core/database.py.

Layer rule: no imports from api/, web/, or blogs/.
"""

from __future__ import annotations

from sqlalchemy import Column, String, Table, Text, func, select
from sqlalchemy.engine import Engine

from auth.models import RESERVED_USERNAME, User
from core.database import metadata, new_id, now_iso

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_users = Table(
    "users",
    metadata,
    Column("id", String(32), primary_key=True),  # uuid4 hex
    Column("username", String(255), nullable=False, unique=True),
    Column("hashed_password", Text),  # NULL for Google-only users
    Column("role", String(30), nullable=False, server_default="user"),
    Column("email", String(320), index=True),
    Column("google_id", String(255), index=True),
    Column("avatar", Text),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        engine = create_db_engine(settings.database_url)
        store = UserStore(engine)
        user = store.create_user(User(username="alice", hashed_password=hash_password("pw")))
        store.get_by_username("alice")
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> User:
        """Insert a new user and return it with id and created_at filled in.

        Raises sqlalchemy.exc.IntegrityError if the username already exists.
        Callers (register_user) translate that into DuplicateUsernameError so
        a racing duplicate registration is reported the same as a sequential one.
        """
        user_id = new_id()
        created_at = now_iso()
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    id=user_id,
                    username=user.username,
                    hashed_password=user.hashed_password,
                    role=user.role,
                    email=user.email,
                    google_id=user.google_id,
                    avatar=user.avatar,
                    created_at=created_at,
                )
            )
            conn.commit()
        user.id = user_id
        user.created_at = created_at
        return user

    def link_google(self, user_id: str, google_id: str) -> None:
        """Attach a Google subject id to an existing account.

        The only mutation the application ever performs on a user record.
        """
        with self.engine.connect() as conn:
            conn.execute(_users.update().where(_users.c.id == user_id).values(google_id=google_id))
            conn.commit()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_by_id(self, user_id: str) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_email(self, email: str) -> User | None:
        """Return the oldest account registered with this email, or None.

        Case-insensitive: Google and the registration form may disagree on case.
        """
        with self.engine.connect() as conn:
            row = conn.execute(
                _users.select()
                .where(func.lower(_users.c.email) == email.lower())
                .order_by(_users.c.created_at)
                .limit(1)
            ).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_google_id(self, google_id: str) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.google_id == google_id).limit(1)).fetchone()
        return _row_to_user(row) if row is not None else None

    def count_users(self) -> int:
        """Total number of accounts. Backs GET /api/admin/stats."""
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0

    def has_admin_account(self) -> bool:
        """True if the reserved 'admin' username is taken.

        Checks the username, not the role: the bootstrap step only cares that
        the reserved account exists.
        """
        return self.get_by_username(RESERVED_USERNAME) is not None


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        hashed_password=row.hashed_password,
        role=row.role,
        email=row.email,
        google_id=row.google_id,
        avatar=row.avatar,
        created_at=row.created_at,
    )
