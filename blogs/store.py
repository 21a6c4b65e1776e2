"""
blogs/store.py -- SQLAlchemy Core persistence layer for blog posts.

Pattern: Repository + Data Mapper. BlogStore is the repository; _row_to_blog
is the mapper. Route handlers never touch SQL directly, and the store makes
no authorization decisions -- that is blogs/policy.py.

Every write is a single-row statement; the store performs no multi-row
transactions and no locking.

Security: all queries use bound parameters. No f-strings in SQL.
"""

from __future__ import annotations

from sqlalchemy import Column, String, Table, Text
from sqlalchemy.engine import Engine

from blogs.models import Blog
from core.database import metadata, new_id, now_iso

# Anonymous visitors see at most this many public posts.
PUBLIC_FEED_LIMIT = 20

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_blogs = Table(
    "blogs",
    metadata,
    Column("id", String(32), primary_key=True),  # uuid4 hex
    Column("user_id", String(32), index=True),  # NULL = anonymous/public post
    Column("title", Text, nullable=False),
    Column("content", Text, nullable=False),
    Column("excerpt", Text, nullable=False, server_default=""),
    Column("tone", String(100), nullable=False, server_default=""),
    Column("language", String(100), nullable=False, server_default=""),
    Column("created_at", String(32), nullable=False, index=True),
    Column("updated_at", String(32)),
)


class BlogStore:
    """Repository for Blog entities.

    Usage:
        store = BlogStore(engine)
        blog = store.create_blog(Blog(title="t", content="c", user_id=uid))
        store.list_public()
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        metadata.create_all(self.engine)

    def create_blog(self, blog: Blog) -> Blog:
        """Insert a post and return it with id and created_at filled in."""
        blog.id = new_id()
        blog.created_at = now_iso()
        blog.updated_at = None
        with self.engine.connect() as conn:
            conn.execute(
                _blogs.insert().values(
                    id=blog.id,
                    user_id=blog.user_id,
                    title=blog.title,
                    content=blog.content,
                    excerpt=blog.excerpt,
                    tone=blog.tone,
                    language=blog.language,
                    created_at=blog.created_at,
                )
            )
            conn.commit()
        return blog

    def get_blog(self, blog_id: str) -> Blog | None:
        with self.engine.connect() as conn:
            row = conn.execute(_blogs.select().where(_blogs.c.id == blog_id)).fetchone()
        return _row_to_blog(row) if row is not None else None

    def list_by_owner(self, user_id: str) -> list[Blog]:
        """All posts owned by user_id, in no particular order.

        Ordering is applied by blogs.policy.sort_newest_first so the result is
        deterministic regardless of the backend.
        """
        with self.engine.connect() as conn:
            rows = conn.execute(_blogs.select().where(_blogs.c.user_id == user_id)).fetchall()
        return [_row_to_blog(r) for r in rows]

    def list_public(self, limit: int = PUBLIC_FEED_LIMIT) -> list[Blog]:
        """Anonymous posts, newest first, at most `limit` of them."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _blogs.select()
                .where(_blogs.c.user_id.is_(None))
                .order_by(_blogs.c.created_at.desc(), _blogs.c.id)
                .limit(limit)
            ).fetchall()
        return [_row_to_blog(r) for r in rows]

    def update_blog(self, blog_id: str, *, title: str, content: str, excerpt: str) -> bool:
        """Replace the editable fields and stamp updated_at.

        Owner, tone, language and created_at are not parameters.
        Returns True if a row was updated, False if blog_id was not found.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _blogs.update()
                .where(_blogs.c.id == blog_id)
                .values(title=title, content=content, excerpt=excerpt, updated_at=now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def delete_blog(self, blog_id: str) -> bool:
        """Permanently delete a post. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_blogs.delete().where(_blogs.c.id == blog_id))
            conn.commit()
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_blog(row) -> Blog:
    return Blog(
        id=row.id,
        user_id=row.user_id,
        title=row.title,
        content=row.content,
        excerpt=row.excerpt,
        tone=row.tone,
        language=row.language,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
