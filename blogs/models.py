"""
blogs/models.py -- Domain dataclass for blog posts.

Pattern: Data class (pure data container, zero logic). Mirrors auth/models.py.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Blog:
    """A generated blog post.

    user_id is the owner's id, or None for a post created anonymously. It is
    fixed at creation; BlogStore.update_blog() has no way to change it.
    Timestamps are ISO 8601 UTC strings.
    """

    title: str
    content: str
    excerpt: str = ""
    tone: str = ""
    language: str = ""
    user_id: str | None = None
    id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
