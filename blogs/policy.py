"""
blogs/policy.py -- Who may list, read, change, or delete which blog posts.

Rules:
  List, authenticated (any role) -- only the caller's own posts, newest first.
      Admins included: the dashboard is personal, not a global view.
  List, anonymous -- posts with no owner, newest first, capped at
      PUBLIC_FEED_LIMIT (the store query does the ordering and the cap).
  Read one -- no ownership check; any existing post is readable by id.
  Create -- owner is the caller's id, or None for anonymous callers.
  Update / delete -- owner or admin only. Missing post is 404 before any
      ownership check, so a 403 always means the post exists. The API runs
      get_modifiable_blog() as a dependency, ahead of request-body
      validation, so a non-owner gets 403 whatever payload they send.

The functions take the identity explicitly (None = anonymous) and the store
as an argument; nothing here holds state.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone

from auth.models import Identity
from blogs.models import Blog
from blogs.store import BlogStore
from core.errors import BadRequestError, ForbiddenError, NotFoundError

logger = logging.getLogger("inkwell.blogs")

BLOG_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _created_key(blog: Blog) -> datetime:
    """Creation time for sorting; missing or unparseable timestamps sort as epoch zero."""
    if not blog.created_at:
        return _EPOCH
    try:
        ts = datetime.fromisoformat(blog.created_at)
    except ValueError:
        return _EPOCH
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def sort_newest_first(blogs: list[Blog]) -> list[Blog]:
    """Sort by creation time descending. Ties are broken by id, so the result
    does not depend on the order the store returned rows in."""
    return sorted(blogs, key=lambda b: (_created_key(b), b.id or ""), reverse=True)


def visible_blogs(store: BlogStore, identity: Identity | None) -> list[Blog]:
    """The posts GET /api/blogs returns for this caller."""
    if identity is None:
        return store.list_public()
    return sort_newest_first(store.list_by_owner(identity.id))


def parse_blog_id(blog_id: str) -> str:
    """Reject ids that could not have been issued by BlogStore."""
    if not BLOG_ID_PATTERN.match(blog_id):
        raise BadRequestError("Invalid blog ID.")
    return blog_id


def get_blog_or_404(store: BlogStore, blog_id: str) -> Blog:
    blog = store.get_blog(parse_blog_id(blog_id))
    if blog is None:
        raise NotFoundError("Blog not found.")
    return blog


def can_modify(identity: Identity, blog: Blog) -> bool:
    """Owner or admin. Anonymous posts (user_id None) are admin-only."""
    return identity.is_admin or (blog.user_id is not None and blog.user_id == identity.id)


def authorize_modification(identity: Identity, blog: Blog, action: str = "edit") -> None:
    """Raise ForbiddenError unless can_modify() allows it."""
    if not can_modify(identity, blog):
        logger.warning("User %r denied %s on blog %s", identity.username, action, blog.id)
        raise ForbiddenError(f"Unauthorized to {action} this blog.")


def get_modifiable_blog(store: BlogStore, identity: Identity, blog_id: str, action: str) -> Blog:
    """Load a post the caller is about to edit or delete.

    Raises BadRequestError for a malformed id, NotFoundError if the post does
    not exist, ForbiddenError unless the caller is the owner or an admin.
    """
    blog = get_blog_or_404(store, blog_id)
    authorize_modification(identity, blog, action)
    return blog


def create_blog(store: BlogStore, identity: Identity | None, blog: Blog) -> Blog:
    """Persist a new post owned by the caller (or by nobody if anonymous)."""
    blog.user_id = identity.id if identity is not None else None
    return store.create_blog(blog)


def update_blog(store: BlogStore, blog: Blog, *, title: str, content: str, excerpt: str) -> None:
    """Apply an edit to a post already cleared by get_modifiable_blog()."""
    if not store.update_blog(blog.id, title=title, content=content, excerpt=excerpt):
        # Deleted between the permission check and the write.
        raise NotFoundError("Blog not found.")


def delete_blog(store: BlogStore, blog: Blog) -> None:
    """Delete a post already cleared by get_modifiable_blog()."""
    if not store.delete_blog(blog.id):
        raise NotFoundError("Blog not found.")
    logger.info("Deleted blog %s", blog.id)
