"""
api/routes/blogs.py -- Blog post REST endpoints.

Routes:
  GET    /api/blogs            -- caller's own posts, or the public feed when anonymous
  GET    /api/blogs/{blog_id}  -- any post by id
  POST   /api/blogs            -- save a generated post (anonymous allowed)
  PUT    /api/blogs/{blog_id}  -- edit title/content/excerpt (owner or admin)
  DELETE /api/blogs/{blog_id}  -- delete (owner or admin)

Visibility and ownership rules live in blogs/policy.py; this module only
binds them to HTTP.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from api.models import BlogCreate, BlogResponse, BlogUpdate, MessageResponse
from auth.dependencies import get_optional_identity, require_identity
from auth.models import Identity
from blogs import policy
from blogs.models import Blog
from blogs.store import BlogStore

# Auth policy:
# - GET    /api/blogs:       optional auth (get_optional_identity)
# - GET    /api/blogs/{id}:  public
# - POST   /api/blogs:       optional auth (get_optional_identity)
# - PUT    /api/blogs/{id}:  requires auth + owner-or-admin (_modifiable_blog)
# - DELETE /api/blogs/{id}:  requires auth + owner-or-admin (_modifiable_blog)
router = APIRouter()


def _blog_store(request: Request) -> BlogStore:
    return request.app.state.blog_store


def _modifiable_blog(
    request: Request,
    blog_id: str,
    identity: Identity = Depends(require_identity),
) -> Blog:
    """Dependency: the post at blog_id, if the caller may change it."""
    action = "delete" if request.method == "DELETE" else "edit"
    return policy.get_modifiable_blog(_blog_store(request), identity, blog_id, action)


@router.get("/blogs", response_model=list[BlogResponse])
def list_blogs(
    request: Request,
    identity: Identity | None = Depends(get_optional_identity),
) -> list[BlogResponse]:
    """Signed-in callers get their own posts (admins too); anonymous callers get the public feed."""
    blogs = policy.visible_blogs(_blog_store(request), identity)
    return [BlogResponse.from_blog(b) for b in blogs]


@router.get("/blogs/{blog_id}", response_model=BlogResponse)
def get_blog(request: Request, blog_id: str) -> BlogResponse:
    return BlogResponse.from_blog(policy.get_blog_or_404(_blog_store(request), blog_id))


@router.post("/blogs", response_model=BlogResponse, status_code=201)
def create_blog(
    request: Request,
    body: BlogCreate,
    identity: Identity | None = Depends(get_optional_identity),
) -> BlogResponse:
    blog = Blog(
        title=body.title,
        content=body.content,
        excerpt=body.excerpt,
        tone=body.tone,
        language=body.language,
    )
    return BlogResponse.from_blog(policy.create_blog(_blog_store(request), identity, blog))


async def _blog_update(request: Request, blog: Blog = Depends(_modifiable_blog)) -> BlogUpdate:
    """Dependency: the PUT body, parsed only after _modifiable_blog has passed.

    FastAPI decodes a declared body before any dependency runs, so the body is
    read here instead. A non-owner gets 403 even for unparseable JSON.
    """
    try:
        return BlogUpdate.model_validate_json(await request.body())
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False)) from exc


@router.put(
    "/blogs/{blog_id}",
    response_model=MessageResponse,
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": BlogUpdate.model_json_schema()}},
        }
    },
)
def update_blog(
    request: Request,
    blog: Blog = Depends(_modifiable_blog),
    body: BlogUpdate = Depends(_blog_update),
) -> MessageResponse:
    policy.update_blog(_blog_store(request), blog, title=body.title, content=body.content, excerpt=body.excerpt)
    return MessageResponse(message="Blog updated successfully")


@router.delete("/blogs/{blog_id}", response_model=MessageResponse)
def delete_blog(request: Request, blog: Blog = Depends(_modifiable_blog)) -> MessageResponse:
    policy.delete_blog(_blog_store(request), blog)
    return MessageResponse(message="Blog deleted successfully")
