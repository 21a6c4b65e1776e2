"""
API request and response models for Inkwell REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
blogs/models.py, which own the internal domain representation. Route handlers
map between the two.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from auth.models import User
from auth.tokens import MAX_PASSWORD_BYTES
from blogs.models import Blog

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Envelope for every error response: {"error": {"code", "message"}}."""

    error: ErrorDetail


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str


class MessageResponse(BaseModel):
    message: str


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/auth/register.

    bcrypt refuses passwords longer than 72 bytes, so the limit is on the
    UTF-8 encoding, not the character count.
    """

    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1)
    email: Optional[EmailStr] = None

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
        return v


class LoginRequest(BaseModel):
    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)


class UserPublic(BaseModel):
    """Public projection of a user. Never carries the password hash."""

    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    role: str

    @classmethod
    def from_user(cls, user: User) -> "UserPublic":
        return cls(id=user.id, username=user.username, role=user.role)


class LoginResponse(BaseModel):
    token: str
    user: UserPublic


class OAuthUrlResponse(BaseModel):
    url: str


# ---------------------------------------------------------------------------
# Blogs
# ---------------------------------------------------------------------------


class BlogCreate(BaseModel):
    """Request body for POST /api/blogs -- a post produced by the AI generator."""

    title: str = Field(min_length=1, max_length=500)
    content: str = Field(min_length=1, max_length=200_000)
    excerpt: str = Field(default="", max_length=2000)
    tone: str = Field(default="", max_length=100)
    language: str = Field(default="", max_length=100)


class BlogUpdate(BaseModel):
    """Request body for PUT /api/blogs/{id}. Only these fields are editable."""

    title: str = Field(min_length=1, max_length=500)
    content: str = Field(min_length=1, max_length=200_000)
    excerpt: str = Field(default="", max_length=2000)


class BlogResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: Optional[str]
    title: str
    content: str
    excerpt: str
    tone: str
    language: str
    created_at: str
    updated_at: Optional[str] = None

    @classmethod
    def from_blog(cls, blog: Blog) -> "BlogResponse":
        return cls(
            id=blog.id,
            user_id=blog.user_id,
            title=blog.title,
            content=blog.content,
            excerpt=blog.excerpt,
            tone=blog.tone,
            language=blog.language,
            created_at=blog.created_at or "",
            updated_at=blog.updated_at,
        )


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


class AdminStatsResponse(BaseModel):
    """Response for GET /api/admin/stats. Serialized as {"userCount": n}."""

    model_config = ConfigDict(populate_by_name=True)

    user_count: int = Field(serialization_alias="userCount")
