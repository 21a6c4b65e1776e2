"""
api/routes/auth.py -- Account and session REST endpoints.

Routes:
  POST /api/auth/register     -- create a local account (role "user")
  POST /api/auth/login        -- password login; returns a bearer token
  GET  /api/auth/me           -- identity behind the current token
  GET  /api/auth/google/url   -- Google authorization URL for the sign-in popup

The Google callback itself (GET /auth/google/callback) returns HTML and lives
in web/routes.py.

Security:
  [H2] POST /login is rate-limited per IP (LOGIN_RATE_LIMIT, default 10/minute).
  [C1] authenticate_user() provides timing equalization -- use it, never inline.
  [M5] Cache-Control: no-store on login responses.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter, login_rate_limit
from api.models import LoginRequest, LoginResponse, OAuthUrlResponse, RegisterRequest, UserPublic
from auth.dependencies import require_identity
from auth.models import Identity
from auth.oauth import authorization_url
from auth.service import register_user
from auth.store import UserStore
from auth.tokens import authenticate_user, create_access_token
from core.config import get_settings
from core.errors import AppError, UnauthorizedError

logger = logging.getLogger("inkwell.api.auth")

# Auth policy:
# - POST /api/auth/register:    public
# - POST /api/auth/login:       public, rate limited
# - GET  /api/auth/me:          requires auth (require_identity)
# - GET  /api/auth/google/url:  public
router = APIRouter()


@router.post("/auth/register", response_model=UserPublic, status_code=201)
def register(request: Request, body: RegisterRequest) -> UserPublic:
    """Create a local-credential account. The reserved name "admin" is refused."""
    user_store: UserStore = request.app.state.user_store
    user = register_user(user_store, body.username, body.password, email=body.email)
    return UserPublic.from_user(user)


@limiter.limit(login_rate_limit)  # [H2] must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password; return a 24h bearer token.

    Unknown username and wrong password share one error ("bad_credentials").
    A Google-only account gets "social_login_required" so the client can point
    the user at the Google button.
    """
    user_store: UserStore = request.app.state.user_store
    try:
        user = authenticate_user(user_store, body.username, body.password)
    except UnauthorizedError as exc:
        resp = JSONResponse(
            status_code=exc.status_code,
            content={"error": {"code": exc.code, "message": exc.message}},
        )
        resp.headers["Cache-Control"] = "no-store"  # [M5]
        return resp

    token = create_access_token(user.id, user.username, user.role)
    logger.info("User %r logged in", user.username)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(token=token, user=UserPublic.from_user(user)).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


@router.get("/auth/me", response_model=UserPublic)
def me(request: Request, identity: Identity = Depends(require_identity)) -> UserPublic:
    """Return the account behind the caller's token."""
    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_id(identity.id)
    if user is None:
        raise UnauthorizedError("Account no longer exists.", code="invalid_token")
    return UserPublic.from_user(user)


@router.get("/auth/google/url", response_model=OAuthUrlResponse)
async def google_auth_url(request: Request) -> OAuthUrlResponse:
    """Return the Google authorization URL for the sign-in popup.

    The OAuth state is saved in the session cookie set on this response; the
    popup carries the same cookie back to /auth/google/callback, where authlib
    checks it.
    """
    settings = get_settings()
    client = request.app.state.oauth.create_client("google") if settings.google_client_id else None
    if client is None:
        raise AppError("Google Client ID is not configured.", code="oauth_not_configured")

    url = await authorization_url(client, request, settings.google_redirect_uri)
    return OAuthUrlResponse(url=url)
