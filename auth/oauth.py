"""
auth/oauth.py -- Google sign-in: authlib registry and account resolution.

Reads core.config.get_settings() at module load to decide whether Google is
registered. The authorization-code exchange, OIDC discovery, id_token
validation, and state (CSRF) checking are all authlib's job; state is kept in
the Starlette SessionMiddleware cookie between GET /api/auth/google/url and
the callback.

What this module owns is the identity-resolution rule that maps a Google
profile onto an Inkwell account (resolve_google_user), first match wins:
  1. An account already linked to the Google subject id.
  2. An account with the same email -- link the subject id to it.
  3. A new Google-only account (no password hash).

Security notes:
  [H1] Only a verified email is trusted for step 2. An unverified address
       could belong to someone else; extract_google_profile() drops it, which
       sends the login down to step 3 instead of linking.

Layer rule: no imports from api/, web/, or blogs/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging

import httpx
from authlib.integrations.starlette_client import OAuth, OAuthError
from sqlalchemy.exc import IntegrityError

from auth.models import RESERVED_USERNAME, ROLE_USER, GoogleProfile, User
from auth.store import UserStore
from core.config import get_settings
from core.errors import UpstreamError

logger = logging.getLogger("inkwell.auth.oauth")

GOOGLE_SCOPE = "openid email profile"

# ---------------------------------------------------------------------------
# Authlib OAuth registry
# ---------------------------------------------------------------------------

oauth = OAuth()

_cfg = get_settings()

if _cfg.google_enabled:
    oauth.register(
        name="google",
        client_id=_cfg.google_client_id,
        client_secret=_cfg.google_client_secret,
        server_metadata_url="https://accounts.google.com/.well-known/openid-configuration",
        client_kwargs={"scope": GOOGLE_SCOPE},
    )
    logger.info("Google OAuth provider registered (redirect_uri=%s)", _cfg.google_redirect_uri)
else:
    logger.info("Google OAuth not configured -- social login disabled")


# ---------------------------------------------------------------------------
# Google exchange and profile extraction [H1]
# ---------------------------------------------------------------------------


def extract_google_profile(token: dict) -> GoogleProfile:
    """Build a GoogleProfile from the token dict authlib returns.

    authlib parses and validates the id_token and exposes its claims under
    "userinfo". Raises ValueError if there is no userinfo or no subject.
    """
    userinfo = token.get("userinfo")
    if not userinfo:
        raise ValueError("Google OAuth: no userinfo in token response")

    subject = userinfo.get("sub")
    if not subject:
        raise ValueError("Google OAuth: missing sub claim in userinfo")

    email = userinfo.get("email") or None
    if email and not userinfo.get("email_verified", False):
        logger.warning("Google OAuth: ignoring unverified email for subject %s", subject)
        email = None

    return GoogleProfile(
        subject=str(subject),
        name=userinfo.get("name") or None,
        email=email,
        avatar=userinfo.get("picture") or None,
    )


async def authorization_url(client, request, redirect_uri: str) -> str:
    """Build the Google authorization URL and save its state in the session.

    The first call also fetches Google's discovery document; a failure there
    surfaces as UpstreamError.
    """
    try:
        rv = await client.create_authorization_url(
            redirect_uri,
            access_type="offline",
            prompt="select_account",
        )
    except (OAuthError, httpx.HTTPError) as exc:
        raise UpstreamError("Could not reach Google.") from exc
    await client.save_authorize_data(request, redirect_uri=redirect_uri, **rv)
    return rv["url"]


async def fetch_google_profile(client, request) -> GoogleProfile:
    """Exchange the callback's code and return the verified profile.

    authlib checks the state against the session and validates the id_token.
    Any failure in that exchange is raised as UpstreamError.
    """
    try:
        token = await client.authorize_access_token(request)
        return extract_google_profile(token)
    except (OAuthError, httpx.HTTPError, ValueError) as exc:
        raise UpstreamError("Google sign-in failed.") from exc


# ---------------------------------------------------------------------------
# Account resolution
# ---------------------------------------------------------------------------


def _base_username(profile: GoogleProfile) -> str:
    if profile.name:
        return profile.name
    if profile.email:
        return profile.email.split("@", 1)[0]
    return f"user-{profile.subject[:8]}"


def _available_username(store: UserStore, profile: GoogleProfile) -> str:
    """Display name (or email local part), suffixed if taken or reserved."""
    candidate = _base_username(profile)
    if candidate.lower() != RESERVED_USERNAME and store.get_by_username(candidate) is None:
        return candidate
    return f"{candidate}-{profile.subject[-6:]}"


def resolve_google_user(store: UserStore, profile: GoogleProfile) -> User:
    """Return the account for this Google profile, linking or creating as needed."""
    user = store.get_by_google_id(profile.subject)
    if user is not None:
        return user

    if profile.email:
        user = store.get_by_email(profile.email)
        if user is not None:
            store.link_google(user.id, profile.subject)
            user.google_id = profile.subject
            logger.info("Linked Google subject to existing user %r", user.username)
            return user

    user = User(
        username=_available_username(store, profile),
        role=ROLE_USER,
        email=profile.email,
        google_id=profile.subject,
        avatar=profile.avatar,
    )
    try:
        store.create_user(user)
    except IntegrityError:
        # Username grabbed concurrently; the subject suffix is unique per account.
        user.username = f"{_base_username(profile)}-{profile.subject}"
        store.create_user(user)
    logger.info("Created Google user %r (id=%s)", user.username, user.id)
    return user
