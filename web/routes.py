"""
web/routes.py -- HTML routes for Inkwell.

The single-page front end is served separately; the only server-rendered page
is the end of the Google sign-in popup.

Routes:
  GET /auth/google/callback  -- finish Google sign-in, hand the token to the opener

Flow:
  1. The SPA calls GET /api/auth/google/url (api/routes/auth.py), which saves
     the OAuth state in the session cookie, and opens the returned URL in a popup.
  2. Google redirects the popup here with ?code=...&state=...
  3. authlib exchanges the code (checking state against the session) and
     validates the id_token.
  4. resolve_google_user() finds, links, or creates the account.
  5. The page posts {type: "OAUTH_AUTH_SUCCESS", token, user} to
     window.opener (same origin only) and closes itself.

The path is fixed (/auth/google/callback): it is registered with Google as the
redirect URI and must not move.
"""

import logging
from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from auth.oauth import fetch_google_profile, resolve_google_user
from auth.store import UserStore
from auth.tokens import create_access_token
from core.errors import UpstreamError

logger = logging.getLogger("inkwell.web")

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
router = APIRouter()

OAUTH_SUCCESS_MESSAGE = "OAUTH_AUTH_SUCCESS"


@router.get("/auth/google/callback", response_class=HTMLResponse, name="google_callback")
async def google_callback(request: Request) -> HTMLResponse:
    """Complete Google sign-in inside the popup window.

    400 when Google sent no code (e.g. the user cancelled), 500 when the
    provider exchange fails or Google is not configured.
    """
    if not request.query_params.get("code"):
        return HTMLResponse("No code provided", status_code=400)

    client = request.app.state.oauth.create_client("google")
    if client is None:
        logger.error("Google callback hit but Google OAuth is not configured")
        return HTMLResponse("Authentication failed", status_code=500)

    try:
        profile = await fetch_google_profile(client, request)
    except UpstreamError:
        logger.exception("Google OAuth token exchange failed")
        return HTMLResponse("Authentication failed", status_code=500)

    user_store: UserStore = request.app.state.user_store
    user = resolve_google_user(user_store, profile)

    session_token = create_access_token(user.id, user.username, user.role)
    message = {
        "type": OAUTH_SUCCESS_MESSAGE,
        "token": session_token,
        "user": {"id": user.id, "username": user.username, "role": user.role},
    }
    resp = templates.TemplateResponse(request, "oauth_success.html", {"message": message})
    resp.headers["Cache-Control"] = "no-store"
    return resp
