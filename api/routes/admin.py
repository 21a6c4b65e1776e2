"""
api/routes/admin.py -- Admin-only REST endpoints.

Routes:
  GET /api/admin/stats  -- aggregate counts (admin only)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import AdminStatsResponse
from auth.dependencies import require_admin
from auth.models import Identity
from auth.store import UserStore

router = APIRouter()


@router.get("/admin/stats", response_model=AdminStatsResponse)
def admin_stats(request: Request, identity: Identity = Depends(require_admin)) -> AdminStatsResponse:
    """Number of registered accounts. 401 without a token, 403 for non-admins."""
    user_store: UserStore = request.app.state.user_store
    return AdminStatsResponse(user_count=user_store.count_users())
