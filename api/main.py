"""
api/main.py -- FastAPI application for Inkwell.

Run with:      uvicorn asgi:app --reload

Each add_middleware() call wraps the app built so far, so requests pass
through them in reverse order of registration: SessionMiddleware (OAuth
state cookie), SlowAPIMiddleware, CORSMiddleware, TrustedHostMiddleware.

Every error leaves as {"error": {"code", "message", "detail"?}}.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.admin import router as admin_router
from api.routes.auth import router as auth_router
from api.routes.blogs import router as blogs_router
from auth.oauth import oauth as oauth_client
from auth.service import seed_admin
from auth.store import UserStore
from blogs.store import BlogStore
from core.config import get_settings
from core.database import create_db_engine
from core.errors import AppError

VERSION = "0.1.0"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("inkwell.api")

_settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """One Engine for the process, shared by both stores; admin seeded once it exists."""
    engine = create_db_engine(_settings.database_url)
    app.state.db_engine = engine
    app.state.user_store = UserStore(engine)
    app.state.blog_store = BlogStore(engine)
    app.state.oauth = oauth_client

    if _settings.admin_password:
        seed_admin(app.state.user_store, _settings.admin_password)
    else:
        logger.warning("ADMIN_PASSWORD not set -- no bootstrap admin (DEBUG mode)")
    logger.info("Inkwell API ready (database=%s)", engine.url.render_as_string(hide_password=True))

    yield

    engine.dispose()
    logger.info("Inkwell API stopped")


app = FastAPI(
    title="Inkwell API",
    description="AI-generated blog posts with local and Google sign-in.",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.allowed_hosts)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(SessionMiddleware, secret_key=_settings.secret_key, same_site="lax")
app.state.limiter = limiter


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s %d %.1fms",
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - start) * 1000,
    )
    return response


app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(blogs_router, prefix="/api", tags=["Blogs"])
app.include_router(admin_router, prefix="/api", tags=["Admin"])


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


def _error(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail))
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return _error(exc.status_code, exc.code, exc.message)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    response = _error(429, "rate_limited", "Too many login attempts.", str(exc.detail))
    response.headers["Retry-After"] = str(int(getattr(exc, "retry_after", 60)))
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(422, "validation_error", "Request validation failed.", str(exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown routes and wrong methods."""
    return _error(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "internal_error", "An unexpected error occurred.")


@app.get("/api/health", tags=["Health"])
async def health() -> HealthResponse:
    return HealthResponse(version=VERSION)
