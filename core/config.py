"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for Inkwell happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY).

  @model_validator(mode="after"): Cross-field startup checks. Dev mode
      (DEBUG=true) tolerates missing secrets; production mode fails fast.

Security notes:
  [S1] No hardcoded signing secret. SECRET_KEY is required in production and
       must be at least 32 characters. DEBUG generates a throwaway key.

  [S2] No hardcoded bootstrap admin password. ADMIN_PASSWORD is required in
       production. In DEBUG mode a missing value skips admin seeding.

Layer rule: core/ is the kernel. This module may not import from api/, web/,
auth/, or blogs/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("inkwell.config")


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments (with DEBUG=true) without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured".
    secret_key: str = ""
    database_url: str = "sqlite:///inkwell.db"
    # Public base URL; used to build the OAuth redirect URI.
    app_url: str = "http://localhost:8000"
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost", "testserver"]
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    token_expire_seconds: int = 24 * 3600
    bcrypt_rounds: int = 10
    admin_password: str = ""
    login_rate_limit: str = "10/minute"
    # False: an invalid bearer token on a best-effort endpoint (list/create
    # blogs) is treated as anonymous. True: it is rejected with 401.
    reject_invalid_optional_tokens: bool = False

    # ------------------------------------------------------------------
    # Google OAuth (optional -- empty string means provider is disabled)
    # ------------------------------------------------------------------

    google_client_id: str = ""
    google_client_secret: str = ""

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secrets(self) -> "Settings":
        """Enforce the secret and bootstrap-password policy [S1][S2]."""
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("Using auto-generated SECRET_KEY. Sessions will not persist across restarts.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")

        if not self.admin_password and not self.debug:
            raise ValueError(
                "ADMIN_PASSWORD is required in production mode. "
                "It is used once to seed the bootstrap admin account."
            )
        if len(self.admin_password.encode("utf-8")) > 72:
            raise ValueError("ADMIN_PASSWORD must be at most 72 bytes (bcrypt limit).")
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        return self

    @property
    def google_enabled(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret)

    @property
    def google_redirect_uri(self) -> str:
        """Callback URL registered with Google. APP_URL without a trailing slash."""
        return f"{self.app_url.rstrip('/')}/auth/google/callback"


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
