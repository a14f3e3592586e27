"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the marketplace API happen here. No module
should call os.getenv() or os.environ.get() directly -- import get_settings()
at process start and pass the Settings object down instead.

Design:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance afterwards. asgi.py and main.py call
      it exactly once and hand the result to create_app() / the stores, so the
      rest of the code base receives configuration explicitly rather than
      reading a module global.

  BaseSettings (pydantic-settings): values come from environment variables and
      an optional .env file. Field names map to env var names
      (secret_key -> SECRET_KEY, database_url -> DATABASE_URL).

  @model_validator(mode="after"): DEBUG-conditional SECRET_KEY policy. Dev mode
      generates a random key with a warning; production refuses to start.

Layer rule: core/ is the kernel. This module may not import from api/, auth/
or catalog/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("marketplace.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'marketplace.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings(debug=True) can be instantiated in
    tests without a real .env file.
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
    # Empty string is the "not configured" sentinel; see validate_secret_key.
    secret_key: str = ""
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # 7 days
    token_expire_seconds: int = 7 * 24 * 3600
    password_min_length: int = 6

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:5174",
    ]
    # Per-route limits are declared on the routes; this switch exists so tests
    # can exercise login repeatedly without tripping them.
    rate_limit_enabled: bool = True

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Tokens will not survive a restart.

        Production mode: refuse to start without SECRET_KEY.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("Using auto-generated SECRET_KEY. Tokens will not persist across restarts.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        if self.token_expire_seconds <= 0:
            raise ValueError("TOKEN_EXPIRE_SECONDS must be positive.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide Settings instance.

    Call once at process start (asgi.py, main.py) and pass the result down.
    In tests, construct Settings(...) directly instead of patching the
    environment, or call get_settings.cache_clear().
    """
    return Settings()
