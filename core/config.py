"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for punchline happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() or,
better, receive a Settings instance from the application factory.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. session_secret -> SESSION_SECRET). Type coercion and validation are
      built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. A missing SESSION_SECRET is a hard
      startup failure in every environment: the session cookie has no
      integrity guarantee without it.

Layer rule: core/ is the kernel. This module may not import from api/, web/,
auth/, or jokes/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("punchline.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'punchline.db'}"

# 30 days, the lifetime of both the cookie and the token inside it.
SESSION_MAX_AGE = 60 * 60 * 24 * 30


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Every field except session_secret has a default, so tests can construct
    Settings(session_secret=..., database_url=...) without touching the
    process environment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    environment: str = "development"
    log_level: str = "INFO"
    database_url: str = _DEFAULT_DB_URL
    allowed_hosts: list[str] = ["*"]

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured"; the validator below
    # refuses to build Settings with it.
    session_secret: str = ""
    session_max_age: int = SESSION_MAX_AGE

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------

    bcrypt_rounds: int = 10

    # ------------------------------------------------------------------
    # Post-login redirects
    # ------------------------------------------------------------------

    allowed_redirects: list[str] = ["/", "/jokes", "/jokes/new"]
    default_redirect: str = "/jokes"

    @property
    def secure_cookies(self) -> bool:
        """Cookies carry the Secure attribute only in production.

        Browsers refuse Secure cookies over plain http://localhost, so
        development runs without it.
        """
        return self.environment.strip().lower() == "production"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_session_secret(self) -> "Settings":
        """Refuse to start without SESSION_SECRET.

        Short secrets still work but weaken HMAC-SHA256, so they are logged.
        """
        if not self.session_secret.strip():
            raise ValueError(
                "SESSION_SECRET is required. "
                "Set SESSION_SECRET in your environment or .env file "
                "(for example: python -c 'import secrets; print(secrets.token_hex(32))')."
            )
        if len(self.session_secret) < 32:
            logger.warning("SESSION_SECRET is shorter than 32 characters; use a longer random value.")
        if self.default_redirect not in self.allowed_redirects:
            raise ValueError("DEFAULT_REDIRECT must be one of ALLOWED_REDIRECTS.")
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    Only the application factory and the CLI call this; everything else is
    handed the Settings instance they built.

    In tests: construct Settings directly, or call get_settings.cache_clear()
    after changing environment variables.
    """
    return Settings()
