"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads happen here. No module should call os.getenv()
or os.environ.get() directly -- import get_settings() instead. The auth
package never reads Settings itself; create_auth_service() maps Settings onto
an explicit CredentialConfig that is passed down.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file. Field names map to env var names
      (e.g. jwt_secret -> JWT_SECRET).

  @model_validator(mode="after"): cross-field startup checks. Missing
      peppers are always fatal. A missing JWT_SECRET is fatal in production
      and auto-generated in debug mode.

Security notes:
  PEPPERS is a comma-separated list, current pepper first. Each pepper is
      capped at 32 bytes so it cannot crowd the password out of bcrypt's
      72-byte input window. Removing a pepper that live digests still depend
      on locks those users out; rotate first.
      A random pepper is never generated, even in debug mode, because digests
      made under it would stop verifying on restart.

  JWT_SECRET shorter than 32 chars is rejected outright. HS256 signing relies
      on key entropy -- a short key weakens every issued token.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
import secrets
from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

logger = logging.getLogger("pepperauth.config")

# Mirrors auth.models.MAX_PEPPER_BYTES; core/ may not import from auth/.
_MAX_PEPPER_BYTES = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Environment variable name mapping: field names are uppercased automatically.
    E.g. `peppers` reads from PEPPERS, `debug` reads from DEBUG.
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
    database_url: str = ""

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    # NoDecode: read PEPPERS as a raw string and split it below instead of
    # expecting a JSON array.
    peppers: Annotated[list[str], NoDecode] = Field(default_factory=list)
    bcrypt_rounds: int = Field(default=10, ge=4, le=31)

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    jwt_secret: str = ""
    token_expire_seconds: int = Field(default=7 * 24 * 3600, gt=0)

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("peppers", mode="before")
    @classmethod
    def split_peppers(cls, value):
        """Accept 'p1,p2' from the environment as well as a real list."""
        if isinstance(value, str):
            return [p.strip() for p in value.split(",") if p.strip()]
        return value

    @model_validator(mode="after")
    def validate_secrets(self) -> "Settings":
        """Refuse to start without peppers or a usable token secret."""
        if not self.peppers:
            raise ValueError("PEPPERS is required. Set a comma-separated list, current pepper first.")
        if any(len(p.encode("utf-8")) > _MAX_PEPPER_BYTES for p in self.peppers):
            raise ValueError(f"Each pepper in PEPPERS must be at most {_MAX_PEPPER_BYTES} bytes.")
        if not self.jwt_secret:
            if self.debug:
                self.jwt_secret = secrets.token_hex(32)
                logger.warning("WARNING: Using auto-generated JWT_SECRET. Tokens will not survive restarts.")
            else:
                raise ValueError(
                    "JWT_SECRET is required in production mode. "
                    "Set JWT_SECRET in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
