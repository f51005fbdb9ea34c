"""Application settings and configuration.

This module defines all configuration options for the Menu Lens backend.
Settings are loaded from environment variables with sensible defaults.
"""

import json
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DAY_MS = 24 * 60 * 60 * 1000
HOUR_MS = 60 * 60 * 1000


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    List values accept either JSON arrays or comma-separated strings.
    """

    # Application metadata
    app_name: str = Field(default="Menu Lens", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Session token signing. Absent secret is a fatal misconfiguration at
    # issuance/verification time, never a reason to fall back to unsigned tokens.
    session_signing_secret: str | None = Field(default=None, alias="SESSION_SIGNING_SECRET")
    session_token_ttl_ms: int = Field(default=DAY_MS, alias="SESSION_TOKEN_TTL_MS")

    # Origin allow-list
    allowed_origins: Annotated[list[str], NoDecode] = Field(
        default=[
            "https://handwrite-to-taste.lovable.app",
            "http://localhost:5173",
            "http://localhost:8080",
        ],
        alias="ALLOWED_ORIGINS",
    )
    allowed_origin_patterns: Annotated[list[str], NoDecode] = Field(
        default=[
            r"^https://[\w-]+\.lovable\.app$",
            r"^https://[\w-]+\.lovableproject\.com$",
        ],
        alias="ALLOWED_ORIGIN_PATTERNS",
    )
    default_origin: str = Field(
        default="https://handwrite-to-taste.lovable.app",
        alias="DEFAULT_ORIGIN",
    )

    # Rate limiting (issuance is stricter than business endpoints)
    session_rate_limit_window_ms: int = Field(default=HOUR_MS, alias="SESSION_RATE_LIMIT_WINDOW_MS")
    session_rate_limit_max: int = Field(default=10, alias="SESSION_RATE_LIMIT_MAX")
    api_rate_limit_window_ms: int = Field(default=HOUR_MS, alias="API_RATE_LIMIT_WINDOW_MS")
    api_rate_limit_max: int = Field(default=30, alias="API_RATE_LIMIT_MAX")

    # Optional shared store for rate-limit windows
    redis_url: str | None = Field(default=None, alias="REDIS_URL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./menu_lens.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # History listing
    history_default_limit: int = Field(default=50, alias="HISTORY_DEFAULT_LIMIT")
    history_max_limit: int = Field(default=100, alias="HISTORY_MAX_LIMIT")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @field_validator("allowed_origins", "allowed_origin_patterns", mode="before")
    @classmethod
    def _split_csv(cls, value: object) -> object:
        """Accept comma-separated strings as well as JSON arrays."""
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.startswith("["):
                return json.loads(stripped)
            return [item.strip() for item in stripped.split(",") if item.strip()]
        return value

    @property
    def token_ttl_seconds(self) -> int:
        """Return the token lifetime in whole seconds."""
        return self.session_token_ttl_ms // 1000


settings = Settings()
