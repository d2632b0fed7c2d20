"""
Inkwell Backend: Application Configuration
===========================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or the .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; `api_base_url` is the only value
       mutated afterwards (by BaseUrlService during startup).
"""

import os
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes are grouped by concern. Names are case-insensitive, so both
    GH_TOKEN and gh_token populate `gh_token`.
    """

    # ── Database ──────────────────────────────────────────────────────────
    # Single-file SQLite store driven through aiosqlite
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data.db",
        description="Async SQLAlchemy connection URL",
    )

    # Only applied to server databases; SQLite keeps the driver defaults
    db_pool_size: int = Field(default=5, ge=1, le=100)
    db_max_overflow: int = Field(default=10, ge=0, le=50)
    db_pool_pre_ping: bool = Field(default=True)

    # ── GitHub ────────────────────────────────────────────────────────────
    gh_token: str = Field(
        default="",
        description="Personal access token sent as 'Authorization: token ...'",
    )
    github_api_url: str = Field(default="https://api.github.com")

    # Seconds before a single contents request is abandoned
    github_timeout: float = Field(default=30.0, gt=0, le=600)

    # Upper bound on contents requests in flight for one traversal
    github_max_concurrency: int = Field(default=8, ge=1, le=64)

    # Transient failures (network errors, timeouts, 5xx) are retried with
    # exponential backoff; 4xx responses fail immediately
    github_retry_attempts: int = Field(default=3, ge=1, le=10)
    github_retry_min_wait: float = Field(default=0.5, ge=0)
    github_retry_max_wait: float = Field(default=4.0, ge=0)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Comma-separated origins; "*" allows everything
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # ── Server ────────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000, ge=1, le=65535)

    # Base URL this API is reachable at. When empty, BaseUrlService derives
    # one at startup and appends it to `env_file_path`.
    api_base_url: Optional[str] = Field(default=None)
    public_scheme: str = Field(default="http")
    env_file_path: str = Field(default=".env")

    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("public_scheme")
    @classmethod
    def validate_public_scheme(cls, v: str) -> str:
        lower = v.lower()
        if lower not in {"http", "https"}:
            raise ValueError(f"Invalid public_scheme '{v}'. Must be http or https")
        return lower

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def describe(self) -> dict:
        """
        What:  Loggable view of the configuration.
        When:  Logged once during startup.
        How:   The GitHub token is masked; everything else is printed as-is.
        """
        return {
            "database_url": self.database_url,
            "github_api_url": self.github_api_url,
            "github_token": "set" if self.gh_token else "unset",
            "github_timeout": self.github_timeout,
            "github_max_concurrency": self.github_max_concurrency,
            "github_retry_attempts": self.github_retry_attempts,
            "port": self.port,
            "api_base_url": self.api_base_url,
        }


def load_settings() -> Settings:
    """
    Read settings from the environment and from the env file at
    ENV_FILE_PATH (default `.env`), the same file BaseUrlService appends
    API_BASE_URL to, so a registered base URL is picked up on the next start.
    """
    env_file = os.environ.get("ENV_FILE_PATH") or ".env"
    return Settings(_env_file=env_file)


settings = load_settings()
