"""
Fragrance Tracker Backend: Application Configuration
=====================================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; validated before app starts.
"""

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import List


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for local development against a
    SQLite file. Attributes are grouped by concern.
    """

    # ── Database ──────────────────────────────────────────────────────────
    # Format: sqlite+aiosqlite:///path/to/file.db
    database_url: str = Field(
        default="sqlite+aiosqlite:///./fragrance_tracker.db",
        description="Async SQLAlchemy connection URL"
    )

    # Creates missing tables on startup (Alembic remains the migration tool)
    db_auto_create: bool = Field(default=True)

    # ── Users ─────────────────────────────────────────────────────────────
    # Acting user when no X-User-ID header is sent (no authentication layer)
    default_user_id: str = Field(default="default-user", min_length=1)

    # ── Periodic Sweep ────────────────────────────────────────────────────
    # Local time of the daily remaining-days recalculation
    sweep_enabled: bool = Field(default=True)
    sweep_hour: int = Field(default=0, ge=0, le=23)
    sweep_minute: int = Field(default=0, ge=0, le=59)

    # ── External Fragrance Search ─────────────────────────────────────────
    fragrantica_search_url: str = Field(default="https://api.fragrantica.com/search")
    parfumo_search_url: str = Field(default="https://api.parfumo.com/search")

    # Seconds before an outbound search request is abandoned
    search_request_timeout: float = Field(default=10.0, gt=0, le=60)

    # Cache-aside settings for search results
    search_cache_enabled: bool = Field(default=True)
    search_cache_ttl: int = Field(default=3600, ge=1, le=86400)  # seconds
    search_cache_maxsize: int = Field(default=1024, ge=1, le=100000)  # live entries

    # ── Retry Configuration ───────────────────────────────────────────────
    # Tenacity retry settings for external search sources
    retry_max_attempts: int = Field(default=3, ge=1, le=10)
    retry_min_wait: int = Field(default=1, ge=0, le=30)
    retry_max_wait: int = Field(default=8, ge=1, le=120)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated URLs (parsed by the property below)
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
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

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,  # DATABASE_URL and database_url both work
    }

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


# Singleton instance, imported throughout the application
settings = Settings()
