"""
Application configuration using Pydantic settings.

Usage:
    from repoverse.config import get_settings
    settings = get_settings()

For static tables (clusters, facets, keyword sets), import from repoverse.constants:
    from repoverse.constants import CLUSTER_CATALOGUE, LANGUAGE_FACETS
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Unified application settings loaded from environment variables and .env file.

    Recommended for production:
        - GITHUB_TOKEN (search API allows 30 requests/minute authenticated, 10 without)
        - DATABASE_URL (PostgreSQL)
        - CELERY_BROKER_URL / CELERY_RESULT_BACKEND
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App settings
    app_name: str = "Repoverse"
    api_prefix: str = "/api"
    debug: bool = Field(default=False)

    # Database
    database_url: str = Field(default="sqlite:///repoverse.db", validation_alias="DATABASE_URL")
    db_pool_size: int = Field(default=10, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=20, validation_alias="DB_MAX_OVERFLOW")
    db_pool_pre_ping: bool = Field(default=True, validation_alias="DB_POOL_PRE_PING")

    # GitHub search API
    github_token: Optional[str] = Field(default=None, validation_alias="GITHUB_TOKEN")
    github_requests_per_minute: int = Field(default=30, validation_alias="GITHUB_REQUESTS_PER_MINUTE")
    github_max_backoff_seconds: int = Field(default=300, validation_alias="GITHUB_MAX_BACKOFF_SECONDS")
    github_per_page: int = Field(default=100, validation_alias="GITHUB_PER_PAGE")
    github_max_pages: int = Field(default=3, validation_alias="GITHUB_MAX_PAGES")
    github_request_timeout: int = Field(default=30, validation_alias="GITHUB_REQUEST_TIMEOUT")

    # Curation
    staleness_horizon_days: int = Field(default=365, validation_alias="STALENESS_HORIZON_DAYS")
    curation_top_k: int = Field(default=1000, validation_alias="CURATION_TOP_K")
    curation_min_stars: int = Field(default=50, validation_alias="CURATION_MIN_STARS")
    curation_max_queries: int = Field(default=12, validation_alias="CURATION_MAX_QUERIES")
    curation_job_timeout_seconds: int = Field(
        default=3600, validation_alias="CURATION_JOB_TIMEOUT_SECONDS"
    )
    rotation_period_days: int = Field(default=7, validation_alias="ROTATION_PERIOD_DAYS")

    # Result cache
    seen_cache_ttl_seconds: int = Field(default=300, validation_alias="SEEN_CACHE_TTL_SECONDS")
    saved_liked_cache_ttl_seconds: int = Field(
        default=120, validation_alias="SAVED_LIKED_CACHE_TTL_SECONDS"
    )

    # Feed
    feed_default_page_size: int = Field(default=20, validation_alias="FEED_DEFAULT_PAGE_SIZE")
    feed_max_page_size: int = Field(default=100, validation_alias="FEED_MAX_PAGE_SIZE")
    feed_score_band: float = Field(default=5.0, ge=0, validation_alias="FEED_SCORE_BAND")

    # CORS
    cors_allowed_origins: str = Field(default="http://localhost:5173", validation_alias="CORS_ALLOWED_ORIGINS")

    # Celery
    celery_broker_url: str = Field(default="redis://localhost:6379/1", validation_alias="CELERY_BROKER_URL")
    celery_result_backend: str = Field(default="redis://localhost:6379/2", validation_alias="CELERY_RESULT_BACKEND")

    # Scheduler
    enable_scheduler: bool = Field(default=False, validation_alias="ENABLE_SCHEDULER")
    scheduler_curation_hour: int = Field(default=6, validation_alias="SCHEDULER_CURATION_HOUR")
    scheduler_sweep_hour: int = Field(default=5, validation_alias="SCHEDULER_SWEEP_HOUR")

    @field_validator("curation_top_k")
    @classmethod
    def validate_top_k(cls, v: int) -> int:
        """Top-K must keep at least one membership and stay within a single curation pass."""
        if v < 1 or v > 5000:
            raise ValueError(f"CURATION_TOP_K must be between 1 and 5000 (got {v})")
        return v

    @field_validator(
        "staleness_horizon_days",
        "rotation_period_days",
        "github_requests_per_minute",
        "seen_cache_ttl_seconds",
        "saved_liked_cache_ttl_seconds",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("value must be positive")
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_allowed_origins.split(",") if origin.strip()]

    def validate_production_config(self) -> tuple[List[str], List[str]]:
        """
        Validate configuration for production deployment.

        Returns:
            Tuple of (errors, warnings) - errors are fatal, warnings are advisory
        """
        errors = []
        warnings = []

        if self.database_url.startswith("sqlite"):
            warnings.append("DATABASE_URL points at SQLite; use PostgreSQL for concurrent curation")
        if not self.github_token:
            warnings.append(
                "GITHUB_TOKEN not set - search requests are unauthenticated and heavily rate limited"
            )
        if self.feed_default_page_size > self.feed_max_page_size:
            errors.append("FEED_DEFAULT_PAGE_SIZE cannot exceed FEED_MAX_PAGE_SIZE")
        if self.curation_top_k < 500:
            warnings.append(f"CURATION_TOP_K={self.curation_top_k} keeps a thin per-cluster pool")

        return errors, warnings


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()


__all__ = ["Settings", "get_settings"]
