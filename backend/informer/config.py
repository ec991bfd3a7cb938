"""
Application configuration using Pydantic Settings.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class NewsProviderSettings(BaseSettings):
    """Settings for the NewsData.io provider and its rate gate."""

    model_config = SettingsConfigDict(
        env_prefix="NEWS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: Optional[str] = Field(default=None)
    base_url: str = Field(default="https://newsdata.io/api/1")
    language: str = Field(default="en")
    country: str = Field(default="us,ca")
    timeframe: Optional[str] = Field(
        default="24h",
        description="Provider timeframe window for single-category fetches",
    )
    priority_domain: str = Field(default="top")

    # Outbound request discipline
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    min_request_interval_seconds: float = Field(
        default=1.2,
        ge=0,
        description="Minimum spacing between consecutive provider calls",
    )
    rate_limit_attempts: int = Field(default=3, ge=1)
    backoff_base_seconds: float = Field(default=2.0, ge=0)
    timeout_retries: int = Field(default=1, ge=0)
    timeout_retry_delay_seconds: float = Field(default=1.5, ge=0)

    # Multi-category fetches
    category_delay_seconds: float = Field(
        default=1.5,
        ge=0,
        description="Pause between sequential category calls in a full fetch",
    )
    max_page_size_per_category: int = Field(default=10, ge=1, le=50)


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "The Actual Informer"
    app_version: str = "0.1.0"
    debug: bool = Field(default=False)
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = Field(default="INFO")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./informer.db",
        description="Async database URL (SQLAlchemy format)",
    )

    # News provider (nested, NEWS_* variables)
    news: NewsProviderSettings = Field(default_factory=NewsProviderSettings)

    # AI collaborators (all optional; operations needing them fail cleanly)
    openai_api_key: Optional[str] = Field(default=None)
    anthropic_api_key: Optional[str] = Field(default=None)
    openai_text_model: str = Field(default="gpt-4o")
    openai_image_model: str = Field(default="dall-e-3")
    anthropic_model: str = Field(default="claude-3-5-haiku-latest")
    elevenlabs_api_key: Optional[str] = Field(default=None)
    elevenlabs_base_url: str = Field(default="https://api.elevenlabs.io/v1")
    elevenlabs_voice_id: str = Field(default="21m00Tcm4TlvDq8ikWAM")
    elevenlabs_model_id: str = Field(default="eleven_monolingual_v1")

    # Processing pipeline
    generate_images: bool = Field(default=True)
    generate_audio: bool = Field(default=False)
    media_dir: str = Field(default="./media")
    media_url_path: str = Field(default="/media")
    processing_lock_ttl_seconds: int = Field(
        default=600,
        ge=1,
        description="Age after which an abandoned per-article lock is reclaimed",
    )
    batch_item_delay_seconds: float = Field(default=1.0, ge=0)

    # Scheduler
    scheduler_enabled: bool = Field(default=True)
    daily_job_hour: int = Field(default=0, ge=0, le=23)
    daily_job_minute: int = Field(default=0, ge=0, le=59)
    daily_keep_count: int = Field(default=50, ge=0)
    retention_days: Optional[int] = Field(
        default=None,
        ge=0,
        description="Only prune articles older than this many days (None = any age)",
    )
    auto_process_interval_minutes: Optional[int] = Field(default=None, ge=1)
    auto_process_bias: Literal["left", "right", "neutral"] = "right"

    # CORS
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
    )

    # Pagination
    default_page_size: int = Field(default=20, ge=1, le=100)
    max_page_size: int = Field(default=100, ge=1, le=500)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("media_url_path")
    @classmethod
    def validate_media_url_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("media_url_path must start with '/'")
        return v.rstrip("/") or "/media"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
