"""
Configuration settings for the assessment engine.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///./assessment.db",
        description="SQLAlchemy connection string for the attempt store",
    )

    # ========================================
    # Grading & Mastery
    # ========================================
    default_passing_score: int = Field(
        default=70,
        ge=0,
        le=100,
        description="Passing percentage applied when a quiz payload omits one",
    )
    weak_topic_threshold: float = Field(
        default=50.0,
        description="Topic correctness rate (%) below which a topic is weak",
    )
    strong_topic_threshold: float = Field(
        default=80.0,
        description="Topic correctness rate (%) at or above which a topic is strong",
    )

    # ========================================
    # Attempt Lifecycle
    # ========================================
    enforce_time_limit: bool = Field(
        default=True,
        description="Expire overdue attempts when they are autosaved or submitted",
    )
    time_limit_grace_seconds: int = Field(
        default=0,
        ge=0,
        description="Seconds tolerated past a quiz time limit before expiry",
    )

    # ========================================
    # Review Sessions
    # ========================================
    review_due_days: int = Field(
        default=7,
        ge=0,
        description="Days until a derived review session is due",
    )
    review_session_priority: int = Field(
        default=2,
        ge=1,
        description="Priority assigned to remediation review sessions",
    )
    review_webhook_url: str | None = Field(
        default=None,
        description="Endpoint notified when a review session is assigned",
    )
    review_webhook_timeout: float = Field(
        default=10.0,
        description="Timeout (seconds) for review webhook calls",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
