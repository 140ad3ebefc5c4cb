"""
Configuration settings for the Tingxie engine.

Uses Pydantic Settings for environment variable management with .env file support.
All variables are prefixed with ``TINGXIE_`` (e.g. ``TINGXIE_DATA_DIR``).
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.lessons import BUNDLED_LESSONS


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TINGXIE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Storage
    # ========================================
    data_dir: Path = Field(
        default=Path.home() / ".tingxie",
        description="Directory holding the local state database",
    )
    db_filename: str = Field(
        default="state.db",
        description="SQLite key-value store file name inside data_dir",
    )
    save_debounce_ms: int = Field(
        default=500,
        ge=0,
        description="Quiet period before a coalesced save is written",
    )
    attempt_log_limit: int = Field(
        default=100,
        ge=1,
        description="Number of most recent session attempts kept",
    )

    # ========================================
    # Sessions
    # ========================================
    session_max_age_hours: int = Field(
        default=24,
        ge=1,
        description="Snapshots older than this are discarded instead of resumed",
    )
    fallback_session_size: int = Field(
        default=6,
        ge=1,
        description="Weakest items offered when nothing in a lesson is due",
    )
    default_word_limit: int = Field(
        default=0,
        ge=0,
        description="Maximum items per session (0 = unlimited)",
    )

    # ========================================
    # Content
    # ========================================
    lessons_path: Path = Field(
        default=BUNDLED_LESSONS,
        description="JSON file with lesson content",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: str = Field(
        default="WARNING",
        description="Minimum loguru level written to stderr",
    )

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_filename

    @property
    def save_debounce_seconds(self) -> float:
        return self.save_debounce_ms / 1000


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
