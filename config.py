"""
Configuration settings for the flipset study tool.

Uses Pydantic Settings for environment variable management with .env file support.
Every setting can be overridden with a FLIPSET_ prefixed environment variable.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DATA_DIR = Path.home() / ".flipset"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FLIPSET_",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default=f"sqlite:///{DATA_DIR / 'flipset.db'}",
        description="SQLAlchemy connection string for the card store",
    )
    database_echo: bool = Field(
        default=False,
        description="Echo SQL statements (debugging only)",
    )

    # ========================================
    # Review Sessions
    # ========================================
    session_file: Path = Field(
        default=DATA_DIR / "session.json",
        description="Single slot holding the active review session",
    )
    default_order_mode: Literal["random", "ordered"] = Field(
        default="random",
        description="Order mode used when `review start` gets no --order",
    )
    shuffle_seed: int | None = Field(
        default=None,
        description="Seed for the shuffle source (None = system randomness)",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    @field_validator("session_file", mode="before")
    @classmethod
    def _expand_session_file(cls, value: str | Path) -> Path:
        return Path(value).expanduser()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
