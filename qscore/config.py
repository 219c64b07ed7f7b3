"""
QScore Configuration Module
===========================

Centralized configuration management using Pydantic Settings.

Loads configuration from:
    1. Environment variables
    2. .env file (if present)
    3. Default values

Usage:
    from qscore.config import settings

    print(settings.rating_max)
    print(settings.flag_unclassified_scores)

Author: QScore Team
Version: 1.0.0
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, model_validator


class Settings(BaseSettings):
    """
    Engine settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Naming convention: UPPER_SNAKE_CASE in env, lower_snake_case in code.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Application Settings
    # =========================================================================

    app_name: str = Field(default="QScore", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=True, description="Emit JSON log lines")

    # =========================================================================
    # Numeric Question Conventions
    # =========================================================================

    rating_min: float = Field(default=1, description="Default lower bound for rating questions")
    rating_max: float = Field(default=5, description="Default upper bound for rating questions")
    scale_min: float = Field(default=1, description="Default lower bound for scale questions")
    scale_max: float = Field(default=10, description="Default upper bound for scale questions")

    # =========================================================================
    # Scoring Policy
    # =========================================================================

    flag_unclassified_scores: bool = Field(
        default=True,
        description="Flag scores that fall outside every risk band for review"
    )
    scoring_version: str = Field(
        default="1.0.0",
        description="Version stamped onto every scoring result"
    )

    @model_validator(mode="after")
    def check_ranges(self) -> "Settings":
        if self.rating_min > self.rating_max:
            raise ValueError("rating_min must not exceed rating_max")
        if self.scale_min > self.scale_max:
            raise ValueError("scale_min must not exceed scale_max")
        return self


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached engine settings.

    Uses LRU cache to ensure settings are loaded only once.

    Returns:
        Settings instance
    """
    return Settings()


# Convenience alias
settings = get_settings()
