"""
PrepForge - Configuration Management.

Uses pydantic-settings for environment variable loading with validation.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


PACKAGED_TEMPLATES_DIR = Path(__file__).parent / "templates"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # API Keys
    # -------------------------------------------------------------------------
    GEMINI_API_KEY: str = ""

    # -------------------------------------------------------------------------
    # Generation
    # -------------------------------------------------------------------------
    GEMINI_MODEL: str = "gemini-2.5-flash-lite"
    GENERATION_TEMPERATURE: float = 0.7
    GENERATION_MAX_OUTPUT_TOKENS: int = 4096
    GENERATION_TIMEOUT_SECONDS: float = 30.0  # Per upstream call
    GENERATION_ATTEMPTS: int = 3  # Attempt budget per problem slot
    GENERATION_RETRY_BACKOFF_SECONDS: float = 1.0  # 0 disables the wait
    MAX_PARALLEL_SLOTS: int = 4

    # -------------------------------------------------------------------------
    # Prompt Templates
    # -------------------------------------------------------------------------
    PROMPT_VERSION: str = ""  # Empty means "latest available"
    PROMPTS_DIR: str = ""  # Empty means the packaged templates

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    DEBUG_MODE: bool = False
    RATE_LIMIT_GENERATION: str = "30/hour"
    CORS_ORIGINS: list[str] = ["*"]

    # -------------------------------------------------------------------------
    # Paths
    # -------------------------------------------------------------------------
    DATA_DIR: str = "data/store"

    @property
    def templates_dir(self) -> Path:
        """Directory holding the versioned template files."""
        return Path(self.PROMPTS_DIR) if self.PROMPTS_DIR else PACKAGED_TEMPLATES_DIR


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging() -> None:
    """Configure application logging based on settings."""
    settings = get_settings()

    log_format = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL),
        format=log_format,
        datefmt=date_format,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("google").setLevel(logging.WARNING)
