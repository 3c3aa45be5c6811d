"""
Banquet - Configuration and settings.

Settings are read from the environment (and .env) once and cached.
Gate thresholds and pacing live here so they can be tuned without code changes.
"""

import logging
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings.

    Supabase fields are optional: when unset, the in-memory plan store is used
    (handy for local runs and tests).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OpenAI
    openai_api_key: str = ""

    # Recipe catalog (Spoonacular-compatible)
    spoonacular_api_key: str = ""
    catalog_base_url: str = "https://api.spoonacular.com/recipes"
    catalog_timeout_seconds: float = 10.0

    # Supabase (optional)
    supabase_url: str | None = None
    supabase_key: str | None = None

    # Application
    banquet_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # BANQUET_LOG_PROMPTS=1 - dump every reasoning call to prompt_logs/
    banquet_log_prompts: bool = False

    # Reasoning gateway
    gateway_retries: int = 2
    gateway_backoff_seconds: float = 1.0
    request_timeout_seconds: float = 60.0

    # Workflow gates
    refinement_confidence_threshold: float = 0.7
    variety_threshold: float = 0.6
    selection_confidence_threshold: float = 0.7
    budget_overrun_threshold: float = 0.15

    # Pause between meal slots (catalog + LLM rate limits)
    slot_delay_seconds: float = 0.5

    @property
    def is_development(self) -> bool:
        return self.banquet_env == "development"

    @property
    def is_production(self) -> bool:
        return self.banquet_env == "production"

    @property
    def has_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


class _SettingsProxy:
    """Lazy proxy for settings to avoid loading .env at import time."""

    _instance: Settings | None = None

    def __getattr__(self, name: str):
        if self._instance is None:
            self._instance = get_settings()
        return getattr(self._instance, name)


settings = _SettingsProxy()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for CLI and web entry points."""
    logging.basicConfig(
        level=(level or get_settings().log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
