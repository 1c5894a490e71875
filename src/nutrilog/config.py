"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

CONFIDENCE_LEVELS = ("low", "medium", "high")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    api_token: str
    openai_api_key: str
    openai_model: str = "gpt-5.2"
    openai_reasoning_effort: str = "high"
    openai_store: bool = False
    timezone: str = "UTC"
    recent_meals_limit: int = 50
    favorite_suggestion_threshold: int = 3
    auto_commit_confidence: str | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_auto_commit_confidence(raw: str | None) -> str | None:
    """Parse the auto-commit confidence threshold from env.

    Empty or unknown values disable auto-commit.
    """
    if raw is None:
        return None
    cleaned = raw.strip().lower()
    if cleaned not in CONFIDENCE_LEVELS:
        return None
    return cleaned
