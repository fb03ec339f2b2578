"""Application configuration using Pydantic Settings."""

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

    environment: Literal["development", "test", "staging", "production"] = Field(
        default="development"
    )

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3001)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    log_format: Literal["json", "text"] = Field(default="json")

    # Slack
    slack_signing_secret: str | None = Field(default=None)
    slack_bot_token: str | None = Field(default=None)
    slack_bot_user_id: str = Field(default="")
    slack_ignore_retries: bool = Field(default=True)

    # OpenAI Assistants
    openai_api_key: str | None = Field(default=None)
    openai_assistant_id: str | None = Field(default=None)
    assistant_name: str = Field(default="ChatGPT Helper")
    assistant_model: str = Field(default="gpt-4o-mini")
    completion_model: str = Field(default="gpt-4o-mini")
    openai_timeout_seconds: float = Field(default=60.0)

    # Google Programmable Search
    google_api_key: str | None = Field(default=None)
    google_search_engine_id: str | None = Field(default=None)
    search_result_count: int = Field(default=5, ge=1, le=10)

    # Outbound HTTP
    http_timeout_seconds: float = Field(default=15.0)

    # Run polling
    run_poll_interval_seconds: float = Field(default=1.0, gt=0)
    run_max_poll_attempts: int = Field(default=120, ge=1)

    # Session persistence
    session_store_backend: Literal["memory", "file", "redis"] = Field(default="file")
    session_store_path: str = Field(default="session_map.json")
    redis_url: str = Field(default="redis://localhost:6379/0")

    fallback_reply: str = Field(
        default="Sorry, I ran into a problem answering that. Please try again in a moment."
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
