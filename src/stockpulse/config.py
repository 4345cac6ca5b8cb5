"""Application configuration via pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from stockpulse.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Core
    env: Literal["development", "staging", "production"] = Field(
        default="development", alias="STOCKPULSE_ENV"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", alias="STOCKPULSE_LOG_LEVEL"
    )

    # Database (Supabase Postgres or any PostgreSQL)
    database_url: str | None = Field(default=None)
    database_schema: str = Field(default="public")

    # Cron trigger
    cron_secret: SecretStr | None = Field(
        default=None,
        description="Bearer token required by the /cron trigger endpoint",
    )

    # LLM Provider
    llm_provider: Literal["openai", "anthropic"] = Field(default="openai")
    openai_api_key: SecretStr | None = Field(default=None)
    openai_base_url: str | None = Field(default=None)
    anthropic_api_key: SecretStr | None = Field(default=None)

    # Model names
    summary_model: str = Field(default="gpt-4o-mini")
    analysis_model: str = Field(default="gpt-4o")
    max_tokens_summary: int = Field(default=500)
    max_tokens_analysis: int = Field(default=1500)
    max_tokens_translation: int = Field(default=1500)

    # News fetching
    feed_timeout: float = Field(default=10.0, description="RSS fetch timeout in seconds")
    feed_user_agent: str = Field(default="StockNewsBot/1.0")

    # Summarizer
    summary_news_limit: int = Field(default=10, ge=1)
    smart_model_threshold: int = Field(
        default=10,
        description="News volume at which the analysis model replaces the summary model",
    )
    summary_lookback_hours: int | None = Field(
        default=None,
        description="Only summarize news newer than this many hours (unset = no window)",
    )

    # Selector
    potential_stocks_count: int = Field(default=3, ge=1)
    selector_lookback_hours: int | None = Field(
        default=24,
        description="News window for high-potential selection (unset = all time)",
    )

    # Cost observability
    daily_cost_limit_usd: float = Field(default=3.0)

    # Scheduler (00:00 KST = 15:00 UTC)
    scheduler_enabled: bool = Field(default=False)
    daily_update_cron: str = Field(default="0 15 * * *")

    @field_validator("summary_lookback_hours", "selector_lookback_hours", mode="before")
    @classmethod
    def parse_optional_hours(cls, v: str | int | None) -> int | None:
        if v is None:
            return None
        if isinstance(v, str):
            v = v.strip()
            if not v or v.lower() in ("none", "null", "all"):
                return None
            return int(v)
        return v

    @model_validator(mode="after")
    def check_smart_model_reachable(self) -> Settings:
        # the model choice counts the capped news list
        if self.smart_model_threshold > self.summary_news_limit:
            raise ValueError(
                f"SMART_MODEL_THRESHOLD ({self.smart_model_threshold}) exceeds "
                f"SUMMARY_NEWS_LIMIT ({self.summary_news_limit}); the analysis model "
                "could never be chosen"
            )
        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    def require_credentials(self) -> str:
        """Fail fast when credentials needed by the pipeline are missing.

        Returns:
            The database DSN

        Raises:
            ConfigurationError: listing every missing variable.
        """
        missing: list[str] = []
        if not self.database_url:
            missing.append("DATABASE_URL")
        if self.llm_provider == "openai" and self.openai_api_key is None:
            missing.append("OPENAI_API_KEY")
        if self.llm_provider == "anthropic" and self.anthropic_api_key is None:
            missing.append("ANTHROPIC_API_KEY")
        if missing or not self.database_url:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )
        return self.database_url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
