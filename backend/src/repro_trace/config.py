"""Centralized configuration using pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables.

    All fields are optional with sensible defaults. The OpenAI key is only
    checked when the provider client is built (see deps.create_provider_client).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    openai_api_key: str | None = None
    openai_base_url: str | None = None

    # Request defaults applied by the generation service
    default_model: str = "gpt-4o-mini"
    default_temperature: float = 0.7
    default_max_tokens: int = 100
    default_timeout_ms: int = 60_000

    # Retry policy
    retry_max_attempts: int = 3
    retry_base_delay_ms: int = 400
    retry_jitter_ms: int = 150

    trace_db_path: str = "debug_bundles.sqlite3"

    service_name: str = "llm-repro-trace-kit"
    service_version: str = "0.1.0"
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {', '.join(sorted(valid_levels))}")
        return upper

    @field_validator("retry_max_attempts")
    @classmethod
    def validate_max_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("retry_max_attempts must be >= 1")
        return v

    @field_validator("default_timeout_ms", "retry_base_delay_ms", "retry_jitter_ms")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("value must be >= 0")
        return v

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary for diagnostics. The API key is masked."""
        return {
            "openai_api_key": "***" if self.openai_api_key else None,
            "openai_base_url": self.openai_base_url,
            "default_model": self.default_model,
            "default_temperature": self.default_temperature,
            "default_max_tokens": self.default_max_tokens,
            "default_timeout_ms": self.default_timeout_ms,
            "retry_max_attempts": self.retry_max_attempts,
            "retry_base_delay_ms": self.retry_base_delay_ms,
            "retry_jitter_ms": self.retry_jitter_ms,
            "trace_db_path": self.trace_db_path,
            "service_name": self.service_name,
            "service_version": self.service_version,
            "log_level": self.log_level,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached Settings singleton.

    For testing: override with get_settings.cache_clear() then set env vars.
    """
    return Settings()
