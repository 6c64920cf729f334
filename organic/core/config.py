"""Configuration management using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ORGANIC_",
        case_sensitive=False,
        extra="ignore",
    )

    # Deadlines per task kind
    timeout_symbolic: float = Field(
        default=30.0,
        ge=0,
        description="Deadline for symbolic task attempts in seconds (0 disables)",
    )
    timeout_neural: float = Field(
        default=360.0,
        ge=0,
        description="Deadline for neural task attempts in seconds (0 disables)",
    )
    timeout_hybrid: float = Field(
        default=360.0,
        ge=0,
        description="Deadline for hybrid task attempts in seconds (0 disables)",
    )

    # Retry policy
    max_retries: int = Field(
        default=3,
        ge=0,
        description="Retries after the first attempt for retryable failures",
    )
    retry_delay_base: float = Field(
        default=1.0,
        ge=0,
        description="Base delay for exponential backoff in seconds",
    )
    retry_delay_max: float = Field(
        default=10.0,
        ge=0,
        description="Upper bound for a single backoff delay in seconds",
    )

    # Parallel execution
    parallel_threads: int = Field(
        default=4,
        ge=1,
        le=64,
        description="Default worker pool size for run_many",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_executions: bool = Field(
        default=False,
        description="Log every task start and completion at INFO",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional path of a rotating log file",
    )

    # Type coercion
    coercion_cache_size: int = Field(
        default=1000,
        ge=0,
        description="Maximum entries memoised for string coercions",
    )

    # Anthropic API
    anthropic_api_key: SecretStr | None = Field(
        default=None,
        description="Anthropic API key for neural task execution",
    )
    model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Model used by the Anthropic client",
    )
    max_tokens: int = Field(
        default=4096,
        ge=1,
        description="Maximum tokens per generative response",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings instance loaded from environment.

    Example:
        >>> settings = get_settings()
        >>> settings.timeout_symbolic
        30.0
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
