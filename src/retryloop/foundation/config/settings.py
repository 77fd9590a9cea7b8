"""Environment-based configuration using pydantic-settings.

Provides defaults for retry configuration and logging, loaded from
environment variables with the RETRYLOOP_ prefix (and an optional .env file).

Example:
    >>> from retryloop.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.retry.delay
    0.1
    >>> settings.logging.level
    'INFO'

    # Or with environment variables:
    # RETRYLOOP_RETRY_DELAY=0.5
    # RETRYLOOP_RETRY_CEILING=10
    # RETRYLOOP_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, NonNegativeFloat, NonNegativeInt, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Golden ratio: grows more calmly than doubling
PHI: float = (1 + 5 ** 0.5) / 2


class RetrySettings(BaseSettings):
    """Default retry configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RETRYLOOP_RETRY_",
        extra="ignore",
    )

    delay: NonNegativeFloat = Field(default=0.1, description="Base delay (floor) in seconds")
    ceiling: NonNegativeFloat | None = Field(default=None, description="Backoff ceiling; unset means fixed delay")
    rate: Annotated[float, Field(ge=1.0)] = PHI
    jitter: Annotated[float, Field(ge=0.0, lt=1.0)] = 0.0
    jitter_mode: Literal["uniform", "normal"] = "uniform"
    attempts: NonNegativeInt | None = Field(default=None, description="Max invocations; unset means unbounded")
    timeout: NonNegativeFloat = Field(default=0.0, description="Overall deadline in seconds, 0 = none")

    @computed_field
    @property
    def is_bounded(self) -> bool:
        """Whether these defaults stop on their own without a success."""
        return self.attempts is not None or self.timeout > 0


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RETRYLOOP_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "text"] = "text"


class RetryloopSettings(BaseSettings):
    """Root settings.

    Example environment variables:
        RETRYLOOP_RETRY_ATTEMPTS=5
        RETRYLOOP_RETRY_JITTER=0.2
        RETRYLOOP_LOG_FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="RETRYLOOP_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    retry: RetrySettings = Field(default_factory=RetrySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> RetryloopSettings:
    """Get the global settings instance (cached)."""
    return RetryloopSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
