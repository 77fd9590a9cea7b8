"""Environment-driven settings."""

from .settings import (
    PHI,
    LoggingSettings,
    RetryloopSettings,
    RetrySettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "PHI",
    "RetrySettings",
    "LoggingSettings",
    "RetryloopSettings",
    "get_settings",
    "clear_settings_cache",
]
