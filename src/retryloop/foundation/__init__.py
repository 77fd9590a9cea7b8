"""Foundation layer: error taxonomy and settings."""

from .config import (
    PHI,
    LoggingSettings,
    RetryloopSettings,
    RetrySettings,
    clear_settings_cache,
    get_settings,
)
from .errors import (
    Abort,
    AttemptsExhausted,
    Cancelled,
    ConfigurationError,
    DeadlineExceeded,
    RetryError,
    abort,
    is_transient,
    is_transient_socket_error,
    root_cause,
)

__all__ = [
    # Config
    "PHI", "RetrySettings", "LoggingSettings", "RetryloopSettings", "get_settings", "clear_settings_cache",
    # Errors
    "RetryError", "ConfigurationError", "AttemptsExhausted", "DeadlineExceeded", "Cancelled",
    "Abort", "abort", "root_cause", "is_transient", "is_transient_socket_error",
]
