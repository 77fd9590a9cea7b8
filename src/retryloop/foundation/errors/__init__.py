"""Error types and error inspection helpers.

- RetryError: base of everything retryloop raises on its own
- ConfigurationError: rejected configuration (fail fast)
- AttemptsExhausted / DeadlineExceeded / Cancelled: stop signals
- Abort / abort: explicit early stop from inside an action
- root_cause / is_transient: inspection used by conditions and adapters
"""

from .errors import (
    TRANSIENT_ERRNOS,
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
    # Errors
    "RetryError", "ConfigurationError", "AttemptsExhausted", "DeadlineExceeded", "Cancelled",
    # Abort marker
    "Abort", "abort",
    # Inspection
    "root_cause", "is_transient", "is_transient_socket_error", "TRANSIENT_ERRNOS",
]
