"""retryloop - retry/backoff decision engine.

Decides whether to invoke a fallible action again and how long to wait
first, until it succeeds, aborts, runs out of attempts or time, or is
cancelled.

Quick Start:
    >>> from retryloop import RetryConfig, RetryEngine
    >>>
    >>> config = RetryConfig(delay=0.1).with_backoff(5.0).with_attempts(6)
    >>> data = RetryEngine(config).run(lambda: download(url))

Decorator:
    >>> from retryloop import retrying, OnErrors
    >>>
    >>> @retrying(delay=0.1, ceiling=2.0, attempts=5, conditions=(OnErrors(ConnectionError),))
    ... def fetch(url: str) -> bytes:
    ...     return http_get(url)

Async + cancellation:
    >>> token = CancellationToken()
    >>> engine = RetryEngine(RetryConfig(delay=0.05, ceiling=1.0, token=token))
    >>> await engine.arun(lambda: client.get(url))

Stopping early from inside an action:
    >>> def action():
    ...     resp = client.get(url)
    ...     if resp.status_code == 404:
    ...         raise Abort(LookupError(url))
    ...     return resp

Transient-only retries (e.g. accept()):
    >>> server = RetryingListener(socket.create_server(("", 8080)))
    >>> conn, addr = server.accept()

Configuration (environment):
    RETRYLOOP_RETRY_DELAY, RETRYLOOP_RETRY_CEILING, RETRYLOOP_RETRY_ATTEMPTS, ...
    RETRYLOOP_LOG_LEVEL, RETRYLOOP_LOG_FORMAT
"""

from .foundation import (
    PHI,
    Abort,
    AttemptsExhausted,
    Cancelled,
    ConfigurationError,
    DeadlineExceeded,
    LoggingSettings,
    RetryError,
    RetryloopSettings,
    RetrySettings,
    abort,
    clear_settings_cache,
    get_settings,
    is_transient,
    is_transient_socket_error,
    root_cause,
)
from .runtime import (
    AttemptBudget,
    Cancellation,
    CancellationToken,
    Deadline,
    DelayPolicy,
    EngineState,
    JitterMode,
    LogErrors,
    NotOnErrors,
    Observe,
    OnErrors,
    PostCondition,
    PreCondition,
    RetryConfig,
    RetryEngine,
    RetryIf,
    RetryingListener,
    RetryOutcome,
    RetryState,
    StopOnSuccess,
    StopReason,
    TransientRetry,
    apause,
    aretry_call,
    aretry_loop,
    configure_logging,
    exponential,
    fixed,
    get_logger,
    pause,
    retry_call,
    retry_loop,
    retrying,
)

__version__ = "0.1.0"

__all__ = [
    # Errors
    "RetryError", "ConfigurationError", "AttemptsExhausted", "DeadlineExceeded", "Cancelled",
    "Abort", "abort", "root_cause", "is_transient", "is_transient_socket_error",
    # Settings
    "PHI", "RetrySettings", "LoggingSettings", "RetryloopSettings", "get_settings", "clear_settings_cache",
    # Cancellation
    "CancellationToken", "pause", "apause",
    # Delays
    "DelayPolicy", "JitterMode",
    # Conditions
    "PreCondition", "PostCondition", "RetryState",
    "AttemptBudget", "Deadline", "Cancellation",
    "StopOnSuccess", "OnErrors", "NotOnErrors", "RetryIf", "Observe", "LogErrors",
    # Configuration
    "RetryConfig", "fixed", "exponential",
    # Engine
    "RetryEngine", "RetryOutcome", "EngineState", "StopReason",
    "retry_call", "aretry_call", "retrying", "retry_loop", "aretry_loop",
    # Transient
    "TransientRetry", "RetryingListener",
    # Logging
    "configure_logging", "get_logger",
]
