"""Runtime layer: retry engine, cancellation and logging."""

from .concurrency import CancellationToken, apause, pause
from .observability import configure_logging, get_logger
from .retry import (
    AttemptBudget,
    Cancellation,
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
    aretry_call,
    aretry_loop,
    exponential,
    fixed,
    retry_call,
    retry_loop,
    retrying,
)

__all__ = [
    # Concurrency
    "CancellationToken", "pause", "apause",
    # Observability
    "configure_logging", "get_logger",
    # Retry
    "DelayPolicy", "JitterMode",
    "PreCondition", "PostCondition", "RetryState",
    "AttemptBudget", "Deadline", "Cancellation",
    "StopOnSuccess", "OnErrors", "NotOnErrors", "RetryIf", "Observe", "LogErrors",
    "RetryConfig", "fixed", "exponential",
    "RetryEngine", "RetryOutcome", "EngineState", "StopReason",
    "retry_call", "aretry_call", "retrying", "retry_loop", "aretry_loop",
    "TransientRetry", "RetryingListener",
]
