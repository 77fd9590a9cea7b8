"""Retry loops with backoff, termination conditions and cancellation.

Provides an immutable configuration, a delay policy, composable pre/post
conditions, and an engine that drives any fallible callable (sync or async).

Example:
    >>> from retryloop.runtime.retry import RetryConfig, RetryEngine, OnErrors
    >>>
    >>> config = (
    ...     RetryConfig(delay=0.05)
    ...     .with_backoff(ceiling=2.0)
    ...     .with_attempts(5)
    ...     .with_conditions(OnErrors(ConnectionError, TimeoutError))
    ... )
    >>> body = RetryEngine(config).run(lambda: fetch(url))
"""

from .backoff import DelayPolicy, JitterMode
from .conditions import (
    AttemptBudget,
    Cancellation,
    Deadline,
    LogErrors,
    NotOnErrors,
    Observe,
    OnErrors,
    PostCondition,
    PreCondition,
    RetryIf,
    RetryState,
    StopOnSuccess,
)
from .engine import EngineState, RetryEngine, RetryOutcome, StopReason
from .func import aretry_call, aretry_loop, retry_call, retry_loop, retrying
from .policy import RetryConfig, exponential, fixed
from .transient import RetryingListener, TransientRetry

__all__ = [
    # Delays
    "DelayPolicy",
    "JitterMode",
    # Conditions
    "PreCondition",
    "PostCondition",
    "RetryState",
    "AttemptBudget",
    "Deadline",
    "Cancellation",
    "StopOnSuccess",
    "OnErrors",
    "NotOnErrors",
    "RetryIf",
    "Observe",
    "LogErrors",
    # Configuration
    "RetryConfig",
    "fixed",
    "exponential",
    # Engine
    "RetryEngine",
    "RetryOutcome",
    "EngineState",
    "StopReason",
    # Helpers
    "retry_call",
    "aretry_call",
    "retrying",
    "retry_loop",
    "aretry_loop",
    # Transient errors
    "TransientRetry",
    "RetryingListener",
]
