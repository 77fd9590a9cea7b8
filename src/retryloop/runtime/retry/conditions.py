"""Termination conditions for retry loops.

Pre-conditions gate every invocation (including the first); post-conditions
vote on whether to keep retrying after each invocation. Both sets are ANDed
and short-circuit on the first failing condition.

Pre-conditions:
- AttemptBudget: at most n invocations
- Deadline: only before started_at + timeout (0 = no deadline)
- Cancellation: only while the token is unset

Post-conditions (receive the root cause of the raised error, None on success):
- StopOnSuccess: continue iff there is an error (implicit default)
- OnErrors / NotOnErrors: continue only on (not on) matching errors
- RetryIf: arbitrary predicate
- Observe / LogErrors: side effects only, always continue

Conditions are frozen values: they read RetryState or the error they are
given and never touch the delay policy.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol, runtime_checkable

from retryloop.foundation.errors import AttemptsExhausted, Cancelled, DeadlineExceeded
from retryloop.runtime.concurrency import CancellationToken

ErrorKind = type[BaseException] | BaseException

logger = logging.getLogger("retryloop.retry")


@dataclass(slots=True)
class RetryState:
    """Bookkeeping for one run of a retry loop.

    Attributes:
        attempts: Invocations made so far
        iterations: Completed retry cycles (post-check passed and pause finished)
        last_error: Error raised by the most recent invocation, None after a success
        last_value: Value returned by the most recent invocation, None after a failure
        started_at: Clock reading when the run began
        clock: Monotonic clock used for deadlines
    """

    clock: Callable[[], float] = time.monotonic
    started_at: float = 0.0
    attempts: int = 0
    iterations: int = 0
    last_error: BaseException | None = None
    last_value: Any = None

    @classmethod
    def start(cls, clock: Callable[[], float] = time.monotonic) -> RetryState:
        return cls(clock=clock, started_at=clock())

    @property
    def elapsed(self) -> float:
        return self.clock() - self.started_at

    def record(self, value: Any, error: BaseException | None) -> tuple[Any, BaseException | None]:
        """Remember the result of the invocation just made and hand it back."""
        self.last_value, self.last_error = value, error
        return value, error


# ─────────────────────────────────────────────────────────────────────────────
# Pre-conditions
# ─────────────────────────────────────────────────────────────────────────────


@runtime_checkable
class PreCondition(Protocol):
    """Check made before each invocation."""

    def allows(self, state: RetryState) -> bool: ...

    def failure(self, state: RetryState) -> BaseException: ...


@dataclass(frozen=True, slots=True)
class AttemptBudget:
    """Allow at most `attempts` invocations."""

    attempts: int

    def allows(self, state: RetryState) -> bool:
        return state.attempts < self.attempts

    def failure(self, state: RetryState) -> BaseException:
        return AttemptsExhausted(self.attempts)


@dataclass(frozen=True, slots=True)
class Deadline:
    """Allow invocations strictly before started_at + timeout. A timeout of 0 never expires."""

    timeout: float

    def allows(self, state: RetryState) -> bool:
        return self.timeout == 0 or state.elapsed < self.timeout

    def failure(self, state: RetryState) -> BaseException:
        return DeadlineExceeded(self.timeout)

    def remaining(self, state: RetryState) -> float:
        """Seconds left before the deadline (inf when unbounded, never negative)."""
        if self.timeout == 0:
            return math.inf
        return max(self.timeout - state.elapsed, 0.0)


@dataclass(frozen=True, slots=True)
class Cancellation:
    """Allow invocations while the token is not cancelled."""

    token: CancellationToken

    def allows(self, state: RetryState) -> bool:
        return not self.token.cancelled

    def failure(self, state: RetryState) -> BaseException:
        return self.token.reason or Cancelled()


# ─────────────────────────────────────────────────────────────────────────────
# Post-conditions
# ─────────────────────────────────────────────────────────────────────────────


@runtime_checkable
class PostCondition(Protocol):
    """Vote after each invocation; error is the root cause, None on success."""

    def should_continue(self, error: BaseException | None) -> bool: ...


def _matches(error: BaseException, kinds: tuple[ErrorKind, ...]) -> bool:
    for kind in kinds:
        if isinstance(kind, type):
            if isinstance(error, kind):
                return True
        elif error is kind:
            return True
    return False


@dataclass(frozen=True, slots=True)
class StopOnSuccess:
    """Continue iff the attempt failed."""

    def should_continue(self, error: BaseException | None) -> bool:
        return error is not None


@dataclass(frozen=True, slots=True, init=False)
class OnErrors:
    """Continue only while the error matches one of kinds.

    A kind is an exception class (matched with isinstance) or a sentinel
    exception instance (matched by identity).

    Example:
        >>> OnErrors(ConnectionError, TimeoutError)
    """

    kinds: tuple[ErrorKind, ...]

    def __init__(self, *kinds: ErrorKind) -> None:
        object.__setattr__(self, "kinds", kinds)

    def should_continue(self, error: BaseException | None) -> bool:
        return error is not None and _matches(error, self.kinds)


@dataclass(frozen=True, slots=True, init=False)
class NotOnErrors:
    """Continue only while the error matches none of kinds."""

    kinds: tuple[ErrorKind, ...]

    def __init__(self, *kinds: ErrorKind) -> None:
        object.__setattr__(self, "kinds", kinds)

    def should_continue(self, error: BaseException | None) -> bool:
        return error is None or not _matches(error, self.kinds)


@dataclass(frozen=True, slots=True)
class RetryIf:
    """Continue while predicate(error) is true."""

    predicate: Callable[[BaseException | None], bool]

    def should_continue(self, error: BaseException | None) -> bool:
        return bool(self.predicate(error))


@dataclass(frozen=True, slots=True)
class Observe:
    """Hand every error to callback; never stops the loop."""

    callback: Callable[[BaseException], None]

    def should_continue(self, error: BaseException | None) -> bool:
        if error is not None:
            self.callback(error)
        return True


@dataclass(frozen=True, slots=True)
class LogErrors:
    """Log every error; never stops the loop."""

    log: logging.Logger = field(default=logger)
    level: int = logging.WARNING

    def should_continue(self, error: BaseException | None) -> bool:
        if error is not None:
            self.log.log(self.level, f"attempt failed: {type(error).__name__}: {error}")
        return True


def first_failing_pre(conditions: tuple[PreCondition, ...], state: RetryState) -> PreCondition | None:
    """First pre-condition that forbids another invocation, if any."""
    return next((c for c in conditions if not c.allows(state)), None)


def all_continue(conditions: tuple[PostCondition, ...], error: BaseException | None) -> bool:
    """AND of post-conditions, short-circuiting on the first stop vote."""
    return all(c.should_continue(error) for c in conditions)
