"""Retry engine: the loop tying DelayPolicy and termination conditions together.

Each cycle:
    1. Evaluate pre-conditions in order; the first failure ends the run
    2. Invoke the action exactly once
    3. Abort marker? stop and surface the wrapped error
    4. Evaluate post-conditions in order against the root cause
    5. Re-check pre-conditions, so a spent budget or deadline ends the run without a pause
    6. Ask the DelayPolicy for the next delay, cap it at the time left before
       the deadline, and pause, racing cancellation

State machine:
    IDLE -> RUNNING -> SUCCEEDED | STOPPED | PRECONDITION_FAILED | INTERRUPTED

run() / arun() return the action's value or raise the error that ended the
loop. The *_outcome() variants never raise action errors and report why the
loop stopped, which run() deliberately does not: a spent attempt budget
surfaces as the last attempt's error.

Example:
    >>> engine = RetryEngine(RetryConfig(delay=0.1, attempts=3))
    >>> engine.run(lambda: flaky_call())
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Callable, Generic, TypeVar

from retryloop.foundation.errors import Abort, Cancelled, root_cause
from retryloop.runtime.concurrency import CancellationToken, apause, pause

from .conditions import (
    AttemptBudget,
    Cancellation,
    Deadline,
    PreCondition,
    RetryState,
    all_continue,
    first_failing_pre,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from .backoff import DelayPolicy
    from .policy import RetryConfig

T = TypeVar("T")

Sleeper = Callable[[float, CancellationToken | None], bool]
AsyncSleeper = Callable[[float, CancellationToken | None], "Awaitable[bool]"]

logger = logging.getLogger("retryloop.retry")


class EngineState(StrEnum):
    """Engine lifecycle states."""
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"                      # Stopped on a successful attempt
    STOPPED = "stopped"                          # Post-condition or abort ended the loop on an error
    PRECONDITION_FAILED = "precondition_failed"  # Budget, deadline or cancellation
    INTERRUPTED = "interrupted"                  # A BaseException escaped the action or a callback


class StopReason(StrEnum):
    """Why a run ended."""
    SUCCEEDED = "succeeded"
    STOPPED = "stopped"
    ABORTED = "aborted"
    EXHAUSTED = "exhausted"
    DEADLINE = "deadline"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class RetryOutcome(Generic[T]):
    """Structured result of a run.

    Attributes:
        value: Return value of the final attempt (None unless it succeeded)
        error: Error the run surfaces (None on success)
        reason: Why the loop ended
        attempts: Number of invocations made
    """

    value: T | None
    error: BaseException | None
    reason: StopReason
    attempts: int

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or raise the surfaced error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


_PRE_REASONS: dict[type, StopReason] = {
    AttemptBudget: StopReason.EXHAUSTED,
    Deadline: StopReason.DEADLINE,
    Cancellation: StopReason.CANCELLED,
}


class RetryEngine:
    """Drives one retry sequence at a time around a caller-supplied action.

    Not safe for concurrent runs on the same instance: the delay policy and
    state are mutated without locking. Separate engines are independent.

    Args:
        config: Finalized retry configuration
        sleep: Pause used between attempts in run(); returns False if cancelled
        asleep: Pause used between attempts in arun()
        clock: Monotonic clock for deadlines
    """

    __slots__ = (
        "_config", "_policy", "_pre", "_post", "_deadline", "_sleep", "_asleep", "_clock", "_state", "_retry_state",
    )

    def __init__(
        self,
        config: RetryConfig,
        *,
        sleep: Sleeper | None = None,
        asleep: AsyncSleeper | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._policy = config.delay_policy()
        self._pre = config.preconditions()
        self._post = config.postconditions()
        self._deadline = next((c for c in self._pre if isinstance(c, Deadline)), None)
        self._sleep = sleep or pause
        self._asleep = asleep or apause
        self._clock = clock
        self._state = EngineState.IDLE
        self._retry_state: RetryState | None = None

    @property
    def config(self) -> RetryConfig:
        return self._config

    @property
    def policy(self) -> DelayPolicy:
        return self._policy

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def attempts(self) -> int:
        """Invocations made by the current or most recent run."""
        return self._retry_state.attempts if self._retry_state else 0

    @property
    def iterations(self) -> int:
        return self._retry_state.iterations if self._retry_state else 0

    # ─────────────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────────────

    def run(self, action: Callable[[], T]) -> T:
        """Run action until a stop condition; return its value or raise the final error."""
        return self.run_outcome(action).unwrap()

    async def arun(self, action: Callable[[], Awaitable[T]]) -> T:
        """Async run(): awaits action, pauses without blocking the event loop."""
        return (await self.arun_outcome(action)).unwrap()

    def run_outcome(self, action: Callable[[], T]) -> RetryOutcome[T]:
        """Run action and report how the loop ended instead of raising."""
        state = self._begin()
        try:
            while True:
                if (stop := self._precheck(state)) is not None:
                    return stop
                value, error = self._invoke(action, state)
                if (stop := self._postcheck(state, value, error)) is not None:
                    return stop
                # Spent budget or deadline ends the run before the pause
                if (stop := self._precheck(state)) is not None:
                    return stop
                delay = self._next_delay(state, error)
                if not self._sleep(delay, self._config.token):
                    return self._cancelled(state)
                state.iterations += 1
        except BaseException:
            self._state = EngineState.INTERRUPTED
            raise

    async def arun_outcome(self, action: Callable[[], Awaitable[T]]) -> RetryOutcome[T]:
        state = self._begin()
        try:
            while True:
                if (stop := self._precheck(state)) is not None:
                    return stop
                value, error = await self._ainvoke(action, state)
                if (stop := self._postcheck(state, value, error)) is not None:
                    return stop
                if (stop := self._precheck(state)) is not None:
                    return stop
                delay = self._next_delay(state, error)
                if not await self._asleep(delay, self._config.token):
                    return self._cancelled(state)
                state.iterations += 1
        except BaseException:
            self._state = EngineState.INTERRUPTED
            raise

    # ─────────────────────────────────────────────────────────────────────
    # Loop steps shared by run and arun
    # ─────────────────────────────────────────────────────────────────────

    def _begin(self) -> RetryState:
        self._policy.reset()
        self._state = EngineState.RUNNING
        self._retry_state = state = RetryState.start(self._clock)
        return state

    def _invoke(self, action: Callable[[], T], state: RetryState) -> tuple[T | None, BaseException | None]:
        state.attempts += 1
        try:
            return state.record(action(), None)
        except Exception as e:  # noqa: BLE001 - every action error is a retry candidate
            return state.record(None, e)

    async def _ainvoke(self, action: Callable[[], Awaitable[T]], state: RetryState) -> tuple[T | None, BaseException | None]:
        state.attempts += 1
        try:
            return state.record(await action(), None)
        except Exception as e:  # noqa: BLE001 - every action error is a retry candidate
            return state.record(None, e)

    def _precheck(self, state: RetryState) -> RetryOutcome[T] | None:
        failed: PreCondition | None = first_failing_pre(self._pre, state)
        if failed is None:
            return None
        self._state = EngineState.PRECONDITION_FAILED
        reason = _PRE_REASONS.get(type(failed), StopReason.STOPPED)
        logger.debug(f"Retry loop stopped before attempt {state.attempts + 1}: {reason}")
        # Cancellation outranks action results; budget and deadline surface the last attempt's result
        if isinstance(failed, Cancellation) or state.attempts == 0:
            return RetryOutcome(None, failed.failure(state), reason, state.attempts)
        return RetryOutcome(state.last_value, state.last_error, reason, state.attempts)

    def _postcheck(self, state: RetryState, value: T | None, error: BaseException | None) -> RetryOutcome[T] | None:
        if isinstance(error, Abort):
            self._state = EngineState.STOPPED
            logger.debug(f"Retry loop aborted on attempt {state.attempts}: {error.error!r}")
            return RetryOutcome(None, error.error, StopReason.ABORTED, state.attempts)
        if all_continue(self._post, root_cause(error)):
            return None
        if error is None:
            self._state = EngineState.SUCCEEDED
            return RetryOutcome(value, None, StopReason.SUCCEEDED, state.attempts)
        self._state = EngineState.STOPPED
        return RetryOutcome(None, error, StopReason.STOPPED, state.attempts)

    def _next_delay(self, state: RetryState, error: BaseException | None) -> float:
        delay = self._policy.next()
        if self._deadline is not None:
            delay = min(delay, self._deadline.remaining(state))
        if error is not None:
            logger.info(
                f"Retry {state.attempts} after {delay:.3f}s ({type(error).__name__}: {error})"
            )
            if self._config.on_retry:
                self._config.on_retry(state.attempts, error, delay)
        return delay

    def _cancelled(self, state: RetryState) -> RetryOutcome[T]:
        self._state = EngineState.PRECONDITION_FAILED
        token = self._config.token
        error = Cancellation(token).failure(state) if token else Cancelled()
        logger.debug(f"Retry loop cancelled while waiting after attempt {state.attempts}")
        return RetryOutcome(None, error, StopReason.CANCELLED, state.attempts)

    def __repr__(self) -> str:
        return f"RetryEngine({self._policy!r}, state={self._state})"
