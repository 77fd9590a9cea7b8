"""Retrying an operation only while it fails transiently.

TransientRetry wraps repeated calls to one operation. Transient failures
(errors advertising themselves as temporary) trigger a pause from a single
DelayPolicy that lives as long as the adapter, so delays keep growing
across consecutive transient failures, even across separate calls. Any
other failure is raised at once, and a success returns at once.

RetryingListener applies this to accept(): a listener that rides out
momentary resource exhaustion instead of failing its serve loop.

Example:
    >>> server = RetryingListener(socket.create_server(("localhost", 0)))
    >>> while True:
    ...     conn, addr = server.accept()
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from retryloop.foundation.errors import Cancelled, DeadlineExceeded, is_transient, is_transient_socket_error
from retryloop.runtime.concurrency import CancellationToken, apause, pause

from .backoff import DelayPolicy

if TYPE_CHECKING:
    from collections.abc import Awaitable

T = TypeVar("T")

logger = logging.getLogger("retryloop.retry.transient")


def _log_transient(error: BaseException) -> None:
    logger.warning(f"temporary error, retrying: {error}")


def _default_policy() -> DelayPolicy:
    """5ms floor, 1s ceiling, doubling."""
    return DelayPolicy(0.005, 1.0, rate=2.0)


class TransientRetry:
    """Retry an operation while it raises transient errors.

    Args:
        policy: Delay policy shared by every call (default: 5ms floor, 1s ceiling, doubling)
        classify: Predicate deciding whether an error is transient
        reset_on_success: Reset the policy after each successful call
        on_transient: Callback for each transient error (default: log a warning)
        token: Cancellation observed during pauses
        timeout: Per-call limit on time spent retrying, 0 = none
        sleep / asleep: Pause implementations; return False when cancelled
        clock: Monotonic clock for the per-call timeout
    """

    __slots__ = ("_policy", "_classify", "_reset_on_success", "_on_transient", "_token",
                 "_timeout", "_sleep", "_asleep", "_clock")

    def __init__(
        self,
        policy: DelayPolicy | None = None,
        *,
        classify: Callable[[BaseException], bool] = is_transient,
        reset_on_success: bool = False,
        on_transient: Callable[[BaseException], None] | None = None,
        token: CancellationToken | None = None,
        timeout: float = 0.0,
        sleep: Callable[[float, CancellationToken | None], bool] = pause,
        asleep: Callable[[float, CancellationToken | None], Awaitable[bool]] = apause,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._policy = policy or _default_policy()
        self._classify = classify
        self._reset_on_success = reset_on_success
        self._on_transient = on_transient or _log_transient
        self._token = token
        self._timeout = timeout
        self._sleep, self._asleep, self._clock = sleep, asleep, clock

    @property
    def policy(self) -> DelayPolicy:
        return self._policy

    def reset(self) -> None:
        """Forget accumulated backoff."""
        self._policy.reset()

    def call(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Invoke fn, retrying only transient failures."""
        started = self._clock()
        while True:
            try:
                result = fn(*args, **kwargs)
            except Exception as e:
                delay, last = self._on_failure(e, started), e
            else:
                return self._on_success(result)
            if not self._sleep(delay, self._token):
                raise self._cancel_reason()
            self._raise_if_expired(last, started)

    async def acall(self, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Async call()."""
        started = self._clock()
        while True:
            try:
                result = await fn(*args, **kwargs)
            except Exception as e:
                delay, last = self._on_failure(e, started), e
            else:
                return self._on_success(result)
            if not await self._asleep(delay, self._token):
                raise self._cancel_reason()
            self._raise_if_expired(last, started)

    def _on_success(self, result: T) -> T:
        if self._reset_on_success:
            self._policy.reset()
        return result

    def _on_failure(self, error: Exception, started: float) -> float:
        """Delay before the next try, or re-raise when error is not worth retrying."""
        if not self._classify(error):
            raise error
        self._raise_if_expired(error, started)
        self._on_transient(error)
        delay = self._policy.next()
        if self._timeout:
            delay = min(delay, max(self._timeout - (self._clock() - started), 0.0))
        return delay

    def _raise_if_expired(self, error: Exception, started: float) -> None:
        if self._timeout and self._clock() - started >= self._timeout:
            raise DeadlineExceeded(self._timeout, f"still failing transiently after {self._timeout:g}s") from error

    def _cancel_reason(self) -> BaseException:
        token = self._token
        return token.reason if token is not None and token.reason is not None else Cancelled()

    def __repr__(self) -> str:
        return f"TransientRetry({self._policy!r}, reset_on_success={self._reset_on_success})"


class RetryingListener:
    """Listener wrapper whose accept() retries transient failures.

    Wraps anything with an accept() method (socket.socket, or any object
    following the same protocol). Attributes other than accept() delegate to
    the wrapped listener.

    Args:
        listener: Object whose accept() is retried
        log_transient: Callback for transient errors (default: log a warning)
        policy: Delay policy (default: 5ms floor, 1s ceiling, doubling)
        timeout: Give up on a single accept() after this long (default: 5s)
        classify: Transient check (default: temporary capability or accept errnos)
    """

    def __init__(
        self,
        listener: Any,
        *,
        log_transient: Callable[[BaseException], None] | None = None,
        policy: DelayPolicy | None = None,
        timeout: float = 5.0,
        classify: Callable[[BaseException], bool] = is_transient_socket_error,
        token: CancellationToken | None = None,
        sleep: Callable[[float, CancellationToken | None], bool] = pause,
    ) -> None:
        self.listener = listener
        self._retry = TransientRetry(
            policy or _default_policy(),
            classify=classify, on_transient=log_transient, token=token, timeout=timeout, sleep=sleep,
        )

    @property
    def retry(self) -> TransientRetry:
        return self._retry

    def accept(self) -> Any:
        return self._retry.call(self.listener.accept)

    def __getattr__(self, name: str) -> Any:
        return getattr(self.listener, name)

    def __enter__(self) -> RetryingListener:
        return self

    def __exit__(self, *_: object) -> None:
        self.listener.close()

    def __repr__(self) -> str:
        return f"RetryingListener({self.listener!r})"
