"""Function-level helpers on top of RetryEngine.

- retry_call: run a callable once through a fresh engine
- @retrying: decorate sync or async functions with a retry configuration
- retry_loop / aretry_loop: loop-style pacing for code that wants its own loop body

Example:
    >>> @retrying(RetryConfig(delay=0.1, ceiling=2.0, attempts=5))
    ... def fetch(url: str) -> bytes:
    ...     return http_get(url)

    >>> for attempt in retry_loop(DelayPolicy(0.01, 1.0), token):
    ...     if try_connect():
    ...         break
"""

from __future__ import annotations

import functools
import inspect
from typing import TYPE_CHECKING, Any, Callable, ParamSpec, TypeVar, overload

from retryloop.runtime.concurrency import CancellationToken, apause, pause

from .engine import RetryEngine
from .policy import RetryConfig

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Coroutine, Iterator

    from .backoff import DelayPolicy

T = TypeVar("T")
P = ParamSpec("P")


def retry_call(fn: Callable[..., T], *args: Any, config: RetryConfig | None = None, **kwargs: Any) -> T:
    """Call fn(*args, **kwargs) under config (environment defaults when omitted)."""
    engine = RetryEngine(config or RetryConfig.from_settings())
    return engine.run(functools.partial(fn, *args, **kwargs))


async def aretry_call(fn: Callable[..., Awaitable[T]], *args: Any, config: RetryConfig | None = None, **kwargs: Any) -> T:
    """Async retry_call()."""
    engine = RetryEngine(config or RetryConfig.from_settings())
    return await engine.arun(functools.partial(fn, *args, **kwargs))


@overload
def retrying(config: RetryConfig) -> Callable[[Callable[P, T]], Callable[P, T]]: ...

@overload
def retrying(config: None = None, **options: Any) -> Callable[[Callable[P, T]], Callable[P, T]]: ...


def retrying(config: RetryConfig | None = None, **options: Any) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator retrying every call of the wrapped function.

    Pass a RetryConfig, or keyword options layered over the environment
    defaults. Coroutine functions get an async wrapper. Every call uses a
    fresh engine, so concurrent calls do not share delay state.
    """
    cfg = config if config is not None else RetryConfig.from_settings(**options)

    def decorator(fn: Callable[P, T]) -> Callable[P, T]:
        if inspect.iscoroutinefunction(fn):
            @functools.wraps(fn)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> Any:
                return await RetryEngine(cfg).arun(functools.partial(fn, *args, **kwargs))  # type: ignore[arg-type]
            async_wrapper.retry_config = cfg  # type: ignore[attr-defined]
            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(fn)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return RetryEngine(cfg).run(functools.partial(fn, *args, **kwargs))
        wrapper.retry_config = cfg  # type: ignore[attr-defined]
        return wrapper

    return decorator


def retry_loop(
    policy: DelayPolicy,
    token: CancellationToken | None = None,
    *,
    sleep: Callable[[float, CancellationToken | None], bool] = pause,
) -> Iterator[int]:
    """Yield attempt numbers (from 0), pausing policy.next() between them.

    The first attempt is yielded immediately. Iteration ends when the token
    is cancelled, either before an attempt or during a pause; break out of
    the loop on success.
    """
    policy.reset()
    attempt = 0
    while token is None or not token.cancelled:
        yield attempt
        if not sleep(policy.next(), token):
            return
        attempt += 1


async def aretry_loop(
    policy: DelayPolicy,
    token: CancellationToken | None = None,
    *,
    sleep: Callable[[float, CancellationToken | None], Coroutine[Any, Any, bool]] = apause,
) -> AsyncIterator[int]:
    """Async retry_loop()."""
    policy.reset()
    attempt = 0
    while token is None or not token.cancelled:
        yield attempt
        if not await sleep(policy.next(), token):
            return
        attempt += 1
