"""Cancellation tokens and interruptible pauses.

A CancellationToken is owned by the caller and observed by retry loops.
It works from plain threads and from asyncio code alike: blocking waits
use a threading.Event, async waits park on a future that the token wakes
thread-safely.

Example:
    >>> token = CancellationToken()
    >>> threading.Timer(0.5, token.cancel).start()
    >>> pause(10.0, token)  # returns False after ~0.5s
    False
    >>> token.reason
    Cancelled('operation cancelled')
"""

from __future__ import annotations

import asyncio
import threading
import time
from typing import Callable

from retryloop.foundation.errors import Cancelled, DeadlineExceeded


class CancellationToken:
    """Thread-safe, one-shot cancellation signal with a reason.

    The first call to cancel() wins; later calls are no-ops. The reason is
    the exception a retry loop raises when the token stops it.
    """

    __slots__ = ("_event", "_lock", "_reason", "_callbacks", "_timer")

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._reason: BaseException | None = None
        self._callbacks: list[Callable[[], None]] = []
        self._timer: threading.Timer | None = None

    @classmethod
    def with_timeout(cls, timeout: float) -> CancellationToken:
        """Create a token that cancels itself with DeadlineExceeded after timeout seconds."""
        token = cls()
        timer = threading.Timer(timeout, token.cancel, args=(DeadlineExceeded(timeout),))
        timer.daemon = True
        token._timer = timer
        timer.start()
        return token

    @property
    def cancelled(self) -> bool:
        """Whether the token has been signaled."""
        return self._event.is_set()

    @property
    def reason(self) -> BaseException | None:
        """Exception to surface once cancelled, None before that."""
        return self._reason

    def cancel(self, reason: BaseException | None = None) -> bool:
        """Signal cancellation. Returns False if the token was already cancelled."""
        with self._lock:
            if self._event.is_set():
                return False
            self._reason = reason if reason is not None else Cancelled()
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
        for callback in callbacks:
            callback()
        return True

    def raise_if_cancelled(self) -> None:
        if self._reason is not None:
            raise self._reason

    def add_callback(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run callback on cancellation (immediately if already cancelled).

        Returns a function that unregisters the callback.
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return lambda: self._remove_callback(callback)
        callback()
        return lambda: None

    def _remove_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass  # Already fired

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or timeout elapses. Returns True if cancelled."""
        return self._event.wait(timeout)

    async def wait_async(self, timeout: float | None = None) -> bool:
        """Await cancellation or timeout without blocking the event loop. Returns True if cancelled."""
        if self.cancelled:
            return True
        loop = asyncio.get_running_loop()
        fut: asyncio.Future[None] = loop.create_future()

        def _resolve() -> None:
            if not fut.done():
                fut.set_result(None)

        def _wake() -> None:
            if not loop.is_closed():
                loop.call_soon_threadsafe(_resolve)

        remove = self.add_callback(_wake)
        try:
            await asyncio.wait_for(fut, timeout)
            return True
        except TimeoutError:
            return False
        finally:
            remove()

    def __repr__(self) -> str:
        state = f"cancelled={self._reason!r}" if self.cancelled else "active"
        return f"CancellationToken({state})"


def pause(delay: float, token: CancellationToken | None = None) -> bool:
    """Sleep for delay seconds unless token is cancelled first.

    Returns True when the full delay elapsed, False when cancellation cut it short.
    """
    if token is None:
        time.sleep(delay)
        return True
    return not token.wait(delay)


async def apause(delay: float, token: CancellationToken | None = None) -> bool:
    """Async pause(): races asyncio sleep against the token."""
    if token is None:
        await asyncio.sleep(delay)
        return True
    return not await token.wait_async(delay)
