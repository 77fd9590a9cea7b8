"""Error taxonomy for retry loops.

Actions fail by raising ordinary exceptions; those propagate unchanged.
The types here are the signals the engine itself produces, plus the
abort marker actions use to stop a loop early.
"""

from __future__ import annotations

import errno
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pydantic import ValidationError


class RetryError(Exception):
    """Base class for errors raised by retryloop itself."""


class ConfigurationError(RetryError, ValueError):
    """Invalid retry configuration, raised when the configuration is built."""

    @classmethod
    def from_validation(cls, exc: ValidationError, *, model: str = "RetryConfig") -> ConfigurationError:
        """Flatten a pydantic ValidationError into one readable message."""
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or model}: {err['msg']}"
            for err in exc.errors()
        )
        return cls(f"invalid {model}: {problems}")


class AttemptsExhausted(RetryError):
    """The attempt budget was spent before the action could run."""

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"attempt budget of {attempts} exhausted")


class DeadlineExceeded(RetryError, TimeoutError):
    """The retry deadline passed."""

    def __init__(self, timeout: float, message: str | None = None) -> None:
        self.timeout = timeout
        super().__init__(message or f"deadline of {timeout:g}s exceeded")


class Cancelled(RetryError):
    """Default reason carried by a cancelled token."""

    def __init__(self, message: str = "operation cancelled") -> None:
        super().__init__(message)


class Abort(RetryError):
    """Marker that stops a retry loop immediately.

    Raise it from an action to bypass every remaining condition; the
    wrapped error is what the loop surfaces.

    Example:
        >>> def fetch():
        ...     resp = client.get(url)
        ...     if resp.status_code == 404:
        ...         raise Abort(NotFound(url))
        ...     resp.raise_for_status()
    """

    __slots__ = ("error",)

    def __init__(self, error: BaseException) -> None:
        self.error = error
        super().__init__(str(error))


def abort(error: BaseException) -> Abort:
    """Wrap error so that raising the result aborts the retry loop."""
    return Abort(error)


def root_cause(exc: BaseException | None) -> BaseException | None:
    """Follow explicit ``raise ... from`` links down to the innermost cause."""
    if exc is None:
        return None
    seen: set[int] = set()
    while exc.__cause__ is not None and id(exc) not in seen:
        seen.add(id(exc))
        exc = exc.__cause__
    return exc


def is_transient(exc: BaseException) -> bool:
    """Whether exc advertises itself as temporary.

    The capability is a ``temporary`` attribute holding either a bool or a
    zero-argument callable. Errors without it are not temporary.
    """
    flag = getattr(exc, "temporary", None)
    if flag is None:
        return False
    return bool(flag() if callable(flag) else flag)


# accept() failures that clear up on their own (resource pressure, aborted handshakes)
TRANSIENT_ERRNOS: frozenset[int] = frozenset(
    code for code in (
        getattr(errno, name, None)
        for name in ("ECONNABORTED", "EMFILE", "ENFILE", "ENOBUFS", "ENOMEM", "EAGAIN", "EINTR", "EPROTO")
    )
    if code is not None
)


def is_transient_socket_error(exc: BaseException) -> bool:
    """Transient check for listeners: the temporary capability, then known accept errnos."""
    if hasattr(exc, "temporary"):
        return is_transient(exc)
    return isinstance(exc, OSError) and exc.errno in TRANSIENT_ERRNOS
