"""Tests for the error taxonomy and transient classification."""

from __future__ import annotations

import errno

import pytest
from pydantic import ValidationError

from retryloop import (
    Abort,
    AttemptsExhausted,
    ConfigurationError,
    DeadlineExceeded,
    RetryConfig,
    RetryError,
    abort,
    is_transient,
    is_transient_socket_error,
    root_cause,
)


def test_hierarchy() -> None:
    assert issubclass(ConfigurationError, ValueError)
    assert issubclass(DeadlineExceeded, TimeoutError)
    for cls in (ConfigurationError, AttemptsExhausted, DeadlineExceeded, Abort):
        assert issubclass(cls, RetryError)


def test_messages() -> None:
    assert str(AttemptsExhausted(3)) == "attempt budget of 3 exhausted"
    assert str(DeadlineExceeded(2.5)) == "deadline of 2.5s exceeded"
    assert str(DeadlineExceeded(1.0, "custom")) == "custom"


def test_abort_wraps_error() -> None:
    inner = LookupError("gone")
    marker = abort(inner)
    assert isinstance(marker, Abort)
    assert marker.error is inner


def test_root_cause_follows_explicit_chain() -> None:
    inner = ConnectionError("reset")
    middle = RuntimeError("request failed")
    middle.__cause__ = inner
    outer = ValueError("bad response")
    outer.__cause__ = middle
    assert root_cause(outer) is inner
    assert root_cause(inner) is inner
    assert root_cause(None) is None


def test_root_cause_ignores_implicit_context() -> None:
    try:
        try:
            raise KeyError("first")
        except KeyError:
            raise ValueError("second")  # noqa: B904
    except ValueError as e:
        assert isinstance(root_cause(e), ValueError)


def test_root_cause_survives_cycles() -> None:
    a, b = RuntimeError("a"), RuntimeError("b")
    a.__cause__, b.__cause__ = b, a
    assert root_cause(a) in (a, b)


def test_is_transient() -> None:
    class Busy(Exception):
        temporary = True

    class Flag(Exception):
        def temporary(self) -> bool:
            return False

    assert is_transient(Busy())
    assert not is_transient(Flag())
    assert not is_transient(OSError(errno.EAGAIN, "again"))


def test_is_transient_socket_error() -> None:
    assert is_transient_socket_error(OSError(errno.ECONNABORTED, "aborted"))
    assert is_transient_socket_error(OSError(errno.EMFILE, "too many files"))
    assert not is_transient_socket_error(OSError(errno.EBADF, "bad fd"))
    assert not is_transient_socket_error(ValueError("nope"))


def test_configuration_error_from_validation() -> None:
    with pytest.raises(ConfigurationError, match="jitter") as excinfo:
        RetryConfig(delay=1.0, jitter=3.0)
    assert isinstance(excinfo.value.__cause__, ValidationError)
