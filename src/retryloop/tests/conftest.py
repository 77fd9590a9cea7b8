"""Shared fixtures: fake clocks and sleepers so retry loops run without waiting."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from retryloop.foundation.config import clear_settings_cache
from retryloop.runtime.concurrency import CancellationToken


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Sleeper that records delays instead of waiting.

    Returns False (cancelled) once the token is cancelled, like pause().
    """

    def __init__(self, clock: FakeClock | None = None) -> None:
        self.delays: list[float] = []
        self.clock = clock

    def __call__(self, delay: float, token: CancellationToken | None) -> bool:
        self.delays.append(delay)
        if self.clock is not None:
            self.clock.advance(delay)
        return token is None or not token.cancelled


class RecordingAsyncSleep(RecordingSleep):
    async def __call__(self, delay: float, token: CancellationToken | None) -> bool:  # type: ignore[override]
        return RecordingSleep.__call__(self, delay, token)


class Flaky:
    """Callable raising the given errors in order, then returning value."""

    def __init__(self, *errors: BaseException, value: object = "ok") -> None:
        self.errors = list(errors)
        self.value = value
        self.calls = 0

    def __call__(self) -> object:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.value


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def asleep() -> RecordingAsyncSleep:
    return RecordingAsyncSleep()


@pytest.fixture(autouse=True)
def clean_settings() -> Iterator[None]:
    """Re-read settings from the environment in every test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def retryloop_log_level() -> Iterator[None]:
    """Let INFO records from retryloop loggers reach caplog."""
    logger = logging.getLogger("retryloop")
    previous = logger.level
    logger.setLevel(logging.DEBUG)
    yield
    logger.setLevel(previous)
