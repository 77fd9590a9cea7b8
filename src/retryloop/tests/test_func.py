"""Tests for retry_call, @retrying and retry_loop."""

from __future__ import annotations

import asyncio

import pytest

from retryloop import (
    CancellationToken,
    DelayPolicy,
    OnErrors,
    RetryConfig,
    aretry_call,
    aretry_loop,
    retry_call,
    retry_loop,
    retrying,
)

from .conftest import Flaky, RecordingSleep


class Flake(Exception):
    pass


# ─────────────────────────────────────────────────────────────────────────────
# retry_call
# ─────────────────────────────────────────────────────────────────────────────


def test_retry_call_forwards_arguments() -> None:
    calls: list[tuple[int, int]] = []

    def add(a: int, b: int) -> int:
        calls.append((a, b))
        if len(calls) < 2:
            raise Flake()
        return a + b

    assert retry_call(add, 1, b=2, config=RetryConfig(delay=0.0, attempts=3)) == 3
    assert calls == [(1, 2), (1, 2)]


def test_retry_call_uses_environment_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RETRYLOOP_RETRY_DELAY", "0")
    monkeypatch.setenv("RETRYLOOP_RETRY_ATTEMPTS", "2")
    action = Flaky(Flake(), Flake(), Flake())
    with pytest.raises(Flake):
        retry_call(action)
    assert action.calls == 2


@pytest.mark.asyncio
async def test_aretry_call() -> None:
    pending = [Flake()]

    async def fetch(key: str) -> str:
        if pending:
            raise pending.pop()
        return key.upper()

    assert await aretry_call(fetch, "abc", config=RetryConfig(delay=0.0)) == "ABC"


# ─────────────────────────────────────────────────────────────────────────────
# @retrying
# ─────────────────────────────────────────────────────────────────────────────


def test_retrying_decorator_with_options() -> None:
    action = Flaky(Flake(), Flake(), value="fine")

    @retrying(delay=0.0, attempts=5)
    def call() -> object:
        return action()

    assert call() == "fine"
    assert action.calls == 3
    assert call.retry_config.attempts == 5  # type: ignore[attr-defined]


def test_retrying_decorator_with_config_keeps_metadata() -> None:
    config = RetryConfig(delay=0.0, conditions=(OnErrors(Flake),))

    @retrying(config)
    def parse(text: str) -> int:
        """Parse an int."""
        return int(text)

    assert parse.__name__ == "parse"
    assert parse.__doc__ == "Parse an int."
    with pytest.raises(ValueError):
        parse("nope")


def test_retrying_options_layer_over_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RETRYLOOP_RETRY_DELAY", "0")
    monkeypatch.setenv("RETRYLOOP_RETRY_ATTEMPTS", "9")

    @retrying(attempts=2)
    def noop() -> None:
        pass

    assert noop.retry_config.delay == 0.0  # type: ignore[attr-defined]
    assert noop.retry_config.attempts == 2  # type: ignore[attr-defined]


def test_each_decorated_call_starts_fresh() -> None:
    attempts: list[int] = []

    @retrying(delay=0.0, attempts=2)
    def always_fails() -> None:
        attempts.append(1)
        raise Flake()

    for _ in range(2):
        with pytest.raises(Flake):
            always_fails()
    assert len(attempts) == 4


@pytest.mark.asyncio
async def test_retrying_async_function() -> None:
    pending = [Flake(), Flake()]

    @retrying(delay=0.0, attempts=3)
    async def fetch() -> str:
        await asyncio.sleep(0)
        if pending:
            raise pending.pop()
        return "body"

    assert await fetch() == "body"


# ─────────────────────────────────────────────────────────────────────────────
# retry_loop
# ─────────────────────────────────────────────────────────────────────────────


def test_retry_loop_paces_attempts(sleep: RecordingSleep) -> None:
    policy = DelayPolicy(1.0, 10.0, rate=2.0)
    seen = []
    for attempt in retry_loop(policy, sleep=sleep):
        seen.append(attempt)
        if attempt == 3:
            break
    assert seen == [0, 1, 2, 3]
    assert sleep.delays == [1.0, 2.0, 4.0]


def test_retry_loop_ends_on_cancellation(sleep: RecordingSleep) -> None:
    token = CancellationToken()
    seen = []
    for attempt in retry_loop(DelayPolicy.fixed(0.5), token, sleep=sleep):
        seen.append(attempt)
        if attempt == 1:
            token.cancel()
    assert seen == [0, 1]


def test_retry_loop_with_cancelled_token_yields_nothing() -> None:
    token = CancellationToken()
    token.cancel()
    assert list(retry_loop(DelayPolicy.fixed(0.5), token)) == []


@pytest.mark.asyncio
async def test_aretry_loop() -> None:
    token = CancellationToken()
    seen = []
    async for attempt in aretry_loop(DelayPolicy.fixed(0.001), token):
        seen.append(attempt)
        if attempt == 2:
            token.cancel()
    assert seen == [0, 1, 2]
