"""Tests for DelayPolicy.

Validates:
- Growth sequence, ceiling cap and floor
- First-call and reset semantics
- Degenerate floor > ceiling configuration
- Jitter bounds, mean and reproducibility
- Fail-fast validation
"""

from __future__ import annotations

import random
import statistics

import pytest

from retryloop import ConfigurationError, DelayPolicy, JitterMode, PHI


# ─────────────────────────────────────────────────────────────────────────────
# Growth
# ─────────────────────────────────────────────────────────────────────────────


def test_doubling_sequence_caps_at_ceiling() -> None:
    policy = DelayPolicy(1.0, 10.0, rate=2.0)
    assert [policy.next() for _ in range(7)] == [1.0, 2.0, 4.0, 8.0, 10.0, 10.0, 10.0]


def test_default_rate_is_golden_ratio() -> None:
    policy = DelayPolicy(1.0, 100.0)
    assert policy.rate == pytest.approx(PHI)
    policy.next()
    assert policy.next() == pytest.approx(PHI)


def test_sequence_is_monotonic_and_bounded() -> None:
    policy = DelayPolicy(0.01, 3.0)
    delays = [policy.next() for _ in range(50)]
    assert delays == sorted(delays)
    assert all(0.01 <= d <= 3.0 for d in delays)
    assert delays[-1] == 3.0


def test_first_call_returns_floor_without_jitter() -> None:
    policy = DelayPolicy(1.0, 10.0, jitter=0.5, rng=random.Random(1))
    assert policy.next() == 1.0


def test_reset_restarts_from_floor() -> None:
    policy = DelayPolicy(1.0, 10.0, rate=2.0)
    for _ in range(4):
        policy.next()
    assert policy.current == 8.0
    policy.reset()
    assert policy.current == 0.0
    assert [policy.next() for _ in range(3)] == [1.0, 2.0, 4.0]


def test_floor_above_ceiling_always_returns_floor() -> None:
    policy = DelayPolicy(5.0, 1.0, rate=3.0, jitter=0.5, rng=random.Random(3))
    assert [policy.next() for _ in range(10)] == [5.0] * 10


def test_equal_floor_and_ceiling_is_fixed() -> None:
    policy = DelayPolicy.fixed(0.25)
    assert [policy.next() for _ in range(5)] == [0.25] * 5


def test_zero_fixed_delay_is_allowed() -> None:
    policy = DelayPolicy.fixed(0.0)
    assert [policy.next() for _ in range(3)] == [0.0, 0.0, 0.0]


def test_peek_does_not_commit() -> None:
    policy = DelayPolicy(1.0, 10.0, rate=2.0)
    assert policy.peek() == 1.0
    assert policy.peek() == 1.0
    assert policy.next() == 1.0
    assert policy.peek() == 2.0
    assert policy.current == 1.0


def test_peek_matches_next_with_jitter() -> None:
    policy = DelayPolicy(1.0, 1000.0, rate=2.0, jitter=0.3, rng=random.Random(7))
    policy.next()
    for _ in range(8):
        expected = policy.peek()
        assert policy.next() == expected


# ─────────────────────────────────────────────────────────────────────────────
# Jitter
# ─────────────────────────────────────────────────────────────────────────────


def _second_step_samples(policy: DelayPolicy, n: int) -> list[float]:
    samples = []
    for _ in range(n):
        policy.reset()
        policy.next()
        samples.append(policy.next())
    return samples


def test_uniform_jitter_stays_in_band_with_mean_near_base() -> None:
    policy = DelayPolicy(1.0, 100.0, rate=2.0, jitter=0.25, rng=random.Random(42))
    samples = _second_step_samples(policy, 2000)
    assert all(1.5 <= s <= 2.5 for s in samples)
    assert statistics.fmean(samples) == pytest.approx(2.0, abs=0.05)
    assert len(set(samples)) > 100


def test_normal_jitter_mean_near_base() -> None:
    policy = DelayPolicy(1.0, 100.0, rate=2.0, jitter=0.1, jitter_mode="normal", rng=random.Random(42))
    assert policy.jitter_mode is JitterMode.NORMAL
    samples = _second_step_samples(policy, 2000)
    assert statistics.fmean(samples) == pytest.approx(2.0, abs=0.05)
    assert 0.1 < statistics.stdev(samples) < 0.3


def test_jitter_never_leaves_floor_ceiling_band() -> None:
    policy = DelayPolicy(1.0, 4.0, rate=2.0, jitter=0.9, rng=random.Random(3))
    assert all(1.0 <= policy.next() <= 4.0 for _ in range(500))


def test_seeded_policies_are_reproducible() -> None:
    a = DelayPolicy(0.1, 30.0, jitter=0.4, rng=random.Random(99))
    b = DelayPolicy(0.1, 30.0, jitter=0.4, rng=random.Random(99))
    assert [a.next() for _ in range(20)] == [b.next() for _ in range(20)]


# ─────────────────────────────────────────────────────────────────────────────
# Validation
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    ("floor", "ceiling", "kwargs"),
    [
        (0.0, 10.0, {}),                  # zero floor can never grow
        (-1.0, 10.0, {}),
        (1.0, -1.0, {}),
        (1.0, 10.0, {"rate": 0.5}),
        (1.0, 10.0, {"jitter": 1.0}),
        (1.0, 10.0, {"jitter": -0.1}),
        (1.0, 10.0, {"jitter_mode": "triangular"}),
    ],
)
def test_invalid_configuration_fails_fast(floor: float, ceiling: float, kwargs: dict[str, object]) -> None:
    with pytest.raises(ConfigurationError):
        DelayPolicy(floor, ceiling, **kwargs)  # type: ignore[arg-type]


def test_repr_mentions_bounds() -> None:
    assert repr(DelayPolicy(1.0, 10.0, rate=2.0)) == "DelayPolicy(floor=1, ceiling=10, rate=2)"
