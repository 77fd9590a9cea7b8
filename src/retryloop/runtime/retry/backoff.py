"""Delay computation between retry attempts.

DelayPolicy is a small state machine: each next() grows the current delay
by a constant rate, caps it at the ceiling, optionally jitters it, and never
lets it drop below the floor.

    first next()   -> floor            (no growth, no jitter)
    later next()   -> clamp(jitter(min(current * rate, ceiling)), floor, ceiling)

With floor=1, ceiling=10, rate=2 and no jitter the sequence is
1, 2, 4, 8, 10, 10, ...

If floor > ceiling the policy degenerates to always returning floor.
"""

from __future__ import annotations

import random
from enum import StrEnum

from retryloop.foundation.config import PHI
from retryloop.foundation.errors import ConfigurationError


class JitterMode(StrEnum):
    """Distribution of the jitter multiplier. Both have expected value 1."""
    UNIFORM = "uniform"  # multiplier drawn from [1 - ratio, 1 + ratio]
    NORMAL = "normal"    # multiplier drawn from N(1, ratio)


def validate_delays(floor: float, ceiling: float, rate: float, jitter: float) -> None:
    """Raise ConfigurationError for delay settings that can never behave sensibly."""
    if floor < 0 or ceiling < 0:
        raise ConfigurationError(f"delays must be non-negative (floor={floor}, ceiling={ceiling})")
    if rate < 1:
        raise ConfigurationError(f"growth rate must be >= 1, got {rate}")
    if not 0 <= jitter < 1:
        raise ConfigurationError(f"jitter ratio must be in [0, 1), got {jitter}")
    if floor == 0 and rate > 1 and ceiling > 0:
        raise ConfigurationError("exponential growth needs a non-zero floor; a zero delay never grows")


class DelayPolicy:
    """Exponentially growing delay between floor and ceiling.

    Not thread-safe: one policy drives one retry sequence at a time.

    Args:
        floor: Minimum delay in seconds, also the first delay returned
        ceiling: Maximum delay in seconds
        rate: Growth factor per step (default: golden ratio)
        jitter: Spread of the random multiplier, in [0, 1)
        jitter_mode: Uniform or normal multiplier distribution
        rng: Random source; pass a seeded random.Random for reproducible delays

    Example:
        >>> policy = DelayPolicy(1.0, 10.0, rate=2)
        >>> [policy.next() for _ in range(6)]
        [1.0, 2.0, 4.0, 8.0, 10.0, 10.0]
    """

    __slots__ = ("_floor", "_ceiling", "_rate", "_jitter", "_mode", "_rng", "_current", "_started")

    def __init__(
        self,
        floor: float,
        ceiling: float,
        *,
        rate: float = PHI,
        jitter: float = 0.0,
        jitter_mode: JitterMode | str = JitterMode.UNIFORM,
        rng: random.Random | None = None,
    ) -> None:
        validate_delays(floor, ceiling, rate, jitter)
        try:
            mode = JitterMode(jitter_mode)
        except ValueError as e:
            raise ConfigurationError(f"unknown jitter mode: {jitter_mode!r}") from e
        self._floor, self._ceiling, self._rate = float(floor), float(ceiling), float(rate)
        self._jitter, self._mode = float(jitter), mode
        self._rng = rng or random.Random()
        self._current = 0.0
        self._started = False

    @classmethod
    def fixed(cls, delay: float) -> DelayPolicy:
        """Policy that always waits the same delay."""
        return cls(delay, delay, rate=1.0)

    @property
    def floor(self) -> float:
        return self._floor

    @property
    def ceiling(self) -> float:
        return self._ceiling

    @property
    def rate(self) -> float:
        return self._rate

    @property
    def jitter(self) -> float:
        return self._jitter

    @property
    def jitter_mode(self) -> JitterMode:
        return self._mode

    @property
    def current(self) -> float:
        """Last delay returned by next(), 0 before the first call."""
        return self._current

    def next(self) -> float:
        """Advance and return the delay to wait before the next attempt."""
        self._current = self._step()
        self._started = True
        return self._current

    def peek(self) -> float:
        """Return what next() would return, without committing."""
        state = self._rng.getstate()
        try:
            return self._step()
        finally:
            self._rng.setstate(state)

    def reset(self) -> None:
        """Return to the pre-first-call state."""
        self._current = 0.0
        self._started = False

    def _step(self) -> float:
        if not self._started or self._floor > self._ceiling:
            return self._floor
        delay = min(self._current * self._rate, self._ceiling)
        if self._jitter:
            delay = max(delay * self._multiplier(), 0.0)
        return min(max(delay, self._floor), self._ceiling)

    def _multiplier(self) -> float:
        if self._mode is JitterMode.NORMAL:
            return self._rng.gauss(1.0, self._jitter)
        return self._rng.uniform(1.0 - self._jitter, 1.0 + self._jitter)

    def __repr__(self) -> str:
        jitter = f", jitter={self._jitter:g} ({self._mode})" if self._jitter else ""
        return f"DelayPolicy(floor={self._floor:g}, ceiling={self._ceiling:g}, rate={self._rate:g}{jitter})"
