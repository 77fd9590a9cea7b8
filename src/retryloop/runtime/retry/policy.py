"""Retry configuration.

RetryConfig is an immutable, validated value describing one kind of retry
loop. It is assembled up front (constructor or with_* builders, which each
return a new validated instance) and handed to RetryEngine, so the same
configuration can be inspected, tested and reused.

Optimizations:
- Frozen for immutability and hashability
- Validation at construction, so bad settings fail before first use

Example:
    >>> config = (
    ...     RetryConfig(delay=0.05)
    ...     .with_backoff(2.0)
    ...     .with_jitter(0.1)
    ...     .with_attempts(5)
    ...     .with_conditions(OnErrors(ConnectionError))
    ... )
    >>> RetryEngine(config).run(fetch)
"""

from __future__ import annotations

import random
from typing import Annotated, Any, Callable

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    NonNegativeFloat,
    NonNegativeInt,
    ValidationError,
    computed_field,
    model_validator,
)

from retryloop.foundation.config import PHI, RetrySettings, get_settings
from retryloop.foundation.errors import ConfigurationError
from retryloop.runtime.concurrency import CancellationToken

from .backoff import DelayPolicy, JitterMode, validate_delays
from .conditions import (
    AttemptBudget,
    Cancellation,
    Deadline,
    PostCondition,
    PreCondition,
    StopOnSuccess,
)

OnRetry = Callable[[int, BaseException, float], None]


class RetryConfig(BaseModel):
    """Immutable retry configuration.

    Attributes:
        delay: Base delay (floor) in seconds; the first retry waits this long
        ceiling: Backoff ceiling; None keeps the delay fixed
        rate: Growth factor once backoff is enabled (default: golden ratio)
        jitter: Jitter ratio in [0, 1)
        jitter_mode: Distribution of the jitter multiplier
        attempts: Max invocations (None = unbounded)
        timeout: Overall deadline in seconds (0 = unbounded)
        token: External cancellation signal
        conditions: Extra post-conditions, evaluated in order
        continue_on_success: Drop the implicit stop-on-success condition
        rng: Random source for jitter (seed it for reproducible delays)
        on_retry: Callback(attempt, error, delay) before each pause
    """

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,
        validate_default=True,
        extra="forbid",
        revalidate_instances="never",
    )

    delay: NonNegativeFloat
    ceiling: NonNegativeFloat | None = None
    rate: Annotated[float, Field(ge=1.0)] = PHI
    jitter: Annotated[float, Field(ge=0.0, lt=1.0)] = 0.0
    jitter_mode: JitterMode = JitterMode.UNIFORM
    attempts: NonNegativeInt | None = None
    timeout: NonNegativeFloat = 0.0
    token: CancellationToken | None = Field(default=None, repr=False)
    conditions: tuple[PostCondition, ...] = ()
    continue_on_success: bool = False
    rng: random.Random | None = Field(default=None, repr=False, exclude=True)
    on_retry: OnRetry | None = Field(default=None, repr=False, exclude=True)

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise ConfigurationError.from_validation(e) from e

    @model_validator(mode="after")
    def _check_delays(self) -> RetryConfig:
        try:
            validate_delays(self.delay, self.effective_ceiling, self.effective_rate, self.jitter)
        except ConfigurationError as e:
            raise ValueError(str(e)) from e
        return self

    @classmethod
    def from_settings(cls, settings: RetrySettings | None = None, **overrides: Any) -> RetryConfig:
        """Build a config from environment settings (RETRYLOOP_RETRY_*), with overrides."""
        s = settings or get_settings().retry
        data: dict[str, Any] = {
            "delay": s.delay, "ceiling": s.ceiling, "rate": s.rate, "jitter": s.jitter,
            "jitter_mode": s.jitter_mode, "attempts": s.attempts, "timeout": s.timeout,
        }
        return cls(**{**data, **overrides})

    @computed_field
    @property
    def effective_ceiling(self) -> float:
        """Ceiling handed to the delay policy; equals delay when backoff is off."""
        return self.delay if self.ceiling is None else self.ceiling

    @computed_field
    @property
    def effective_rate(self) -> float:
        return 1.0 if self.ceiling is None else self.rate

    # ─────────────────────────────────────────────────────────────────────
    # Builders (each returns a new validated config)
    # ─────────────────────────────────────────────────────────────────────

    def _with(self, **changes: Any) -> RetryConfig:
        fields = {name: getattr(self, name) for name in type(self).model_fields}
        return type(self)(**{**fields, **changes})

    def with_delay(self, delay: float) -> RetryConfig:
        return self._with(delay=delay)

    def with_attempts(self, attempts: int) -> RetryConfig:
        """Bound total invocations."""
        return self._with(attempts=attempts)

    def with_timeout(self, timeout: float) -> RetryConfig:
        """Bound total wall-clock time (0 = unbounded)."""
        return self._with(timeout=timeout)

    def with_cancellation(self, token: CancellationToken) -> RetryConfig:
        return self._with(token=token)

    def with_backoff(self, ceiling: float, rate: float | None = None) -> RetryConfig:
        """Turn the fixed delay into exponential growth up to ceiling."""
        return self._with(ceiling=ceiling, rate=self.rate if rate is None else rate)

    def with_jitter(self, ratio: float, mode: JitterMode | str = JitterMode.UNIFORM) -> RetryConfig:
        return self._with(jitter=ratio, jitter_mode=mode)

    def with_conditions(self, *conditions: PostCondition) -> RetryConfig:
        """Append post-conditions after the existing ones."""
        return self._with(conditions=(*self.conditions, *conditions))

    def continuing_on_success(self, enabled: bool = True) -> RetryConfig:
        """Keep looping after successes; callers must supply a stopping condition."""
        return self._with(continue_on_success=enabled)

    def with_rng(self, rng: random.Random) -> RetryConfig:
        return self._with(rng=rng)

    # ─────────────────────────────────────────────────────────────────────
    # Materialization
    # ─────────────────────────────────────────────────────────────────────

    def delay_policy(self) -> DelayPolicy:
        """Fresh DelayPolicy for these settings."""
        return DelayPolicy(
            self.delay, self.effective_ceiling, rate=self.effective_rate,
            jitter=self.jitter, jitter_mode=self.jitter_mode, rng=self.rng,
        )

    def preconditions(self) -> tuple[PreCondition, ...]:
        """Attempt budget, deadline, cancellation, in that order, where configured."""
        pre: list[PreCondition] = []
        if self.attempts is not None:
            pre.append(AttemptBudget(self.attempts))
        if self.timeout:
            pre.append(Deadline(self.timeout))
        if self.token is not None:
            pre.append(Cancellation(self.token))
        return tuple(pre)

    def postconditions(self) -> tuple[PostCondition, ...]:
        """Configured post-conditions, led by StopOnSuccess unless continue_on_success."""
        head: tuple[PostCondition, ...] = () if self.continue_on_success else (StopOnSuccess(),)
        return (*head, *self.conditions)

    @computed_field
    @property
    def is_bounded(self) -> bool:
        """Whether the loop can end without a success or an explicit stop."""
        return self.attempts is not None or self.timeout > 0 or self.token is not None

    def __hash__(self) -> int:
        return hash((self.delay, self.ceiling, self.rate, self.jitter, self.attempts, self.timeout, self.conditions))


def fixed(delay: float, **options: Any) -> RetryConfig:
    """Config that waits delay between attempts."""
    return RetryConfig(delay=delay, **options)


def exponential(floor: float, ceiling: float, **options: Any) -> RetryConfig:
    """Config that backs off from floor to ceiling (golden-ratio growth unless rate is given)."""
    return RetryConfig(delay=floor, ceiling=ceiling, **options)
