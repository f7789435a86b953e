"""Token-bucket rate limiting for the Jupiter API quota.

Jupiter allocates a fixed number of tokens per period per tier (for example
Pro II grants 500 tokens every 10 s, roughly 3,000 requests per minute).
``TokenBucketLimiter`` spends one token per outbound call and makes callers
wait when the bucket is empty. Refill is computed lazily from the monotonic
clock at admission time; there is no background timer.

``create_rate_limiters`` splits one quota into two independent pools so
latency-sensitive traffic (quotes, swaps) is not starved by bulk traffic
(token searches).
"""

from __future__ import annotations

import asyncio
import math
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional, TypeVar

from loguru import logger

from jup_common.errors import RateLimiterConfigError

T = TypeVar("T")

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


def _positive(label: str, value: float) -> float:
    if isinstance(value, bool):
        raise RateLimiterConfigError(f"{label} must be a number, got {value!r}")
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise RateLimiterConfigError(f"{label} must be a number, got {value!r}") from None
    if not math.isfinite(v) or v <= 0:
        raise RateLimiterConfigError(f"{label} must be a positive finite number, got {value!r}")
    return v


class TokenBucketLimiter:
    """Async token bucket.

    tokens_allocated_per_period: bucket capacity and tokens regained per period
    period_in_seconds: length of the quota period
    """

    def __init__(
        self,
        tokens_allocated_per_period: float,
        period_in_seconds: float,
        name: Optional[str] = None,
        detailed_logging: bool = False,
        *,
        clock: Optional[Clock] = None,
        sleep: Optional[Sleep] = None,
    ):
        tokens = _positive("tokens_allocated_per_period", tokens_allocated_per_period)
        period = _positive("period_in_seconds", period_in_seconds)
        # a bucket that cannot hold one whole token never admits anyone
        if tokens < 1:
            raise RateLimiterConfigError(
                f"tokens_allocated_per_period must be at least 1, got {tokens_allocated_per_period!r}"
            )

        self._name = name or "JupiterRateLimiter"
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._detailed_logging = bool(detailed_logging)

        self._rate_per_ms = tokens / (period * 1000.0)
        self._capacity = tokens
        self._tokens = tokens
        self._last_refill = self._now_ms()
        self._lock = asyncio.Lock()

        if self._detailed_logging:
            logger.info(f"[{self._name}] Initialized with {tokens:g} tokens per {period:g}s.")

    @property
    def name(self) -> str:
        return self._name

    @property
    def capacity(self) -> float:
        return self._capacity

    @property
    def refill_rate_per_ms(self) -> float:
        return self._rate_per_ms

    @property
    def available_tokens(self) -> float:
        """Token balance as of the last refill (no refill is triggered)."""
        return self._tokens

    @property
    def detailed_logging(self) -> bool:
        return self._detailed_logging

    def __repr__(self) -> str:
        return (
            f"TokenBucketLimiter(name={self._name!r}, capacity={self._capacity:g}, "
            f"available={self._tokens:.3f})"
        )

    def _now_ms(self) -> float:
        return self._clock() * 1000.0

    def _refill(self) -> None:
        now = self._now_ms()
        elapsed = now - self._last_refill
        # clock did not move (same tick) or went backwards
        if elapsed <= 0:
            return

        old = self._tokens
        self._tokens = min(self._capacity, self._tokens + elapsed * self._rate_per_ms)
        self._last_refill = now

        if self._detailed_logging and self._tokens > old:
            logger.info(
                f"[{self._name}] Refilled {self._tokens - old:.4f} tokens. "
                f"Current tokens: {self._tokens:.4f}"
            )

    async def acquire(self) -> None:
        """Wait until one token is available, then consume it."""
        if self._detailed_logging:
            logger.info(f"[{self._name}] Attempting to acquire token. Available: {self._tokens:.4f}")

        while True:
            async with self._lock:
                self._refill()

                if self._tokens >= 1:
                    self._tokens -= 1
                    if self._detailed_logging:
                        logger.info(f"[{self._name}] Token acquired. Tokens remaining: {self._tokens:.4f}")
                    return

                wait_ms = (1 - self._tokens) / self._rate_per_ms

            if self._detailed_logging:
                logger.info(f"[{self._name}] Waiting for {math.ceil(wait_ms)}ms to refill tokens.")
            # re-check after waking: another task may have taken the token
            await self._sleep(wait_ms / 1000.0)

    async def run_throttled(self, action: Callable[[], Awaitable[T]]) -> T:
        """Acquire a token, then await ``action()`` and hand back its outcome.

        The token stays spent if the action raises; the exception propagates
        untouched.
        """
        await self.acquire()
        return await action()


@dataclass(frozen=True)
class RateLimiterPoolConfig:
    high_priority_quota: float
    low_priority_quota: float
    period_in_seconds: float

    @classmethod
    def from_settings(cls, settings) -> "RateLimiterPoolConfig":
        return cls(
            high_priority_quota=settings.JUPITER_HIGH_PRIORITY_QUOTA,
            low_priority_quota=settings.JUPITER_LOW_PRIORITY_QUOTA,
            period_in_seconds=settings.JUPITER_PERIOD_S,
        )


@dataclass(frozen=True)
class LimiterPool:
    """High/low priority limiters sharing a period but not token state."""
    high: TokenBucketLimiter
    low: TokenBucketLimiter

    def __getitem__(self, priority: str) -> TokenBucketLimiter:
        try:
            return self.as_dict()[priority]
        except KeyError:
            raise KeyError(f"unknown priority {priority!r}, expected 'high' or 'low'") from None

    def as_dict(self) -> Dict[str, TokenBucketLimiter]:
        return {"high": self.high, "low": self.low}


def create_rate_limiters(
    high_priority_quota: float,
    low_priority_quota: float,
    period_in_seconds: float,
    *,
    detailed_logging: bool = False,
    clock: Optional[Clock] = None,
    sleep: Optional[Sleep] = None,
) -> LimiterPool:
    high = TokenBucketLimiter(
        high_priority_quota,
        period_in_seconds,
        name="HighPriority",
        detailed_logging=detailed_logging,
        clock=clock,
        sleep=sleep,
    )
    low = TokenBucketLimiter(
        low_priority_quota,
        period_in_seconds,
        name="LowPriority",
        detailed_logging=detailed_logging,
        clock=clock,
        sleep=sleep,
    )
    return LimiterPool(high=high, low=low)


def create_rate_limiters_from_config(
    config: RateLimiterPoolConfig,
    *,
    detailed_logging: bool = False,
    clock: Optional[Clock] = None,
    sleep: Optional[Sleep] = None,
) -> LimiterPool:
    return create_rate_limiters(
        config.high_priority_quota,
        config.low_priority_quota,
        config.period_in_seconds,
        detailed_logging=detailed_logging,
        clock=clock,
        sleep=sleep,
    )
