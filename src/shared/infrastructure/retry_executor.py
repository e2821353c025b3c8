"""
Retry Executor
==============
One retry loop for every remote call, parameterized per call site.

Two backoff shapes are in use:
- FIXED:        sleep base_delay between attempts (read path)
- EXPONENTIAL:  sleep base_delay * 2^(attempt-1) (airdrop path)

No jitter. Each run() owns its attempt counter, so concurrent calls never
share backoff state. Once started, a retry sequence runs to success or to
exhaustion of its budget.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar

from config.settings import Settings
from src.shared.system.errors import is_retryable
from src.shared.system.logging import Logger

T = TypeVar("T")


class BackoffShape(Enum):
    FIXED = "fixed"
    EXPONENTIAL = "exponential"


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget and delay schedule for one call site."""

    max_attempts: int = 3
    base_delay_s: float = 2.0
    backoff: BackoffShape = BackoffShape.FIXED
    retryable: Callable[[BaseException], bool] = field(default=is_retryable, compare=False)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay_s < 0:
            raise ValueError("base_delay_s must be >= 0")

    def delay_after(self, attempt: int) -> float:
        """Sleep before the next attempt, given the 1-based attempt that just failed."""
        if self.backoff is BackoffShape.EXPONENTIAL:
            return self.base_delay_s * (2 ** (attempt - 1))
        return self.base_delay_s

    @property
    def worst_case_delay_s(self) -> float:
        """Total sleep if every attempt fails."""
        return sum(self.delay_after(a) for a in range(1, self.max_attempts))

    @classmethod
    def for_reads(cls) -> "RetryPolicy":
        return cls(
            max_attempts=Settings.READ_RETRY_MAX,
            base_delay_s=Settings.READ_RETRY_BASE_DELAY_S,
            backoff=BackoffShape(Settings.READ_RETRY_BACKOFF.lower()),
        )

    @classmethod
    def for_airdrop(cls) -> "RetryPolicy":
        return cls(
            max_attempts=Settings.AIRDROP_RETRY_MAX,
            base_delay_s=Settings.AIRDROP_RETRY_BASE_DELAY_S,
            backoff=BackoffShape(Settings.AIRDROP_RETRY_BACKOFF.lower()),
        )


class RetryExecutor:
    """
    Runs an async operation under a RetryPolicy.

    Usage:
        executor = RetryExecutor(RetryPolicy.for_reads())
        balance = await executor.run(lambda: client.get_balance(pubkey), label="getBalance")
    """

    def __init__(
        self,
        policy: RetryPolicy,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        self.policy = policy
        self._sleep = sleep or asyncio.sleep

    async def run(self, operation: Callable[[], Awaitable[T]], label: str = "call") -> T:
        """
        Attempt operation up to max_attempts times.

        Non-retryable errors propagate immediately. After the final attempt
        the last error is re-raised unchanged.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return await operation()
            except Exception as e:
                if not self.policy.retryable(e):
                    raise
                if attempt >= self.policy.max_attempts:
                    Logger.warning(
                        f"[RETRY] {label} exhausted after {attempt} attempt(s): {e}"
                    )
                    raise
                delay = self.policy.delay_after(attempt)
                Logger.debug(
                    f"[RETRY] {label} failed (attempt {attempt}/{self.policy.max_attempts}): {e} "
                    f"-> retry in {delay:.1f}s"
                )
                await self._sleep(delay)
