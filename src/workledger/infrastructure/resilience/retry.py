# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Retry utilities (async) with jittered exponential backoff."""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration for retry attempts."""

    total: int  # number of retries (not counting the first attempt)
    base: float  # base backoff seconds
    cap: float  # max backoff seconds
    jitter: bool = True  # add full jitter if True

    def backoff(self, attempt: int) -> float:
        """Return the sleep before retry number ``attempt + 1``."""
        delay = min(self.cap, self.base * (2**attempt))
        if self.jitter:
            delay = random.uniform(0, delay)  # noqa: S311
        return delay


NO_RETRY = RetryPolicy(total=0, base=0.0, cap=0.0, jitter=False)


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy,
    retry_on: Callable[[Exception], bool],
    on_retry: Callable[[int, Exception], None] | None = None,
) -> T:
    """Retry an async function with backoff until success or budget exhausted.

    Args:
        fn: Zero-arg async function to execute.
        policy: RetryPolicy defining count/backoff.
        retry_on: Predicate returning True for exceptions worth retrying.
        on_retry: Optional hook called with ``(attempt, exc)`` before sleeping.

    Returns:
        The return value of ``fn`` if successful.

    Raises:
        The last exception if retries are exhausted or ``retry_on`` rejects it.
    """
    attempt = 0
    while True:
        try:
            return await fn()
        except Exception as exc:  # noqa: BLE001
            if attempt >= policy.total or not retry_on(exc):
                raise
            if on_retry is not None:
                on_retry(attempt, exc)
        await asyncio.sleep(policy.backoff(attempt))
        attempt += 1


@dataclass(frozen=True)
class PolicyRetry:
    """``RetryPort`` implementation driven by a :class:`RetryPolicy`."""

    policy: RetryPolicy

    async def run(
        self,
        fn: Callable[[], Awaitable[T]],
        *,
        retry_on: Callable[[Exception], bool],
    ) -> T:
        return await retry_async(fn, policy=self.policy, retry_on=retry_on)
