# src/workledger/application/interfaces/retry_port.py
# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Application Interface: Retry Port.

Synopsis:
    How the batch executor retries a transient counter increment failure.
    Backoff timing is the implementation's concern.

Layer:
    application/interfaces
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol


class RetryPort(Protocol):
    """Runs an async call, retrying failures the predicate accepts."""

    async def run[T](
        self,
        fn: Callable[[], Awaitable[T]],
        *,
        retry_on: Callable[[Exception], bool],
    ) -> T:
        """Return ``fn()``'s result, re-raising the last failure when retries run out."""


class NoRetry:
    """Single attempt; failures propagate immediately."""

    async def run[T](
        self,
        fn: Callable[[], Awaitable[T]],
        *,
        retry_on: Callable[[Exception], bool],
    ) -> T:
        return await fn()
