# src/workledger/adapters/repositories/base_repository.py
# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""
BaseRepository: shared foundation for the SQLAlchemy ledger repositories.

Purpose:
    Shared mechanics for all repositories:
      * One short-lived session per store call, from an injected sessionmaker.
      * Translation of driver errors into ``StoreError``.
      * Latency and error metrics per store call.
      * Safe fetch helpers (optional, all).

Layer: adapters / repositories

Notes:
    * No business logic, no domain decisions.
    * Each store call owns its transaction; the ledger subsystem never spans
      a transaction across calls (one ledger chunk = one call).
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, ClassVar

from sqlalchemy import Select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from workledger.domain.exceptions import DomainError, StoreError
from workledger.infrastructure.observability.metrics_ledger import (
    repository_errors_total,
    repository_latency_seconds,
)


class BaseRepository[TModel]:
    """Base class for the SQLAlchemy repositories.

    Args:
        sessionmaker: Async session factory bound to the target database.
    """

    _MODEL_NAME: ClassVar[str] = "unknown"

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self._sessionmaker = sessionmaker

    @asynccontextmanager
    async def _store_call(self, operation: str) -> AsyncIterator[None]:
        """Time one store call and translate driver errors.

        Raises:
            StoreError: If SQLAlchemy or the driver raised.
        """
        start = time.perf_counter()
        outcome = "success"
        try:
            yield
        except (SQLAlchemyError, OSError) as exc:
            outcome = "error"
            repository_errors_total.labels(
                operation=operation, model=self._MODEL_NAME, reason=type(exc).__name__
            ).inc()
            raise StoreError(
                f"{self._MODEL_NAME} store call failed: {operation}",
                details={"operation": operation, "reason": type(exc).__name__},
            ) from exc
        except DomainError as exc:
            outcome = exc.code.lower()
            raise
        finally:
            repository_latency_seconds.labels(
                operation=operation, model=self._MODEL_NAME, outcome=outcome
            ).observe(time.perf_counter() - start)

    # ------------------------------------------------------------------
    # Fetch helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def fetch_optional(session: AsyncSession, stmt: Select[Any]) -> TModel | None:
        """Execute a statement and return zero or one row."""
        res = await session.execute(stmt)
        return res.scalars().first()

    @staticmethod
    async def fetch_all(session: AsyncSession, stmt: Select[Any]) -> list[TModel]:
        """Execute a statement and return all rows as a list."""
        res = await session.execute(stmt)
        return list(res.scalars().all())
