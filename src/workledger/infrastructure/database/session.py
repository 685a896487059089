# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Async SQLAlchemy engine and session factory.

This module owns the process-global async SQLAlchemy engine and
`async_sessionmaker` used by the ledger and reference repositories.

Lifecycle:
    * Call `init_engine_and_sessionmaker(settings)` once at startup.
    * Hand the sessionmaker returned by `init_engine_and_sessionmaker()` to the repositories.
    * Call `dispose_engine()` during shutdown.

Notes:
    * No business logic here; repositories open one short-lived session per
      store call so counter increments can run concurrently.
    * `pool_pre_ping=True` helps surface dead connections before use.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from workledger.config.settings import Settings

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None


def init_engine_and_sessionmaker(settings: Settings) -> async_sessionmaker[AsyncSession]:
    """Initialize the global async engine and sessionmaker.

    Args:
        settings: Settings providing `database_url` and the counter
            concurrency used to size the pool.

    Returns:
        async_sessionmaker[AsyncSession]: The global session factory.

    Raises:
        ValueError: If `database_url` is empty.
    """
    global _engine, _sessionmaker

    if not settings.database_url:
        raise ValueError("database_url must be configured")
    if _sessionmaker is not None:
        return _sessionmaker

    pool_size = max(5, settings.counter_max_concurrency)
    _engine = create_async_engine(
        url=settings.database_url,
        pool_pre_ping=True,
        pool_size=pool_size,
        echo=False,
    )
    _sessionmaker = async_sessionmaker(bind=_engine, expire_on_commit=False, class_=AsyncSession)
    logger.info("Database engine initialized", extra={"pool_size": pool_size})
    return _sessionmaker


async def dispose_engine() -> None:
    """Dispose the global engine at shutdown."""
    global _engine, _sessionmaker
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _sessionmaker = None

