# migrations/env.py
# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Alembic environment for the ledger tables.

Purpose:
    Run the ``attendance_records`` / ``reference_entities`` migrations offline
    (SQL script) or online through the async engine, using the same
    ``Settings`` the CLI uses.

Design:
    - The URL and schema come from ``Settings`` (``DATABASE_URL``,
      ``DB_SCHEMA``); ``sqlalchemy.url`` in alembic.ini is a fallback for
      offline script generation only.
    - ``ENVIRONMENT`` must be set explicitly so a stray shell cannot migrate
      the wrong database.
    - ``-x show_url=1`` logs the masked URL.

Usage:
    ENVIRONMENT=test alembic upgrade head --sql
    ENVIRONMENT=test alembic upgrade head
"""

from __future__ import annotations

import asyncio
import logging
import logging.config
import os
from urllib.parse import urlparse, urlunparse

from alembic import context
from pydantic import ValidationError
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from workledger.config.settings import Settings
from workledger.infrastructure.database.models import metadata

config = context.config

if config.config_file_name is not None:
    logging.config.fileConfig(config.config_file_name)

logger = logging.getLogger("alembic.env")

target_metadata = metadata


def _mask_url(url: str) -> str:
    parts = urlparse(url)
    auth = f"{parts.username}:****@" if parts.username else ""
    port = f":{parts.port}" if parts.port else ""
    netloc = f"{auth}{parts.hostname or ''}{port}"
    return urlunparse((parts.scheme, netloc, parts.path, "", "", ""))


def _load() -> tuple[str, str | None]:
    """Return ``(database_url, version_table_schema)``.

    Raises:
        RuntimeError: If ENVIRONMENT is unset or the configuration is invalid.
    """
    if not (os.getenv("ENVIRONMENT") or "").strip():
        raise RuntimeError("ENVIRONMENT is required for migrations (e.g. ENVIRONMENT=test).")

    overrides: dict[str, str] = {}
    ini_url = config.get_main_option("sqlalchemy.url")
    if not os.getenv("DATABASE_URL") and ini_url and context.is_offline_mode():
        overrides["DATABASE_URL"] = ini_url
    try:
        settings = Settings(**overrides)  # type: ignore[arg-type]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid migration configuration: {exc}") from exc

    if dict(getattr(config, "x", {}) or {}).get("show_url") == "1":
        logger.info(
            "Migrating %s (%s)", _mask_url(settings.database_url), settings.environment.value
        )
    return settings.database_url, settings.db_schema or None


def _configure(schema: str | None, **kwargs: object) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        include_schemas=True,
        version_table_schema=schema,
        **kwargs,  # type: ignore[arg-type]
    )


def run_migrations_offline() -> None:
    url, schema = _load()
    _configure(schema, url=url, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def _run_sync(connection: Connection, schema: str | None) -> None:
    _configure(schema, connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def _run_online() -> None:
    url, schema = _load()
    engine = create_async_engine(url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_run_sync, schema)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(_run_online())
