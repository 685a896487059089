# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Declarative Base and persistence mixins for Workledger.

This module defines:
    - A project-wide SQLAlchemy Declarative Base with deterministic naming
      conventions (for stable Alembic diffs).
    - A timestamp mixin (UTC) shared by ledger tables.

The target schema comes from ``DB_SCHEMA`` (default ``public``). It is read
from the environment rather than from ``Settings`` so Alembic and tooling can
import the models without a full application configuration.
"""

from __future__ import annotations

import os
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func
from sqlalchemy.types import DateTime

__all__ = ["DEFAULT_DB_SCHEMA", "Base", "TimestampMixin", "metadata", "now_utc", "table_args"]

#: Default database schema for all tables.
DEFAULT_DB_SCHEMA: str | None = os.getenv("DB_SCHEMA", "public") or None

#: Deterministic naming conventions for Alembic-friendly diffs.
#: Ref: https://alembic.sqlalchemy.org/en/latest/naming.html
NAMING_CONVENTIONS: dict[str, str] = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=NAMING_CONVENTIONS)


def now_utc() -> datetime:
    """Return the current UTC time with timezone info."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Declarative Base for all ORM models.

    Attaches the metadata with stable naming conventions and the configured
    schema. Models that declare their own ``__table_args__`` must include the
    schema themselves (see :func:`table_args`).
    """

    metadata = metadata

    @declared_attr.directive
    def __table_args__(cls) -> tuple[Any, ...]:
        return table_args()


def table_args(*items: Any) -> tuple[Any, ...]:
    """Return ``__table_args__`` with ``items`` plus the default schema."""
    if DEFAULT_DB_SCHEMA:
        return (*items, {"schema": DEFAULT_DB_SCHEMA})
    return items


class TimestampMixin:
    """Mixin providing ``created_at`` and ``updated_at`` timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=now_utc,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=now_utc,
        onupdate=now_utc,
        server_default=func.now(),
    )
