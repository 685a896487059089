# src/workledger/adapters/repositories/sqlalchemy_ledger_repository.py
# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""SQLAlchemy ledger store.

Responsibilities
----------------
* Read attendance records by id and by :class:`LedgerQuery`.
* Apply one chunk of ledger mutations inside a single transaction, so the
  chunk commits or rolls back as a unit.

Layer
-----
Adapters / repositories.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import Any

from sqlalchemy import ColumnElement, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from workledger.adapters.mappers.ledger_mapper import record_columns, record_to_domain
from workledger.domain.entities.attendance_record import AttendanceRecord
from workledger.domain.entities.ledger_mutation import (
    DeleteRecord,
    InsertRecord,
    LedgerMutation,
    LedgerQuery,
    UpdateRecord,
)
from workledger.domain.exceptions import NotFoundError, ValidationError
from workledger.infrastructure.database.models.base import now_utc
from workledger.infrastructure.database.models.ledger import AttendanceRecordModel

from .base_repository import BaseRepository

_M = AttendanceRecordModel


def _filters(query: LedgerQuery) -> list[ColumnElement[bool]]:
    clauses: list[ColumnElement[bool]] = []
    if query.date is not None:
        clauses.append(_M.date == query.date)
    if query.date_from is not None:
        clauses.append(_M.date >= query.date_from)
    if query.date_to is not None:
        clauses.append(_M.date <= query.date_to)
    if query.team_ids is not None:
        clauses.append(_M.team_id.in_(sorted(query.team_ids)))
    if query.site_id is not None:
        clauses.append(_M.site_id == query.site_id)
    if query.record_ids is not None:
        clauses.append(_M.id.in_(sorted(query.record_ids)))
    return clauses


def _selects_nothing(query: LedgerQuery) -> bool:
    return any(ids is not None and not ids for ids in (query.team_ids, query.record_ids))


class SqlAlchemyLedgerRepository(BaseRepository[AttendanceRecordModel]):
    """Ledger store backed by the ``attendance_records`` table."""

    _MODEL_NAME = "attendance_record"

    async def get_by_id(self, record_id: str) -> AttendanceRecord | None:
        async with self._store_call("get_by_id"), self._sessionmaker() as session:
            row = await session.get(_M, record_id)
            return record_to_domain(row) if row is not None else None

    async def query(self, query: LedgerQuery) -> list[AttendanceRecord]:
        """Return records matching ``query`` ordered by (date, id)."""
        if _selects_nothing(query):
            return []
        stmt = select(_M).where(*_filters(query))
        if query.newest_first:
            stmt = stmt.order_by(_M.date.desc(), _M.id.asc())
        else:
            stmt = stmt.order_by(_M.date.asc(), _M.id.asc())
        if query.limit is not None:
            stmt = stmt.limit(query.limit)

        async with self._store_call("query"), self._sessionmaker() as session:
            rows = await self.fetch_all(session, stmt)
            return [record_to_domain(r) for r in rows]

    async def count(self, query: LedgerQuery) -> int:
        if _selects_nothing(query):
            return 0
        stmt = select(func.count()).select_from(_M).where(*_filters(query))
        async with self._store_call("count"), self._sessionmaker() as session:
            res = await session.execute(stmt)
            return int(res.scalar_one())

    async def apply_mutations(self, mutations: Sequence[LedgerMutation]) -> list[str]:
        """Apply one chunk atomically.

        Returns:
            Ids assigned to the inserts, in input order.

        Raises:
            NotFoundError: If a delete or update matched no row; the chunk is
                rolled back.
            StoreError: On driver failure; the chunk is rolled back.
        """
        if not mutations:
            return []

        assigned: list[str] = []
        async with self._store_call("apply_mutations"), self._sessionmaker() as session:
            async with session.begin():
                for mutation in mutations:
                    new_id = await self._apply_one(session, mutation)
                    if new_id is not None:
                        assigned.append(new_id)
        return assigned

    async def _apply_one(self, session: AsyncSession, mutation: LedgerMutation) -> str | None:
        if isinstance(mutation, InsertRecord):
            new_id = str(uuid.uuid4())
            session.add(_M(id=new_id, **record_columns(mutation.record)))
            await session.flush()
            return new_id

        if isinstance(mutation, DeleteRecord):
            res: Any = await session.execute(delete(_M).where(_M.id == mutation.record_id))
            self._require_row(res.rowcount, mutation.record_id)
            return None

        if isinstance(mutation, UpdateRecord):
            record_id = mutation.record.id
            res = await session.execute(
                update(_M)
                .where(_M.id == record_id)
                .values(**record_columns(mutation.record), updated_at=now_utc())
            )
            self._require_row(res.rowcount, record_id)
            return None

        raise ValidationError(
            "unsupported ledger mutation", details={"type": type(mutation).__name__}
        )

    @staticmethod
    def _require_row(rowcount: int, record_id: str | None) -> None:
        if not rowcount:
            raise NotFoundError("attendance record not found", details={"record_id": record_id})
