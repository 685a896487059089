# src/workledger/domain/interfaces/repositories/ledger_repository.py
# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Ledger store repository interface.

Purpose:
    Define the read and chunked-write operations the ledger subsystem needs
    from the attendance-record store.

Layer:
    domain/interfaces/repositories

Notes:
    Implementations live in adapters and must translate driver errors into
    ``StoreError``. ``apply_mutations`` is the only write entry point and must
    be atomic: all mutations of one call commit together or not at all.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from workledger.domain.entities.attendance_record import AttendanceRecord
from workledger.domain.entities.ledger_mutation import LedgerMutation, LedgerQuery


class LedgerRepository(Protocol):
    """Protocol for attendance-record persistence."""

    async def get_by_id(self, record_id: str) -> AttendanceRecord | None:
        """Return the record ``record_id`` or ``None`` if it does not exist."""

    async def query(self, query: LedgerQuery) -> list[AttendanceRecord]:
        """Return records matching ``query``.

        Results are ordered by (date, id), descending when
        ``query.newest_first`` is set.
        """

    async def count(self, query: LedgerQuery) -> int:
        """Return the number of records matching ``query``."""

    async def apply_mutations(self, mutations: Sequence[LedgerMutation]) -> list[str]:
        """Apply ``mutations`` as one atomic unit.

        Args:
            mutations: Inserts, deletes and updates, in order. Callers never
                pass more than the store's per-transaction ceiling.

        Returns:
            Ids assigned to the ``InsertRecord`` mutations, in input order.

        Raises:
            StoreError: If the unit could not be committed; nothing from it is
                persisted.
            NotFoundError: If a delete or update targets a missing record;
                nothing from the unit is persisted.
        """
