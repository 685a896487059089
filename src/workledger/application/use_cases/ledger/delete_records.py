# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Use case: physically delete attendance records.

Purpose:
    Delete records by id in size-bounded chunks and decrement every counter
    the deleted records had credited.

Layer:
    application
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from workledger.application.use_cases.ledger.base import LedgerWriteResult, LedgerWriteUseCase
from workledger.domain.entities.attendance_record import AttendanceRecord
from workledger.domain.entities.ledger_mutation import DeleteRecord, LedgerQuery
from workledger.domain.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class DeleteRecordsUseCase(LedgerWriteUseCase):
    """Delete records and reverse their counter contributions.

    Raises:
        NotFoundError: If any id is unknown; nothing is deleted.
        ChunkExecutionError: If a later chunk fails.
        PartialFailureError: If the records were deleted but some counters
            were not decremented.
    """

    operation = "delete"

    async def execute(self, record_ids: Iterable[str]) -> LedgerWriteResult:
        ids = list(dict.fromkeys(i for i in record_ids if i))
        if not ids:
            return LedgerWriteResult()

        with self._observer.operation(self.operation):
            before = await self._load(ids)
            missing = [i for i in ids if i not in before]
            if missing:
                raise NotFoundError(
                    "attendance records not found", details={"record_ids": missing}
                )
            logger.info("ledger.delete.start", extra={"records": len(ids)})
            companies = await self._counters.resolve_companies(r.team_id for r in before.values())
            result = await self._write_and_reconcile(
                [DeleteRecord(i) for i in ids], before=before, companies=companies
            )
            logger.info(
                "ledger.delete.done",
                extra={"deleted": len(result.deleted_ids), "counter_mutations": len(result.delta)},
            )
            return result

    async def _load(self, ids: list[str]) -> dict[str, AttendanceRecord]:
        """Read the records about to be deleted, one query per chunk of ids."""
        size = self._executor.chunk_size
        found: dict[str, AttendanceRecord] = {}
        for start in range(0, len(ids), size):
            chunk = frozenset(ids[start : start + size])
            for record in await self._ledger.query(LedgerQuery(record_ids=chunk)):
                if record.id is not None:
                    found[record.id] = record
        return found
