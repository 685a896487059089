# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Use case: create many attendance records at once.

Purpose:
    Persist N new records in size-bounded atomic chunks, then apply one
    merged delta set so each distinct entity receives a single increment.

Layer:
    application

Notes:
    Not idempotent. On a chunk failure the records of earlier chunks stay
    stored and their counters are applied before the error is raised.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from workledger.application.use_cases.ledger.base import (
    LedgerWriteResult,
    LedgerWriteUseCase,
    require_new,
)
from workledger.domain.entities.attendance_record import AttendanceRecord
from workledger.domain.entities.ledger_mutation import InsertRecord

logger = logging.getLogger(__name__)


class CreateAttendanceRecordsBatchUseCase(LedgerWriteUseCase):
    """Batch-create attendance records.

    Raises:
        ValidationError: If any record already carries an id.
        ChunkExecutionError: If a ledger chunk fails.
        PartialFailureError: If every record was stored but some counters
            were not updated.
    """

    operation = "create_batch"

    async def execute(self, records: Sequence[AttendanceRecord]) -> LedgerWriteResult:
        """Execute the use case.

        Args:
            records: Validated, not yet persisted records.

        Returns:
            LedgerWriteResult: ``record_ids`` in the same order as ``records``.
        """
        require_new(records)
        if not records:
            return LedgerWriteResult()

        with self._observer.operation(self.operation):
            logger.info(
                "ledger.create_batch.start",
                extra={"records": len(records), "chunk_size": self._executor.chunk_size},
            )
            companies = await self._counters.resolve_companies(r.team_id for r in records)
            result = await self._write_and_reconcile(
                [InsertRecord(r) for r in records], before={}, companies=companies
            )
            logger.info(
                "ledger.create_batch.done",
                extra={"records": len(result.record_ids), "counter_mutations": len(result.delta)},
            )
            return result
