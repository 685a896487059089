# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Use case: create one attendance record.

Purpose:
    Persist a new attendance record, then credit its work units to the
    worker, team, site and owning-company counters.

Layer:
    application

Notes:
    Not idempotent: every call inserts a new document. Callers that lost
    the response must re-query before retrying.
"""

from __future__ import annotations

import logging

from workledger.application.use_cases.ledger.base import (
    LedgerWriteResult,
    LedgerWriteUseCase,
    require_new,
)
from workledger.domain.entities.attendance_record import AttendanceRecord
from workledger.domain.entities.ledger_mutation import InsertRecord

logger = logging.getLogger(__name__)


class CreateAttendanceRecordUseCase(LedgerWriteUseCase):
    """Create a single attendance record.

    Raises:
        ValidationError: If the record already has an id. Missing date/site
            and negative work units are rejected when the record is built.
        StoreError: If the ledger write fails; no counters are touched.
        PartialFailureError: If the record was stored but some counters were
            not updated.
    """

    operation = "create"

    async def execute(self, record: AttendanceRecord) -> LedgerWriteResult:
        """Execute the use case.

        Args:
            record: Validated, not yet persisted record.

        Returns:
            LedgerWriteResult: ``record_ids`` holds the single assigned id.
        """
        require_new([record])

        with self._observer.operation(self.operation):
            logger.info(
                "ledger.create.start",
                extra={
                    "date": record.date,
                    "team_id": record.team_id,
                    "site_id": record.site_id,
                    "workers": len(record.worker_entries),
                    "total_work_units": record.total_work_units,
                },
            )
            companies = await self._counters.resolve_companies([record.team_id])
            result = await self._write_and_reconcile(
                [InsertRecord(record)], before={}, companies=companies
            )
            logger.info("ledger.create.done", extra={"record_ids": list(result.record_ids)})
            return result
