# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Use case: replace the worker entries of an attendance record.

Purpose:
    Replace a stored record's ``worker_entries`` (and optionally its
    descriptive/reference fields), then move counters from the old entries to
    the new ones.

Layer:
    application

Notes:
    - The old-decrement and new-increment are netted into a single delta set
      before application, so unchanged workers cause no counter writes.
    - When the team or site changes, the old team/site is debited and the new
      one credited.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from workledger.application.use_cases.ledger.base import LedgerWriteResult, LedgerWriteUseCase
from workledger.domain.entities.attendance_record import WorkerEntry
from workledger.domain.entities.ledger_mutation import UpdateRecord
from workledger.domain.exceptions import NotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpdateAttendanceRecordRequest:
    """Request to replace a record's worker entries.

    Attributes:
        record_id: Id of the stored record.
        worker_entries: Complete new list of worker entries.
        changes: Optional replacements for other record fields (team_id,
            site_id, names, weather, ...). Totals and id cannot be set.
    """

    record_id: str
    worker_entries: Sequence[WorkerEntry]
    changes: Mapping[str, Any] = field(default_factory=dict)


class UpdateAttendanceRecordUseCase(LedgerWriteUseCase):
    """Replace the entries of one attendance record.

    Raises:
        NotFoundError: If the record does not exist.
        ValidationError: If the new entries or changes are invalid.
        StoreError: If the ledger write fails; no counters are touched.
        PartialFailureError: If the record was updated but some counters were
            not.
    """

    operation = "update"

    async def execute(self, req: UpdateAttendanceRecordRequest) -> LedgerWriteResult:
        """Execute the use case.

        Args:
            req: Update request.

        Returns:
            LedgerWriteResult: ``updated_ids`` holds the record id.
        """
        with self._observer.operation(self.operation):
            old = await self._ledger.get_by_id(req.record_id)
            if old is None:
                raise NotFoundError(
                    "attendance record not found", details={"record_id": req.record_id}
                )

            new = old.with_changes(req.changes).with_entries(req.worker_entries)
            logger.info(
                "ledger.update.start",
                extra={
                    "record_id": req.record_id,
                    "old_total": old.total_work_units,
                    "new_total": new.total_work_units,
                },
            )

            companies = await self._counters.resolve_companies([old.team_id, new.team_id])
            result = await self._write_and_reconcile(
                [UpdateRecord(new)], before={req.record_id: old}, companies=companies
            )
            logger.info(
                "ledger.update.done",
                extra={"record_id": req.record_id, "counter_mutations": len(result.delta)},
            )
            return result
