# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Use case: overwrite a date's records for a set of teams.

Purpose:
    Replace every attendance record on ``date`` whose team is in ``team_ids``
    with ``records``, applying only the net counter change between what was
    deleted and what was inserted.

Layer:
    application

Notes:
    - Deletes and inserts share one chunked mutation sequence (deletes
      first), so a single-chunk overwrite is fully atomic on the ledger.
    - Safe to retry blindly: each call deletes exactly what the previous call
      inserted, so repeating it with the same input nets to zero.
    - Every incoming record must fall inside the overwrite scope (same date,
      team in ``team_ids``); otherwise a repeat call would not delete it and
      would double-count.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from workledger.application.use_cases.ledger.base import (
    LedgerWriteResult,
    LedgerWriteUseCase,
    require_new,
)
from workledger.domain.entities.attendance_record import AttendanceRecord, validate_iso_date
from workledger.domain.entities.ledger_mutation import (
    DeleteRecord,
    InsertRecord,
    LedgerMutation,
    LedgerQuery,
)
from workledger.domain.exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OverwriteRecordsRequest:
    """Request to overwrite one date for a set of teams.

    Attributes:
        date: ISO date being overwritten.
        records: Replacement records; may be empty to clear the scope.
        team_ids: Teams whose existing records on ``date`` are replaced.
            ``""`` selects unassigned-team records.
    """

    date: str
    records: Sequence[AttendanceRecord]
    team_ids: Iterable[str]


def _validate_scope(
    date: str, records: Sequence[AttendanceRecord], team_ids: frozenset[str]
) -> None:
    if not team_ids:
        raise ValidationError("team_ids must not be empty")
    off_date = [r.date for r in records if r.date != date]
    if off_date:
        raise ValidationError(
            "overwrite records must all carry the overwritten date",
            details={"date": date, "found": sorted(set(off_date))},
        )
    off_team = [r.team_id for r in records if r.team_id not in team_ids]
    if off_team:
        raise ValidationError(
            "overwrite records must belong to one of team_ids",
            details={"team_ids": sorted(team_ids), "found": sorted(set(off_team))},
        )


class OverwriteRecordsUseCase(LedgerWriteUseCase):
    """Diff-and-net overwrite of ``(date, team_ids)``.

    Raises:
        ValidationError: If the date is malformed, ``team_ids`` is empty, or a
            record falls outside the overwrite scope.
        StoreError: If the existing records cannot be read or the first chunk
            fails; nothing was changed.
        ChunkExecutionError: If a later chunk fails; earlier chunks and their
            counter deltas stay applied.
        PartialFailureError: If the ledger was fully rewritten but some
            counters were not updated.
    """

    operation = "overwrite"

    async def execute(self, req: OverwriteRecordsRequest) -> LedgerWriteResult:
        """Execute the use case.

        Args:
            req: Overwrite request.

        Returns:
            LedgerWriteResult: Inserted ids in ``record_ids``, removed ids in
            ``deleted_ids``, and the net delta that was applied.
        """
        date = validate_iso_date(req.date)
        team_ids = frozenset(req.team_ids)
        records = list(req.records)
        require_new(records)
        _validate_scope(date, records, team_ids)

        with self._observer.operation(self.operation):
            existing = await self._ledger.query(LedgerQuery(date=date))
            to_delete = [r for r in existing if r.team_id in team_ids]
            logger.info(
                "ledger.overwrite.start",
                extra={
                    "date": date,
                    "team_ids": sorted(team_ids),
                    "existing": len(existing),
                    "to_delete": len(to_delete),
                    "to_insert": len(records),
                },
            )

            mutations: list[LedgerMutation] = [
                *(DeleteRecord(r.id) for r in to_delete if r.id is not None),
                *(InsertRecord(r) for r in records),
            ]
            if not mutations:
                logger.info("ledger.overwrite.done", extra={"date": date, "noop": True})
                return LedgerWriteResult()

            companies = await self._counters.resolve_companies(
                [*(r.team_id for r in to_delete), *(r.team_id for r in records)]
            )
            result = await self._write_and_reconcile(
                mutations,
                before={r.id: r for r in to_delete if r.id is not None},
                companies=companies,
            )
            logger.info(
                "ledger.overwrite.done",
                extra={
                    "date": date,
                    "deleted": len(result.deleted_ids),
                    "inserted": len(result.record_ids),
                    "counter_mutations": len(result.delta),
                },
            )
            return result
