# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Use cases: single-worker edits on one attendance record.

Purpose:
    Narrow operations used by interactive editing: remove a worker from a
    record, patch one worker entry, or upsert a worker into the record for a
    (date, team, site), creating the record when none exists yet.

Layer:
    application

Notes:
    Each edit rewrites the whole record (totals are recomputed on the new
    instance) and applies the single-entry delta produced by the reconciler.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from workledger.application.services.batch_executor import BatchExecutor
from workledger.application.services.counter_sync import CounterSynchronizer
from workledger.application.use_cases.ledger.base import LedgerWriteResult, LedgerWriteUseCase
from workledger.domain.entities.attendance_record import AttendanceRecord, WorkerEntry
from workledger.domain.entities.ledger_mutation import InsertRecord, LedgerQuery, UpdateRecord
from workledger.domain.exceptions import NotFoundError
from workledger.domain.interfaces.repositories.ledger_repository import LedgerRepository

logger = logging.getLogger(__name__)

SYSTEM_WRITER_ID = "system"


class _RecordEditUseCase(LedgerWriteUseCase):
    async def _load(self, record_id: str) -> AttendanceRecord:
        record = await self._ledger.get_by_id(record_id)
        if record is None:
            raise NotFoundError("attendance record not found", details={"record_id": record_id})
        return record

    async def _replace(self, old: AttendanceRecord, new: AttendanceRecord) -> LedgerWriteResult:
        assert old.id is not None
        companies = await self._counters.resolve_companies([old.team_id])
        return await self._write_and_reconcile(
            [UpdateRecord(new)], before={old.id: old}, companies=companies
        )


def _require_entry(record: AttendanceRecord, worker_id: str) -> WorkerEntry:
    entry = record.entry_for(worker_id)
    if entry is None:
        raise NotFoundError(
            "worker not found in attendance record",
            details={"record_id": record.id, "worker_id": worker_id},
        )
    return entry


class RemoveWorkerFromRecordUseCase(_RecordEditUseCase):
    """Remove every entry of one worker from a record.

    Raises:
        NotFoundError: If the record does not exist or the worker is not on it.
    """

    operation = "remove_worker"

    async def execute(self, record_id: str, worker_id: str) -> LedgerWriteResult:
        with self._observer.operation(self.operation):
            old = await self._load(record_id)
            removed = _require_entry(old, worker_id)
            logger.info(
                "ledger.remove_worker.start",
                extra={
                    "record_id": record_id,
                    "worker_id": worker_id,
                    "work_units": removed.work_units,
                },
            )
            result = await self._replace(old, old.without_worker(worker_id))
            logger.info("ledger.remove_worker.done", extra={"record_id": record_id})
            return result


@dataclass(frozen=True)
class UpdateWorkerInRecordRequest:
    """Patch of one worker entry.

    Attributes:
        record_id: Id of the stored record.
        worker_id: Worker whose entry is patched.
        changes: Entry fields to replace (``work_units``, ``unit_rate``,
            ``role_tag``, ``note``, ``name``, ``status``, ``pay_type``,
            ``salary_model``).
    """

    record_id: str
    worker_id: str
    changes: Mapping[str, Any] = field(default_factory=dict)


class UpdateWorkerInRecordUseCase(_RecordEditUseCase):
    """Patch one worker entry in an existing record.

    Only a changed ``work_units`` produces counter writes.

    Raises:
        NotFoundError: If the record does not exist or the worker is not on it.
        ValidationError: If the patched entry is invalid.
    """

    operation = "update_worker"

    async def execute(self, req: UpdateWorkerInRecordRequest) -> LedgerWriteResult:
        with self._observer.operation(self.operation):
            old = await self._load(req.record_id)
            entry = _require_entry(old, req.worker_id).with_updates(**dict(req.changes))
            logger.info(
                "ledger.update_worker.start",
                extra={
                    "record_id": req.record_id,
                    "worker_id": req.worker_id,
                    "fields": sorted(req.changes),
                },
            )
            result = await self._replace(old, old.with_upserted_worker(entry))
            logger.info(
                "ledger.update_worker.done",
                extra={"record_id": req.record_id, "counter_mutations": len(result.delta)},
            )
            return result


@dataclass(frozen=True)
class UpsertWorkerRequest:
    """Add or replace one worker on the record for ``(date, team_id, site_id)``.

    Attributes:
        date: ISO date.
        team_id: Team id (``""`` for unassigned).
        site_id: Site id.
        entry: Worker entry to add or replace.
        team_name: Team display name used if a record has to be created. It is
            also the created record's responsible team name.
        site_name: Site display name used if a record has to be created.
        writer_id: Author stamped on a created record.
    """

    date: str
    team_id: str
    site_id: str
    entry: WorkerEntry
    team_name: str = ""
    site_name: str = ""
    writer_id: str = SYSTEM_WRITER_ID


class UpsertWorkerInRecordUseCase(_RecordEditUseCase):
    """Upsert one worker entry, creating the record when none exists.

    A worker already on the record is patched through
    :class:`UpdateWorkerInRecordUseCase`.
    """

    operation = "upsert_worker"

    def __init__(
        self,
        ledger: LedgerRepository,
        executor: BatchExecutor,
        counters: CounterSynchronizer,
    ) -> None:
        super().__init__(ledger, executor, counters)
        self._update_worker = UpdateWorkerInRecordUseCase(ledger, executor, counters)

    async def execute(self, req: UpsertWorkerRequest) -> LedgerWriteResult:
        # Validates date and site_id before the store is touched.
        candidate = AttendanceRecord(
            date=req.date,
            site_id=req.site_id,
            team_id=req.team_id,
            worker_entries=(req.entry,),
            team_name=req.team_name,
            site_name=req.site_name,
            writer_id=req.writer_id,
            responsible_team_name=req.team_name,
        )
        query = LedgerQuery(
            date=candidate.date,
            team_ids=frozenset({candidate.team_id}),
            site_id=candidate.site_id,
            limit=1,
        )
        existing = await self._ledger.query(query)

        if existing and existing[0].entry_for(req.entry.worker_id) is not None:
            current = existing[0]
            assert current.id is not None
            changes = {
                "work_units": req.entry.work_units,
                "unit_rate": req.entry.unit_rate,
                "role_tag": req.entry.role_tag,
                "note": req.entry.note,
                "name": req.entry.name,
                "status": req.entry.status,
                "pay_type": req.entry.pay_type,
                "salary_model": req.entry.salary_model,
            }
            return await self._update_worker.execute(
                UpdateWorkerInRecordRequest(current.id, req.entry.worker_id, changes)
            )

        with self._observer.operation(self.operation):
            if existing:
                old = existing[0]
                logger.info(
                    "ledger.upsert_worker.append",
                    extra={"record_id": old.id, "worker_id": req.entry.worker_id},
                )
                return await self._replace(old, old.with_upserted_worker(req.entry))

            logger.info(
                "ledger.upsert_worker.create",
                extra={
                    "date": candidate.date,
                    "team_id": candidate.team_id,
                    "site_id": candidate.site_id,
                    "worker_id": req.entry.worker_id,
                },
            )
            companies = await self._counters.resolve_companies([candidate.team_id])
            return await self._write_and_reconcile(
                [InsertRecord(candidate)], before={}, companies=companies
            )
