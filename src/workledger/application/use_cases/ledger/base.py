# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Shared machinery for ledger write use cases.

Purpose:
    Every ledger write follows the same ordering: validate, read what is
    about to change, resolve team ownership, commit ledger chunks, then apply
    the net counter delta of what actually committed.

Layer:
    application/use_cases/ledger
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from workledger.application.services.batch_executor import BatchExecutor, CounterApplyResult
from workledger.application.services.counter_sync import CounterSynchronizer
from workledger.domain.entities.attendance_record import AttendanceRecord
from workledger.domain.entities.delta_set import DeltaSet
from workledger.domain.entities.ledger_mutation import (
    DeleteRecord,
    InsertRecord,
    LedgerMutation,
    UpdateRecord,
)
from workledger.domain.exceptions import ChunkExecutionError, PartialFailureError, ValidationError
from workledger.domain.interfaces.repositories.ledger_repository import LedgerRepository
from workledger.domain.services.aggregate_reconciler import CompanyLookup, net_delta

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerWriteResult:
    """Outcome of a ledger write whose counters are fully in sync.

    Attributes:
        record_ids: Ids assigned to inserted records, in input order.
        updated_ids: Ids of records replaced in place.
        deleted_ids: Ids of records physically deleted.
        delta: Net counter delta that was applied.
        counters: Per-mutation outcome of the counter application.
    """

    record_ids: tuple[str, ...] = ()
    updated_ids: tuple[str, ...] = ()
    deleted_ids: tuple[str, ...] = ()
    delta: DeltaSet = field(default_factory=DeltaSet)
    counters: CounterApplyResult = field(default_factory=CounterApplyResult)


def delta_for_mutations(
    mutations: Iterable[LedgerMutation],
    before: Mapping[str, AttendanceRecord],
    companies: CompanyLookup | None,
) -> DeltaSet:
    """Return the net counter delta implied by ``mutations``.

    Args:
        mutations: Committed ledger mutations.
        before: Pre-mutation state of every deleted or updated record, by id.
        companies: Team ownership resolved for this operation.
    """
    removed: list[AttendanceRecord] = []
    added: list[AttendanceRecord] = []
    for mutation in mutations:
        if isinstance(mutation, InsertRecord):
            added.append(mutation.record)
        elif isinstance(mutation, DeleteRecord):
            removed.append(before[mutation.record_id])
        elif isinstance(mutation, UpdateRecord):
            assert mutation.record.id is not None
            removed.append(before[mutation.record.id])
            added.append(mutation.record)
    return net_delta(removed, added, companies)


def require_new(records: Sequence[AttendanceRecord]) -> None:
    """Reject records that already carry a store id."""
    persisted = [r.id for r in records if r.id is not None]
    if persisted:
        raise ValidationError(
            "new records must not carry an id", details={"ids": persisted[:10]}
        )


class LedgerWriteUseCase:
    """Base class for ledger write use cases.

    Args:
        ledger: Ledger store.
        executor: Batch executor for chunked writes.
        counters: Counter synchronizer for the follow-up delta application.
    """

    operation: str = "ledger"

    def __init__(
        self,
        ledger: LedgerRepository,
        executor: BatchExecutor,
        counters: CounterSynchronizer,
    ) -> None:
        self._ledger = ledger
        self._executor = executor
        self._counters = counters
        self._observer = executor.observer

    async def _write_and_reconcile(
        self,
        mutations: Sequence[LedgerMutation],
        *,
        before: Mapping[str, AttendanceRecord],
        companies: CompanyLookup | None,
    ) -> LedgerWriteResult:
        """Commit ``mutations`` then apply their net counter delta.

        Raises:
            ChunkExecutionError: If a ledger chunk failed. The counter delta of
                the chunks that did commit has been applied (or its unapplied
                part is listed under ``details["unapplied_counters"]``).
            PartialFailureError: If the ledger committed but some counter
                mutations did not apply.
        """
        try:
            ids = await self._executor.execute_chunked(mutations, operation=self.operation)
        except ChunkExecutionError as exc:
            await self._reconcile_committed_prefix(mutations, exc, before, companies)
            raise

        delta = delta_for_mutations(mutations, before, companies)
        counters = await self._counters.apply(delta, operation=self.operation, record_ids=ids)
        return LedgerWriteResult(
            record_ids=tuple(ids),
            updated_ids=tuple(
                m.record.id for m in mutations if isinstance(m, UpdateRecord) and m.record.id
            ),
            deleted_ids=tuple(m.record_id for m in mutations if isinstance(m, DeleteRecord)),
            delta=delta,
            counters=counters,
        )

    async def _reconcile_committed_prefix(
        self,
        mutations: Sequence[LedgerMutation],
        exc: ChunkExecutionError,
        before: Mapping[str, AttendanceRecord],
        companies: CompanyLookup | None,
    ) -> None:
        if exc.committed_chunks == 0:
            return
        committed = mutations[: exc.committed_chunks * self._executor.chunk_size]
        delta = delta_for_mutations(committed, before, companies)
        logger.warning(
            "ledger.chunk_failure.reconcile_committed",
            extra={
                "operation": self.operation,
                "committed_chunks": exc.committed_chunks,
                "committed_mutations": len(committed),
            },
        )
        try:
            await self._counters.apply(
                delta, operation=self.operation, record_ids=exc.committed_ids
            )
        except PartialFailureError as counter_exc:
            exc.details["unapplied_counters"] = [m.as_dict() for m in counter_exc.failed]
