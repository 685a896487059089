# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Counter synchronizer.

Purpose:
    Glue between the pure reconciler and the reference store: resolve team
    ownership once per operation, then push a delta set through the batch
    executor.

Layer:
    application/services

Notes:
    Company ownership is resolved at reconciliation time, not read from the
    record. A team moved to another company between two writes that touch
    the same record makes the old and new owner's counters drift.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence

from workledger.application.interfaces.observer_port import LedgerObserverPort
from workledger.application.services.batch_executor import BatchExecutor, CounterApplyResult
from workledger.domain.entities.delta_set import DeltaSet
from workledger.domain.exceptions import PartialFailureError
from workledger.domain.interfaces.repositories.reference_repository import ReferenceRepository

logger = logging.getLogger(__name__)


class CounterSynchronizer:
    """Resolve team ownership and apply delta sets to the reference store.

    Args:
        reference: Reference store.
        executor: Batch executor used for bounded-concurrency increments.
    """

    def __init__(self, reference: ReferenceRepository, executor: BatchExecutor) -> None:
        self._reference = reference
        self._executor = executor

    @property
    def observer(self) -> LedgerObserverPort:
        return self._executor.observer

    async def resolve_companies(self, team_ids: Iterable[str]) -> dict[str, str | None]:
        """Return ``team_id -> owning company id`` for every non-empty team id.

        Each distinct team is looked up once.

        Raises:
            StoreError: If the reference store lookup fails.
        """
        unique = sorted({t for t in team_ids if t})
        if not unique:
            return {}
        owners = await asyncio.gather(*(self._reference.resolve_owning_company(t) for t in unique))
        companies = dict(zip(unique, owners, strict=True))
        unowned = [t for t, c in companies.items() if c is None]
        if unowned:
            logger.info("ledger.counter.teams_without_company", extra={"team_ids": unowned})
        return companies

    async def apply(
        self,
        delta: DeltaSet,
        *,
        operation: str,
        record_ids: Sequence[str] = (),
    ) -> CounterApplyResult:
        """Apply ``delta``; an empty delta issues no store writes.

        Args:
            delta: Net delta set to apply.
            operation: Operation label for logs.
            record_ids: Ids produced by the ledger write, attached to errors.

        Returns:
            CounterApplyResult: Applied and skipped mutations.

        Raises:
            PartialFailureError: If some mutations were not confirmed. The
                ledger write that produced ``delta`` is already durable.
        """
        if delta.is_empty:
            logger.debug("ledger.counter.no_change", extra={"operation": operation})
            return CounterApplyResult()

        try:
            result = await self._executor.apply_deltas(delta.mutations())
        except PartialFailureError as exc:
            logger.error(
                "ledger.counters.partial_failure",
                extra={
                    "operation": operation,
                    "failed": [m.as_dict() for m in exc.failed],
                    "record_ids": list(record_ids),
                },
            )
            raise PartialFailureError(
                f"{operation}: ledger committed but counters need retry ({exc.message})",
                failed=exc.failed,
                record_ids=record_ids,
                details={"operation": operation},
            ) from exc

        logger.info(
            "ledger.counters.applied",
            extra={
                "operation": operation,
                "applied": len(result.applied),
                "skipped": len(result.skipped),
            },
        )
        return result
