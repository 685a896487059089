# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Batch executor.

Purpose:
    Turn an unbounded list of ledger mutations into a sequence of atomic,
    size-bounded chunks, and an unbounded list of counter mutations into a
    bounded-concurrency set of independent increments.

Layer:
    application/services

Notes:
    - Chunks commit in order. A failing chunk stops execution; earlier chunks
      stay committed (there is no cross-chunk rollback).
    - Counter mutations are all attempted even when some fail. Missing
      entities (``NotFoundError``) are skipped, not failed.
    - Transient ``StoreError``s on a counter mutation are retried per the
      injected ``RetryPort`` before being reported as failed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from workledger.application.interfaces.observer_port import LedgerObserverPort, NullLedgerObserver
from workledger.application.interfaces.retry_port import NoRetry, RetryPort
from workledger.domain.entities.delta_set import CounterMutation
from workledger.domain.entities.ledger_mutation import (
    MAX_LEDGER_CHUNK_SIZE,
    DeleteRecord,
    InsertRecord,
    LedgerMutation,
    UpdateRecord,
)
from workledger.domain.exceptions import (
    ChunkExecutionError,
    DomainError,
    NotFoundError,
    PartialFailureError,
    StoreError,
    ValidationError,
)
from workledger.domain.interfaces.repositories.ledger_repository import LedgerRepository
from workledger.domain.interfaces.repositories.reference_repository import ReferenceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CounterApplyResult:
    """Outcome of applying a batch of counter mutations.

    Attributes:
        applied: Mutations confirmed by the reference store.
        skipped: Mutations dropped because the entity does not exist.
        failed: Mutations that could not be confirmed.
    """

    applied: tuple[CounterMutation, ...] = ()
    skipped: tuple[CounterMutation, ...] = ()
    failed: tuple[CounterMutation, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failed


def chunked[T](items: Sequence[T], size: int) -> list[Sequence[T]]:
    """Split ``items`` into consecutive slices of at most ``size`` elements."""
    if size <= 0:
        raise ValidationError("chunk size must be positive", details={"chunk_size": size})
    return [items[i : i + size] for i in range(0, len(items), size)]


def _mutation_kind(mutation: LedgerMutation) -> str:
    if isinstance(mutation, InsertRecord):
        return "insert"
    if isinstance(mutation, DeleteRecord):
        return "delete"
    if isinstance(mutation, UpdateRecord):
        return "update"
    raise ValidationError("unsupported ledger mutation", details={"type": type(mutation).__name__})


class BatchExecutor:
    """Chunked ledger writer and bounded-concurrency counter applier.

    Args:
        ledger: Ledger store.
        reference: Reference store exposing ``increment_counter``.
        chunk_size: Default ceiling on mutations per atomic chunk.
        max_concurrency: Default ceiling on in-flight counter increments.
        retry: Retry strategy for transient counter increment failures.
        observer: Receives chunk and counter outcomes; also used by the
            use cases built on this executor.

    Raises:
        ValidationError: If ``chunk_size`` or ``max_concurrency`` is out of range.
    """

    def __init__(
        self,
        ledger: LedgerRepository,
        reference: ReferenceRepository,
        *,
        chunk_size: int = MAX_LEDGER_CHUNK_SIZE,
        max_concurrency: int = 16,
        retry: RetryPort | None = None,
        observer: LedgerObserverPort | None = None,
    ) -> None:
        self._ledger = ledger
        self._reference = reference
        self._chunk_size = self._checked_chunk_size(chunk_size)
        if max_concurrency <= 0:
            raise ValidationError(
                "max_concurrency must be positive", details={"max_concurrency": max_concurrency}
            )
        self._max_concurrency = max_concurrency
        self._retry: RetryPort = retry or NoRetry()
        self._observer: LedgerObserverPort = observer or NullLedgerObserver()

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def observer(self) -> LedgerObserverPort:
        return self._observer

    @staticmethod
    def _checked_chunk_size(chunk_size: int) -> int:
        if not 1 <= chunk_size <= MAX_LEDGER_CHUNK_SIZE:
            raise ValidationError(
                f"chunk_size must be between 1 and {MAX_LEDGER_CHUNK_SIZE}",
                details={"chunk_size": chunk_size},
            )
        return chunk_size

    # ------------------------------------------------------------------
    # Ledger mutations
    # ------------------------------------------------------------------

    async def execute_chunked(
        self,
        mutations: Sequence[LedgerMutation],
        *,
        chunk_size: int | None = None,
        operation: str = "ledger",
    ) -> list[str]:
        """Commit ``mutations`` chunk by chunk.

        Args:
            mutations: Ledger mutations in execution order.
            chunk_size: Override of the default chunk ceiling.
            operation: Label used for logs and metrics.

        Returns:
            Ids assigned to every ``InsertRecord``, in input order.

        Raises:
            ChunkExecutionError: If a chunk fails after zero or more chunks
                committed. ``chunk_index`` names the first failing chunk.
            NotFoundError: If the first chunk targets a missing record.
        """
        size = self._checked_chunk_size(chunk_size) if chunk_size is not None else self._chunk_size
        chunks = chunked(mutations, size)
        assigned: list[str] = []

        for index, chunk in enumerate(chunks):
            try:
                ids = await self._ledger.apply_mutations(chunk)
            except DomainError as exc:
                self._observer.chunk(operation, "error")
                logger.warning(
                    "ledger.chunk.failed",
                    extra={
                        "operation": operation,
                        "chunk_index": index,
                        "chunk_count": len(chunks),
                        "chunk_len": len(chunk),
                        "error_code": exc.code,
                    },
                )
                if index == 0 and not isinstance(exc, StoreError):
                    raise
                raise ChunkExecutionError(
                    f"ledger chunk {index} of {len(chunks)} failed: {exc}",
                    chunk_index=index,
                    committed_chunks=index,
                    committed_ids=assigned,
                    details={"operation": operation, "cause": exc.code},
                ) from exc

            self._observer.chunk(operation, "ok")
            for mutation in chunk:
                self._observer.ledger_mutation(_mutation_kind(mutation))
            assigned.extend(ids)

        logger.debug(
            "ledger.chunks.committed",
            extra={"operation": operation, "chunks": len(chunks), "mutations": len(mutations)},
        )
        return assigned

    # ------------------------------------------------------------------
    # Counter mutations
    # ------------------------------------------------------------------

    async def apply_deltas(
        self,
        mutations: Sequence[CounterMutation],
        *,
        max_concurrency: int | None = None,
    ) -> CounterApplyResult:
        """Apply every counter mutation with bounded concurrency.

        Args:
            mutations: Counter mutations; zero deltas are ignored.
            max_concurrency: Override of the default concurrency ceiling.

        Returns:
            CounterApplyResult: Applied and skipped mutations (``failed`` is
            always empty on return).

        Raises:
            PartialFailureError: If at least one mutation could not be
                confirmed; ``failed`` lists them.
        """
        pending = [m for m in mutations if m.delta != 0]
        if not pending:
            return CounterApplyResult()

        semaphore = asyncio.Semaphore(max_concurrency or self._max_concurrency)
        applied: list[CounterMutation] = []
        skipped: list[CounterMutation] = []
        failed: list[CounterMutation] = []

        async def _apply_one(mutation: CounterMutation) -> None:
            async with semaphore:
                try:
                    await self._retry.run(
                        lambda: self._reference.increment_counter(
                            mutation.kind, mutation.entity_id, mutation.delta
                        ),
                        retry_on=lambda exc: isinstance(exc, StoreError),
                    )
                except NotFoundError:
                    skipped.append(mutation)
                    self._observer.counter_mutation(mutation.kind.value, "skipped")
                    logger.info("ledger.counter.skipped_unknown_entity", extra=mutation.as_dict())
                except Exception:
                    failed.append(mutation)
                    self._observer.counter_mutation(mutation.kind.value, "failed")
                    logger.warning(
                        "ledger.counter.failed", extra=mutation.as_dict(), exc_info=True
                    )
                else:
                    applied.append(mutation)
                    self._observer.counter_mutation(mutation.kind.value, "applied")

        async with asyncio.TaskGroup() as group:
            for mutation in pending:
                group.create_task(_apply_one(mutation))

        if failed:
            order = {id(m): i for i, m in enumerate(pending)}
            failed.sort(key=lambda m: order[id(m)])
            raise PartialFailureError(
                f"{len(failed)} of {len(pending)} counter mutations did not apply",
                failed=failed,
                details={"applied": len(applied), "skipped": len(skipped)},
            )

        return CounterApplyResult(applied=tuple(applied), skipped=tuple(skipped))
