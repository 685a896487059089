# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""
Ledger Domain Exceptions

Purpose:
    Error taxonomy for attendance-ledger writes and the counter
    reconciliation that follows them.

Layer: domain/exceptions

Notes:
    - ``ValidationError`` is raised before any store I/O.
    - ``StoreError`` and ``ChunkExecutionError`` never imply rollback of
      chunks that already committed.
    - ``PartialFailureError`` means the ledger write is durable and only the
      listed counter mutations are unconfirmed.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from .base import DomainError

if TYPE_CHECKING:
    from workledger.domain.entities.delta_set import CounterMutation


class ValidationError(DomainError):
    """Malformed input (missing date/site, negative work units, ...)."""

    code = "VALIDATION_ERROR"


class NotFoundError(DomainError):
    """A referenced ledger record or reference entity does not exist."""

    code = "NOT_FOUND"


class StoreError(DomainError):
    """Transient I/O failure reported by the ledger or reference store."""

    code = "STORE_ERROR"


class ChunkExecutionError(StoreError):
    """A ledger chunk failed to commit after earlier chunks committed.

    Args:
        message: Human-readable error message.
        chunk_index: Zero-based index of the first chunk that failed.
        committed_chunks: Number of chunks committed before the failure.
        committed_ids: Ids assigned to inserts in the committed chunks.
    """

    code = "CHUNK_FAILURE"

    def __init__(
        self,
        message: str,
        *,
        chunk_index: int,
        committed_chunks: int,
        committed_ids: Sequence[str] = (),
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            details={
                "chunk_index": chunk_index,
                "committed_chunks": committed_chunks,
                **(details or {}),
            },
        )
        self.chunk_index = chunk_index
        self.committed_chunks = committed_chunks
        self.committed_ids: tuple[str, ...] = tuple(committed_ids)


class PartialFailureError(DomainError):
    """Ledger mutation committed but some counter mutations did not apply.

    Args:
        message: Human-readable error message.
        failed: Counter mutations that were not confirmed; safe to re-apply.
        record_ids: Ids of records the ledger write produced, when any.
    """

    code = "PARTIAL_FAILURE"

    ledger_committed = True

    def __init__(
        self,
        message: str,
        *,
        failed: Sequence[CounterMutation],
        record_ids: Sequence[str] = (),
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            details={
                "failed": [m.as_dict() for m in failed],
                "record_ids": list(record_ids),
                **(details or {}),
            },
        )
        self.failed: tuple[CounterMutation, ...] = tuple(failed)
        self.record_ids: tuple[str, ...] = tuple(record_ids)

    @property
    def failed_entity_ids(self) -> set[tuple[str, str]]:
        """Return ``(entity_kind, entity_id)`` pairs whose delta failed."""
        return {(m.kind.value, m.entity_id) for m in self.failed}
