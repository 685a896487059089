# src/workledger/application/interfaces/observer_port.py
# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Application Interface: Ledger Observer Port.

Synopsis:
    Hooks the ledger use cases and the batch executor report through, so the
    application layer does not depend on a logging or metrics backend.

Layer:
    application/interfaces
"""

from __future__ import annotations

from contextlib import AbstractContextManager, nullcontext
from typing import Protocol


class LedgerObserverPort(Protocol):
    """Observation hooks for ledger operations."""

    def operation(self, name: str) -> AbstractContextManager[object]:
        """Scope one use-case execution.

        Implementations bind an operation id for log correlation and record
        latency and outcome when the block exits.
        """

    def chunk(self, operation: str, outcome: str) -> None:
        """Record one atomic ledger chunk (``outcome`` is ``ok`` or ``error``)."""

    def ledger_mutation(self, kind: str) -> None:
        """Record one committed ledger mutation (insert/update/delete)."""

    def counter_mutation(self, entity_kind: str, outcome: str) -> None:
        """Record one counter increment (applied/skipped/failed)."""


class NullLedgerObserver:
    """Observer that records nothing."""

    def operation(self, name: str) -> AbstractContextManager[object]:
        return nullcontext()

    def chunk(self, operation: str, outcome: str) -> None:
        return None

    def ledger_mutation(self, kind: str) -> None:
        return None

    def counter_mutation(self, entity_kind: str, outcome: str) -> None:
        return None
