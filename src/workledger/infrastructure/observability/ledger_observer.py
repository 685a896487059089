# src/workledger/infrastructure/observability/ledger_observer.py
# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Ledger observer backed by the JSON logger and the Prometheus collectors.

Implements ``LedgerObserverPort`` for the CLI wiring: every use case runs
inside an operation scope (correlated log lines) and a latency timer.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from workledger.infrastructure.logging.logger import operation_scope
from workledger.infrastructure.observability.metrics_ledger import (
    counter_mutations_total,
    ledger_chunks_total,
    ledger_mutations_total,
    observe_usecase,
)


class PrometheusLedgerObserver:
    @contextmanager
    def operation(self, name: str) -> Iterator[str]:
        with operation_scope(name) as op_id, observe_usecase(name):
            yield op_id

    def chunk(self, operation: str, outcome: str) -> None:
        ledger_chunks_total.labels(operation=operation, outcome=outcome).inc()

    def ledger_mutation(self, kind: str) -> None:
        ledger_mutations_total.labels(kind=kind).inc()

    def counter_mutation(self, entity_kind: str, outcome: str) -> None:
        counter_mutations_total.labels(entity_kind=entity_kind, outcome=outcome).inc()
