# src/workledger/infrastructure/observability/metrics_ledger.py
# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Ledger observability helpers and Prometheus metrics.

Exports
-------
Core collectors (names are part of the public contract and must remain stable):

* ``workledger_ledger_chunks_total`` (Counter)
* ``workledger_ledger_mutations_total`` (Counter)
* ``workledger_counter_mutations_total`` (Counter)
* ``workledger_usecase_latency_seconds`` (Histogram)
* ``workledger_repository_latency_seconds`` (Histogram)
* ``workledger_repository_errors_total`` (Counter)

Helpers:

* :func:`observe_usecase` – context manager timing one use-case execution.

Design
------
All collectors are created against the *current* default registry
(:data:`prometheus_client.REGISTRY`). If a collector with the same name already
exists in the active registry, the existing instance is reused instead of
registering a duplicate, so module re-imports in tests are safe.
"""

from __future__ import annotations

from collections.abc import Generator, Sequence
from contextlib import contextmanager
from time import perf_counter

import prometheus_client as prom
from prometheus_client import Counter, Histogram
from prometheus_client.registry import CollectorRegistry

_BUCKETS: tuple[float, ...] = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)


def _get_or_create_histogram(
    name: str,
    doc: str,
    labelnames: Sequence[str] | None = None,
) -> Histogram:
    """Return a histogram bound to the current default registry.

    Args:
        name: Metric name.
        doc: Human-readable metric description.
        labelnames: Optional iterable of label names.

    Returns:
        A :class:`Histogram` bound to the current :data:`prom.REGISTRY`.
    """
    registry: CollectorRegistry = prom.REGISTRY
    mapping = getattr(registry, "_names_to_collectors", {})
    existing = mapping.get(name)
    if isinstance(existing, Histogram):
        return existing

    labels = tuple(labelnames) if labelnames is not None else ()
    try:
        return Histogram(name, doc, labels, registry=registry, buckets=_BUCKETS)
    except ValueError as exc:
        if "Duplicated timeseries" in str(exc):
            again = getattr(registry, "_names_to_collectors", {}).get(name)
            if isinstance(again, Histogram):
                return again
        raise


def _get_or_create_counter(
    name: str,
    doc: str,
    labelnames: Sequence[str] | None = None,
) -> Counter:
    """Return a counter bound to the current default registry.

    Mirrors :func:`_get_or_create_histogram` for :class:`Counter` collectors.
    Note that ``prometheus_client`` registers counters under their base name
    (without the ``_total`` suffix).
    """
    registry: CollectorRegistry = prom.REGISTRY
    mapping = getattr(registry, "_names_to_collectors", {})
    base_name = name.removesuffix("_total")
    existing = mapping.get(base_name) or mapping.get(name)
    if isinstance(existing, Counter):
        return existing

    labels = tuple(labelnames) if labelnames is not None else ()
    try:
        return Counter(name, doc, labels, registry=registry)
    except ValueError as exc:
        if "Duplicated timeseries" in str(exc):
            mapping = getattr(registry, "_names_to_collectors", {})
            again = mapping.get(base_name) or mapping.get(name)
            if isinstance(again, Counter):
                return again
        raise


# ---------------------------------------------------------------------------
# Core metrics
# ---------------------------------------------------------------------------

ledger_chunks_total: Counter = _get_or_create_counter(
    "workledger_ledger_chunks_total",
    "Atomic ledger-store chunks attempted, by operation and outcome.",
    labelnames=("operation", "outcome"),
)

ledger_mutations_total: Counter = _get_or_create_counter(
    "workledger_ledger_mutations_total",
    "Ledger-store mutations committed, by kind (insert/delete/update).",
    labelnames=("kind",),
)

counter_mutations_total: Counter = _get_or_create_counter(
    "workledger_counter_mutations_total",
    "Counter increments attempted, by entity kind and outcome.",
    labelnames=("entity_kind", "outcome"),
)

usecase_latency_seconds: Histogram = _get_or_create_histogram(
    "workledger_usecase_latency_seconds",
    "Latency of ledger use cases (seconds).",
    labelnames=("operation", "outcome"),
)

repository_latency_seconds: Histogram = _get_or_create_histogram(
    "workledger_repository_latency_seconds",
    "Latency of store calls made by the SQLAlchemy repositories (seconds).",
    labelnames=("operation", "model", "outcome"),
)

repository_errors_total: Counter = _get_or_create_counter(
    "workledger_repository_errors_total",
    "Store calls that raised, by operation, model and exception type.",
    labelnames=("operation", "model", "reason"),
)


@contextmanager
def observe_usecase(operation: str) -> Generator[None, None, None]:
    """Time one use-case execution and record its outcome.

    The outcome label is ``ok`` on normal exit, otherwise the exception's
    ``code`` attribute (domain errors) or ``error``.
    """
    start = perf_counter()
    outcome = "ok"
    try:
        yield
    except Exception as exc:
        outcome = str(getattr(exc, "code", "error")).lower()
        raise
    finally:
        usecase_latency_seconds.labels(operation=operation, outcome=outcome).observe(
            perf_counter() - start
        )
