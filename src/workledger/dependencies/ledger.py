# src/workledger/dependencies/ledger.py
# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Dependency wiring for the attendance ledger.

Overview:
    Builds the ledger use cases from a ledger store, a reference store and
    :class:`Settings`. The CLI uses the SQLAlchemy stores; tests pass
    in-memory fakes to :func:`build_ledger_services` directly.

Layer:
    dependencies
"""

from __future__ import annotations

from dataclasses import dataclass

from workledger.adapters.repositories.sqlalchemy_ledger_repository import (
    SqlAlchemyLedgerRepository,
)
from workledger.adapters.repositories.sqlalchemy_reference_repository import (
    SqlAlchemyReferenceRepository,
)
from workledger.application.interfaces.observer_port import LedgerObserverPort
from workledger.application.services.batch_executor import BatchExecutor
from workledger.application.services.counter_sync import CounterSynchronizer
from workledger.application.use_cases.ledger.create_record import CreateAttendanceRecordUseCase
from workledger.application.use_cases.ledger.create_records_batch import (
    CreateAttendanceRecordsBatchUseCase,
)
from workledger.application.use_cases.ledger.delete_records import DeleteRecordsUseCase
from workledger.application.use_cases.ledger.edit_record_worker import (
    RemoveWorkerFromRecordUseCase,
    UpdateWorkerInRecordUseCase,
    UpsertWorkerInRecordUseCase,
)
from workledger.application.use_cases.ledger.overwrite_records import OverwriteRecordsUseCase
from workledger.application.use_cases.ledger.query_records import (
    GetLastRecordDateUseCase,
    GetLedgerStatsUseCase,
    GetRecordUseCase,
    ListRecordsForDateUseCase,
    ListRecordsForSiteUseCase,
    ListRecordsInRangeUseCase,
    RecordExistsUseCase,
)
from workledger.application.use_cases.ledger.retry_counters import RetryCounterMutationsUseCase
from workledger.application.use_cases.ledger.update_record import UpdateAttendanceRecordUseCase
from workledger.config.settings import Settings
from workledger.domain.interfaces.repositories.ledger_repository import LedgerRepository
from workledger.domain.interfaces.repositories.reference_repository import ReferenceRepository
from workledger.infrastructure.database.session import init_engine_and_sessionmaker
from workledger.infrastructure.observability.ledger_observer import PrometheusLedgerObserver
from workledger.infrastructure.resilience.retry import PolicyRetry, RetryPolicy


@dataclass(frozen=True)
class LedgerServices:
    """Every ledger use case, sharing one executor and synchronizer."""

    create: CreateAttendanceRecordUseCase
    update: UpdateAttendanceRecordUseCase
    create_batch: CreateAttendanceRecordsBatchUseCase
    overwrite: OverwriteRecordsUseCase
    delete: DeleteRecordsUseCase
    remove_worker: RemoveWorkerFromRecordUseCase
    update_worker: UpdateWorkerInRecordUseCase
    upsert_worker: UpsertWorkerInRecordUseCase
    retry_counters: RetryCounterMutationsUseCase
    get_record: GetRecordUseCase
    list_for_date: ListRecordsForDateUseCase
    list_in_range: ListRecordsInRangeUseCase
    list_for_site: ListRecordsForSiteUseCase
    record_exists: RecordExistsUseCase
    last_record_date: GetLastRecordDateUseCase
    stats: GetLedgerStatsUseCase


def build_ledger_services(
    ledger: LedgerRepository,
    reference: ReferenceRepository,
    settings: Settings,
    *,
    observer: LedgerObserverPort | None = None,
) -> LedgerServices:
    """Wire the ledger use cases over the given stores.

    The use cases report through ``observer`` (Prometheus collectors and
    operation-scoped logging by default).
    """
    observer = observer or PrometheusLedgerObserver()
    executor = BatchExecutor(
        ledger,
        reference,
        chunk_size=settings.ledger_chunk_size,
        max_concurrency=settings.counter_max_concurrency,
        retry=PolicyRetry(
            RetryPolicy(
                total=settings.counter_retry_total,
                base=settings.counter_retry_base_s,
                cap=settings.counter_retry_cap_s,
            )
        ),
        observer=observer,
    )
    counters = CounterSynchronizer(reference, executor)
    writers = (ledger, executor, counters)
    return LedgerServices(
        create=CreateAttendanceRecordUseCase(*writers),
        update=UpdateAttendanceRecordUseCase(*writers),
        create_batch=CreateAttendanceRecordsBatchUseCase(*writers),
        overwrite=OverwriteRecordsUseCase(*writers),
        delete=DeleteRecordsUseCase(*writers),
        remove_worker=RemoveWorkerFromRecordUseCase(*writers),
        update_worker=UpdateWorkerInRecordUseCase(*writers),
        upsert_worker=UpsertWorkerInRecordUseCase(*writers),
        retry_counters=RetryCounterMutationsUseCase(counters),
        get_record=GetRecordUseCase(ledger, observer),
        list_for_date=ListRecordsForDateUseCase(ledger, observer),
        list_in_range=ListRecordsInRangeUseCase(ledger, observer),
        list_for_site=ListRecordsForSiteUseCase(ledger, observer),
        record_exists=RecordExistsUseCase(ledger, observer),
        last_record_date=GetLastRecordDateUseCase(ledger, observer),
        stats=GetLedgerStatsUseCase(ledger, observer),
    )


def build_sqlalchemy_ledger_services(settings: Settings) -> LedgerServices:
    """Wire the ledger use cases over the PostgreSQL stores."""
    sessionmaker = init_engine_and_sessionmaker(settings)
    return build_ledger_services(
        SqlAlchemyLedgerRepository(sessionmaker),
        SqlAlchemyReferenceRepository(sessionmaker),
        settings,
    )
