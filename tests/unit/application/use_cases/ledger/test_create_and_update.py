# tests/unit/application/use_cases/ledger/test_create_and_update.py
from __future__ import annotations

from decimal import Decimal

import pytest

from tests.conftest import TEST_DATABASE_URL
from tests.fixtures.ledger_fakes import FakeLedgerRepository, FakeReferenceRepository
from tests.fixtures.records import make_record
from workledger.application.use_cases.ledger.update_record import UpdateAttendanceRecordRequest
from workledger.config.settings import Settings
from workledger.dependencies.ledger import LedgerServices, build_ledger_services
from workledger.domain.entities.attendance_record import WorkerEntry
from workledger.domain.enums.ledger import EntityKind
from workledger.domain.exceptions import (
    ChunkExecutionError,
    NotFoundError,
    PartialFailureError,
    ValidationError,
)

W, T, S, C = EntityKind.WORKER, EntityKind.TEAM, EntityKind.SITE, EntityKind.COMPANY


@pytest.mark.asyncio
async def test_create_credits_worker_team_site_and_company(
    services: LedgerServices, ledger: FakeLedgerRepository, reference: FakeReferenceRepository
) -> None:
    result = await services.create.execute(make_record(("W1", 1)))

    assert result.record_ids == ("rec-1",)
    assert ledger.records["rec-1"].total_work_units == Decimal(1)
    assert reference.counter(W, "W1") == Decimal(1)
    assert reference.counter(T, "T1") == Decimal(1)
    assert reference.counter(S, "S1") == Decimal(1)
    assert reference.counter(C, "C1") == Decimal(1)


@pytest.mark.asyncio
async def test_create_rejects_persisted_record(services: LedgerServices) -> None:
    with pytest.raises(ValidationError):
        await services.create.execute(make_record(("W1", 1)).with_id("rec-9"))


@pytest.mark.asyncio
async def test_create_with_unknown_worker_still_succeeds(
    services: LedgerServices, ledger: FakeLedgerRepository, reference: FakeReferenceRepository
) -> None:
    result = await services.create.execute(make_record(("ghost", 1), ("W1", 1)))

    assert [m.entity_id for m in result.counters.skipped] == ["ghost"]
    assert reference.counter(W, "W1") == Decimal(1)
    assert reference.counter(T, "T1") == Decimal(2)
    assert len(ledger.records) == 1


@pytest.mark.asyncio
async def test_create_store_failure_touches_no_counters(
    services: LedgerServices, ledger: FakeLedgerRepository, reference: FakeReferenceRepository
) -> None:
    ledger.fail_on_calls = {0}

    with pytest.raises(ChunkExecutionError):
        await services.create.execute(make_record(("W1", 1)))

    assert not ledger.records
    assert reference.increments == []


@pytest.mark.asyncio
async def test_create_partial_failure_keeps_record(
    services: LedgerServices, ledger: FakeLedgerRepository, reference: FakeReferenceRepository
) -> None:
    reference.broken = {(C, "C1")}

    with pytest.raises(PartialFailureError) as exc_info:
        await services.create.execute(make_record(("W1", 1)))

    assert exc_info.value.record_ids == ("rec-1",)
    assert exc_info.value.failed_entity_ids == {("company", "C1")}
    assert "rec-1" in ledger.records
    assert reference.counter(W, "W1") == Decimal(1)


@pytest.mark.asyncio
async def test_update_moves_counters_to_new_amounts(
    services: LedgerServices, reference: FakeReferenceRepository
) -> None:
    created = await services.create.execute(make_record(("W1", 1)))

    result = await services.update.execute(
        UpdateAttendanceRecordRequest(
            record_id=created.record_ids[0],
            worker_entries=[WorkerEntry(worker_id="W1", work_units="0.5")],
        )
    )

    assert result.updated_ids == created.record_ids
    for kind, entity in ((W, "W1"), (T, "T1"), (S, "S1"), (C, "C1")):
        assert reference.counter(kind, entity) == Decimal("0.5")


@pytest.mark.asyncio
async def test_update_with_same_entries_writes_no_counters(
    services: LedgerServices, reference: FakeReferenceRepository
) -> None:
    created = await services.create.execute(make_record(("W1", 1), ("W2", "0.5")))
    before = list(reference.increments)

    result = await services.update.execute(
        UpdateAttendanceRecordRequest(
            record_id=created.record_ids[0],
            worker_entries=[
                WorkerEntry(worker_id="W1", work_units=1),
                WorkerEntry(worker_id="W2", work_units="0.5", note="late"),
            ],
        )
    )

    assert result.delta.is_empty
    assert reference.increments == before


@pytest.mark.asyncio
async def test_update_team_change_moves_company_credit(
    services: LedgerServices, reference: FakeReferenceRepository
) -> None:
    created = await services.create.execute(make_record(("W1", 1)))

    await services.update.execute(
        UpdateAttendanceRecordRequest(
            record_id=created.record_ids[0],
            worker_entries=[WorkerEntry(worker_id="W1", work_units=1)],
            changes={"team_id": "T3"},
        )
    )

    assert reference.counter(T, "T1") == 0
    assert reference.counter(T, "T3") == Decimal(1)
    assert reference.counter(C, "C1") == 0
    assert reference.counter(C, "C2") == Decimal(1)
    assert reference.counter(W, "W1") == Decimal(1)


@pytest.mark.asyncio
async def test_update_missing_record_raises(services: LedgerServices) -> None:
    with pytest.raises(NotFoundError):
        await services.update.execute(UpdateAttendanceRecordRequest("nope", []))


@pytest.mark.asyncio
async def test_update_is_equivalent_to_delete_then_create(
    reference: FakeReferenceRepository, settings: Settings
) -> None:
    other = FakeReferenceRepository(
        entities=dict(reference.entities), owners=dict(reference.owners)
    )
    one = build_ledger_services(FakeLedgerRepository(), reference, settings)
    two = build_ledger_services(FakeLedgerRepository(), other, settings)
    original = make_record(("W1", 1), ("W2", 1))
    replacement = [
        WorkerEntry(worker_id="W2", work_units="0.5"),
        WorkerEntry(worker_id="W3", work_units=2),
    ]

    created = await one.create.execute(original)
    await one.update.execute(UpdateAttendanceRecordRequest(created.record_ids[0], replacement))

    created = await two.create.execute(original)
    await two.delete.execute(created.record_ids)
    await two.create.execute(original.with_entries(replacement))

    assert reference.counters() == other.counters()


@pytest.mark.asyncio
async def test_batch_applies_one_mutation_per_entity(
    services: LedgerServices, ledger: FakeLedgerRepository, reference: FakeReferenceRepository
) -> None:
    records = [
        make_record(("W1", 1), ("W2", 1)),
        make_record(("W1", "0.5"), site_id="S2"),
        make_record(("W1", 1), team_id="T2"),
    ]

    result = await services.create_batch.execute(records)

    assert result.record_ids == ("rec-1", "rec-2", "rec-3")
    touched = [(kind, entity) for kind, entity, _ in reference.increments]
    assert len(touched) == len(set(touched))
    assert reference.counter(W, "W1") == Decimal("2.5")
    assert reference.counter(C, "C1") == Decimal("3.5")
    assert len(ledger.calls) == 1


@pytest.mark.asyncio
async def test_batch_of_nothing_is_a_noop(
    services: LedgerServices, ledger: FakeLedgerRepository
) -> None:
    result = await services.create_batch.execute([])

    assert result.record_ids == ()
    assert ledger.calls == []


@pytest.mark.asyncio
async def test_batch_chunk_failure_reconciles_committed_prefix(
    ledger: FakeLedgerRepository, reference: FakeReferenceRepository
) -> None:
    settings = Settings(
        DATABASE_URL=TEST_DATABASE_URL,
        LEDGER_CHUNK_SIZE=2,
        COUNTER_RETRY_BASE_S=0,
        COUNTER_RETRY_CAP_S=0,
    )
    services = build_ledger_services(ledger, reference, settings)
    ledger.fail_on_calls = {1}

    with pytest.raises(ChunkExecutionError) as exc_info:
        await services.create_batch.execute([make_record(("W1", 1)) for _ in range(5)])

    assert exc_info.value.committed_ids == ("rec-1", "rec-2")
    assert len(ledger.records) == 2
    assert reference.counter(W, "W1") == Decimal(2)
    assert reference.counter(C, "C1") == Decimal(2)


@pytest.mark.asyncio
async def test_batch_chunk_failure_lists_unapplied_counters(
    ledger: FakeLedgerRepository, reference: FakeReferenceRepository
) -> None:
    settings = Settings(
        DATABASE_URL=TEST_DATABASE_URL,
        LEDGER_CHUNK_SIZE=1,
        COUNTER_RETRY_TOTAL=0,
    )
    services = build_ledger_services(ledger, reference, settings)
    ledger.fail_on_calls = {1}
    reference.broken = {(S, "S1")}

    with pytest.raises(ChunkExecutionError) as exc_info:
        await services.create_batch.execute([make_record(("W1", 1)), make_record(("W2", 1))])

    unapplied = exc_info.value.details["unapplied_counters"]
    assert unapplied == [{"entity_kind": "site", "entity_id": "S1", "delta": "1"}]
    assert reference.counter(W, "W1") == Decimal(1)
    assert reference.counter(S, "S1") == 0
