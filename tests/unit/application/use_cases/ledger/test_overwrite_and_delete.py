# tests/unit/application/use_cases/ledger/test_overwrite_and_delete.py
from __future__ import annotations

from decimal import Decimal

import pytest

from tests.conftest import TEST_DATABASE_URL
from tests.fixtures.ledger_fakes import FakeLedgerRepository, FakeReferenceRepository
from tests.fixtures.records import make_record
from workledger.application.use_cases.ledger.overwrite_records import OverwriteRecordsRequest
from workledger.config.settings import Settings
from workledger.dependencies.ledger import LedgerServices, build_ledger_services
from workledger.domain.entities.attendance_record import AttendanceRecord
from workledger.domain.entities.ledger_mutation import DeleteRecord, InsertRecord
from workledger.domain.enums.ledger import EntityKind
from workledger.domain.exceptions import NotFoundError, ValidationError

W, T, S, C = EntityKind.WORKER, EntityKind.TEAM, EntityKind.SITE, EntityKind.COMPANY
DAY = "2025-01-10"


def _request(
    *records: AttendanceRecord, team_ids: tuple[str, ...] = ("T1",)
) -> OverwriteRecordsRequest:
    return OverwriteRecordsRequest(date=DAY, records=list(records), team_ids=team_ids)


@pytest.mark.asyncio
async def test_overwrite_with_nothing_clears_counters(
    services: LedgerServices, ledger: FakeLedgerRepository, reference: FakeReferenceRepository
) -> None:
    await services.create.execute(make_record(("W1", 1)))

    result = await services.overwrite.execute(_request())

    assert result.deleted_ids == ("rec-1",)
    assert not ledger.records
    for kind, entity in ((W, "W1"), (T, "T1"), (S, "S1"), (C, "C1")):
        assert reference.counter(kind, entity) == 0


@pytest.mark.asyncio
async def test_repeated_overwrite_is_idempotent(
    services: LedgerServices, ledger: FakeLedgerRepository, reference: FakeReferenceRepository
) -> None:
    batch = [make_record(("W1", 1), ("W2", "0.5")), make_record(("W3", 1), site_id="S2")]

    await services.overwrite.execute(_request(*batch))
    after_first = reference.counters()
    increments_after_first = len(reference.increments)
    second = await services.overwrite.execute(_request(*batch))

    assert reference.counters() == after_first
    assert second.delta.is_empty
    assert len(reference.increments) == increments_after_first
    assert len(ledger.records) == 2
    assert reference.counter(T, "T1") == Decimal("2.5")


@pytest.mark.asyncio
async def test_overwrite_only_touches_selected_teams(
    services: LedgerServices, ledger: FakeLedgerRepository, reference: FakeReferenceRepository
) -> None:
    await services.create.execute(make_record(("W1", 1), team_id="T1"))
    kept = await services.create.execute(make_record(("W2", 1), team_id="T2"))
    await services.create.execute(make_record(("W3", 1), team_id="T1", date="2025-01-11"))

    await services.overwrite.execute(_request(make_record(("W1", 2), team_id="T1")))

    assert kept.record_ids[0] in ledger.records
    assert len(ledger.records) == 3
    assert reference.counter(W, "W1") == Decimal(2)
    assert reference.counter(W, "W2") == Decimal(1)
    assert reference.counter(T, "T1") == Decimal(3)


@pytest.mark.asyncio
async def test_overwrite_runs_deletes_before_inserts(
    services: LedgerServices, ledger: FakeLedgerRepository
) -> None:
    await services.create.execute(make_record(("W1", 1)))

    await services.overwrite.execute(_request(make_record(("W1", 1))))

    chunk = ledger.calls[-1]
    assert isinstance(chunk[0], DeleteRecord)
    assert isinstance(chunk[1], InsertRecord)


@pytest.mark.asyncio
async def test_overwrite_of_empty_scope_with_nothing_is_noop(
    services: LedgerServices, ledger: FakeLedgerRepository
) -> None:
    result = await services.overwrite.execute(_request())

    assert result.delta.is_empty
    assert ledger.calls == []


@pytest.mark.asyncio
async def test_overwrite_unassigned_team_scope(
    services: LedgerServices, reference: FakeReferenceRepository
) -> None:
    await services.overwrite.execute(_request(make_record(("W1", 1), team_id=""), team_ids=("",)))

    assert reference.counter(W, "W1") == Decimal(1)
    assert reference.counter(S, "S1") == Decimal(1)
    assert reference.counter(C, "C1") == 0


@pytest.mark.parametrize(
    "request_",
    [
        OverwriteRecordsRequest(date=DAY, records=[], team_ids=()),
        OverwriteRecordsRequest(
            date=DAY, records=[make_record(("W1", 1), date="2025-01-11")], team_ids=("T1",)
        ),
        OverwriteRecordsRequest(
            date=DAY, records=[make_record(("W1", 1), team_id="T2")], team_ids=("T1",)
        ),
        OverwriteRecordsRequest(date="10/01/2025", records=[], team_ids=("T1",)),
    ],
)
@pytest.mark.asyncio
async def test_overwrite_rejects_out_of_scope_input(
    services: LedgerServices, ledger: FakeLedgerRepository, request_: OverwriteRecordsRequest
) -> None:
    with pytest.raises(ValidationError):
        await services.overwrite.execute(request_)
    assert ledger.calls == []


@pytest.mark.asyncio
async def test_delete_reverses_counters(
    services: LedgerServices, ledger: FakeLedgerRepository, reference: FakeReferenceRepository
) -> None:
    first = await services.create.execute(make_record(("W1", 1), ("W2", 1)))
    second = await services.create.execute(make_record(("W1", "0.5"), team_id="T3"))

    result = await services.delete.execute([first.record_ids[0], first.record_ids[0]])

    assert result.deleted_ids == first.record_ids
    assert set(ledger.records) == set(second.record_ids)
    assert reference.counter(W, "W1") == Decimal("0.5")
    assert reference.counter(W, "W2") == 0
    assert reference.counter(C, "C1") == 0
    assert reference.counter(C, "C2") == Decimal("0.5")


@pytest.mark.asyncio
async def test_delete_with_unknown_id_deletes_nothing(
    services: LedgerServices, ledger: FakeLedgerRepository
) -> None:
    created = await services.create.execute(make_record(("W1", 1)))

    with pytest.raises(NotFoundError) as exc_info:
        await services.delete.execute([created.record_ids[0], "missing"])

    assert exc_info.value.details["record_ids"] == ["missing"]
    assert created.record_ids[0] in ledger.records


@pytest.mark.asyncio
async def test_delete_nothing_is_noop(
    services: LedgerServices, ledger: FakeLedgerRepository
) -> None:
    result = await services.delete.execute([])
    assert result.deleted_ids == ()
    assert ledger.calls == []


@pytest.mark.asyncio
async def test_delete_reads_records_in_chunked_queries(
    ledger: FakeLedgerRepository, reference: FakeReferenceRepository
) -> None:
    settings = Settings(
        DATABASE_URL=TEST_DATABASE_URL,
        LEDGER_CHUNK_SIZE=2,
        COUNTER_RETRY_BASE_S=0,
        COUNTER_RETRY_CAP_S=0,
    )
    services = build_ledger_services(ledger, reference, settings)
    created = await services.create_batch.execute([make_record(("W1", 1)) for _ in range(5)])
    ledger.queries.clear()

    result = await services.delete.execute(created.record_ids)

    assert ledger.lookups == []
    assert [len(q.record_ids or ()) for q in ledger.queries] == [2, 2, 1]
    assert len(result.deleted_ids) == 5
    assert reference.counter(W, "W1") == 0
