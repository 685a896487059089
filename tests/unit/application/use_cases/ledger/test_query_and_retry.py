# tests/unit/application/use_cases/ledger/test_query_and_retry.py
from __future__ import annotations

from decimal import Decimal

import pytest

from tests.fixtures.ledger_fakes import FakeLedgerRepository, FakeReferenceRepository
from tests.fixtures.records import make_record
from workledger.dependencies.ledger import LedgerServices
from workledger.domain.entities.delta_set import CounterMutation
from workledger.domain.enums.ledger import EntityKind
from workledger.domain.exceptions import NotFoundError, PartialFailureError, ValidationError


@pytest.fixture
def seeded(ledger: FakeLedgerRepository) -> FakeLedgerRepository:
    ledger.seed(make_record(("W1", 1), date="2025-01-10", team_id="T1", site_id="S1"))
    ledger.seed(make_record(("W2", 1), date="2025-01-10", team_id="T2", site_id="S1"))
    ledger.seed(make_record(("W1", 1), date="2025-01-20", team_id="T1", site_id="S2"))
    ledger.seed(make_record(("W3", 1), date="2024-12-31", team_id="T1", site_id="S1"))
    return ledger


@pytest.mark.asyncio
async def test_get_record(services: LedgerServices, seeded: FakeLedgerRepository) -> None:
    record = await services.get_record.execute("rec-1")
    assert record.team_id == "T1"

    with pytest.raises(NotFoundError):
        await services.get_record.execute("rec-99")


@pytest.mark.asyncio
async def test_list_for_date_optionally_by_team(
    services: LedgerServices, seeded: FakeLedgerRepository
) -> None:
    assert len(await services.list_for_date.execute("2025-01-10")) == 2
    only_t2 = await services.list_for_date.execute("2025-01-10", team_id="T2")
    assert [r.id for r in only_t2] == ["rec-2"]


@pytest.mark.asyncio
async def test_list_in_range_is_newest_first(
    services: LedgerServices, seeded: FakeLedgerRepository
) -> None:
    records = await services.list_in_range.execute("2025-01-01", "2025-01-31", team_id="T1")

    assert [r.date for r in records] == ["2025-01-20", "2025-01-10"]

    with pytest.raises(ValidationError):
        await services.list_in_range.execute("2025-02-01", "2025-01-01")


@pytest.mark.asyncio
async def test_list_for_site_and_exists(
    services: LedgerServices, seeded: FakeLedgerRepository
) -> None:
    site_records = await services.list_for_site.execute("S1")

    assert [r.date for r in site_records] == ["2025-01-10", "2025-01-10", "2024-12-31"]
    assert await services.record_exists.execute("2025-01-20", "T1", "S2") is True
    assert await services.record_exists.execute("2025-01-20", "T2", "S2") is False


@pytest.mark.asyncio
async def test_last_record_date(services: LedgerServices, seeded: FakeLedgerRepository) -> None:
    assert await services.last_record_date.execute() == "2025-01-20"
    assert await services.last_record_date.execute(team_id="T2") == "2025-01-10"
    assert await services.last_record_date.execute(team_id="T3") is None


@pytest.mark.asyncio
async def test_stats_counts_total_month_and_day(
    services: LedgerServices, seeded: FakeLedgerRepository
) -> None:
    stats = await services.stats.execute(today="2025-01-10")

    assert (stats.total, stats.this_month, stats.today) == (4, 3, 2)


@pytest.mark.asyncio
async def test_reads_never_touch_counters(
    services: LedgerServices, seeded: FakeLedgerRepository, reference: FakeReferenceRepository
) -> None:
    await services.stats.execute(today="2025-01-10")
    await services.list_for_site.execute("S1")

    assert reference.increments == []
    assert reference.owner_lookups == []


@pytest.mark.asyncio
async def test_retry_applies_failed_mutations_from_partial_failure(
    services: LedgerServices, reference: FakeReferenceRepository
) -> None:
    reference.broken = {(EntityKind.SITE, "S1"), (EntityKind.COMPANY, "C1")}
    with pytest.raises(PartialFailureError) as exc_info:
        await services.create.execute(make_record(("W1", 1)))

    reference.broken = set()
    result = await services.retry_counters.execute(exc_info.value.failed)

    assert len(result.applied) == 2
    assert reference.counter(EntityKind.SITE, "S1") == Decimal(1)
    assert reference.counter(EntityKind.COMPANY, "C1") == Decimal(1)
    assert reference.counter(EntityKind.WORKER, "W1") == Decimal(1)


@pytest.mark.asyncio
async def test_retry_sums_duplicate_mutations(
    services: LedgerServices, reference: FakeReferenceRepository
) -> None:
    mutations = [
        CounterMutation(EntityKind.WORKER, "W1", Decimal(1)),
        CounterMutation(EntityKind.WORKER, "W1", Decimal("-1")),
        CounterMutation(EntityKind.WORKER, "W2", Decimal(2)),
    ]

    result = await services.retry_counters.execute(mutations)

    assert [(m.entity_id, m.delta) for m in result.applied] == [("W2", Decimal(2))]
    assert reference.increments == [(EntityKind.WORKER, "W2", Decimal(2))]
