# tests/unit/domain/services/test_aggregate_reconciler.py
from __future__ import annotations

from decimal import Decimal

from tests.fixtures.records import make_record
from workledger.domain.entities.attendance_record import WorkerEntry
from workledger.domain.services.aggregate_reconciler import (
    net_delta,
    reconcile,
    reconcile_records,
)

OWNERS = {"T1": "C1", "T2": "C1", "T3": "C2"}


def _entries(*pairs: tuple[str, str]) -> tuple[WorkerEntry, ...]:
    return tuple(WorkerEntry(worker_id=w, work_units=u) for w, u in pairs)


def test_first_write_credits_every_level() -> None:
    delta = reconcile((), _entries(("W1", "1")), "T1", "S1", "C1")

    assert dict(delta.workers) == {"W1": Decimal(1)}
    assert dict(delta.teams) == {"T1": Decimal(1)}
    assert dict(delta.sites) == {"S1": Decimal(1)}
    assert dict(delta.companies) == {"C1": Decimal(1)}


def test_edit_emits_signed_difference_per_worker() -> None:
    old = _entries(("W1", "1"), ("W2", "1"))
    new = _entries(("W1", "0.5"), ("W3", "1"))

    delta = reconcile(old, new, "T1", "S1", "C1")

    assert dict(delta.workers) == {
        "W1": Decimal("-0.5"),
        "W2": Decimal(-1),
        "W3": Decimal(1),
    }
    assert dict(delta.teams) == {"T1": Decimal("-0.5")}
    assert dict(delta.companies) == {"C1": Decimal("-0.5")}


def test_both_sides_empty_is_empty() -> None:
    assert reconcile((), (), "T1", "S1", "C1").is_empty


def test_unchanged_totals_emit_only_worker_deltas() -> None:
    old = _entries(("W1", "1"))
    new = _entries(("W2", "1"))

    delta = reconcile(old, new, "T1", "S1", "C1")

    assert dict(delta.workers) == {"W1": Decimal(-1), "W2": Decimal(1)}
    assert not delta.teams and not delta.sites and not delta.companies


def test_identical_entries_emit_nothing() -> None:
    entries = _entries(("W1", "1"), ("W2", "0.5"))
    assert reconcile(entries, entries, "T1", "S1", "C1").is_empty


def test_empty_team_credits_neither_team_nor_company() -> None:
    delta = reconcile((), _entries(("W1", "1")), "", "S1", "C1")

    assert not delta.teams
    assert not delta.companies
    assert dict(delta.sites) == {"S1": Decimal(1)}


def test_team_without_company_credits_no_company() -> None:
    delta = reconcile((), _entries(("W1", "1")), "T9", "S1", None)

    assert dict(delta.teams) == {"T9": Decimal(1)}
    assert not delta.companies


def test_reconcile_does_not_mutate_inputs() -> None:
    old = [WorkerEntry(worker_id="W1", work_units=1)]
    snapshot = list(old)

    reconcile(old, (), "T1", "S1", "C1")

    assert old == snapshot


def test_team_change_moves_credit_between_teams_and_companies() -> None:
    old = make_record(("W1", 1), team_id="T1").with_id("rec-1")
    new = old.with_changes({"team_id": "T3"})

    delta = reconcile_records(old, new, OWNERS)

    assert not delta.workers
    assert not delta.sites
    assert dict(delta.teams) == {"T1": Decimal(-1), "T3": Decimal(1)}
    assert dict(delta.companies) == {"C1": Decimal(-1), "C2": Decimal(1)}


def test_site_change_moves_credit_between_sites() -> None:
    old = make_record(("W1", 1), site_id="S1").with_id("rec-1")
    new = old.with_changes({"site_id": "S2"})

    delta = reconcile_records(old, new, OWNERS)

    assert dict(delta.sites) == {"S1": Decimal(-1), "S2": Decimal(1)}
    assert not delta.teams


def test_company_lookup_may_be_callable() -> None:
    record = make_record(("W1", 1), team_id="T2")
    delta = reconcile_records(None, record, OWNERS.get)
    assert dict(delta.companies) == {"C1": Decimal(1)}


def test_net_delta_of_identical_overwrite_is_empty() -> None:
    existing = [make_record(("W1", 1), ("W2", 1)), make_record(("W3", "0.5"), team_id="T2")]
    replacement = [make_record(("W1", 1), ("W2", 1)), make_record(("W3", "0.5"), team_id="T2")]

    assert net_delta(existing, replacement, OWNERS).is_empty


def test_net_delta_merges_to_one_value_per_entity() -> None:
    added = [
        make_record(("W1", 1), team_id="T1"),
        make_record(("W1", 1), team_id="T2", site_id="S2"),
    ]

    delta = net_delta([], added, OWNERS)

    assert dict(delta.workers) == {"W1": Decimal(2)}
    assert dict(delta.companies) == {"C1": Decimal(2)}
    assert dict(delta.teams) == {"T1": Decimal(1), "T2": Decimal(1)}
    assert len(delta.mutations()) == len(delta)


def test_net_delta_equals_delete_then_create() -> None:
    removed = [make_record(("W1", 1), ("W2", "0.5"))]
    added = [make_record(("W1", "0.5"), ("W3", 1), team_id="T3")]

    combined = net_delta(removed, added, OWNERS)
    separate = net_delta(removed, [], OWNERS) + net_delta([], added, OWNERS)

    assert combined == separate
