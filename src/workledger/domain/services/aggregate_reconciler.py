# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Aggregate reconciler (pure).

Purpose:
    Compute the signed worker/team/site/company counter deltas implied by
    replacing one set of worker entries with another, and the net deltas of
    removing and adding whole records.

Layer:
    domain/services

Notes:
    - No I/O. Team ownership is passed in; callers resolve it once per
      operation at reconciliation time.
    - Zero deltas are never emitted.
    - An empty ``team_id`` credits neither a team nor a company.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from decimal import Decimal

from workledger.domain.entities.attendance_record import (
    AttendanceRecord,
    WorkerEntry,
    units_by_worker,
)
from workledger.domain.entities.base import ZERO
from workledger.domain.entities.delta_set import DeltaSet

__all__ = ["net_delta", "reconcile", "reconcile_records"]

CompanyLookup = Mapping[str, str | None] | Callable[[str], str | None]


def _company_for(team_id: str, companies: CompanyLookup | None) -> str | None:
    if not team_id or companies is None:
        return None
    if callable(companies):
        return companies(team_id)
    return companies.get(team_id)


def reconcile(
    old_entries: Iterable[WorkerEntry],
    new_entries: Iterable[WorkerEntry],
    team_id: str,
    site_id: str,
    company_id: str | None,
) -> DeltaSet:
    """Return the delta set for replacing ``old_entries`` with ``new_entries``.

    Args:
        old_entries: Entries currently reflected in the counters.
        new_entries: Entries that should be reflected instead.
        team_id: Team credited by both entry lists (``""`` for none).
        site_id: Site credited by both entry lists.
        company_id: Current owner of ``team_id``, or ``None``.

    Returns:
        DeltaSet: ``Δworker = new - old`` per worker id; ``Δteam``, ``Δsite``
        and ``Δcompany`` equal ``sum(new) - sum(old)``.
    """
    old_units = units_by_worker(old_entries)
    new_units = units_by_worker(new_entries)

    workers: dict[str, Decimal] = {
        worker_id: new_units.get(worker_id, ZERO) - old_units.get(worker_id, ZERO)
        for worker_id in old_units.keys() | new_units.keys()
    }
    total = sum(new_units.values(), ZERO) - sum(old_units.values(), ZERO)

    return DeltaSet(
        workers=workers,
        teams={team_id: total} if team_id else {},
        sites={site_id: total} if site_id else {},
        companies={company_id: total} if team_id and company_id else {},
    )


def reconcile_records(
    old: AttendanceRecord | None,
    new: AttendanceRecord | None,
    companies: CompanyLookup | None,
) -> DeltaSet:
    """Return the delta set for replacing record ``old`` with record ``new``.

    When the team or site differs between the two, the old entries are
    reversed against the old team/site and the new entries credited to the
    new ones.
    """
    if old is None and new is None:
        return DeltaSet()
    if old is None:
        assert new is not None
        company_id = _company_for(new.team_id, companies)
        return reconcile((), new.worker_entries, new.team_id, new.site_id, company_id)
    if new is None:
        company_id = _company_for(old.team_id, companies)
        return reconcile(old.worker_entries, (), old.team_id, old.site_id, company_id)
    if old.team_id == new.team_id and old.site_id == new.site_id:
        company_id = _company_for(new.team_id, companies)
        return reconcile(
            old.worker_entries, new.worker_entries, new.team_id, new.site_id, company_id
        )
    return reconcile_records(old, None, companies).merge(reconcile_records(None, new, companies))


def net_delta(
    removed: Iterable[AttendanceRecord],
    added: Iterable[AttendanceRecord],
    companies: CompanyLookup | None,
) -> DeltaSet:
    """Return ``sum(added) - sum(removed)`` per entity, zero entries dropped.

    Used for batch creates (``removed`` empty), overwrites and deletes
    (``added`` empty). Each entity receives at most one net delta.
    """
    mutations = [
        *(m for r in removed for m in reconcile_records(r, None, companies).mutations()),
        *(m for r in added for m in reconcile_records(None, r, companies).mutations()),
    ]
    return DeltaSet.from_mutations(mutations)
