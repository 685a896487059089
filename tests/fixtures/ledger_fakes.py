# tests/fixtures/ledger_fakes.py
"""In-memory ledger and reference stores with failure injection."""

from __future__ import annotations

import asyncio
import copy
import itertools
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from workledger.domain.entities.attendance_record import AttendanceRecord
from workledger.domain.entities.ledger_mutation import (
    DeleteRecord,
    InsertRecord,
    LedgerMutation,
    LedgerQuery,
    UpdateRecord,
)
from workledger.domain.entities.reference_entity import ReferenceEntity
from workledger.domain.enums.ledger import EntityKind
from workledger.domain.exceptions import NotFoundError, StoreError


class FakeLedgerRepository:
    """Dict-backed ledger store; each ``apply_mutations`` call is atomic.

    Attributes:
        fail_on_calls: Zero-based ``apply_mutations`` call numbers that raise
            ``StoreError`` without applying anything.
        calls: Chunks received, in order.
        queries: Queries received, in order.
        lookups: Ids passed to ``get_by_id``, in order.
    """

    def __init__(self, records: Sequence[AttendanceRecord] = ()) -> None:
        self._ids = (f"rec-{n}" for n in itertools.count(1))
        self.records: dict[str, AttendanceRecord] = {}
        for record in records:
            self.seed(record)
        self.fail_on_calls: set[int] = set()
        self.calls: list[list[LedgerMutation]] = []
        self.queries: list[LedgerQuery] = []
        self.lookups: list[str] = []

    def seed(self, record: AttendanceRecord) -> AttendanceRecord:
        stored = record if record.id else record.with_id(next(self._ids))
        assert stored.id is not None
        self.records[stored.id] = stored
        return stored

    async def get_by_id(self, record_id: str) -> AttendanceRecord | None:
        self.lookups.append(record_id)
        return self.records.get(record_id)

    async def query(self, query: LedgerQuery) -> list[AttendanceRecord]:
        self.queries.append(query)
        matched = sorted(
            (r for r in self.records.values() if query.matches(r)),
            key=lambda r: (r.date, r.id or ""),
        )
        if query.newest_first:
            matched.sort(key=lambda r: r.date, reverse=True)
        return matched[: query.limit] if query.limit is not None else matched

    async def count(self, query: LedgerQuery) -> int:
        return sum(1 for r in self.records.values() if query.matches(r))

    async def apply_mutations(self, mutations: Sequence[LedgerMutation]) -> list[str]:
        call_index = len(self.calls)
        self.calls.append(list(mutations))
        if call_index in self.fail_on_calls:
            raise StoreError("injected ledger failure", details={"call": call_index})

        staged = copy.copy(self.records)
        assigned: list[str] = []
        for mutation in mutations:
            if isinstance(mutation, InsertRecord):
                new_id = next(self._ids)
                staged[new_id] = mutation.record.with_id(new_id)
                assigned.append(new_id)
            elif isinstance(mutation, DeleteRecord):
                if staged.pop(mutation.record_id, None) is None:
                    raise NotFoundError("missing", details={"record_id": mutation.record_id})
            elif isinstance(mutation, UpdateRecord):
                record_id = mutation.record.id
                if record_id not in staged:
                    raise NotFoundError("missing", details={"record_id": record_id})
                staged[record_id] = mutation.record
        self.records = staged
        return assigned


@dataclass
class FakeReferenceRepository:
    """Reference store with a counter per (kind, id).

    Attributes:
        entities: Known entities keyed by ``(kind, id)``.
        owners: ``team_id -> company_id``.
        broken: Entities whose increments always raise ``StoreError``.
        flaky: Entities whose next N increments raise ``StoreError``.
        increments: Every successful increment, in completion order.
        max_in_flight: Highest number of concurrent increments observed.
    """

    entities: dict[tuple[EntityKind, str], ReferenceEntity] = field(default_factory=dict)
    owners: dict[str, str] = field(default_factory=dict)
    broken: set[tuple[EntityKind, str]] = field(default_factory=set)
    flaky: dict[tuple[EntityKind, str], int] = field(default_factory=dict)
    increments: list[tuple[EntityKind, str, Decimal]] = field(default_factory=list)
    owner_lookups: list[str] = field(default_factory=list)
    max_in_flight: int = 0
    _in_flight: int = 0

    def add(self, kind: EntityKind, entity_id: str, owner: str | None = None) -> None:
        self.entities[(kind, entity_id)] = ReferenceEntity(
            kind=kind, id=entity_id, owner_company_id=owner
        )
        if kind is EntityKind.TEAM and owner:
            self.owners[entity_id] = owner

    def counter(self, kind: EntityKind, entity_id: str) -> Decimal:
        return self.entities[(kind, entity_id)].cumulative_work_units

    def counters(self) -> dict[tuple[EntityKind, str], Decimal]:
        return {key: e.cumulative_work_units for key, e in self.entities.items()}

    async def get_by_id(self, kind: EntityKind, entity_id: str) -> ReferenceEntity | None:
        return self.entities.get((kind, entity_id))

    async def resolve_owning_company(self, team_id: str) -> str | None:
        self.owner_lookups.append(team_id)
        return self.owners.get(team_id)

    async def increment_counter(self, kind: EntityKind, entity_id: str, delta: Decimal) -> None:
        key = (EntityKind(kind), entity_id)
        self._in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self._in_flight)
        try:
            await asyncio.sleep(0)
            if key in self.broken:
                raise StoreError("injected counter failure", details={"entity_id": entity_id})
            if self.flaky.get(key, 0) > 0:
                self.flaky[key] -= 1
                raise StoreError("injected transient failure", details={"entity_id": entity_id})
            entity = self.entities.get(key)
            if entity is None:
                raise NotFoundError("unknown entity", details={"entity_id": entity_id})
            self.entities[key] = ReferenceEntity(
                kind=entity.kind,
                id=entity.id,
                name=entity.name,
                owner_company_id=entity.owner_company_id,
                cumulative_work_units=entity.cumulative_work_units + delta,
            )
            self.increments.append((key[0], entity_id, delta))
        finally:
            self._in_flight -= 1
