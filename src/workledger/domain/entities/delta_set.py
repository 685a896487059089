# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Delta set value objects.

Purpose:
    Represent the signed per-entity counter changes implied by a ledger
    write, and the individual counter mutations they expand to.

Layer:
    domain/entities

Notes:
    - A ``DeltaSet`` never stores zero deltas; merging drops entries that
      net to zero so that "no change" always means "no write".
    - Mutations are emitted in a deterministic order (kind, then id).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from workledger.domain.entities.base import WORK_UNIT_PLACES, ZERO, BaseEntity, to_decimal
from workledger.domain.enums.ledger import EntityKind

_KIND_ORDER: tuple[EntityKind, ...] = (
    EntityKind.WORKER,
    EntityKind.TEAM,
    EntityKind.SITE,
    EntityKind.COMPANY,
)


@dataclass(frozen=True, slots=True)
class CounterMutation(BaseEntity):
    """One signed increment of one entity's ``cumulative_work_units``.

    Args:
        kind: Reference entity kind.
        entity_id: Reference entity id.
        delta: Signed change to apply.
    """

    kind: EntityKind
    entity_id: str
    delta: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", EntityKind(self.kind))
        delta = to_decimal(self.delta, field="delta", places=WORK_UNIT_PLACES)
        object.__setattr__(self, "delta", delta)

    def as_dict(self) -> dict[str, Any]:
        return {
            "entity_kind": self.kind.value,
            "entity_id": self.entity_id,
            "delta": str(self.delta),
        }


def _clean(values: Mapping[str, Decimal]) -> dict[str, Decimal]:
    cleaned: dict[str, Decimal] = {}
    for key, value in values.items():
        delta = to_decimal(value, field="delta")
        if key and delta != ZERO:
            cleaned[key] = delta
    return cleaned


@dataclass(frozen=True, slots=True)
class DeltaSet(BaseEntity):
    """Signed counter deltas keyed by entity id, one map per entity kind.

    Args:
        workers: ``worker_id -> delta``.
        teams: ``team_id -> delta``.
        sites: ``site_id -> delta``.
        companies: ``company_id -> delta``.
    """

    workers: Mapping[str, Decimal] = field(default_factory=dict)
    teams: Mapping[str, Decimal] = field(default_factory=dict)
    sites: Mapping[str, Decimal] = field(default_factory=dict)
    companies: Mapping[str, Decimal] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "workers", _clean(self.workers))
        object.__setattr__(self, "teams", _clean(self.teams))
        object.__setattr__(self, "sites", _clean(self.sites))
        object.__setattr__(self, "companies", _clean(self.companies))

    @classmethod
    def from_mutations(cls, mutations: Iterable[CounterMutation]) -> DeltaSet:
        """Build a delta set by summing ``mutations`` per (kind, id)."""
        buckets: dict[EntityKind, dict[str, Decimal]] = {kind: {} for kind in _KIND_ORDER}
        for m in mutations:
            bucket = buckets[m.kind]
            bucket[m.entity_id] = bucket.get(m.entity_id, ZERO) + m.delta
        return cls(
            workers=buckets[EntityKind.WORKER],
            teams=buckets[EntityKind.TEAM],
            sites=buckets[EntityKind.SITE],
            companies=buckets[EntityKind.COMPANY],
        )

    def by_kind(self, kind: EntityKind) -> Mapping[str, Decimal]:
        return {
            EntityKind.WORKER: self.workers,
            EntityKind.TEAM: self.teams,
            EntityKind.SITE: self.sites,
            EntityKind.COMPANY: self.companies,
        }[EntityKind(kind)]

    @property
    def is_empty(self) -> bool:
        return not (self.workers or self.teams or self.sites or self.companies)

    def __len__(self) -> int:
        return len(self.workers) + len(self.teams) + len(self.sites) + len(self.companies)

    def merge(self, other: DeltaSet) -> DeltaSet:
        """Return the per-entity sum of ``self`` and ``other``."""
        return DeltaSet.from_mutations((*self.mutations(), *other.mutations()))

    __add__ = merge

    def mutations(self) -> tuple[CounterMutation, ...]:
        """Expand into counter mutations, ordered by kind then entity id."""
        return tuple(
            CounterMutation(kind=kind, entity_id=entity_id, delta=delta)
            for kind in _KIND_ORDER
            for entity_id, delta in sorted(self.by_kind(kind).items())
        )
