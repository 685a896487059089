# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Reference entity (read-only view).

Purpose:
    Read model of a worker, team, site or company as seen by the ledger: an
    id, a display name, the owning company for teams, and the denormalized
    cumulative work-unit counter.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from workledger.domain.entities.base import ZERO, BaseEntity, to_decimal
from workledger.domain.enums.ledger import EntityKind


@dataclass(frozen=True, slots=True)
class ReferenceEntity(BaseEntity):
    """Worker, team, site or company record carrying a counter.

    Args:
        kind: Entity kind.
        id: Entity id.
        name: Display name.
        owner_company_id: Owning company; only meaningful for teams.
        cumulative_work_units: Denormalized running total.
    """

    kind: EntityKind
    id: str
    name: str = ""
    owner_company_id: str | None = None
    cumulative_work_units: Decimal = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", EntityKind(self.kind))
        object.__setattr__(
            self,
            "cumulative_work_units",
            to_decimal(self.cumulative_work_units, field="cumulative_work_units"),
        )
