# src/workledger/domain/interfaces/repositories/reference_repository.py
# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Reference store repository interface.

Purpose:
    Narrow contract over worker/team/site/company records: existence checks,
    team ownership resolution, and signed counter increments.

Layer:
    domain/interfaces/repositories

Notes:
    If the backing store offers an atomic numeric increment it must be used
    by ``increment_counter`` so concurrent ``+a`` and ``+b`` always net to
    ``+a+b``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol

from workledger.domain.entities.reference_entity import ReferenceEntity
from workledger.domain.enums.ledger import EntityKind


class ReferenceRepository(Protocol):
    """Protocol for reference-entity access used by counter reconciliation."""

    async def get_by_id(self, kind: EntityKind, entity_id: str) -> ReferenceEntity | None:
        """Return the entity or ``None`` when it does not exist."""

    async def resolve_owning_company(self, team_id: str) -> str | None:
        """Return the id of the company that currently owns ``team_id``."""

    async def increment_counter(self, kind: EntityKind, entity_id: str, delta: Decimal) -> None:
        """Add ``delta`` to the entity's ``cumulative_work_units``.

        Raises:
            NotFoundError: If the entity does not exist.
            StoreError: On transient store failure.
        """
