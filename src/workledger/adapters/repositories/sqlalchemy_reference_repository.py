# src/workledger/adapters/repositories/sqlalchemy_reference_repository.py
# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""SQLAlchemy reference store.

Counter increments are a single ``UPDATE ... SET c = c + :delta`` statement,
so concurrent increments on the same row always add up.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from sqlalchemy import select, update

from workledger.adapters.mappers.ledger_mapper import reference_to_domain
from workledger.domain.entities.reference_entity import ReferenceEntity
from workledger.domain.enums.ledger import EntityKind
from workledger.domain.exceptions import NotFoundError
from workledger.infrastructure.database.models.ledger import ReferenceEntityModel

from .base_repository import BaseRepository

_R = ReferenceEntityModel


class SqlAlchemyReferenceRepository(BaseRepository[ReferenceEntityModel]):
    """Reference store backed by the ``reference_entities`` table."""

    _MODEL_NAME = "reference_entity"

    async def get_by_id(self, kind: EntityKind, entity_id: str) -> ReferenceEntity | None:
        async with self._store_call("get_by_id"), self._sessionmaker() as session:
            row = await session.get(_R, (EntityKind(kind).value, entity_id))
            return reference_to_domain(row) if row is not None else None

    async def resolve_owning_company(self, team_id: str) -> str | None:
        stmt = select(_R.owner_company_id).where(
            _R.kind == EntityKind.TEAM.value, _R.id == team_id
        )
        async with self._store_call("resolve_owning_company"), self._sessionmaker() as session:
            res = await session.execute(stmt)
            return res.scalar_one_or_none()

    async def increment_counter(self, kind: EntityKind, entity_id: str, delta: Decimal) -> None:
        """Atomically add ``delta`` to the entity's counter.

        Raises:
            NotFoundError: If no row matches ``(kind, entity_id)``.
            StoreError: On driver failure.
        """
        kind_value = EntityKind(kind).value
        stmt = (
            update(_R)
            .where(_R.kind == kind_value, _R.id == entity_id)
            .values(cumulative_work_units=_R.cumulative_work_units + delta)
        )
        async with self._store_call("increment_counter"), self._sessionmaker() as session:
            async with session.begin():
                res: Any = await session.execute(stmt)
                if not res.rowcount:
                    raise NotFoundError(
                        "reference entity not found",
                        details={"entity_kind": kind_value, "entity_id": entity_id},
                    )
