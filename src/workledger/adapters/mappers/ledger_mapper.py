# src/workledger/adapters/mappers/ledger_mapper.py
# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""ORM <-> domain mapping for the ledger tables.

Layer: adapters / mappers
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from workledger.application.schemas.dto.attendance import entries_from_json, entries_to_json
from workledger.domain.entities.attendance_record import AttendanceRecord
from workledger.domain.entities.reference_entity import ReferenceEntity
from workledger.infrastructure.database.models.ledger import (
    AttendanceRecordModel,
    ReferenceEntityModel,
)


def record_columns(record: AttendanceRecord) -> dict[str, Any]:
    """Return the column values persisted for ``record`` (id and timestamps excluded)."""
    return {
        "date": record.date,
        "team_id": record.team_id,
        "site_id": record.site_id,
        "worker_entries": entries_to_json(record.worker_entries),
        "total_work_units": record.total_work_units,
        "total_amount": record.total_amount,
        "team_name": record.team_name,
        "site_name": record.site_name,
        "writer_id": record.writer_id,
        "weather": record.weather,
        "work_content": record.work_content,
        "responsible_team_id": record.responsible_team_id,
        "responsible_team_name": record.responsible_team_name,
    }


def record_to_domain(row: AttendanceRecordModel) -> AttendanceRecord:
    """Map a row to an entity; totals are recomputed from the entries."""
    return AttendanceRecord(
        id=row.id,
        date=row.date,
        site_id=row.site_id,
        team_id=row.team_id or "",
        worker_entries=entries_from_json(row.worker_entries),
        team_name=row.team_name or "",
        site_name=row.site_name or "",
        writer_id=row.writer_id or "",
        weather=row.weather or "",
        work_content=row.work_content or "",
        responsible_team_id=row.responsible_team_id or "",
        responsible_team_name=row.responsible_team_name or "",
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def reference_to_domain(row: ReferenceEntityModel) -> ReferenceEntity:
    # NUMERIC(12, 3) comes back scale-padded ("1.500"); normalize for display.
    units = row.cumulative_work_units if row.cumulative_work_units is not None else Decimal(0)
    return ReferenceEntity(
        kind=row.kind,
        id=row.id,
        name=row.name or "",
        owner_company_id=row.owner_company_id,
        cumulative_work_units=units.normalize(),
    )
