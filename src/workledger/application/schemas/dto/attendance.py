# src/workledger/application/schemas/dto/attendance.py
# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Application DTOs for attendance records.

Synopsis:
    Strict (Pydantic v2) DTOs used to move attendance records across the
    process boundary: JSON import files, CLI output and the JSON column that
    stores worker entries.

Layer:
    application/schemas/dto
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from workledger.application.schemas.dto.base import BaseDTO
from workledger.domain.entities.attendance_record import AttendanceRecord, WorkerEntry
from workledger.domain.enums.ledger import AttendanceStatus
from workledger.domain.exceptions import ValidationError


class WorkerEntryDTO(BaseDTO):
    """One worker's line on an attendance record.

    Attributes:
        worker_id: Worker reference.
        work_units: Non-negative work units (fractional allowed).
        unit_rate: Pay rate per work unit.
        role_tag: Role label.
        note: Free-form note.
        name: Display name.
        status: Attendance status.
        pay_type: Pay type label.
        salary_model: Salary model label.
    """

    worker_id: str
    work_units: Decimal = Field(ge=0)
    unit_rate: Decimal = Field(default=Decimal("0"), ge=0)
    role_tag: str = ""
    note: str = ""
    name: str = ""
    status: AttendanceStatus = AttendanceStatus.ATTENDANCE
    pay_type: str = ""
    salary_model: str = ""

    def to_domain(self) -> WorkerEntry:
        return WorkerEntry(
            worker_id=self.worker_id,
            work_units=self.work_units,
            unit_rate=self.unit_rate,
            role_tag=self.role_tag,
            note=self.note,
            name=self.name,
            status=self.status,
            pay_type=self.pay_type,
            salary_model=self.salary_model,
        )

    @classmethod
    def from_domain(cls, entry: WorkerEntry) -> WorkerEntryDTO:
        return cls(
            worker_id=entry.worker_id,
            work_units=entry.work_units,
            unit_rate=entry.unit_rate,
            role_tag=entry.role_tag,
            note=entry.note,
            name=entry.name,
            status=entry.status,
            pay_type=entry.pay_type,
            salary_model=entry.salary_model,
        )


class AttendanceRecordDTO(BaseDTO):
    """Attendance record as exchanged with callers.

    ``total_work_units`` and ``total_amount`` are accepted so exported files
    can be re-imported, but they are ignored by :meth:`to_domain`; the domain
    entity always derives them from ``workers``.
    """

    id: str | None = None
    date: str
    site_id: str
    team_id: str = ""
    workers: list[WorkerEntryDTO] = Field(default_factory=list)
    team_name: str = ""
    site_name: str = ""
    writer_id: str = ""
    weather: str = ""
    work_content: str = ""
    responsible_team_id: str = ""
    responsible_team_name: str = ""
    total_work_units: Decimal | None = None
    total_amount: Decimal | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_domain(self) -> AttendanceRecord:
        return AttendanceRecord(
            id=self.id,
            date=self.date,
            site_id=self.site_id,
            team_id=self.team_id,
            worker_entries=tuple(w.to_domain() for w in self.workers),
            team_name=self.team_name,
            site_name=self.site_name,
            writer_id=self.writer_id,
            weather=self.weather,
            work_content=self.work_content,
            responsible_team_id=self.responsible_team_id,
            responsible_team_name=self.responsible_team_name,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_domain(cls, record: AttendanceRecord) -> AttendanceRecordDTO:
        return cls(
            id=record.id,
            date=record.date,
            site_id=record.site_id,
            team_id=record.team_id,
            workers=[WorkerEntryDTO.from_domain(e) for e in record.worker_entries],
            team_name=record.team_name,
            site_name=record.site_name,
            writer_id=record.writer_id,
            weather=record.weather,
            work_content=record.work_content,
            responsible_team_id=record.responsible_team_id,
            responsible_team_name=record.responsible_team_name,
            total_work_units=record.total_work_units,
            total_amount=record.total_amount,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


_RECORDS = TypeAdapter(list[AttendanceRecordDTO])
_ENTRIES = TypeAdapter(list[WorkerEntryDTO])


def _as_domain_error(exc: PydanticValidationError) -> ValidationError:
    errors = [
        {"loc": ".".join(str(p) for p in err["loc"]), "msg": err["msg"]}
        for err in exc.errors()[:20]
    ]
    return ValidationError("invalid attendance payload", details={"errors": errors})


def parse_records(payload: Any) -> list[AttendanceRecord]:
    """Validate a JSON-like list of records and convert it to domain entities.

    Raises:
        ValidationError: If the payload does not match the record schema or a
            record violates a domain invariant.
    """
    try:
        dtos = _RECORDS.validate_python(payload)
    except PydanticValidationError as exc:
        raise _as_domain_error(exc) from exc
    return [dto.to_domain() for dto in dtos]


def entries_to_json(entries: Iterable[WorkerEntry]) -> list[dict[str, Any]]:
    """Serialize worker entries to JSON-safe dicts (decimals as strings)."""
    return [WorkerEntryDTO.from_domain(e).model_dump(mode="json", by_alias=True) for e in entries]


def entries_from_json(payload: Any) -> tuple[WorkerEntry, ...]:
    """Inverse of :func:`entries_to_json`.

    Raises:
        ValidationError: If the stored payload is malformed.
    """
    try:
        dtos = _ENTRIES.validate_python(payload or [])
    except PydanticValidationError as exc:
        raise _as_domain_error(exc) from exc
    return tuple(dto.to_domain() for dto in dtos)


__all__ = [
    "AttendanceRecordDTO",
    "WorkerEntryDTO",
    "entries_from_json",
    "entries_to_json",
    "parse_records",
]
