# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Attendance record domain entities.

Purpose:
    Model one team's work at one site on one date (the ledger entry) and the
    per-worker entries it lists.

Layer:
    domain/entities

Notes:
    - ``total_work_units`` and ``total_amount`` are derived in
      ``__post_init__`` from ``worker_entries`` and cannot be passed in.
    - Entities are immutable; editing helpers return new instances so the
      derived totals are always recomputed.
    - Numeric fields accept int/float/str/Decimal and are stored as Decimal.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date as date_type
from datetime import datetime
from decimal import Decimal
from typing import Any

from workledger.domain.entities.base import WORK_UNIT_PLACES, ZERO, BaseEntity, to_decimal
from workledger.domain.enums.ledger import AttendanceStatus
from workledger.domain.exceptions import ValidationError


def validate_iso_date(value: str, *, field_name: str = "date") -> str:
    """Return ``value`` if it is a ``YYYY-MM-DD`` calendar date.

    Raises:
        ValidationError: If the value is missing or not a valid date.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required", details={"field": field_name})
    text = value.strip()
    try:
        parsed = date_type.fromisoformat(text)
    except ValueError as exc:
        raise ValidationError(
            f"{field_name} must be an ISO date (YYYY-MM-DD)",
            details={"field": field_name, "value": text},
        ) from exc
    if parsed.isoformat() != text:
        raise ValidationError(
            f"{field_name} must be an ISO date (YYYY-MM-DD)",
            details={"field": field_name, "value": text},
        )
    return text


@dataclass(frozen=True, slots=True)
class WorkerEntry(BaseEntity):
    """One worker's contribution on an attendance record.

    Args:
        worker_id: Reference to a worker; may point at an unknown worker.
        work_units: Non-negative, possibly fractional, work units.
        unit_rate: Non-negative pay rate per work unit.
        role_tag: Free-form role label.
        note: Free-form note / work content.
        name: Display name captured at entry time.
        status: Attendance status.
        pay_type: Pay type label captured at entry time.
        salary_model: Salary model label (daily, monthly, support, contract).

    Raises:
        ValidationError: If worker_id is empty, or a numeric field is negative
            or finer than ``WORK_UNIT_PLACES`` decimal places.
    """

    worker_id: str
    work_units: Decimal
    unit_rate: Decimal = ZERO
    role_tag: str = ""
    note: str = ""
    name: str = ""
    status: AttendanceStatus = AttendanceStatus.ATTENDANCE
    pay_type: str = ""
    salary_model: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.worker_id, str) or not self.worker_id.strip():
            raise ValidationError("worker_id is required", details={"field": "worker_id"})

        work_units = to_decimal(self.work_units, field="work_units", places=WORK_UNIT_PLACES)
        unit_rate = to_decimal(self.unit_rate, field="unit_rate", places=WORK_UNIT_PLACES)
        if work_units < 0:
            raise ValidationError(
                "work_units must be non-negative",
                details={"worker_id": self.worker_id, "work_units": str(work_units)},
            )
        if unit_rate < 0:
            raise ValidationError(
                "unit_rate must be non-negative",
                details={"worker_id": self.worker_id, "unit_rate": str(unit_rate)},
            )

        object.__setattr__(self, "worker_id", self.worker_id.strip())
        object.__setattr__(self, "work_units", work_units)
        object.__setattr__(self, "unit_rate", unit_rate)
        object.__setattr__(self, "status", AttendanceStatus(self.status))

    @property
    def amount(self) -> Decimal:
        """Return ``work_units * unit_rate``."""
        return self.work_units * self.unit_rate

    def with_updates(self, **changes: Any) -> WorkerEntry:
        """Return a copy with ``changes`` applied; ``worker_id`` is fixed."""
        changes.pop("worker_id", None)
        return dataclasses.replace(self, **changes)


@dataclass(frozen=True, slots=True)
class AttendanceRecord(BaseEntity):
    """A team-day-site ledger entry.

    Args:
        date: ISO calendar date; partition key for queries and overwrite.
        site_id: Site reference (required).
        team_id: Team reference; ``""`` means "unassigned team".
        worker_entries: Ordered worker entries.
        id: Store-assigned identifier; ``None`` until persisted.
        team_name: Display name of the team.
        site_name: Display name of the site.
        writer_id: Author of the record.
        weather: Weather note.
        work_content: Free-form description of the day's work.
        responsible_team_id: Team accountable for the site that day.
        responsible_team_name: Display name of the responsible team.
        created_at: Store-managed creation timestamp.
        updated_at: Store-managed modification timestamp.

    Attributes:
        total_work_units: Sum of ``worker_entries[*].work_units`` (derived).
        total_amount: Sum of ``work_units * unit_rate`` (derived).

    Raises:
        ValidationError: If date or site_id is missing/invalid.
    """

    date: str
    site_id: str
    team_id: str = ""
    worker_entries: tuple[WorkerEntry, ...] = ()
    id: str | None = None
    team_name: str = ""
    site_name: str = ""
    writer_id: str = ""
    weather: str = ""
    work_content: str = ""
    responsible_team_id: str = ""
    responsible_team_name: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    total_work_units: Decimal = field(init=False, default=ZERO)
    total_amount: Decimal = field(init=False, default=ZERO)

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", validate_iso_date(self.date))

        if not isinstance(self.site_id, str) or not self.site_id.strip():
            raise ValidationError("site_id is required", details={"field": "site_id"})
        object.__setattr__(self, "site_id", self.site_id.strip())
        object.__setattr__(self, "team_id", (self.team_id or "").strip())

        entries = tuple(self.worker_entries)
        for entry in entries:
            if not isinstance(entry, WorkerEntry):
                raise ValidationError(
                    "worker_entries must contain WorkerEntry items",
                    details={"type": type(entry).__name__},
                )
        object.__setattr__(self, "worker_entries", entries)
        object.__setattr__(self, "total_work_units", sum((e.work_units for e in entries), ZERO))
        object.__setattr__(self, "total_amount", sum((e.amount for e in entries), ZERO))

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def work_units_by_worker(self) -> dict[str, Decimal]:
        """Return ``worker_id -> work_units``, summing duplicate entries."""
        return units_by_worker(self.worker_entries)

    def entry_for(self, worker_id: str) -> WorkerEntry | None:
        """Return the first entry for ``worker_id`` or ``None``."""
        for entry in self.worker_entries:
            if entry.worker_id == worker_id:
                return entry
        return None

    # ------------------------------------------------------------------
    # Editing helpers (return new instances)
    # ------------------------------------------------------------------

    def with_id(self, record_id: str) -> AttendanceRecord:
        return dataclasses.replace(self, id=record_id)

    def with_entries(self, entries: Iterable[WorkerEntry]) -> AttendanceRecord:
        return dataclasses.replace(self, worker_entries=tuple(entries))

    def with_changes(self, changes: Mapping[str, Any]) -> AttendanceRecord:
        """Return a copy with descriptive/reference fields replaced.

        Derived totals and the id cannot be changed this way.

        Raises:
            ValidationError: If ``changes`` names an unknown or derived field.
        """
        forbidden = {"id", "total_work_units", "total_amount", "created_at", "updated_at"}
        allowed = {f.name for f in dataclasses.fields(self) if f.init} - forbidden
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationError(
                "unsupported record fields in update",
                details={"fields": sorted(unknown)},
            )
        return dataclasses.replace(self, **dict(changes))

    def without_worker(self, worker_id: str) -> AttendanceRecord:
        return self.with_entries(e for e in self.worker_entries if e.worker_id != worker_id)

    def with_upserted_worker(self, entry: WorkerEntry) -> AttendanceRecord:
        """Replace the entry for ``entry.worker_id`` in place, or append it."""
        entries = list(self.worker_entries)
        for index, existing in enumerate(entries):
            if existing.worker_id == entry.worker_id:
                entries[index] = entry
                return self.with_entries(entries)
        entries.append(entry)
        return self.with_entries(entries)


def units_by_worker(entries: Iterable[WorkerEntry]) -> dict[str, Decimal]:
    """Return ``worker_id -> summed work_units`` for ``entries``."""
    totals: dict[str, Decimal] = {}
    for entry in entries:
        totals[entry.worker_id] = totals.get(entry.worker_id, ZERO) + entry.work_units
    return totals
