# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Ledger store mutation and query value objects.

Purpose:
    Describe ledger-store writes as plain values so they can be grouped into
    size-bounded atomic chunks, and describe ledger reads as a single filter
    object.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass

from workledger.domain.entities.attendance_record import AttendanceRecord, validate_iso_date
from workledger.domain.entities.base import BaseEntity
from workledger.domain.exceptions import ValidationError

#: Hard ceiling on operations per atomic ledger-store transaction.
MAX_LEDGER_CHUNK_SIZE = 500


@dataclass(frozen=True, slots=True)
class InsertRecord(BaseEntity):
    """Insert ``record`` as a new document; the store assigns its id."""

    record: AttendanceRecord

    def __post_init__(self) -> None:
        if self.record.id is not None:
            raise ValidationError(
                "records to insert must not carry an id", details={"id": self.record.id}
            )


@dataclass(frozen=True, slots=True)
class DeleteRecord(BaseEntity):
    """Physically delete the document ``record_id``."""

    record_id: str


@dataclass(frozen=True, slots=True)
class UpdateRecord(BaseEntity):
    """Replace the stored document ``record.id`` with ``record``."""

    record: AttendanceRecord

    def __post_init__(self) -> None:
        if not self.record.id:
            raise ValidationError("records to update must carry an id")


type LedgerMutation = InsertRecord | DeleteRecord | UpdateRecord


@dataclass(frozen=True, slots=True)
class LedgerQuery(BaseEntity):
    """Filter over attendance records.

    Args:
        date: Exact date match.
        date_from: Inclusive lower bound of a date range.
        date_to: Inclusive upper bound of a date range.
        team_ids: Restrict to these team ids (``""`` matches unassigned).
        site_id: Restrict to one site.
        record_ids: Restrict to these record ids.
        newest_first: Order by date descending instead of ascending.
        limit: Maximum number of records to return.

    Raises:
        ValidationError: If dates are malformed, the range is inverted, or
            ``limit`` is not positive.
    """

    date: str | None = None
    date_from: str | None = None
    date_to: str | None = None
    team_ids: frozenset[str] | None = None
    site_id: str | None = None
    record_ids: frozenset[str] | None = None
    newest_first: bool = False
    limit: int | None = None

    def __post_init__(self) -> None:
        for name in ("date", "date_from", "date_to"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, validate_iso_date(value, field_name=name))
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValidationError(
                "date_from must not be after date_to",
                details={"date_from": self.date_from, "date_to": self.date_to},
            )
        if self.team_ids is not None:
            object.__setattr__(self, "team_ids", frozenset(self.team_ids))
        if self.record_ids is not None:
            object.__setattr__(self, "record_ids", frozenset(self.record_ids))
        if self.limit is not None and self.limit <= 0:
            raise ValidationError("limit must be positive", details={"limit": self.limit})

    def matches(self, record: AttendanceRecord) -> bool:
        """Return True if ``record`` satisfies every filter set on this query."""
        if self.date is not None and record.date != self.date:
            return False
        if self.date_from is not None and record.date < self.date_from:
            return False
        if self.date_to is not None and record.date > self.date_to:
            return False
        if self.team_ids is not None and record.team_id not in self.team_ids:
            return False
        if self.site_id is not None and record.site_id != self.site_id:
            return False
        if self.record_ids is not None and record.id not in self.record_ids:
            return False
        return True
