# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Read-side ledger use cases.

Purpose:
    Lookups over attendance records used by editing screens and reports:
    single record, per-date list, date range, site history, existence check,
    last recorded date and summary counts.

Layer:
    application

Notes:
    Reads never touch reference counters.
"""

from __future__ import annotations

import asyncio
import calendar
import logging
from dataclasses import dataclass
from datetime import date as date_type

from workledger.application.interfaces.observer_port import LedgerObserverPort, NullLedgerObserver
from workledger.domain.entities.attendance_record import AttendanceRecord, validate_iso_date
from workledger.domain.entities.ledger_mutation import LedgerQuery
from workledger.domain.exceptions import NotFoundError
from workledger.domain.interfaces.repositories.ledger_repository import LedgerRepository

logger = logging.getLogger(__name__)


def _teams(team_id: str | None) -> frozenset[str] | None:
    return None if team_id is None else frozenset({team_id})


class _LedgerReadUseCase:
    def __init__(
        self, ledger: LedgerRepository, observer: LedgerObserverPort | None = None
    ) -> None:
        self._ledger = ledger
        self._observer: LedgerObserverPort = observer or NullLedgerObserver()


class GetRecordUseCase(_LedgerReadUseCase):
    """Return one record by id.

    Raises:
        NotFoundError: If the record does not exist.
    """

    async def execute(self, record_id: str) -> AttendanceRecord:
        with self._observer.operation("get_record"):
            record = await self._ledger.get_by_id(record_id)
        if record is None:
            raise NotFoundError("attendance record not found", details={"record_id": record_id})
        return record


class ListRecordsForDateUseCase(_LedgerReadUseCase):
    """Return the records of one date, optionally restricted to one team."""

    async def execute(self, date: str, team_id: str | None = None) -> list[AttendanceRecord]:
        with self._observer.operation("list_records"):
            return await self._ledger.query(LedgerQuery(date=date, team_ids=_teams(team_id)))


class ListRecordsInRangeUseCase(_LedgerReadUseCase):
    """Return records with ``start <= date <= end``, newest first.

    Raises:
        ValidationError: If a bound is malformed or ``start > end``.
    """

    async def execute(
        self,
        start: str,
        end: str,
        team_id: str | None = None,
        site_id: str | None = None,
    ) -> list[AttendanceRecord]:
        query = LedgerQuery(
            date_from=start,
            date_to=end,
            team_ids=_teams(team_id),
            site_id=site_id,
            newest_first=True,
        )
        with self._observer.operation("list_records_range"):
            records = await self._ledger.query(query)
        logger.debug(
            "ledger.query.range",
            extra={"start": start, "end": end, "records": len(records)},
        )
        return records


class ListRecordsForSiteUseCase(_LedgerReadUseCase):
    """Return a site's records, newest first."""

    async def execute(self, site_id: str) -> list[AttendanceRecord]:
        with self._observer.operation("list_records_site"):
            return await self._ledger.query(LedgerQuery(site_id=site_id, newest_first=True))


class RecordExistsUseCase(_LedgerReadUseCase):
    """Return True if a record exists for ``(date, team_id, site_id)``."""

    async def execute(self, date: str, team_id: str, site_id: str) -> bool:
        query = LedgerQuery(date=date, team_ids=frozenset({team_id}), site_id=site_id)
        with self._observer.operation("record_exists"):
            return await self._ledger.count(query) > 0


class GetLastRecordDateUseCase(_LedgerReadUseCase):
    """Return the most recent record date, optionally for one team."""

    async def execute(self, team_id: str | None = None) -> str | None:
        query = LedgerQuery(team_ids=_teams(team_id), newest_first=True, limit=1)
        with self._observer.operation("last_record_date"):
            latest = await self._ledger.query(query)
        return latest[0].date if latest else None


@dataclass(frozen=True)
class LedgerStats:
    """Record counts for the summary panel.

    Attributes:
        total: Every record in the ledger.
        this_month: Records dated within the calendar month of ``today``.
        today: Records dated ``today``.
    """

    total: int
    this_month: int
    today: int


class GetLedgerStatsUseCase(_LedgerReadUseCase):
    """Count records overall, this month and today.

    Raises:
        ValidationError: If ``today`` is not an ISO date.
    """

    async def execute(self, today: str | None = None) -> LedgerStats:
        if today is None:
            day = date_type.today()
        else:
            day = date_type.fromisoformat(validate_iso_date(today, field_name="today"))
        last_day = calendar.monthrange(day.year, day.month)[1]
        month_start = day.replace(day=1).isoformat()
        month_end = day.replace(day=last_day).isoformat()

        with self._observer.operation("ledger_stats"):
            total, this_month, today_count = await asyncio.gather(
                self._ledger.count(LedgerQuery()),
                self._ledger.count(LedgerQuery(date_from=month_start, date_to=month_end)),
                self._ledger.count(LedgerQuery(date=day.isoformat())),
            )
        return LedgerStats(total=total, this_month=this_month, today=today_count)
