# src/workledger/infrastructure/database/models/ledger.py
# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Ledger persistence models: attendance records and reference entities."""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Any

from sqlalchemy import Index, Numeric, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from workledger.infrastructure.database.models.base import Base, TimestampMixin, table_args

WORK_UNITS = Numeric(12, 3)
AMOUNT = Numeric(16, 3)


def _new_id() -> str:
    return str(uuid.uuid4())


class AttendanceRecordModel(TimestampMixin, Base):
    """One team-day-site attendance record.

    Schema:
        attendance_records

    Notes:
        - ``date`` is stored as the ISO ``YYYY-MM-DD`` string, so string
          comparison orders it chronologically.
        - ``worker_entries`` is a JSONB array of camelCase entry objects with
          decimals encoded as strings.
        - Totals are denormalized for reporting; the domain entity always
          recomputes them from ``worker_entries`` on load.
    """

    __tablename__ = "attendance_records"
    __table_args__ = table_args(
        Index("ix_attendance_records_date_team_site", "date", "team_id", "site_id"),
        Index("ix_attendance_records_site_date", "site_id", "date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    team_id: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    site_id: Mapped[str] = mapped_column(String(64), nullable=False)
    worker_entries: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB, nullable=False, default=list
    )
    total_work_units: Mapped[Decimal] = mapped_column(WORK_UNITS, nullable=False, default=0)
    total_amount: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False, default=0)
    team_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    site_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    writer_id: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    weather: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    work_content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    responsible_team_id: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    responsible_team_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")


class ReferenceEntityModel(Base):
    """Worker, team, site or company row carrying a cumulative counter.

    Schema:
        reference_entities

    Notes:
        Only ``cumulative_work_units`` is written by the ledger, and only via
        an in-place ``+ delta`` update.
    """

    __tablename__ = "reference_entities"

    kind: Mapped[str] = mapped_column(String(16), primary_key=True)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    owner_company_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    cumulative_work_units: Mapped[Decimal] = mapped_column(
        WORK_UNITS, nullable=False, default=0, server_default="0"
    )
