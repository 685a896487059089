# src/workledger/domain/enums/ledger.py
# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""
Ledger enumerations.

Purpose:
    Stable internal tokens for the reference-entity kinds that carry
    cumulative work-unit counters, and for a worker's attendance status on a
    daily record.

Layer:
    domain
"""

from __future__ import annotations

from enum import Enum


class EntityKind(str, Enum):
    """Reference entity kinds holding a ``cumulative_work_units`` counter."""

    WORKER = "worker"
    TEAM = "team"
    SITE = "site"
    COMPANY = "company"


class AttendanceStatus(str, Enum):
    """Attendance status of a worker entry."""

    ATTENDANCE = "attendance"
    ABSENT = "absent"
    HALF = "half"
