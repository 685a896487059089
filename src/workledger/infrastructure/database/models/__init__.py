# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""ORM models."""

from __future__ import annotations

from .base import Base, metadata
from .ledger import AttendanceRecordModel, ReferenceEntityModel

__all__ = ["AttendanceRecordModel", "Base", "ReferenceEntityModel", "metadata"]
