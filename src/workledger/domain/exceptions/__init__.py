# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Domain exception exports."""

from __future__ import annotations

from .base import DomainError
from .ledger import (
    ChunkExecutionError,
    NotFoundError,
    PartialFailureError,
    StoreError,
    ValidationError,
)

__all__ = [
    "ChunkExecutionError",
    "DomainError",
    "NotFoundError",
    "PartialFailureError",
    "StoreError",
    "ValidationError",
]
