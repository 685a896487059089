# src/workledger/infrastructure/logging/logger.py
# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Structured JSON logging utilities.

This module exposes an idempotent root configurator, a per-module logger
factory, and an operation-id scope so every log line emitted while one
logical ledger operation runs carries the same ``operation_id``.

Features:
    * Stable keys: ``ts``, ``level``, ``logger``, ``message``.
    * ``operation_id`` enrichment from the record attribute or the active
      :func:`operation_scope`.
    * Values passed via ``extra={...}`` are merged into the payload.

Typical usage:
    configure_root_logging()
    log = get_json_logger(__name__)
    with operation_scope("overwrite") as op_id:
        log.info("ledger.overwrite.start", extra={"date": "2025-01-10"})
"""

from __future__ import annotations

import json
import logging
import os
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

__all__ = [
    "configure_root_logging",
    "current_operation_id",
    "get_json_logger",
    "operation_scope",
]

_operation_id: ContextVar[str | None] = ContextVar("workledger_operation_id", default=None)

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
    | {"message", "asctime", "taskName"}
)


def current_operation_id() -> str | None:
    """Return the operation id bound by the innermost :func:`operation_scope`."""
    return _operation_id.get()


@contextmanager
def operation_scope(name: str) -> Iterator[str]:
    """Bind a fresh ``operation_id`` (``<name>-<hex>``) for the enclosed block."""
    op_id = f"{name}-{uuid.uuid4().hex[:12]}"
    token = _operation_id.set(op_id)
    try:
        yield op_id
    finally:
        _operation_id.reset(token)


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


class _JsonFormatter(logging.Formatter):
    """JSON log formatter emitting stable keys and optional extras."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as a JSON object.

        Args:
            record: Logging record.

        Returns:
            str: JSON-encoded log line.
        """
        payload: dict[str, Any] = {
            "ts": datetime.now(tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        op_id = getattr(record, "operation_id", None) or current_operation_id()
        if op_id:
            payload["operation_id"] = op_id

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            if exc_type is not None:
                payload["exc_type"] = exc_type.__name__
            if exc_value is not None:
                payload["exc_message"] = str(exc_value)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in payload:
                payload[key] = value

        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=_json_default)


def configure_root_logging(level: str | int | None = None) -> None:
    """Initialize the root logger with a JSON stream handler (idempotent).

    Args:
        level: Logging level or level name. If ``None``, use env ``LOG_LEVEL`` or ``INFO``.
    """
    root = logging.getLogger()

    env_level = os.getenv("LOG_LEVEL")
    resolved: int | str = (
        level if level is not None else (env_level.upper() if env_level else "INFO")
    )
    if isinstance(resolved, str):
        resolved = resolved.upper()
    root.setLevel(resolved)

    if root.handlers:
        # Already configured; keep a single handler.
        return

    handler = logging.StreamHandler()
    handler.setFormatter(_JsonFormatter())
    root.addHandler(handler)


def get_json_logger(name: str) -> logging.Logger:
    """Return a module-specific logger backed by the JSON root handler.

    This does *not* implicitly configure the root logger. Call
    :func:`configure_root_logging` once at startup for global defaults.

    Args:
        name: Logger name, typically ``__name__`` of the caller.

    Returns:
        logging.Logger: Configured logger.
    """
    logger = logging.getLogger(name)
    logger.propagate = True
    return logger
