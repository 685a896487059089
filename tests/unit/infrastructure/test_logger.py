# tests/unit/infrastructure/test_logger.py
from __future__ import annotations

import json
import logging
import sys
from decimal import Decimal
from typing import Any

import pytest

from workledger.infrastructure.logging.logger import (
    _JsonFormatter,  # internal but importable
    configure_root_logging,
    current_operation_id,
    operation_scope,
)


def _capture_log(record_msg: str, level: int = logging.INFO, **extra: Any) -> dict[str, Any]:
    """Build a record with arbitrary extras and return the parsed JSON payload."""
    logger = logging.getLogger("test.logger")
    record = logger.makeRecord(
        name=logger.name,
        level=level,
        fn="test_logger",
        lno=123,
        msg=record_msg,
        args=(),
        exc_info=None,
    )
    for k, v in extra.items():
        setattr(record, k, v)
    return json.loads(_JsonFormatter().format(record))


def test_configure_root_logging_installs_json_handler(monkeypatch: pytest.MonkeyPatch) -> None:
    """Root logger should get a JSON formatter and respect LOG_LEVEL."""
    monkeypatch.setenv("LOG_LEVEL", "debug")
    root = logging.getLogger()
    saved = list(root.handlers)
    root.handlers.clear()
    try:
        configure_root_logging()
        configure_root_logging()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, _JsonFormatter)
    finally:
        root.handlers[:] = saved


def test_json_formatter_basic_fields() -> None:
    payload = _capture_log("hello-world")
    assert payload["message"] == "hello-world"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert "ts" in payload
    assert "operation_id" not in payload


def test_extras_are_merged_and_decimals_stringified() -> None:
    payload = _capture_log("ledger.create.done", work_units=Decimal("1.5"), team_ids={"T1"})

    assert payload["work_units"] == "1.5"
    assert payload["team_ids"] == ["T1"]


def test_operation_scope_binds_id_for_nested_logs() -> None:
    assert current_operation_id() is None

    with operation_scope("overwrite") as op_id:
        payload = _capture_log("ledger.overwrite.start")
        assert op_id.startswith("overwrite-")
        assert payload["operation_id"] == op_id

    assert current_operation_id() is None


def test_record_operation_id_wins_over_scope() -> None:
    with operation_scope("create"):
        payload = _capture_log("x", operation_id="explicit")
    assert payload["operation_id"] == "explicit"


def test_json_formatter_includes_exception_info() -> None:
    logger = logging.getLogger("test.logger.exc")
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logger.makeRecord(
            logger.name, logging.ERROR, "f", 1, "failed", (), exc_info=sys.exc_info()
        )
    payload = json.loads(_JsonFormatter().format(record))
    assert payload["exc_type"] == "RuntimeError"
    assert payload["exc_message"] == "boom"
