# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Workledger CLI: operational commands over the attendance ledger.

Commands:
    overwrite        Replace one date's records for a set of teams from a JSON file.
    import           Batch-create records from a JSON file.
    retry-counters   Re-apply counter mutations reported by a partial failure.
    stats            Print record counts (total, this month, today).

Exit codes:
    0   Success; ledger and counters are in sync.
    2   Ledger committed but some counters need a retry (the unapplied
        mutations are printed as JSON for ``retry-counters``).
    1   Any other ledger error; see the printed error code.

Environment:
    DATABASE_URL      Async SQLAlchemy URL (postgresql+asyncpg://...).
    LEDGER_CHUNK_SIZE, COUNTER_MAX_CONCURRENCY, COUNTER_RETRY_*  See Settings.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import typer

from workledger.application.schemas.dto.attendance import parse_records
from workledger.application.use_cases.ledger.base import LedgerWriteResult
from workledger.application.use_cases.ledger.overwrite_records import OverwriteRecordsRequest
from workledger.config.settings import get_settings
from workledger.dependencies.ledger import LedgerServices, build_sqlalchemy_ledger_services
from workledger.domain.entities.delta_set import CounterMutation
from workledger.domain.exceptions import DomainError, PartialFailureError, ValidationError
from workledger.infrastructure.database.session import dispose_engine
from workledger.infrastructure.logging.logger import configure_root_logging, get_json_logger

configure_root_logging()
log = get_json_logger(__name__)

app = typer.Typer(add_completion=False, no_args_is_help=True)

EXIT_PARTIAL_FAILURE = 2
EXIT_ERROR = 1


def _build_services() -> LedgerServices:
    """Build the PostgreSQL-backed services (tests monkeypatch this)."""
    settings = get_settings()
    configure_root_logging(settings.log_level)
    return build_sqlalchemy_ledger_services(settings)


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValidationError(
            "cannot read JSON input", details={"path": str(path), "reason": str(exc)}
        ) from exc


def _echo(payload: dict[str, Any]) -> None:
    typer.echo(json.dumps(payload, default=str, ensure_ascii=False))


def _write_summary(result: LedgerWriteResult) -> dict[str, Any]:
    return {
        "record_ids": list(result.record_ids),
        "deleted_ids": list(result.deleted_ids),
        "counter_mutations": len(result.delta),
        "counters_skipped": [m.as_dict() for m in result.counters.skipped],
    }


def _run(step: Callable[[LedgerServices], Awaitable[dict[str, Any]]]) -> None:
    """Run one async command and map ledger errors to exit codes."""

    async def _main() -> dict[str, Any]:
        try:
            return await step(_build_services())
        finally:
            await dispose_engine()

    try:
        payload = asyncio.run(_main())
    except PartialFailureError as exc:
        log.error("cli.partial_failure", extra={"failed": len(exc.failed)})
        _echo({"error": exc.code, "message": exc.message, **exc.details})
        raise typer.Exit(code=EXIT_PARTIAL_FAILURE) from exc
    except DomainError as exc:
        log.error("cli.failed", extra={"error_code": exc.code})
        _echo({"error": exc.code, "message": exc.message, **exc.details})
        raise typer.Exit(code=EXIT_ERROR) from exc
    _echo(payload)


@app.command("overwrite")
def overwrite(
    file: Path = typer.Argument(..., help="JSON array of attendance records."),  # noqa: B008
    date: str = typer.Option(..., "--date", help="ISO date being overwritten."),  # noqa: B008
    team: list[str] = typer.Option(  # noqa: B008
        ..., "--team", help="Team whose records on DATE are replaced (repeatable)."
    ),
) -> None:
    """Overwrite DATE for the given teams with the records in FILE.

    Safe to re-run with the same input: a repeat nets to zero counter change.
    """

    async def _step(services: LedgerServices) -> dict[str, Any]:
        records = parse_records(_read_json(file))
        result = await services.overwrite.execute(
            OverwriteRecordsRequest(date=date, records=records, team_ids=team)
        )
        return _write_summary(result)

    _run(_step)


@app.command("import")
def import_records(
    file: Path = typer.Argument(..., help="JSON array of attendance records."),  # noqa: B008
) -> None:
    """Create every record in FILE. Not idempotent: re-running duplicates records."""

    async def _step(services: LedgerServices) -> dict[str, Any]:
        records = parse_records(_read_json(file))
        result = await services.create_batch.execute(records)
        return _write_summary(result)

    _run(_step)


def _parse_mutations(payload: Any) -> list[CounterMutation]:
    items = payload.get("failed", []) if isinstance(payload, dict) else payload
    if not isinstance(items, list):
        raise ValidationError("expected a list of counter mutations")
    try:
        return [
            CounterMutation(
                kind=item["entity_kind"], entity_id=item["entity_id"], delta=item["delta"]
            )
            for item in items
        ]
    except (KeyError, TypeError, ValueError) as exc:
        raise ValidationError(
            "malformed counter mutation", details={"reason": str(exc)}
        ) from exc


@app.command("retry-counters")
def retry_counters(
    file: Path = typer.Argument(  # noqa: B008
        ..., help="JSON output of a partial failure, or a list of counter mutations."
    ),
) -> None:
    """Re-apply counter mutations that a previous command could not confirm."""

    async def _step(services: LedgerServices) -> dict[str, Any]:
        result = await services.retry_counters.execute(_parse_mutations(_read_json(file)))
        return {"applied": len(result.applied), "skipped": len(result.skipped)}

    _run(_step)


@app.command("stats")
def stats(
    today: str | None = typer.Option(None, "--today", help="Reference date (default: today)."),  # noqa: B008
) -> None:
    """Print record counts: total, this month and today."""

    async def _step(services: LedgerServices) -> dict[str, Any]:
        result = await services.stats.execute(today)
        return {"total": result.total, "this_month": result.this_month, "today": result.today}

    _run(_step)


if __name__ == "__main__":
    app()
