# migrations/versions/20261019_0002_responsible_team.py
"""Add the responsible-team columns to attendance_records."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from workledger.infrastructure.database.models.base import DEFAULT_DB_SCHEMA

# Revision identifiers, used by Alembic.
revision = "20261019_0002_responsible_team"
down_revision = "20261019_0001_ledger_tables"
branch_labels = None
depends_on = None


def upgrade() -> None:
    schema = DEFAULT_DB_SCHEMA
    op.add_column(
        "attendance_records",
        sa.Column("responsible_team_id", sa.String(length=64), nullable=False, server_default=""),
        schema=schema,
    )
    op.add_column(
        "attendance_records",
        sa.Column(
            "responsible_team_name", sa.String(length=255), nullable=False, server_default=""
        ),
        schema=schema,
    )


def downgrade() -> None:
    schema = DEFAULT_DB_SCHEMA
    op.drop_column("attendance_records", "responsible_team_name", schema=schema)
    op.drop_column("attendance_records", "responsible_team_id", schema=schema)
