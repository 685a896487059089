# migrations/versions/20261019_0001_ledger_tables.py
"""Create attendance_records and reference_entities tables."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

from workledger.infrastructure.database.models.base import DEFAULT_DB_SCHEMA

# Revision identifiers, used by Alembic.
revision = "20261019_0001_ledger_tables"
down_revision = None
branch_labels = None
depends_on = None

_NOW = sa.text("TIMEZONE('utc', CURRENT_TIMESTAMP)")


def upgrade() -> None:
    schema = DEFAULT_DB_SCHEMA

    op.create_table(
        "attendance_records",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("date", sa.String(length=10), nullable=False),
        sa.Column("team_id", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("site_id", sa.String(length=64), nullable=False),
        sa.Column(
            "worker_entries",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column(
            "total_work_units", sa.Numeric(12, 3), nullable=False, server_default="0"
        ),
        sa.Column("total_amount", sa.Numeric(16, 3), nullable=False, server_default="0"),
        sa.Column("team_name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("site_name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("writer_id", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("weather", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("work_content", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=_NOW),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=_NOW),
        sa.PrimaryKeyConstraint("id", name="pk_attendance_records"),
        schema=schema,
    )
    op.create_index(
        "ix_attendance_records_date", "attendance_records", ["date"], schema=schema
    )
    op.create_index(
        "ix_attendance_records_date_team_site",
        "attendance_records",
        ["date", "team_id", "site_id"],
        schema=schema,
    )
    op.create_index(
        "ix_attendance_records_site_date",
        "attendance_records",
        ["site_id", "date"],
        schema=schema,
    )

    op.create_table(
        "reference_entities",
        sa.Column("kind", sa.String(length=16), nullable=False),
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("owner_company_id", sa.String(length=64), nullable=True),
        sa.Column(
            "cumulative_work_units", sa.Numeric(12, 3), nullable=False, server_default="0"
        ),
        sa.PrimaryKeyConstraint("kind", "id", name="pk_reference_entities"),
        schema=schema,
    )


def downgrade() -> None:
    schema = DEFAULT_DB_SCHEMA
    op.drop_table("reference_entities", schema=schema)
    op.drop_index("ix_attendance_records_site_date", table_name="attendance_records", schema=schema)
    op.drop_index(
        "ix_attendance_records_date_team_site", table_name="attendance_records", schema=schema
    )
    op.drop_index("ix_attendance_records_date", table_name="attendance_records", schema=schema)
    op.drop_table("attendance_records", schema=schema)
