"""initial logbook schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-01 00:00:00.000000
"""

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

READING_COLUMNS = ("temp", "salinity", "ph", "alk", "ca", "mg", "no3", "po4", "ammonia", "nitrite")


def upgrade() -> None:
    op.create_table(
        "parameter_readings",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("date", sa.String(), nullable=False),
        *[sa.Column(name, sa.Float(), nullable=True) for name in READING_COLUMNS],
        sa.Column("created_at", sa.String(), nullable=True),
    )
    op.create_table(
        "dose_records",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("seq", sa.Integer(), nullable=False),
        sa.Column("date", sa.String(), nullable=False),
        sa.Column("product", sa.String(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("unit", sa.String(), nullable=False),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("created_at", sa.String(), nullable=True),
    )
    op.create_table(
        "app_settings",
        sa.Column("key", sa.String(), primary_key=True),
        sa.Column("value", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.String(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("app_settings")
    op.drop_table("dose_records")
    op.drop_table("parameter_readings")
