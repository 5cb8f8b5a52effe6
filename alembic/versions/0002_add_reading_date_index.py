"""add indexes used by the upsert-by-date and dose log ordering

Revision ID: 0002_add_reading_date_index
Revises: 0001_initial
Create Date: 2026-10-17

"""
from alembic import op
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision = '0002_add_reading_date_index'
down_revision = '0001_initial'
branch_labels = None
depends_on = None

INDEXES = (
    ('idx_parameter_readings_date', 'parameter_readings', ['date']),
    ('idx_dose_records_seq', 'dose_records', ['seq']),
)


def existing_indexes(table_name: str) -> set:
    """Index names on a table, or an empty set when the table is missing."""
    inspector = inspect(op.get_bind())
    if table_name not in inspector.get_table_names():
        return set()
    return {idx['name'] for idx in inspector.get_indexes(table_name)}


def has_columns(table_name: str, columns: list) -> bool:
    inspector = inspect(op.get_bind())
    present = {col['name'] for col in inspector.get_columns(table_name)}
    return all(c in present for c in columns)


def upgrade():
    # databases created by init_db already carry these
    for name, table, columns in INDEXES:
        if not inspect(op.get_bind()).has_table(table):
            continue
        if name not in existing_indexes(table) and has_columns(table, columns):
            op.create_index(name, table, columns)


def downgrade():
    for name, table, _ in reversed(INDEXES):
        if name in existing_indexes(table):
            op.drop_index(name, table_name=table)
