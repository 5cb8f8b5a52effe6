"""add event log and light channels

Revision ID: 0003_add_events_and_lights
Revises: 0002_add_reading_date_index
Create Date: 2026-10-24

"""
import sqlalchemy as sa
from alembic import op
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision = '0003_add_events_and_lights'
down_revision = '0002_add_reading_date_index'
branch_labels = None
depends_on = None


def upgrade():
    inspector = inspect(op.get_bind())
    if not inspector.has_table('events'):
        op.create_table(
            'events',
            sa.Column('id', sa.String(64), primary_key=True),
            sa.Column('date', sa.String(), nullable=False),
            sa.Column('title', sa.String(), nullable=False),
            sa.Column('type', sa.String(), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('created_at', sa.String(), nullable=True),
        )
        op.create_index('idx_events_date', 'events', ['date'])
    if not inspector.has_table('light_channels'):
        op.create_table(
            'light_channels',
            sa.Column('id', sa.String(64), primary_key=True),
            sa.Column('position', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('intensity', sa.Integer(), nullable=False),
            sa.Column('created_at', sa.String(), nullable=True),
        )


def downgrade():
    inspector = inspect(op.get_bind())
    if inspector.has_table('light_channels'):
        op.drop_table('light_channels')
    if inspector.has_table('events'):
        op.drop_table('events')
