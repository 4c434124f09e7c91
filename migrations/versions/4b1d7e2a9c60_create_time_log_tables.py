"""create_time_log_tables

Revision ID: 4b1d7e2a9c60
Revises:
Create Date: 2026-10-19 10:12:44.318207

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '4b1d7e2a9c60'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create time_log_entries and legacy_tags tables."""
    op.create_table('time_log_entries',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('owner_id', sa.UUID(), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('tags', postgresql.JSONB(), server_default='[]', nullable=False),
        sa.Column('metadata', postgresql.JSONB(), server_default='[]', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('end_time IS NULL OR end_time >= start_time', name='ck_time_log_entries_end_after_start'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_time_log_entries_owner_start', 'time_log_entries', ['owner_id', 'start_time'], unique=False)
    # At most one running entry per owner
    op.create_index(
        'uq_time_log_entries_active_owner',
        'time_log_entries',
        ['owner_id'],
        unique=True,
        postgresql_where=sa.text('end_time IS NULL'),
    )

    op.create_table('legacy_tags',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('owner_id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('owner_id', 'name', name='uq_legacy_tags_owner_name'),
    )


def downgrade() -> None:
    """Drop time_log_entries and legacy_tags tables."""
    op.drop_table('legacy_tags')
    op.drop_index('uq_time_log_entries_active_owner', table_name='time_log_entries')
    op.drop_index('ix_time_log_entries_owner_start', table_name='time_log_entries')
    op.drop_table('time_log_entries')
