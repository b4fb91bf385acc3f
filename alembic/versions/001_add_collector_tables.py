"""Add collector tables: types, processing runs, entries, reports

Revision ID: 001_collector_tables
Revises:
Create Date: 2026-09-28

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, JSONB


# revision identifiers, used by Alembic.
revision: str = '001_collector_tables'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'types',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        'processing_runs',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('type_id', UUID(as_uuid=True), sa.ForeignKey('types.id'), nullable=False),
        sa.Column('limit_count', sa.Integer(), server_default='5'),
        sa.Column('status', sa.String(20), server_default='created'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.current_timestamp()),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('limit_count BETWEEN 1 AND 50', name='ck_processing_runs_limit_count'),
    )

    op.create_table(
        'entries',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'type_id',
            UUID(as_uuid=True),
            sa.ForeignKey('types.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('status', sa.String(20), server_default='pending'),
        sa.Column(
            'run_id',
            UUID(as_uuid=True),
            sa.ForeignKey('processing_runs.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.current_timestamp()),
        sa.Column('modified_at', sa.DateTime(timezone=True), server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        'reports',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('summary', sa.Text(), nullable=False, server_default=''),
        sa.Column('markdown_content', sa.Text(), nullable=False, server_default=''),
        sa.Column('entry_ids', JSONB(), server_default='[]'),
        sa.Column(
            'run_id',
            UUID(as_uuid=True),
            sa.ForeignKey('processing_runs.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('sources', JSONB(), nullable=True),
        sa.Column('status', sa.String(20), server_default='processed'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.current_timestamp()),
    )

    # Claim query: type + status + run, ordered by created_at
    op.create_index('ix_entries_type_id', 'entries', ['type_id'])
    op.create_index('ix_entries_status', 'entries', ['status'])
    op.create_index('ix_entries_run_id', 'entries', ['run_id'])
    op.create_index('ix_entries_claim', 'entries', ['type_id', 'status', 'created_at'])
    op.create_index('ix_processing_runs_created_at', 'processing_runs', ['created_at'])
    op.create_index('ix_reports_status', 'reports', ['status'])
    op.create_index('ix_reports_created_at', 'reports', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_reports_created_at', table_name='reports')
    op.drop_index('ix_reports_status', table_name='reports')
    op.drop_index('ix_processing_runs_created_at', table_name='processing_runs')
    op.drop_index('ix_entries_claim', table_name='entries')
    op.drop_index('ix_entries_run_id', table_name='entries')
    op.drop_index('ix_entries_status', table_name='entries')
    op.drop_index('ix_entries_type_id', table_name='entries')
    op.drop_table('reports')
    op.drop_table('entries')
    op.drop_table('processing_runs')
    op.drop_table('types')
