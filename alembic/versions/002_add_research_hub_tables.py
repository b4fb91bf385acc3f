"""Add Research Hub tables: queue and digests

Revision ID: 002_research_hub_tables
Revises: 001_collector_tables
Create Date: 2026-09-30

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, JSONB


# revision identifiers, used by Alembic.
revision: str = '002_research_hub_tables'
down_revision: Union[str, None] = '001_collector_tables'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Notes waiting for the workflow; status stays uppercase
    op.create_table(
        'queue',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('notes', sa.Text(), nullable=False),
        sa.Column('urls', JSONB(), server_default='[]'),
        sa.Column('type', sa.String(20), server_default='generic'),
        sa.Column('status', sa.String(20), server_default='PENDING'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.current_timestamp()),
        sa.CheckConstraint(
            "type IN ('university', 'person', 'paper', 'generic')",
            name='ck_queue_type',
        ),
    )

    # Written by the workflow, read by the feed
    op.create_table(
        'digests',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('markdown_content', sa.Text(), nullable=False),
        sa.Column('source_notes', sa.Text(), nullable=True),
        sa.Column('source_urls', JSONB(), nullable=True),
        sa.Column('batch_id', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.current_timestamp()),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_index('ix_queue_status', 'queue', ['status'])
    op.create_index('ix_queue_created_at', 'queue', ['created_at'])
    op.create_index('ix_digests_created_at', 'digests', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_digests_created_at', table_name='digests')
    op.drop_index('ix_queue_created_at', table_name='queue')
    op.drop_index('ix_queue_status', table_name='queue')
    op.drop_table('digests')
    op.drop_table('queue')
