"""create campaign documents, analysis, chunks and processing runs

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), 'postgresql')


def upgrade():
    op.create_table(
        'campaign_documents',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('filename', sa.String(length=512), nullable=False),
        sa.Column('mime_type', sa.String(length=255), nullable=True),
        sa.Column('size', sa.BigInteger(), nullable=True),
        sa.Column('created_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('modified_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('path', sa.Text(), nullable=True),
        sa.Column('campaign_name', sa.String(length=255), nullable=False),
        sa.Column('client_name', sa.String(length=255), nullable=True),
        sa.Column('file_kind', sa.String(length=20), nullable=False),
        sa.Column('first_seen_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_campaign_documents_campaign_name', 'campaign_documents', ['campaign_name'])
    op.create_index('ix_campaign_documents_client_name', 'campaign_documents', ['client_name'])

    op.create_table(
        'campaign_analysis',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('document_id', sa.String(length=255), nullable=False),
        sa.Column('creative_features', JSON_TYPE, nullable=False),
        sa.Column('business_outcomes', JSON_TYPE, nullable=False),
        sa.Column('campaign_composition', JSON_TYPE, nullable=False),
        sa.Column('confidence_score', sa.Float(), nullable=False),
        sa.Column('vocabulary_version', sa.String(length=20), nullable=False),
        sa.Column('analyzed_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['document_id'], ['campaign_documents.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_campaign_analysis_document_id', 'campaign_analysis', ['document_id'])

    op.create_table(
        'document_chunks',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('document_id', sa.String(length=255), nullable=False),
        sa.Column('chunk_id', sa.String(length=300), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('embedding', JSON_TYPE, nullable=False),
        sa.Column('chunk_index', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['document_id'], ['campaign_documents.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('chunk_id'),
        sa.UniqueConstraint('document_id', 'chunk_index', name='uq_document_chunks_document_index'),
    )
    op.create_index('ix_document_chunks_document_id', 'document_chunks', ['document_id'])

    op.create_table(
        'processing_runs',
        sa.Column('id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('collection_ref', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('processed_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('error_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('errors_json', JSON_TYPE, nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade():
    op.drop_table('processing_runs')
    op.drop_index('ix_document_chunks_document_id', table_name='document_chunks')
    op.drop_table('document_chunks')
    op.drop_index('ix_campaign_analysis_document_id', table_name='campaign_analysis')
    op.drop_table('campaign_analysis')
    op.drop_index('ix_campaign_documents_client_name', table_name='campaign_documents')
    op.drop_index('ix_campaign_documents_campaign_name', table_name='campaign_documents')
    op.drop_table('campaign_documents')
