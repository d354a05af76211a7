"""Create user, filing, document, audit, notification and outbox tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


FILING_STATUSES = (
    "'INITIATED', 'DOCUMENTS_PENDING', 'DOCUMENTS_RECEIVED', 'UNDER_PREPARATION', "
    "'REVIEW_READY', 'CUSTOMER_APPROVED', 'E_FILED', 'ACKNOWLEDGED', 'COMPLETED', 'ON_HOLD'"
)

DOCUMENT_CATEGORIES = (
    "'NID', 'TIN_CERTIFICATE', 'SALARY_CERTIFICATE', 'BANK_STATEMENT', "
    "'RENTAL_AGREEMENT', 'INVESTMENT_PROOF', 'PREVIOUS_RETURN', 'TRADE_LICENSE', "
    "'ASSET_STATEMENT', 'FILED_RETURN', 'ACKNOWLEDGEMENT', 'OTHER'"
)


def _timestamp(name, nullable=False):
    if nullable:
        return sa.Column(name, sa.TIMESTAMP(timezone=True), nullable=True)
    return sa.Column(name, sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False)


def upgrade():
    """Create the case-management schema."""

    op.create_table(
        'user',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('full_name', sa.Text(), nullable=True),
        sa.Column('role', sa.Text(), nullable=False, server_default='CUSTOMER'),
        sa.Column('status', sa.Text(), nullable=False, server_default='ACTIVE'),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_user_email'),
        sa.CheckConstraint(
            "role IN ('CUSTOMER', 'TAX_ADVISOR', 'OPERATIONS', 'SUPER_ADMIN')",
            name='ck_user_role'
        ),
        sa.CheckConstraint("status IN ('ACTIVE', 'DISABLED')", name='ck_user_status'),
    )

    op.create_table(
        'filing',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('owner_user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('assessment_year', sa.Text(), nullable=False),
        sa.Column('service_type', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), nullable=False, server_default='INITIATED'),
        sa.Column('held_from_status', sa.Text(), nullable=True),
        sa.Column('advisor_user_id', postgresql.UUID(as_uuid=True), nullable=True),

        # Financials
        sa.Column('total_income', sa.Numeric(15, 2), nullable=True),
        sa.Column('tax_payable', sa.Numeric(15, 2), nullable=True),
        sa.Column('tax_paid', sa.Numeric(15, 2), nullable=True),
        sa.Column('refund_amount', sa.Numeric(15, 2), nullable=True),

        _timestamp('deadline', nullable=True),
        sa.Column('internal_notes', sa.Text(), nullable=True),
        _timestamp('filed_at', nullable=True),
        _timestamp('acknowledged_at', nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),

        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['owner_user_id'], ['user.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['advisor_user_id'], ['user.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('owner_user_id', 'assessment_year', name='uq_filing_owner_year'),
        sa.CheckConstraint(f"status IN ({FILING_STATUSES})", name='ck_filing_status'),
    )
    op.create_index('ix_filing_status', 'filing', ['status'])
    op.create_index('ix_filing_advisor_user_id', 'filing', ['advisor_user_id'])

    op.create_table(
        'filing_status_log',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('filing_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('from_status', sa.Text(), nullable=False),
        sa.Column('to_status', sa.Text(), nullable=False),
        sa.Column('changed_by_user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['filing_id'], ['filing.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['changed_by_user_id'], ['user.id'], ondelete='SET NULL'),
    )
    op.create_index(
        'ix_filing_status_log_filing_id_created_at', 'filing_status_log', ['filing_id', 'created_at']
    )

    op.create_table(
        'document',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('owner_user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('filing_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('category', sa.Text(), nullable=False),

        # File metadata
        sa.Column('file_name', sa.Text(), nullable=False),
        sa.Column('storage_key', sa.Text(), nullable=False),
        sa.Column('file_size_bytes', sa.BigInteger(), nullable=False),
        sa.Column('mime_type', sa.Text(), nullable=False),

        # Review state and version chain
        sa.Column('status', sa.Text(), nullable=False, server_default='PENDING'),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('chain_root_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('rejection_note', sa.Text(), nullable=True),
        sa.Column('reviewed_by_user_id', postgresql.UUID(as_uuid=True), nullable=True),
        _timestamp('reviewed_at', nullable=True),

        # Tombstone
        _timestamp('deleted_at', nullable=True),
        sa.Column('deleted_by_user_id', postgresql.UUID(as_uuid=True), nullable=True),

        _timestamp('created_at'),

        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['owner_user_id'], ['user.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['filing_id'], ['filing.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['reviewed_by_user_id'], ['user.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['deleted_by_user_id'], ['user.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('chain_root_id', 'version', name='uq_document_chain_version'),
        sa.CheckConstraint('version >= 1', name='ck_document_version_positive'),
        sa.CheckConstraint(
            "status IN ('PENDING', 'ACCEPTED', 'REJECTED', 'NEEDS_REUPLOAD')",
            name='ck_document_status'
        ),
        sa.CheckConstraint(f"category IN ({DOCUMENT_CATEGORIES})", name='ck_document_category'),
    )
    op.create_index('ix_document_owner_user_id', 'document', ['owner_user_id'])
    op.create_index('ix_document_filing_id', 'document', ['filing_id'])
    op.create_index('ix_document_chain_root_id', 'document', ['chain_root_id'])

    op.create_table(
        'audit_log',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('actor_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('action', sa.Text(), nullable=False),
        sa.Column('entity_type', sa.Text(), nullable=False),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('old_value', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('new_value', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['actor_id'], ['user.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_audit_log_entity', 'audit_log', ['entity_type', 'entity_id'])
    op.create_index('ix_audit_log_created_at', 'audit_log', ['created_at'])

    op.create_table(
        'notification',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('type', sa.Text(), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('link', sa.Text(), nullable=True),
        sa.Column('read', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_notification_user_id_created_at', 'notification', ['user_id', 'created_at'])

    op.create_table(
        'outbox_event',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('event_type', sa.Text(), nullable=False),
        sa.Column('payload', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_error', sa.Text(), nullable=True),
        _timestamp('created_at'),
        _timestamp('dispatched_at', nullable=True),
        _timestamp('failed_at', nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_outbox_event_pending', 'outbox_event', ['dispatched_at', 'failed_at', 'created_at']
    )


def downgrade():
    """Drop the case-management schema."""
    op.drop_table('outbox_event')
    op.drop_table('notification')
    op.drop_table('audit_log')
    op.drop_table('document')
    op.drop_table('filing_status_log')
    op.drop_table('filing')
    op.drop_table('user')
