"""create_practice_tables

Revision ID: 4f2a9c1e7b30
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4f2a9c1e7b30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create therapists, clients, sessions and therapy_notes tables."""
    op.create_table('therapists',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('practice_name', sa.String(length=255), nullable=True),
        sa.Column('billing_customer_id', sa.String(length=255), nullable=True),
        sa.Column('billing_subscription_id', sa.String(length=255), nullable=True),
        sa.Column('subscription_status', sa.String(length=50), nullable=False),
        sa.Column('subscription_plan', sa.String(length=100), nullable=True),
        sa.Column('subscription_ends_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('therapists', schema=None) as batch_op:
        batch_op.create_index('ix_therapists_billing_customer_id', ['billing_customer_id'], unique=True)

    op.create_table('clients',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('therapist_id', sa.UUID(), nullable=False),
        sa.Column('first_name', sa.String(length=255), nullable=False),
        sa.Column('last_name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('emergency_contact', sa.String(length=255), nullable=True),
        sa.Column('emergency_phone', sa.String(length=50), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('insurance', sa.Text(), nullable=True),
        sa.Column('status', sa.Enum('ACTIVE', 'INACTIVE', name='clientstatus'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['therapist_id'], ['therapists.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('clients', schema=None) as batch_op:
        batch_op.create_index('ix_clients_therapist_id', ['therapist_id'], unique=False)

    op.create_table('sessions',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('therapist_id', sa.UUID(), nullable=False),
        sa.Column('client_id', sa.UUID(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('time', sa.Time(), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('type', sa.Enum(
            'INITIAL', 'INDIVIDUAL', 'FAMILY', 'COUPLE', 'FOLLOWUP', 'EMERGENCY', 'TELEHEALTH',
            name='sessiontype'
        ), nullable=False),
        sa.Column('status', sa.Enum(
            'SCHEDULED', 'COMPLETED', 'CANCELLED',
            name='sessionstatus'
        ), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('duration >= 15 AND duration <= 180', name='session_duration_range'),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['therapist_id'], ['therapists.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('sessions', schema=None) as batch_op:
        batch_op.create_index('ix_sessions_therapist_date', ['therapist_id', 'date'], unique=False)
        batch_op.create_index('ix_sessions_client_id', ['client_id'], unique=False)

    op.create_table('therapy_notes',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('therapist_id', sa.UUID(), nullable=False),
        sa.Column('session_id', sa.UUID(), nullable=False),
        sa.Column('client_id', sa.UUID(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['session_id'], ['sessions.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['therapist_id'], ['therapists.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('therapy_notes', schema=None) as batch_op:
        batch_op.create_index('ix_therapy_notes_session_id', ['session_id'], unique=False)
        batch_op.create_index('ix_therapy_notes_client_id', ['client_id'], unique=False)


def downgrade() -> None:
    """Drop practice tables."""
    with op.batch_alter_table('therapy_notes', schema=None) as batch_op:
        batch_op.drop_index('ix_therapy_notes_client_id')
        batch_op.drop_index('ix_therapy_notes_session_id')
    op.drop_table('therapy_notes')

    with op.batch_alter_table('sessions', schema=None) as batch_op:
        batch_op.drop_index('ix_sessions_client_id')
        batch_op.drop_index('ix_sessions_therapist_date')
    op.drop_table('sessions')

    with op.batch_alter_table('clients', schema=None) as batch_op:
        batch_op.drop_index('ix_clients_therapist_id')
    op.drop_table('clients')

    with op.batch_alter_table('therapists', schema=None) as batch_op:
        batch_op.drop_index('ix_therapists_billing_customer_id')
    op.drop_table('therapists')
