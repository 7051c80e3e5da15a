"""create loyalty tables

Revision ID: 3f1a9c2b7d01
Revises:
Create Date: 2026-10-17 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1a9c2b7d01'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create accounts, one-time codes, bookings and the points ledger."""

    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),  # lowercase
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=True),
        sa.Column('provider_uid', sa.String(), nullable=True),
        sa.Column('auth_provider', sa.String(), nullable=False),
        sa.Column('verified', sa.Boolean(), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('push_token', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('points >= 0', name='ck_accounts_points_non_negative'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_accounts_id', 'accounts', ['id'], unique=False)
    op.create_index('ix_accounts_email', 'accounts', ['email'], unique=True)
    op.create_index('ix_accounts_provider_uid', 'accounts', ['provider_uid'], unique=True)

    op.create_table(
        'verification_codes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('code', sa.String(length=6), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('used', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_verification_codes_id', 'verification_codes', ['id'], unique=False)
    # One live code per email
    op.create_index('ix_verification_codes_email', 'verification_codes', ['email'], unique=True)
    op.create_index('ix_verification_codes_expires_at', 'verification_codes', ['expires_at'], unique=False)

    op.create_table(
        'handoff_codes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_handoff_codes_id', 'handoff_codes', ['id'], unique=False)
    op.create_index('ix_handoff_codes_code', 'handoff_codes', ['code'], unique=True)
    op.create_index('ix_handoff_codes_expires_at', 'handoff_codes', ['expires_at'], unique=False)

    op.create_table(
        'bookings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('room', sa.String(), nullable=False),
        sa.Column('date', sa.String(length=10), nullable=False),
        sa.Column('slot', sa.String(length=5), nullable=False),
        sa.Column('contact_number', sa.String(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('room', 'date', 'slot', name='uq_bookings_room_date_slot'),
    )
    op.create_index('ix_bookings_id', 'bookings', ['id'], unique=False)
    op.create_index('ix_bookings_account_id', 'bookings', ['account_id'], unique=False)
    op.create_index('idx_bookings_account_date', 'bookings', ['account_id', 'date'], unique=False)

    op.create_table(
        'point_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('kind', sa.String(), nullable=False),  # earn, redeem
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_point_transactions_id', 'point_transactions', ['id'], unique=False)
    op.create_index(
        'idx_point_transactions_account_created',
        'point_transactions',
        ['account_id', 'created_at'],
        unique=False,
    )


def downgrade() -> None:
    """Drop all loyalty tables."""
    op.drop_index('idx_point_transactions_account_created', table_name='point_transactions')
    op.drop_index('ix_point_transactions_id', table_name='point_transactions')
    op.drop_table('point_transactions')

    op.drop_index('idx_bookings_account_date', table_name='bookings')
    op.drop_index('ix_bookings_account_id', table_name='bookings')
    op.drop_index('ix_bookings_id', table_name='bookings')
    op.drop_table('bookings')

    op.drop_index('ix_handoff_codes_expires_at', table_name='handoff_codes')
    op.drop_index('ix_handoff_codes_code', table_name='handoff_codes')
    op.drop_index('ix_handoff_codes_id', table_name='handoff_codes')
    op.drop_table('handoff_codes')

    op.drop_index('ix_verification_codes_expires_at', table_name='verification_codes')
    op.drop_index('ix_verification_codes_email', table_name='verification_codes')
    op.drop_index('ix_verification_codes_id', table_name='verification_codes')
    op.drop_table('verification_codes')

    op.drop_index('ix_accounts_provider_uid', table_name='accounts')
    op.drop_index('ix_accounts_email', table_name='accounts')
    op.drop_index('ix_accounts_id', table_name='accounts')
    op.drop_table('accounts')
