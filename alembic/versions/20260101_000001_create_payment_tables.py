"""create payments, users and blockchain_sync_state tables

Revision ID: 20260101_000001
Revises:
Create Date: 2026-01-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from app.models.types import BigMoneyType


# revision identifiers, used by Alembic.
revision: str = '20260101_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create payment monitor tables."""
    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tx_hash', sa.String(80), nullable=False),
        sa.Column('block_number', sa.BigInteger(), nullable=True),
        sa.Column('coin', sa.String(20), nullable=False),
        sa.Column('asset_kind', sa.String(20), nullable=False),
        sa.Column('network', sa.String(20), nullable=False),
        sa.Column('token_address', sa.String(42), nullable=True),
        sa.Column('from_address', sa.String(100), nullable=False),
        sa.Column('to_address', sa.String(100), nullable=False),
        sa.Column('amount', BigMoneyType, nullable=False),
        sa.Column('amount_raw', sa.String(100), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='confirmed'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tx_hash', name='uq_payments_tx_hash'),
    )
    op.create_index('ix_payments_coin', 'payments', ['coin'])
    op.create_index('ix_payments_from_address', 'payments', ['from_address'])
    op.create_index('ix_payments_user_id', 'payments', ['user_id'])
    op.create_index(
        'idx_payments_created_at_desc',
        'payments',
        [sa.text('created_at DESC')],
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('wallet_address', sa.String(100), nullable=False),
        sa.Column('username', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_wallet_address', 'users', ['wallet_address'], unique=True)

    op.create_table(
        'blockchain_sync_state',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('monitor', sa.String(20), nullable=False),
        sa.Column('last_synced_block', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('last_seen_tx', sa.String(80), nullable=True),
        sa.Column('total_recorded', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('error_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_blockchain_sync_state_monitor', 'blockchain_sync_state', ['monitor'], unique=True)


def downgrade() -> None:
    """Drop payment monitor tables."""
    op.drop_index('ix_blockchain_sync_state_monitor', table_name='blockchain_sync_state')
    op.drop_table('blockchain_sync_state')

    op.drop_index('ix_users_wallet_address', table_name='users')
    op.drop_table('users')

    op.drop_index('idx_payments_created_at_desc', table_name='payments')
    op.drop_index('ix_payments_user_id', table_name='payments')
    op.drop_index('ix_payments_from_address', table_name='payments')
    op.drop_index('ix_payments_coin', table_name='payments')
    op.drop_table('payments')
