"""001_initial_schema

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

Initial database schema for the Oeconomia dashboard.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables."""

    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('username', sa.String(length=100), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username')
    )

    # Create wallets table
    op.create_table(
        'wallets',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=True),
        sa.Column('address', sa.String(length=42), nullable=False),
        sa.Column('network', sa.String(length=20), nullable=False, server_default='ethereum'),
        sa.Column('is_connected', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_wallets_address', 'wallets', ['address'], unique=True)
    op.create_index('ix_wallets_user_id', 'wallets', ['user_id'])

    # Create tokens table
    op.create_table(
        'tokens',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('symbol', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('address', sa.String(length=42), nullable=False),
        sa.Column('decimals', sa.Integer(), nullable=False, server_default='18'),
        sa.Column('logo_url', sa.String(length=500), nullable=True),
        sa.Column('coingecko_id', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_tokens_symbol', 'tokens', ['symbol'], unique=True)
    op.create_index('ix_tokens_address', 'tokens', ['address'])

    # Create portfolios table
    op.create_table(
        'portfolios',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('wallet_id', sa.String(length=36), nullable=False),
        sa.Column('net_worth', sa.Numeric(precision=20, scale=8), nullable=False, server_default='0'),
        sa.Column('pnl', sa.Numeric(precision=20, scale=8), nullable=False, server_default='0'),
        sa.Column('pnl_percentage', sa.Numeric(precision=10, scale=4), nullable=False, server_default='0'),
        sa.Column('total_trades', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('health_score', sa.String(length=30), nullable=False, server_default='Unknown'),
        sa.Column('last_updated', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['wallet_id'], ['wallets.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('wallet_id', name='portfolios_wallet_id_unique')
    )

    # Create token_balances table
    op.create_table(
        'token_balances',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('wallet_id', sa.String(length=36), nullable=False),
        sa.Column('token_id', sa.String(length=36), nullable=False),
        sa.Column('balance', sa.Numeric(precision=30, scale=18), nullable=False, server_default='0'),
        sa.Column('usd_value', sa.Numeric(precision=20, scale=8), nullable=False, server_default='0'),
        sa.Column('last_updated', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['wallet_id'], ['wallets.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['token_id'], ['tokens.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('wallet_id', 'token_id', name='token_balances_wallet_token_unique')
    )
    op.create_index('ix_token_balances_wallet_id', 'token_balances', ['wallet_id'])
    op.create_index('ix_token_balances_token_id', 'token_balances', ['token_id'])

    # Create staking_positions table
    op.create_table(
        'staking_positions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('wallet_id', sa.String(length=36), nullable=False),
        sa.Column('token_id', sa.String(length=36), nullable=False),
        sa.Column('pool_name', sa.String(length=100), nullable=False),
        sa.Column('staking_type', sa.String(length=10), nullable=False),
        sa.Column('staked_amount', sa.Numeric(precision=30, scale=18), nullable=False, server_default='0'),
        sa.Column('rewards_earned', sa.Numeric(precision=30, scale=18), nullable=False, server_default='0'),
        sa.Column('unclaimed_rewards', sa.Numeric(precision=30, scale=18), nullable=False, server_default='0'),
        sa.Column('apy', sa.Numeric(precision=10, scale=4), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['wallet_id'], ['wallets.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['token_id'], ['tokens.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_staking_positions_wallet_id', 'staking_positions', ['wallet_id'])
    op.create_index('ix_staking_positions_token_id', 'staking_positions', ['token_id'])
    op.create_index('ix_staking_positions_is_active', 'staking_positions', ['is_active'])

    # Create transactions table
    op.create_table(
        'transactions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('wallet_id', sa.String(length=36), nullable=False),
        sa.Column('tx_hash', sa.String(length=66), nullable=False),
        sa.Column('type', sa.String(length=8), nullable=False),
        sa.Column('token_id', sa.String(length=36), nullable=False),
        sa.Column('amount', sa.Numeric(precision=30, scale=18), nullable=False),
        sa.Column('usd_value', sa.Numeric(precision=20, scale=8), nullable=True),
        sa.Column('gas_used', sa.Numeric(precision=20, scale=0), nullable=True),
        sa.Column('gas_price', sa.Numeric(precision=20, scale=0), nullable=True),
        sa.Column('block_number', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=9), nullable=False, server_default='CONFIRMED'),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['wallet_id'], ['wallets.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['token_id'], ['tokens.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_transactions_tx_hash', 'transactions', ['tx_hash'], unique=True)
    op.create_index('ix_transactions_wallet_id', 'transactions', ['wallet_id'])
    op.create_index('ix_transactions_token_id', 'transactions', ['token_id'])
    op.create_index('ix_transactions_status', 'transactions', ['status'])
    op.create_index('ix_transactions_timestamp', 'transactions', ['timestamp'])
    op.create_index('ix_transactions_wallet_timestamp', 'transactions', ['wallet_id', 'timestamp'])

    # Create price_history table
    op.create_table(
        'price_history',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('token_id', sa.String(length=36), nullable=False),
        sa.Column('price', sa.Numeric(precision=20, scale=8), nullable=False),
        sa.Column('market_cap', sa.Numeric(precision=30, scale=8), nullable=True),
        sa.Column('volume_24h', sa.Numeric(precision=30, scale=8), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['token_id'], ['tokens.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token_id', 'timestamp', name='price_history_token_timestamp_unique')
    )
    op.create_index('ix_price_history_token_id', 'price_history', ['token_id'])
    op.create_index('ix_price_history_timestamp', 'price_history', ['timestamp'])
    op.create_index('ix_price_history_token_timestamp', 'price_history', ['token_id', 'timestamp'])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('price_history')
    op.drop_table('transactions')
    op.drop_table('staking_positions')
    op.drop_table('token_balances')
    op.drop_table('portfolios')
    op.drop_table('tokens')
    op.drop_table('wallets')
    op.drop_table('users')
