"""Initial schema baseline

This migration creates the complete database schema for Portfolio Analytics.

Tables:
    - accounts: Brokerage and retirement accounts owned by users
    - investments: Purchase lots with their cached USD valuation snapshot
    - historical_price_cache: Daily adjusted-close history per ticker (JSON)
    - market_data_cache: Latest quote per ticker
    - fx_rate_cache: Latest rate per currency pair

Revision ID: 001
Revises: None
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ==========================================================================
    # ACCOUNTS
    # ==========================================================================
    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('user_id', sa.String(), nullable=False, index=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column(
            'account_type',
            sa.Enum('Traditional 401k', 'Roth 401k', 'Traditional IRA', 'Roth IRA', 'Investment',
                    name='accounttype'),
            nullable=False,
        ),
        sa.Column('tax_deferred', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('institution', sa.String(), nullable=False, server_default=''),
    )

    # ==========================================================================
    # INVESTMENTS
    # ==========================================================================
    op.create_table(
        'investments',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('user_id', sa.String(), nullable=False, index=True),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('accounts.id'), nullable=False, index=True),
        sa.Column('ticker', sa.String(20), nullable=False, index=True),
        sa.Column('date_acquired', sa.Date(), nullable=False),
        sa.Column('date_sold', sa.Date(), nullable=True),
        sa.Column('units', sa.Float(), nullable=False),
        sa.Column('unit_price', sa.Float(), nullable=True),
        sa.Column('cost_basis', sa.Float(), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False, server_default='USD'),
        sa.Column('current_price_usd', sa.Float(), nullable=True),
        sa.Column('current_value_usd', sa.Float(), nullable=True),
        sa.Column('cost_basis_usd', sa.Float(), nullable=True),
        sa.Column('sold_unit_price', sa.Float(), nullable=True),
        sa.Column('sold_value_usd', sa.Float(), nullable=True),
        sa.Column('last_price_update', sa.DateTime(timezone=True), nullable=True),
    )
    # All lots of one user, optionally narrowed to a ticker
    op.create_index('ix_investments_user_ticker', 'investments', ['user_id', 'ticker'])

    # ==========================================================================
    # PRICE AND RATE CACHES
    # ==========================================================================
    op.create_table(
        'historical_price_cache',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('ticker', sa.String(20), nullable=False, unique=True, index=True),
        sa.Column('prices', sa.JSON(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        'market_data_cache',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('ticker', sa.String(20), nullable=False, unique=True, index=True),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False, server_default='USD'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        'fx_rate_cache',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('base_currency', sa.String(3), nullable=False),
        sa.Column('quote_currency', sa.String(3), nullable=False),
        sa.Column('rate', sa.Float(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('base_currency', 'quote_currency', name='uq_fx_rate_pair'),
    )


def downgrade() -> None:
    op.drop_table('fx_rate_cache')
    op.drop_table('market_data_cache')
    op.drop_table('historical_price_cache')
    op.drop_index('ix_investments_user_ticker', table_name='investments')
    op.drop_table('investments')
    op.drop_table('accounts')

    # Drop enums
    op.execute('DROP TYPE IF EXISTS accounttype')
