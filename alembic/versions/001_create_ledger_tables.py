"""Create ledger tables

Tables:
    - trade_histories: Buys and sells per user, fund and day
    - reference_prices: Daily reference price per fund

Revision ID: 001
Revises: None
Create Date: 2026-10-18

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
    # TRADE HISTORIES
    # ==========================================================================
    op.create_table(
        'trade_histories',
        sa.Column('user_id', sa.String(255), nullable=False),
        sa.Column('fund_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('trade_date', sa.Date(), nullable=False),
        sa.PrimaryKeyConstraint('user_id', 'fund_id', 'trade_date'),
    )
    op.create_index('ix_trade_histories_user_date', 'trade_histories', ['user_id', 'trade_date'])

    # ==========================================================================
    # REFERENCE PRICES
    # ==========================================================================
    op.create_table(
        'reference_prices',
        sa.Column('fund_id', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('price_date', sa.Date(), nullable=False),
        sa.PrimaryKeyConstraint('fund_id', 'price_date'),
    )


def downgrade() -> None:
    op.drop_table('reference_prices')
    op.drop_index('ix_trade_histories_user_date', table_name='trade_histories')
    op.drop_table('trade_histories')
