"""create_auction_tables

Revision ID: 001_auction_tables
Revises:
Create Date: 2026-10-19

Creates users, auctions and bids.

The (auction_id, amount DESC) index serves the top-bid lookup done under the
row lock. The (status, end_time) index serves the closer's expired-auction
claim.

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = '001_auction_tables'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('display_name', sa.String(80), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'auctions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('owner_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('title', sa.String(120), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('image_url', sa.String(500), nullable=True),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='OPEN'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('end_time > start_time', name='chk_auction_time'),
        sa.CheckConstraint("status IN ('OPEN', 'CLOSED')", name='chk_auction_status'),
    )
    op.create_index('idx_auctions_status_end', 'auctions', ['status', 'end_time'])
    op.create_index('idx_auctions_time', 'auctions', ['start_time', 'end_time'])

    op.create_table(
        'bids',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('auction_id', sa.Integer(), sa.ForeignKey('auctions.id'), nullable=False),
        sa.Column('bidder_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('amount > 0', name='chk_bid_amount_positive'),
    )
    op.create_index('idx_bids_auction_amount', 'bids', ['auction_id', sa.text('amount DESC')])
    op.create_index('idx_bids_bidder', 'bids', ['bidder_id'])


def downgrade() -> None:
    op.drop_index('idx_bids_bidder', table_name='bids')
    op.drop_index('idx_bids_auction_amount', table_name='bids')
    op.drop_table('bids')

    op.drop_index('idx_auctions_time', table_name='auctions')
    op.drop_index('idx_auctions_status_end', table_name='auctions')
    op.drop_table('auctions')

    op.drop_table('users')
