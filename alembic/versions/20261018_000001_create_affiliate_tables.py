"""Create affiliate tables

Revision ID: 20261018_000001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261018_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.DECIMAL(28, 8)


def upgrade() -> None:
    # Create referrers table
    op.create_table(
        'referrers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('wallet_address', sa.String(42), nullable=False),
        sa.Column('referral_code', sa.String(20), nullable=False),
        sa.Column('tier', sa.String(16), nullable=False, server_default='BRONZE'),
        sa.Column('total_volume', MONEY, nullable=False, server_default='0'),
        sa.Column('total_earned', MONEY, nullable=False, server_default='0',
                  comment='Commission already settled'),
        sa.Column('pending_payout', MONEY, nullable=False, server_default='0',
                  comment='Accrued commission not yet settled'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('total_volume >= 0', name='ck_referrers_total_volume_non_negative'),
        sa.CheckConstraint('total_earned >= 0', name='ck_referrers_total_earned_non_negative'),
        sa.CheckConstraint('pending_payout >= 0', name='ck_referrers_pending_payout_non_negative'),
        sa.PrimaryKeyConstraint('id', name='pk_referrers'),
    )
    op.create_index('ix_referrers_wallet_address', 'referrers', ['wallet_address'], unique=True)
    op.create_index('ix_referrers_referral_code', 'referrers', ['referral_code'], unique=True)

    # Create referrals table
    op.create_table(
        'referrals',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('referrer_id', sa.Uuid(), nullable=False),
        sa.Column('referee_address', sa.String(42), nullable=False),
        sa.Column('lifetime_volume', MONEY, nullable=False, server_default='0'),
        sa.Column('last_30_days_volume', MONEY, nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('last_active_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('lifetime_volume >= 0', name='ck_referrals_lifetime_volume_non_negative'),
        sa.CheckConstraint('last_30_days_volume >= 0', name='ck_referrals_last_30_days_volume_non_negative'),
        sa.ForeignKeyConstraint(['referrer_id'], ['referrers.id'], name='fk_referrals_referrer_id_referrers', ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id', name='pk_referrals'),
    )
    op.create_index('ix_referrals_referrer_id', 'referrals', ['referrer_id'])
    op.create_index('ix_referrals_referee_address', 'referrals', ['referee_address'], unique=True)

    # Create referral_volumes table (daily roll-up)
    op.create_table(
        'referral_volumes',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('referrer_id', sa.Uuid(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('volume_usd', MONEY, nullable=False, server_default='0'),
        sa.Column('commission_usd', MONEY, nullable=False, server_default='0'),
        sa.Column('trade_count', sa.Integer(), nullable=False, server_default='0'),
        sa.CheckConstraint('volume_usd >= 0', name='ck_referral_volumes_volume_usd_non_negative'),
        sa.CheckConstraint('commission_usd >= 0', name='ck_referral_volumes_commission_usd_non_negative'),
        sa.CheckConstraint('trade_count >= 0', name='ck_referral_volumes_trade_count_non_negative'),
        sa.ForeignKeyConstraint(['referrer_id'], ['referrers.id'], name='fk_referral_volumes_referrer_id_referrers', ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id', name='pk_referral_volumes'),
        sa.UniqueConstraint('referrer_id', 'date', name='uq_referral_volumes_referrer_date'),
    )
    op.create_index('ix_referral_volumes_referrer_id', 'referral_volumes', ['referrer_id'])

    # Create payouts table
    op.create_table(
        'payouts',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('referrer_id', sa.Uuid(), nullable=False),
        sa.Column('amount_usd', MONEY, nullable=False),
        sa.Column('status', sa.String(16), nullable=False, server_default='PENDING'),
        sa.Column('tx_hash', sa.String(66), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.CheckConstraint('amount_usd > 0', name='ck_payouts_amount_usd_positive'),
        sa.ForeignKeyConstraint(['referrer_id'], ['referrers.id'], name='fk_payouts_referrer_id_referrers', ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id', name='pk_payouts'),
    )
    op.create_index('idx_payouts_referrer_created', 'payouts', ['referrer_id', 'created_at'])
    op.create_index('idx_payouts_status', 'payouts', ['status'])


def downgrade() -> None:
    op.drop_index('idx_payouts_status', table_name='payouts')
    op.drop_index('idx_payouts_referrer_created', table_name='payouts')
    op.drop_table('payouts')

    op.drop_index('ix_referral_volumes_referrer_id', table_name='referral_volumes')
    op.drop_table('referral_volumes')

    op.drop_index('ix_referrals_referee_address', table_name='referrals')
    op.drop_index('ix_referrals_referrer_id', table_name='referrals')
    op.drop_table('referrals')

    op.drop_index('ix_referrers_referral_code', table_name='referrers')
    op.drop_index('ix_referrers_wallet_address', table_name='referrers')
    op.drop_table('referrers')
