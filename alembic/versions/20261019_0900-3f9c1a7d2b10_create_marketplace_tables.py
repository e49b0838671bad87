"""create_marketplace_tables

Revision ID: 3f9c1a7d2b10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f9c1a7d2b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, comment='更新时间'),
    ]


def upgrade() -> None:
    op.create_table(
        'user_profiles',
        sa.Column('id', sa.String(length=64), nullable=False, comment='用户ID'),
        sa.Column('user_type', sa.String(length=16), nullable=False, comment='用户类型: cook/customer'),
        sa.Column('name', sa.String(length=100), nullable=True, comment='名称'),
        sa.Column('rating', sa.Float(), nullable=True, comment='平均评分（厨师）'),
        sa.Column('rating_count', sa.Integer(), nullable=False, server_default='0', comment='作为厨师收到的评分数'),
        sa.Column('reviews_written', sa.Integer(), nullable=False, server_default='0', comment='作为顾客写过的评价数'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'meals',
        sa.Column('id', sa.String(length=64), nullable=False, comment='餐品ID'),
        sa.Column('cook_id', sa.String(length=64), nullable=False, comment='厨师ID'),
        sa.Column('name', sa.String(length=200), nullable=False, comment='名称'),
        sa.Column('price', sa.Numeric(precision=15, scale=2), nullable=False, comment='单价'),
        sa.Column('available_quantity', sa.Integer(), nullable=False, server_default='0', comment='可售数量'),
        sa.Column('rating', sa.Float(), nullable=True, comment='平均评分'),
        sa.Column('review_count', sa.Integer(), nullable=False, server_default='0', comment='评价数'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_meals_cook_id', 'meals', ['cook_id'])

    op.create_table(
        'reservations',
        sa.Column('id', sa.String(length=64), nullable=False, comment='预订ID'),
        sa.Column('meal_id', sa.String(length=64), nullable=False, comment='餐品ID'),
        sa.Column('customer_id', sa.String(length=64), nullable=False, comment='顾客ID'),
        sa.Column('cook_id', sa.String(length=64), nullable=False, comment='厨师ID'),
        sa.Column('quantity', sa.Integer(), nullable=False, comment='数量'),
        sa.Column('unit_price', sa.Numeric(precision=15, scale=2), nullable=False, comment='下单时单价'),
        sa.Column('total_price', sa.Numeric(precision=15, scale=2), nullable=False, comment='总价（创建后不可变）'),
        sa.Column('pickup_time', sa.DateTime(timezone=True), nullable=False, comment='取餐时间'),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending', comment='状态'),
        sa.Column('payment_id', sa.String(length=64), nullable=True, comment='账本流水ID'),
        sa.Column('payment_status', sa.String(length=16), nullable=True, comment='支付状态'),
        sa.Column('rating', sa.JSON(), nullable=True, comment='评价'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_reservations_meal_id', 'reservations', ['meal_id'])
    op.create_index('ix_reservations_customer_id', 'reservations', ['customer_id'])
    op.create_index('ix_reservations_cook_id', 'reservations', ['cook_id'])
    op.create_index('ix_reservations_status', 'reservations', ['status'])
    op.create_index('ix_reservations_customer_created', 'reservations', ['customer_id', 'created_at'])
    op.create_index('ix_reservations_cook_created', 'reservations', ['cook_id', 'created_at'])

    op.create_table(
        'wallets',
        sa.Column('user_id', sa.String(length=64), nullable=False, comment='用户ID'),
        sa.Column('balance', sa.Numeric(precision=15, scale=2), nullable=False, server_default='0', comment='可用余额'),
        sa.Column('pending_amount', sa.Numeric(precision=15, scale=2), nullable=False, server_default='0', comment='在途金额'),
        sa.Column('total_earned', sa.Numeric(precision=15, scale=2), nullable=False, server_default='0', comment='累计收入'),
        sa.Column('total_spent', sa.Numeric(precision=15, scale=2), nullable=False, server_default='0', comment='累计支出'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('user_id'),
    )

    op.create_table(
        'wallet_transactions',
        sa.Column('id', sa.String(length=64), nullable=False, comment='流水ID'),
        sa.Column('from_user_id', sa.String(length=64), nullable=False, comment='付款方'),
        sa.Column('to_user_id', sa.String(length=64), nullable=False, comment='收款方'),
        sa.Column('amount', sa.Numeric(precision=15, scale=2), nullable=False, comment='金额'),
        sa.Column('type', sa.String(length=16), nullable=False, comment='类型: payment/refund/payout'),
        sa.Column('status', sa.String(length=16), nullable=False, comment='状态: pending/completed/failed'),
        sa.Column('reservation_id', sa.String(length=64), nullable=True, comment='关联预订'),
        sa.Column('description', sa.Text(), nullable=True, comment='描述'),
        sa.Column('idempotency_key', sa.String(length=64), nullable=True, comment='幂等键'),
        sa.Column('refund_of_id', sa.String(length=64), nullable=True, comment='被退款的原流水ID'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True, comment='完成时间'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('idempotency_key'),
    )
    op.create_index('ix_wallet_transactions_from_user_id', 'wallet_transactions', ['from_user_id'])
    op.create_index('ix_wallet_transactions_to_user_id', 'wallet_transactions', ['to_user_id'])
    op.create_index('ix_wallet_transactions_status', 'wallet_transactions', ['status'])
    op.create_index('ix_wallet_transactions_reservation_id', 'wallet_transactions', ['reservation_id'])
    op.create_index('ix_wallet_transactions_created_at', 'wallet_transactions', ['created_at'])

    op.create_table(
        'outbox_messages',
        sa.Column('id', sa.String(length=64), nullable=False, comment='消息ID'),
        sa.Column('topic', sa.String(length=100), nullable=False, comment='主题'),
        sa.Column('payload', sa.JSON(), nullable=False, comment='消息体'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending', comment='状态: pending/sent/dead'),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0', comment='已尝试次数'),
        sa.Column('last_error', sa.Text(), nullable=True, comment='最近一次错误'),
        sa.Column('next_attempt_at', sa.DateTime(timezone=True), nullable=False, comment='下次投递时间'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True, comment='投递成功时间'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_outbox_messages_status_next', 'outbox_messages', ['status', 'next_attempt_at'])


def downgrade() -> None:
    op.drop_index('ix_outbox_messages_status_next', table_name='outbox_messages')
    op.drop_table('outbox_messages')
    for name in (
        'ix_wallet_transactions_created_at',
        'ix_wallet_transactions_reservation_id',
        'ix_wallet_transactions_status',
        'ix_wallet_transactions_to_user_id',
        'ix_wallet_transactions_from_user_id',
    ):
        op.drop_index(name, table_name='wallet_transactions')
    op.drop_table('wallet_transactions')
    op.drop_table('wallets')
    for name in (
        'ix_reservations_cook_created',
        'ix_reservations_customer_created',
        'ix_reservations_status',
        'ix_reservations_cook_id',
        'ix_reservations_customer_id',
        'ix_reservations_meal_id',
    ):
        op.drop_index(name, table_name='reservations')
    op.drop_table('reservations')
    op.drop_index('ix_meals_cook_id', table_name='meals')
    op.drop_table('meals')
    op.drop_table('user_profiles')
