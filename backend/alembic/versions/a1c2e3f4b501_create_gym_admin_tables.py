"""create gym admin tables

Revision ID: a1c2e3f4b501
Revises:
Create Date: 2026-10-01 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1c2e3f4b501'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

USER_CATEGORIES = ('student', 'staff', 'public')
DURATION_TYPES = ('walk-in', 'monthly', 'semester', 'half-year', 'yearly')
SUBSCRIPTION_STATUSES = ('pending', 'active', 'expired', 'cancelled')
PAYMENT_STATUSES = ('pending', 'completed', 'failed', 'cancelled')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('university_id', sa.String(length=8), nullable=True, comment='大学ID (8桁, student/staffのみ)'),
        sa.Column('hall_of_residence', sa.String(length=100), nullable=True, comment='寮 (学生のみ)'),
        sa.Column('category', sa.Enum(*USER_CATEGORIES, name='user_category'), nullable=False,
                  comment='会員区分: student / staff / public'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('university_id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_category', 'users', ['category'])

    op.create_table(
        'subscription_plans',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False, comment='プラン名'),
        sa.Column('user_category', sa.Enum(*USER_CATEGORIES, name='plan_user_category'), nullable=False,
                  comment='対象会員区分'),
        sa.Column('duration_type', sa.Enum(*DURATION_TYPES, name='plan_duration_type'), nullable=False,
                  comment='期間種別'),
        sa.Column('price_amount', sa.Numeric(10, 2), nullable=False, comment='料金 (通貨の補助単位まで)'),
        sa.Column('duration_days', sa.Integer(), nullable=False, comment='有効日数'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_category', 'duration_type', name='uq_plan_category_duration'),
    )
    op.create_index('ix_subscription_plans_user_category', 'subscription_plans', ['user_category'])

    op.create_table(
        'user_subscriptions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('plan_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.Enum(*SUBSCRIPTION_STATUSES, name='subscription_status'), nullable=False),
        sa.Column('payment_status', sa.Enum(*PAYMENT_STATUSES, name='subscription_payment_status'), nullable=False),
        sa.Column('start_date', sa.DateTime(), nullable=True),
        sa.Column('end_date', sa.DateTime(), nullable=True),
        sa.Column('payment_reference', sa.String(length=64), nullable=True, comment='購読開始時の決済参照番号'),
        sa.Column('amount_paid', sa.Numeric(10, 2), nullable=True),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='GHS'),
        sa.Column('auto_renew', sa.Boolean(), nullable=False, server_default=sa.false(),
                  comment='自動更新 (現状ライフサイクルでは未使用)'),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['plan_id'], ['subscription_plans.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_subscriptions_user_id', 'user_subscriptions', ['user_id'])
    op.create_index('ix_user_subscriptions_plan_id', 'user_subscriptions', ['plan_id'])
    op.create_index('ix_user_subscriptions_status', 'user_subscriptions', ['status'])
    op.create_index('ix_user_subscriptions_end_date', 'user_subscriptions', ['end_date'])
    op.create_index('ix_user_subscriptions_payment_reference', 'user_subscriptions', ['payment_reference'])

    op.create_table(
        'payment_transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('subscription_id', sa.Integer(), nullable=False),
        sa.Column('payment_reference', sa.String(length=64), nullable=False, comment='システム採番の決済参照番号'),
        sa.Column('gateway_reference', sa.String(length=255), nullable=True, comment='決済代行側の参照番号'),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='GHS'),
        sa.Column('status', sa.Enum(*PAYMENT_STATUSES, name='payment_transaction_status'), nullable=False),
        sa.Column('payment_method', sa.String(length=50), nullable=True,
                  comment='cash / card / mobile_money / bank_transfer / gateway'),
        sa.Column('gateway_response', sa.JSON(), nullable=True, comment='決済応答・操作履歴 {events: [...]}'),
        sa.Column('paid_at', sa.DateTime(), nullable=True, comment='完了時のみ設定'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['subscription_id'], ['user_subscriptions.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('payment_reference'),
        sa.UniqueConstraint('gateway_reference'),
    )
    op.create_index('ix_payment_transactions_subscription_id', 'payment_transactions', ['subscription_id'])
    op.create_index('ix_payment_transactions_status', 'payment_transactions', ['status'])
    op.create_index('ix_payment_transactions_created_at', 'payment_transactions', ['created_at'])

    op.create_table(
        'system_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('level', sa.String(length=20), nullable=False, comment='INFO/WARNING/ERROR/CRITICAL'),
        sa.Column('event_type', sa.String(length=100), nullable=False, comment='イベント種別'),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('subscription_id', sa.Integer(), nullable=True),
        sa.Column('payment_id', sa.Integer(), nullable=True),
        sa.Column('actor', sa.String(length=255), nullable=True, comment='操作した管理者 (email)'),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('details', sa.JSON(), nullable=True, comment='詳細データ'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['subscription_id'], ['user_subscriptions.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['payment_id'], ['payment_transactions.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_system_logs_level', 'system_logs', ['level'])
    op.create_index('ix_system_logs_event_type', 'system_logs', ['event_type'])
    op.create_index('ix_system_logs_user_id', 'system_logs', ['user_id'])
    op.create_index('ix_system_logs_subscription_id', 'system_logs', ['subscription_id'])
    op.create_index('ix_system_logs_payment_id', 'system_logs', ['payment_id'])
    op.create_index('ix_system_logs_created_at', 'system_logs', ['created_at'])


def downgrade() -> None:
    op.drop_table('system_logs')
    op.drop_table('payment_transactions')
    op.drop_table('user_subscriptions')
    op.drop_table('subscription_plans')
    op.drop_table('users')
