"""Initial MoneyGoal schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id():
    return sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _user_fk():
    return sa.Column(
        'user_id', postgresql.UUID(as_uuid=True),
        sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False,
    )


def _created_date():
    return sa.Column('created_date', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()'))


def upgrade() -> None:
    """Upgrade schema."""
    # 1) Identity
    op.create_table(
        'users',
        _id(),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('password_hash', sa.String(), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='user'),
        sa.Column('phone_number', sa.String(length=32), nullable=True),
        sa.Column('phone_verified', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True, server_default=sa.text('now()')),
        sa.Column('last_signed_in', sa.DateTime(timezone=True), nullable=True, server_default=sa.text('now()')),
        sa.UniqueConstraint('phone_number', name='uq_users_phone_number'),
        sa.CheckConstraint("role in ('user','admin')", name='ck_users_role'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # 2) Goals and categories
    op.create_table(
        'goals',
        _id(),
        _user_fk(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('target_amount', sa.Integer(), nullable=False),
        sa.Column('current_amount', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        _created_date(),
        sa.Column('archived_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_date', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("status in ('active','archived')", name='ck_goals_status'),
    )
    op.create_index('idx_goals_user_status', 'goals', ['user_id', 'status'])

    op.create_table(
        'categories',
        _id(),
        _user_fk(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('emoji', sa.String(length=10), nullable=False),
        sa.Column('color', sa.String(length=7), nullable=False),
        sa.Column('keywords', postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        _created_date(),
    )
    op.create_index('idx_categories_user_id', 'categories', ['user_id'])

    op.create_table(
        'category_learning',
        _id(),
        _user_fk(),
        sa.Column('keyword', sa.String(length=255), nullable=False),
        sa.Column(
            'category_id', postgresql.UUID(as_uuid=True),
            sa.ForeignKey('categories.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('confidence', sa.Float(), nullable=False, server_default='0.5'),
        sa.Column('usage_count', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('last_used', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        _created_date(),
    )
    op.create_index('idx_category_learning_user_keyword', 'category_learning', ['user_id', 'keyword'], unique=True)

    # 3) Ledger
    op.create_table(
        'transactions',
        _id(),
        _user_fk(),
        sa.Column(
            'goal_id', postgresql.UUID(as_uuid=True),
            sa.ForeignKey('goals.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column(
            'category_id', postgresql.UUID(as_uuid=True),
            sa.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True,
        ),
        sa.Column('type', sa.String(length=10), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(length=255), nullable=False),
        sa.Column('source', sa.String(length=20), nullable=False, server_default='manual'),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='USD'),
        sa.Column('exchange_rate', sa.String(length=32), nullable=True),
        _created_date(),
        sa.CheckConstraint("type in ('income','expense')", name='ck_transactions_type'),
    )
    op.create_index('idx_transactions_user_created', 'transactions', ['user_id', 'created_date'])
    op.create_index('idx_transactions_goal_id', 'transactions', ['goal_id'])

    # 4) Preferences
    op.create_table(
        'user_settings',
        _id(),
        _user_fk(),
        sa.Column('language', sa.String(length=10), nullable=False, server_default='en'),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='USD'),
        sa.Column('number_format', sa.String(length=10), nullable=False, server_default='pt-BR'),
        sa.Column('theme', sa.String(length=10), nullable=False, server_default='dark'),
        sa.Column('monthly_saving_target', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('has_unread_archived', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('wise_api_token', sa.Text(), nullable=True),
        sa.Column('wise_webhook_secret', sa.Text(), nullable=True),
        sa.Column('chat_memory', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True, server_default=sa.text('now()')),
        sa.UniqueConstraint('user_id', name='uq_user_settings_user_id'),
    )

    # 5) Planning
    op.create_table(
        'recurring_expenses',
        _id(),
        _user_fk(),
        sa.Column(
            'category_id', postgresql.UUID(as_uuid=True),
            sa.ForeignKey('categories.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='USD'),
        sa.Column('frequency', sa.String(length=10), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('day_of_month', sa.Integer(), nullable=True),
        _created_date(),
        sa.CheckConstraint("frequency in ('daily','weekly','monthly','yearly')", name='ck_recurring_frequency'),
    )
    op.create_index('idx_recurring_user_active', 'recurring_expenses', ['user_id', 'is_active'])

    op.create_table(
        'budgets',
        _id(),
        _user_fk(),
        sa.Column(
            'category_id', postgresql.UUID(as_uuid=True),
            sa.ForeignKey('categories.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('period', sa.String(length=10), nullable=False),
        sa.Column('limit_amount', sa.Integer(), nullable=False),
        sa.Column('alert_threshold', sa.Integer(), nullable=False, server_default='75'),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('current_spent', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        _created_date(),
        sa.CheckConstraint("period in ('weekly','monthly','yearly')", name='ck_budgets_period'),
    )
    op.create_index('idx_budgets_user_category_period', 'budgets', ['user_id', 'category_id', 'period'])

    op.create_table(
        'bill_reminders',
        _id(),
        _user_fk(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='USD'),
        sa.Column('due_day', sa.Integer(), nullable=False),
        sa.Column('frequency', sa.String(length=10), nullable=False, server_default='monthly'),
        sa.Column(
            'category_id', postgresql.UUID(as_uuid=True),
            sa.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True,
        ),
        sa.Column('reminder_days_before', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('auto_create_transaction', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('next_due_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(length=10), nullable=False, server_default='pending'),
        sa.Column('last_paid_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('notes', sa.Text(), nullable=True),
        _created_date(),
        sa.CheckConstraint("status in ('pending','paid','overdue')", name='ck_bill_reminders_status'),
        sa.CheckConstraint("frequency in ('weekly','monthly','yearly')", name='ck_bill_reminders_frequency'),
    )
    op.create_index('idx_bill_reminders_user_due', 'bill_reminders', ['user_id', 'next_due_date'])

    # 6) Advisor
    op.create_table(
        'chat_messages',
        _id(),
        _user_fk(),
        sa.Column('role', sa.String(length=10), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('conversation_flow', sa.String(length=50), nullable=True),
        sa.Column('flow_step', sa.Integer(), nullable=True),
        _created_date(),
        sa.CheckConstraint("role in ('user','assistant','system')", name='ck_chat_messages_role'),
    )
    op.create_index('idx_chat_messages_user_created', 'chat_messages', ['user_id', 'created_date'])

    op.create_table(
        'ai_insights',
        _id(),
        _user_fk(),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('data', postgresql.JSONB(), nullable=True),
        sa.Column('priority', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        _created_date(),
        sa.CheckConstraint("type in ('forecast','alert','achievement','tip')", name='ck_ai_insights_type'),
    )
    op.create_index('idx_ai_insights_user_priority', 'ai_insights', ['user_id', 'priority'])

    # 7) Bank links
    op.create_table(
        'bank_accounts',
        _id(),
        _user_fk(),
        sa.Column('plaid_item_id', sa.String(length=255), nullable=False),
        sa.Column('plaid_access_token', sa.Text(), nullable=False),
        sa.Column('institution_name', sa.String(length=255), nullable=True),
        sa.Column('institution_id', sa.String(length=255), nullable=True),
        sa.Column('account_ids', postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('last_sync', sa.DateTime(timezone=True), nullable=True),
        _created_date(),
        sa.UniqueConstraint('plaid_item_id', name='uq_bank_accounts_plaid_item_id'),
    )
    op.create_index('idx_bank_accounts_user_active', 'bank_accounts', ['user_id', 'is_active'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_bank_accounts_user_active', table_name='bank_accounts')
    op.drop_table('bank_accounts')
    op.drop_index('idx_ai_insights_user_priority', table_name='ai_insights')
    op.drop_table('ai_insights')
    op.drop_index('idx_chat_messages_user_created', table_name='chat_messages')
    op.drop_table('chat_messages')
    op.drop_index('idx_bill_reminders_user_due', table_name='bill_reminders')
    op.drop_table('bill_reminders')
    op.drop_index('idx_budgets_user_category_period', table_name='budgets')
    op.drop_table('budgets')
    op.drop_index('idx_recurring_user_active', table_name='recurring_expenses')
    op.drop_table('recurring_expenses')
    op.drop_table('user_settings')
    op.drop_index('idx_transactions_goal_id', table_name='transactions')
    op.drop_index('idx_transactions_user_created', table_name='transactions')
    op.drop_table('transactions')
    op.drop_index('idx_category_learning_user_keyword', table_name='category_learning')
    op.drop_table('category_learning')
    op.drop_index('idx_categories_user_id', table_name='categories')
    op.drop_table('categories')
    op.drop_index('idx_goals_user_status', table_name='goals')
    op.drop_table('goals')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
