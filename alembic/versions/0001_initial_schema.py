"""initial minty schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

category_type = sa.Enum('income', 'expense', name='categorytype')
budget_type = sa.Enum('monthly', 'goal', 'event', 'savings', name='budgettype')
transaction_type = sa.Enum('income', 'expense', name='transactiontype')


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String, nullable=False),
        sa.Column('hashed_password', sa.String, nullable=False),
        sa.Column('is_active', sa.Boolean, nullable=False),
        sa.Column('is_superuser', sa.Boolean, nullable=False),
        sa.Column('is_verified', sa.Boolean, nullable=False),
        sa.Column('full_name', sa.String, nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'categories',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('type', category_type, nullable=False),
        sa.Column('color', sa.String(length=20), nullable=False),
        sa.Column('monthly_limit', sa.Float, nullable=False),
        sa.Column('alert_enabled', sa.Boolean, nullable=False),
        sa.Column('alert_threshold', sa.Integer, nullable=False),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_categories_user_id', 'categories', ['user_id'])

    op.create_table(
        'budgets',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('type', budget_type, nullable=False),
        sa.Column('total_amount', sa.Float, nullable=False),
        sa.Column('spent_amount', sa.Float, nullable=False, server_default='0'),
        sa.Column('start_date', sa.Date, nullable=False),
        sa.Column('end_date', sa.Date, nullable=False),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_budgets_user_id', 'budgets', ['user_id'])

    op.create_table(
        'transactions',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('amount', sa.Float, nullable=False),
        sa.Column('type', transaction_type, nullable=False),
        sa.Column('category_id', UUID(as_uuid=True), sa.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True),
        sa.Column('budget_id', UUID(as_uuid=True), sa.ForeignKey('budgets.id', ondelete='SET NULL'), nullable=True),
        sa.Column('transaction_date', sa.Date, nullable=False),
        sa.Column('notes', sa.Text, nullable=False, server_default=''),
        sa.Column('tags', sa.String, nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_transactions_user_id', 'transactions', ['user_id'])
    op.create_index('ix_transactions_budget_id', 'transactions', ['budget_id'])

    op.create_table(
        'notifications',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String, nullable=False),
        sa.Column('message', sa.String, nullable=False),
        sa.Column('type', sa.String, nullable=False),
        sa.Column('status', sa.String, nullable=False),
        sa.Column('budget_id', UUID(as_uuid=True), sa.ForeignKey('budgets.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_read', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])

    op.create_table(
        'profiles',
        sa.Column('id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('full_name', sa.String, nullable=True),
        sa.Column('avatar_url', sa.String, nullable=True),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='USD'),
        sa.Column('date_format', sa.String(length=20), nullable=False, server_default='MM/dd/yyyy'),
        sa.Column('language', sa.String(length=10), nullable=False, server_default='en'),
        sa.Column('theme', sa.String(length=10), nullable=False, server_default='system'),
        sa.Column('timezone', sa.String(length=64), nullable=False, server_default='UTC'),
        sa.Column('week_start_day', sa.Integer, nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )

    op.create_table(
        'notification_settings',
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('budget_alerts', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('transaction_reminders', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('weekly_reports', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('monthly_reports', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('email_notifications', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('push_notifications', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )


def downgrade():
    op.drop_table('notification_settings')
    op.drop_table('profiles')
    op.drop_table('notifications')
    op.drop_table('transactions')
    op.drop_table('budgets')
    op.drop_table('categories')
    op.drop_table('users')
    transaction_type.drop(op.get_bind(), checkfirst=True)
    budget_type.drop(op.get_bind(), checkfirst=True)
    category_type.drop(op.get_bind(), checkfirst=True)
