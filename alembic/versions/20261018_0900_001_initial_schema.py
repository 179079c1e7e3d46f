"""Initial schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000

Tables created:
- users: Subscribers and admins
- available_tickers: Ticker registry (soft-disabled, never deleted)
- user_subscriptions: Tickers a user receives signals for
- alert_signals: Buy/sell signals from TradingView or admins
- notification_queue: Pending and processed notifications
- notification_logs: One row per delivery attempt
- admin_activity_log: Audit trail of admin mutations
"""
from alembic import op
import sqlalchemy as sa
import logging

logger = logging.getLogger('alembic.runtime.migration')

# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create initial schema."""
    logger.info("Step 1/7: Creating users table...")
    op.create_table(
        'users',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('role', sa.String(), nullable=False, server_default='user'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('subscription_tier', sa.String(), nullable=False, server_default='free'),
        sa.Column('telegram_chat_id', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    logger.info("Step 2/7: Creating available_tickers table...")
    op.create_table(
        'available_tickers',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('symbol', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=False),
        sa.Column('category', sa.String(), nullable=False, server_default='other'),
        sa.Column('is_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_available_tickers_symbol', 'available_tickers', ['symbol'], unique=True)
    op.create_index('ix_available_tickers_is_enabled', 'available_tickers', ['is_enabled'])

    logger.info("Step 3/7: Creating user_subscriptions table...")
    op.create_table(
        'user_subscriptions',
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('ticker_symbol', sa.String(), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('subscribed_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['ticker_symbol'], ['available_tickers.symbol']),
        sa.PrimaryKeyConstraint('user_id', 'ticker_symbol'),
        sa.UniqueConstraint('user_id', 'ticker_symbol', name='uq_user_ticker'),
    )
    op.create_index('ix_user_subscriptions_ticker_symbol', 'user_subscriptions', ['ticker_symbol'])

    logger.info("Step 4/7: Creating alert_signals table...")
    op.create_table(
        'alert_signals',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('ticker', sa.String(), nullable=False),
        sa.Column('signal_type', sa.String(), nullable=False),
        sa.Column('price', sa.Numeric(20, 8), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('timeframe', sa.String(), nullable=True),
        sa.Column('source', sa.String(), nullable=False, server_default='webhook'),
        sa.Column('note', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_alert_signals_ticker', 'alert_signals', ['ticker'])
    op.create_index('ix_alert_signals_timestamp', 'alert_signals', ['timestamp'])

    logger.info("Step 5/7: Creating notification_queue table...")
    op.create_table(
        'notification_queue',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('signal_id', sa.String(), nullable=True),
        sa.Column('channel', sa.String(), nullable=False),
        sa.Column('recipient', sa.String(), nullable=False),
        sa.Column('subject', sa.String(), nullable=True),
        sa.Column('message', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='pending'),
        sa.Column('priority', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('max_retries', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('current_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_attempt_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('next_retry_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('scheduled_for', sa.DateTime(timezone=True), nullable=False),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_error', sa.String(), nullable=True),
        sa.Column('provider_message_id', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['signal_id'], ['alert_signals.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_notification_queue_user_id', 'notification_queue', ['user_id'])
    op.create_index('ix_notification_queue_status', 'notification_queue', ['status'])
    op.create_index('ix_notification_queue_scheduled_for', 'notification_queue', ['scheduled_for'])

    logger.info("Step 6/7: Creating notification_logs table...")
    op.create_table(
        'notification_logs',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('queue_id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('channel', sa.String(), nullable=False),
        sa.Column('recipient', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('provider', sa.String(), nullable=False),
        sa.Column('provider_message_id', sa.String(), nullable=True),
        sa.Column('processing_time_ms', sa.Integer(), nullable=True),
        sa.Column('error_message', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['queue_id'], ['notification_queue.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_notification_logs_queue_id', 'notification_logs', ['queue_id'])

    logger.info("Step 7/7: Creating admin_activity_log table...")
    op.create_table(
        'admin_activity_log',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('admin_id', sa.String(), nullable=False),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('target_table', sa.String(), nullable=True),
        sa.Column('target_id', sa.String(), nullable=True),
        sa.Column('notes', sa.String(), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['admin_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_admin_activity_log_admin_id', 'admin_activity_log', ['admin_id'])
    op.create_index('ix_admin_activity_log_timestamp', 'admin_activity_log', ['timestamp'])

    logger.info("✓ Initial schema created")


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('admin_activity_log')
    op.drop_table('notification_logs')
    op.drop_table('notification_queue')
    op.drop_table('alert_signals')
    op.drop_table('user_subscriptions')
    op.drop_table('available_tickers')
    op.drop_table('users')
