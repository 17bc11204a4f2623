"""Create finance record tables

Revision ID: 001_create_finance_tables
Revises: None
Create Date: 2026-10-18 09:00:00.000000

Initial migration creating the operational finance tables:
- platforms, tools, collaborators (fixed costs and cash)
- ad_performance with its ad_campaigns lines
- withdrawals, taxes, variable_expenses
- CHECK constraints mirroring the entity invariants
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_create_finance_tables'
down_revision = None
branch_labels = None
depends_on = None


def _id():
    return sa.Column('id', sa.String(36), primary_key=True, nullable=False,
                     comment='UUID generated by the application')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP'),
                  comment='Creation time (UTC)'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP'),
                  comment='Last change time (UTC)'),
    ]


def upgrade() -> None:
    """Create finance tables."""

    op.create_table(
        'platforms',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('type', sa.String(20), nullable=False,
                  comment='bank, gateway, exchange or digital'),
        sa.Column('balance', sa.Float, nullable=False, server_default='0'),
        sa.Column('currency', sa.String(10), nullable=False, server_default='BRL',
                  comment='Balances outside BRL are converted at the configured rate'),
        sa.Column('notes', sa.Text),
        *_timestamps(),
        sa.CheckConstraint("type IN ('bank', 'gateway', 'exchange', 'digital')",
                           name='ck_platforms_type'),
        sa.CheckConstraint('balance >= 0', name='ck_platforms_balance_non_negative'),
    )
    op.create_index('ix_platforms_created_at', 'platforms', ['created_at'])

    op.create_table(
        'tools',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('category', sa.String(20), nullable=False),
        sa.Column('monthly_value', sa.Float, nullable=False, server_default='0'),
        sa.Column('currency', sa.String(10), nullable=False, server_default='BRL'),
        sa.Column('due_date', sa.Date, nullable=False,
                  comment='Next renewal date; alerts fire three days ahead'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('payment_method', sa.String(100)),
        sa.Column('notes', sa.Text),
        *_timestamps(),
        sa.CheckConstraint("category IN ('ads', 'infra', 'design', 'ai', 'crm', 'other')",
                           name='ck_tools_category'),
        sa.CheckConstraint("status IN ('active', 'cancelled')", name='ck_tools_status'),
        sa.CheckConstraint('monthly_value >= 0', name='ck_tools_monthly_value_non_negative'),
    )
    op.create_index('ix_tools_due_date', 'tools', ['due_date'])

    op.create_table(
        'collaborators',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('role', sa.String(255), nullable=False),
        sa.Column('monthly_value', sa.Float, nullable=False, server_default='0'),
        sa.Column('payment_date', sa.Date, nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('notes', sa.Text),
        *_timestamps(),
        sa.CheckConstraint("type IN ('freelancer', 'pj', 'fixed')", name='ck_collaborators_type'),
        sa.CheckConstraint("status IN ('active', 'paused', 'ended')", name='ck_collaborators_status'),
        sa.CheckConstraint('monthly_value >= 0', name='ck_collaborators_monthly_value_non_negative'),
    )
    op.create_index('ix_collaborators_name', 'collaborators', ['name'])

    op.create_table(
        'ad_performance',
        _id(),
        sa.Column('platform', sa.String(20), nullable=False),
        sa.Column('date', sa.Date, nullable=False),
        sa.Column('investment', sa.Float, nullable=False, server_default='0'),
        sa.Column('revenue', sa.Float, nullable=False, server_default='0'),
        sa.Column('sales', sa.Integer, nullable=False, server_default='0'),
        sa.Column('roas', sa.Float, comment='revenue / investment, 0 without spend'),
        sa.Column('cpa', sa.Float),
        sa.Column('manager', sa.String(255)),
        sa.Column('notes', sa.Text),
        *_timestamps(),
        sa.CheckConstraint("platform IN ('meta', 'google', 'twitter', 'tiktok', 'other')",
                           name='ck_ad_performance_platform'),
        sa.CheckConstraint('investment >= 0 AND revenue >= 0 AND sales >= 0',
                           name='ck_ad_performance_non_negative'),
    )
    op.create_index('ix_ad_performance_date', 'ad_performance', ['date'])

    op.create_table(
        'ad_campaigns',
        _id(),
        sa.Column('ad_performance_id', sa.String(36),
                  sa.ForeignKey('ad_performance.id', ondelete='CASCADE'), nullable=False,
                  comment='Parent record created by the same import'),
        sa.Column('campaign_name', sa.Text, nullable=False),
        sa.Column('status', sa.String(100)),
        sa.Column('budget', sa.String(100)),
        sa.Column('sales', sa.Integer, nullable=False, server_default='0'),
        sa.Column('cpa', sa.Float, nullable=False, server_default='0'),
        sa.Column('spend', sa.Float, nullable=False, server_default='0'),
        sa.Column('revenue', sa.Float, nullable=False, server_default='0'),
        sa.Column('profit', sa.Float, nullable=False, server_default='0'),
        sa.Column('roas', sa.Float, nullable=False, server_default='0'),
        sa.Column('margin', sa.String(100)),
        sa.Column('impressions', sa.Integer, nullable=False, server_default='0'),
        sa.Column('clicks', sa.Integer, nullable=False, server_default='0'),
        sa.Column('ctr', sa.String(100)),
        sa.Column('cpc', sa.Float, nullable=False, server_default='0'),
        sa.Column('cpm', sa.Float, nullable=False, server_default='0'),
        sa.Column('hook', sa.String(100)),
        sa.Column('frequency', sa.String(100)),
        sa.Column('conv_checkout', sa.String(100)),
        sa.Column('conv_body', sa.String(100)),
        sa.Column('rejected_sales', sa.Integer, nullable=False, server_default='0'),
        sa.Column('ic', sa.Integer, nullable=False, server_default='0'),
        sa.Column('cpi', sa.Float, nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_ad_campaigns_ad_performance_id', 'ad_campaigns', ['ad_performance_id'])

    op.create_table(
        'withdrawals',
        _id(),
        sa.Column('amount', sa.Float, nullable=False),
        sa.Column('date', sa.Date, nullable=False),
        sa.Column('reason', sa.Text, nullable=False),
        sa.Column('destination', sa.String(255), nullable=False),
        sa.Column('notes', sa.Text),
        *_timestamps(),
        sa.CheckConstraint('amount > 0', name='ck_withdrawals_amount_positive'),
    )
    op.create_index('ix_withdrawals_date', 'withdrawals', ['date'])

    op.create_table(
        'taxes',
        _id(),
        sa.Column('description', sa.Text, nullable=False),
        sa.Column('amount', sa.Float, nullable=False),
        sa.Column('tax_date', sa.Date, nullable=False),
        sa.Column('due_date', sa.Date, nullable=False),
        sa.Column('paid', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('paid_at', sa.DateTime(timezone=True),
                  comment='Set when paid, cleared when reverted to pending'),
        sa.Column('receipt_url', sa.Text, comment='URL or JSON array of URLs'),
        sa.Column('notes', sa.Text),
        *_timestamps(),
        sa.CheckConstraint('amount >= 0', name='ck_taxes_amount_non_negative'),
    )
    op.create_index('ix_taxes_due_date', 'taxes', ['due_date'])

    op.create_table(
        'variable_expenses',
        _id(),
        sa.Column('description', sa.Text, nullable=False),
        sa.Column('amount', sa.Float, nullable=False),
        sa.Column('category', sa.String(100), nullable=False),
        sa.Column('date', sa.Date, nullable=False),
        sa.Column('payment_method', sa.String(100)),
        sa.Column('notes', sa.Text),
        sa.Column('is_reimbursement', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('receipt_url', sa.Text),
        sa.Column('reimbursement_status', sa.String(20),
                  comment='pending or paid; only meaningful for reimbursements'),
        *_timestamps(),
        sa.CheckConstraint('amount > 0', name='ck_variable_expenses_amount_positive'),
        sa.CheckConstraint("reimbursement_status IS NULL OR reimbursement_status IN ('pending', 'paid')",
                           name='ck_variable_expenses_reimbursement_status'),
    )
    op.create_index('ix_variable_expenses_date', 'variable_expenses', ['date'])


def downgrade() -> None:
    """Drop finance tables."""
    op.drop_table('variable_expenses')
    op.drop_table('taxes')
    op.drop_table('withdrawals')
    op.drop_table('ad_campaigns')
    op.drop_table('ad_performance')
    op.drop_table('collaborators')
    op.drop_table('tools')
    op.drop_table('platforms')
