"""Create access control and audit tables

Revision ID: 002_create_access_control
Revises: 001_create_finance_tables
Create Date: 2026-10-18 09:30:00.000000

Tables backing sign-in and the audit trails:
- allowed_users whitelist (role source of truth)
- user_accounts and mfa_factors (credentials, TOTP)
- audit_logs for data changes, login_audit for sign-in attempts
- dismissed_alerts for dashboard alert state
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '002_create_access_control'
down_revision = '001_create_finance_tables'
branch_labels = None
depends_on = None


def _created_at():
    return sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                     server_default=sa.text('CURRENT_TIMESTAMP'))


def upgrade() -> None:
    """Create access control and audit tables."""

    op.create_table(
        'allowed_users',
        sa.Column('id', sa.String(36), primary_key=True, nullable=False),
        sa.Column('email', sa.String(255), nullable=False,
                  comment='Stored lower-case and trimmed'),
        sa.Column('role', sa.String(20), nullable=False, server_default='viewer'),
        sa.Column('active', sa.Boolean, nullable=False, server_default=sa.true(),
                  comment='Inactive entries cannot sign in and lose open sessions'),
        sa.Column('created_by', sa.String(36)),
        _created_at(),
        sa.UniqueConstraint('email', name='uq_allowed_users_email'),
        sa.CheckConstraint("role IN ('admin', 'manager', 'viewer')", name='ck_allowed_users_role'),
    )

    op.create_table(
        'user_accounts',
        sa.Column('id', sa.String(36), primary_key=True, nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False, comment='bcrypt hash'),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.UniqueConstraint('email', name='uq_user_accounts_email'),
    )

    op.create_table(
        'mfa_factors',
        sa.Column('id', sa.String(36), primary_key=True, nullable=False),
        sa.Column('user_id', sa.String(36),
                  sa.ForeignKey('user_accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('secret', sa.String(64), nullable=False, comment='Base32 TOTP secret'),
        sa.Column('friendly_name', sa.String(255)),
        sa.Column('status', sa.String(20), nullable=False, server_default='unverified'),
        _created_at(),
        sa.CheckConstraint("status IN ('unverified', 'verified')", name='ck_mfa_factors_status'),
    )
    op.create_index('ix_mfa_factors_user_id', 'mfa_factors', ['user_id'])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.String(36), primary_key=True, nullable=False),
        sa.Column('action', sa.String(20), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.String(36), nullable=False),
        sa.Column('entity_name', sa.Text),
        sa.Column('old_values', sa.JSON, comment='Snapshot before the change'),
        sa.Column('new_values', sa.JSON, comment='Snapshot after the change'),
        sa.Column('user_id', sa.String(36)),
        sa.Column('user_name', sa.String(255), nullable=False),
        _created_at(),
        sa.CheckConstraint("action IN ('create', 'update', 'delete')", name='ck_audit_logs_action'),
    )
    op.create_index('ix_audit_logs_entity_type', 'audit_logs', ['entity_type'])
    op.create_index('ix_audit_logs_created_at', 'audit_logs', ['created_at'])

    op.create_table(
        'login_audit',
        sa.Column('id', sa.String(36), primary_key=True, nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('success', sa.Boolean, nullable=False),
        sa.Column('reason', sa.String(50),
                  comment='success, success_mfa, auth_failed, mfa_failed, rate_limited, ...'),
        sa.Column('ip_address', sa.String(45)),
        sa.Column('user_agent', sa.Text),
        _created_at(),
    )
    # Throttle lookups filter by e-mail inside a time window
    op.create_index('ix_login_audit_email_created_at', 'login_audit', ['email', 'created_at'])

    op.create_table(
        'dismissed_alerts',
        sa.Column('id', sa.String(36), primary_key=True, nullable=False),
        sa.Column('alert_key', sa.String(255), nullable=False),
        sa.Column('dismissed_by', sa.String(36)),
        sa.Column('dismissed_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        _created_at(),
        sa.UniqueConstraint('alert_key', name='uq_dismissed_alerts_alert_key'),
    )


def downgrade() -> None:
    """Drop access control and audit tables."""
    op.drop_table('dismissed_alerts')
    op.drop_table('login_audit')
    op.drop_table('audit_logs')
    op.drop_table('mfa_factors')
    op.drop_table('user_accounts')
    op.drop_table('allowed_users')
