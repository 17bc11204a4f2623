"""SQLAlchemy table mappings.

Column names equal the entity field names; enum columns store the enum
value. Identifiers are UUID strings so the same models work on PostgreSQL
and on SQLite in tests.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all database models."""


def _id_column():
    return Column(String(36), primary_key=True)


def _timestamp(nullable: bool = False, index: bool = False):
    return Column(DateTime(timezone=True), nullable=nullable, index=index)


class PlatformModel(Base):
    __tablename__ = "platforms"

    id = _id_column()
    name = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False)
    balance = Column(Float, nullable=False, default=0)
    currency = Column(String(10), nullable=False, default="BRL")
    notes = Column(Text)
    created_at = _timestamp(index=True)
    updated_at = _timestamp()


class ToolModel(Base):
    __tablename__ = "tools"

    id = _id_column()
    name = Column(String(255), nullable=False)
    category = Column(String(20), nullable=False)
    monthly_value = Column(Float, nullable=False, default=0)
    currency = Column(String(10), nullable=False, default="BRL")
    due_date = Column(Date, nullable=False, index=True)
    status = Column(String(20), nullable=False, default="active")
    payment_method = Column(String(100))
    notes = Column(Text)
    created_at = _timestamp()
    updated_at = _timestamp()


class CollaboratorModel(Base):
    __tablename__ = "collaborators"

    id = _id_column()
    name = Column(String(255), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    role = Column(String(255), nullable=False)
    monthly_value = Column(Float, nullable=False, default=0)
    payment_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default="active")
    notes = Column(Text)
    created_at = _timestamp()
    updated_at = _timestamp()


class AdPerformanceModel(Base):
    __tablename__ = "ad_performance"

    id = _id_column()
    platform = Column(String(20), nullable=False)
    date = Column(Date, nullable=False, index=True)
    investment = Column(Float, nullable=False, default=0)
    revenue = Column(Float, nullable=False, default=0)
    sales = Column(Integer, nullable=False, default=0)
    roas = Column(Float)
    cpa = Column(Float)
    manager = Column(String(255))
    notes = Column(Text)
    created_at = _timestamp()
    updated_at = _timestamp()


class AdCampaignModel(Base):
    __tablename__ = "ad_campaigns"

    id = _id_column()
    ad_performance_id = Column(
        String(36),
        ForeignKey("ad_performance.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    campaign_name = Column(Text, nullable=False)
    status = Column(String(100))
    budget = Column(String(100))
    sales = Column(Integer, nullable=False, default=0)
    cpa = Column(Float, nullable=False, default=0)
    spend = Column(Float, nullable=False, default=0)
    revenue = Column(Float, nullable=False, default=0)
    profit = Column(Float, nullable=False, default=0)
    roas = Column(Float, nullable=False, default=0)
    margin = Column(String(100))
    impressions = Column(Integer, nullable=False, default=0)
    clicks = Column(Integer, nullable=False, default=0)
    ctr = Column(String(100))
    cpc = Column(Float, nullable=False, default=0)
    cpm = Column(Float, nullable=False, default=0)
    hook = Column(String(100))
    frequency = Column(String(100))
    conv_checkout = Column(String(100))
    conv_body = Column(String(100))
    rejected_sales = Column(Integer, nullable=False, default=0)
    ic = Column(Integer, nullable=False, default=0)
    cpi = Column(Float, nullable=False, default=0)
    created_at = _timestamp()


class WithdrawalModel(Base):
    __tablename__ = "withdrawals"

    id = _id_column()
    amount = Column(Float, nullable=False)
    date = Column(Date, nullable=False, index=True)
    reason = Column(Text, nullable=False)
    destination = Column(String(255), nullable=False)
    notes = Column(Text)
    created_at = _timestamp()
    updated_at = _timestamp()


class TaxModel(Base):
    __tablename__ = "taxes"

    id = _id_column()
    description = Column(Text, nullable=False)
    amount = Column(Float, nullable=False)
    tax_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    paid = Column(Boolean, nullable=False, default=False)
    paid_at = _timestamp(nullable=True)
    receipt_url = Column(Text)
    notes = Column(Text)
    created_at = _timestamp()
    updated_at = _timestamp()


class VariableExpenseModel(Base):
    __tablename__ = "variable_expenses"

    id = _id_column()
    description = Column(Text, nullable=False)
    amount = Column(Float, nullable=False)
    category = Column(String(100), nullable=False)
    date = Column(Date, nullable=False, index=True)
    payment_method = Column(String(100))
    notes = Column(Text)
    is_reimbursement = Column(Boolean, nullable=False, default=False)
    receipt_url = Column(Text)
    reimbursement_status = Column(String(20))
    created_at = _timestamp()
    updated_at = _timestamp()


class AllowedUserModel(Base):
    __tablename__ = "allowed_users"

    id = _id_column()
    email = Column(String(255), nullable=False, unique=True, index=True)
    role = Column(String(20), nullable=False, default="viewer")
    active = Column(Boolean, nullable=False, default=True)
    created_by = Column(String(36))
    created_at = _timestamp()


class UserAccountModel(Base):
    __tablename__ = "user_accounts"

    id = _id_column()
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = _timestamp()
    updated_at = _timestamp()


class MFAFactorModel(Base):
    __tablename__ = "mfa_factors"

    id = _id_column()
    user_id = Column(
        String(36),
        ForeignKey("user_accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    secret = Column(String(64), nullable=False)
    friendly_name = Column(String(255))
    status = Column(String(20), nullable=False, default="unverified")
    created_at = _timestamp()


class AuditLogModel(Base):
    __tablename__ = "audit_logs"

    id = _id_column()
    action = Column(String(20), nullable=False)
    entity_type = Column(String(50), nullable=False, index=True)
    entity_id = Column(String(36), nullable=False)
    entity_name = Column(Text)
    old_values = Column(JSON)
    new_values = Column(JSON)
    user_id = Column(String(36))
    user_name = Column(String(255), nullable=False)
    created_at = _timestamp(index=True)


class LoginAuditModel(Base):
    __tablename__ = "login_audit"

    id = _id_column()
    email = Column(String(255), nullable=False, index=True)
    success = Column(Boolean, nullable=False)
    reason = Column(String(50))
    ip_address = Column(String(45))
    user_agent = Column(Text)
    created_at = _timestamp(index=True)


class DismissedAlertModel(Base):
    __tablename__ = "dismissed_alerts"

    id = _id_column()
    alert_key = Column(String(255), nullable=False, unique=True)
    dismissed_by = Column(String(36))
    dismissed_at = _timestamp()
    created_at = _timestamp()
