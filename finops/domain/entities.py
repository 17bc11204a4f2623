"""Finance records tracked by FinOps.

Every entity is an immutable dataclass whose field names match the
persisted columns one to one. Changes produce a new instance through
``dataclasses.replace`` so validation in ``__post_init__`` runs again.
"""

from dataclasses import asdict, dataclass, field, fields
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from finops.domain.errors import InvalidValueObjectError
from finops.domain.session import AppRole


def new_id() -> str:
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(UTC)


class PlatformType(str, Enum):
    BANK = "bank"
    GATEWAY = "gateway"
    EXCHANGE = "exchange"
    DIGITAL = "digital"


class ToolCategory(str, Enum):
    ADS = "ads"
    INFRA = "infra"
    DESIGN = "design"
    AI = "ai"
    CRM = "crm"
    OTHER = "other"


class ToolStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"


class CollaboratorType(str, Enum):
    FREELANCER = "freelancer"
    PJ = "pj"
    FIXED = "fixed"


class CollaboratorStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    ENDED = "ended"


class AdPlatform(str, Enum):
    META = "meta"
    GOOGLE = "google"
    TWITTER = "twitter"
    TIKTOK = "tiktok"
    OTHER = "other"


class ReimbursementStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class AuditAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class MFAFactorStatus(str, Enum):
    UNVERIFIED = "unverified"
    VERIFIED = "verified"


def _require_non_negative(entity: str, name: str, value: float | int | None) -> None:
    if value is not None and value < 0:
        raise InvalidValueObjectError(entity, f"{name} must not be negative")


def _require_positive(entity: str, name: str, value: float) -> None:
    if value <= 0:
        raise InvalidValueObjectError(entity, f"{name} must be greater than zero")


def _require_text(entity: str, name: str, value: str) -> None:
    if not value or not value.strip():
        raise InvalidValueObjectError(entity, f"{name} is required")


@dataclass(frozen=True)
class Platform:
    """Cash platform (bank, gateway, exchange, digital wallet) holding a balance."""

    name: str
    type: PlatformType
    balance: float = 0.0
    currency: str = "BRL"
    notes: str | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        _require_text("Platform", "name", self.name)
        object.__setattr__(self, "type", PlatformType(self.type))
        _require_non_negative("Platform", "balance", self.balance)


@dataclass(frozen=True)
class Tool:
    """Recurring software subscription."""

    name: str
    category: ToolCategory
    monthly_value: float
    due_date: date
    currency: str = "BRL"
    status: ToolStatus = ToolStatus.ACTIVE
    payment_method: str | None = None
    notes: str | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        _require_text("Tool", "name", self.name)
        object.__setattr__(self, "category", ToolCategory(self.category))
        object.__setattr__(self, "status", ToolStatus(self.status))
        _require_non_negative("Tool", "monthly_value", self.monthly_value)


@dataclass(frozen=True)
class Collaborator:
    """Team member paid monthly."""

    name: str
    type: CollaboratorType
    role: str
    monthly_value: float
    payment_date: date
    status: CollaboratorStatus = CollaboratorStatus.ACTIVE
    notes: str | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        _require_text("Collaborator", "name", self.name)
        object.__setattr__(self, "type", CollaboratorType(self.type))
        object.__setattr__(self, "status", CollaboratorStatus(self.status))
        _require_non_negative("Collaborator", "monthly_value", self.monthly_value)


@dataclass(frozen=True)
class AdPerformance:
    """Daily paid-ads result for one platform.

    ``roas`` is always derived from revenue and investment.
    """

    platform: AdPlatform
    date: date
    investment: float = 0.0
    revenue: float = 0.0
    sales: int = 0
    cpa: float | None = None
    manager: str | None = None
    notes: str | None = None
    roas: float | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        object.__setattr__(self, "platform", AdPlatform(self.platform))
        _require_non_negative("AdPerformance", "investment", self.investment)
        _require_non_negative("AdPerformance", "revenue", self.revenue)
        _require_non_negative("AdPerformance", "sales", self.sales)
        object.__setattr__(self, "roas", compute_roas(self.revenue, self.investment))


@dataclass(frozen=True)
class AdCampaign:
    """One campaign line belonging to an AdPerformance record."""

    ad_performance_id: str
    campaign_name: str
    status: str | None = None
    budget: str | None = None
    sales: int = 0
    cpa: float = 0.0
    spend: float = 0.0
    revenue: float = 0.0
    profit: float = 0.0
    roas: float = 0.0
    margin: str | None = None
    impressions: int = 0
    clicks: int = 0
    ctr: str | None = None
    cpc: float = 0.0
    cpm: float = 0.0
    hook: str | None = None
    frequency: str | None = None
    conv_checkout: str | None = None
    conv_body: str | None = None
    rejected_sales: int = 0
    ic: int = 0
    cpi: float = 0.0
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class Withdrawal:
    amount: float
    date: date
    reason: str
    destination: str
    notes: str | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        _require_positive("Withdrawal", "amount", self.amount)


@dataclass(frozen=True)
class Tax:
    description: str
    amount: float
    tax_date: date
    due_date: date
    paid: bool = False
    paid_at: datetime | None = None
    receipt_url: str | None = None
    notes: str | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        _require_text("Tax", "description", self.description)
        _require_non_negative("Tax", "amount", self.amount)
        if not self.paid:
            object.__setattr__(self, "paid_at", None)


@dataclass(frozen=True)
class VariableExpense:
    description: str
    amount: float
    category: str
    date: date
    payment_method: str | None = None
    notes: str | None = None
    is_reimbursement: bool = False
    receipt_url: str | None = None
    reimbursement_status: ReimbursementStatus | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        _require_text("VariableExpense", "description", self.description)
        _require_positive("VariableExpense", "amount", self.amount)
        status = self.reimbursement_status
        if status is not None:
            status = ReimbursementStatus(status)
        elif self.is_reimbursement:
            status = ReimbursementStatus.PENDING
        object.__setattr__(self, "reimbursement_status", status)


@dataclass(frozen=True)
class AllowedUser:
    """Whitelist entry: only these e-mails may sign in."""

    email: str
    role: AppRole = AppRole.VIEWER
    active: bool = True
    created_by: str | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        object.__setattr__(self, "email", self.email.strip().lower())
        object.__setattr__(self, "role", AppRole(self.role))


@dataclass(frozen=True)
class UserAccount:
    """Identity known to the credential store."""

    email: str
    name: str
    password_hash: str
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        object.__setattr__(self, "email", self.email.strip().lower())


@dataclass(frozen=True)
class MFAFactor:
    """TOTP factor attached to a user account."""

    user_id: str
    secret: str
    friendly_name: str | None = None
    status: MFAFactorStatus = MFAFactorStatus.UNVERIFIED
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", MFAFactorStatus(self.status))

    @property
    def verified(self) -> bool:
        return self.status is MFAFactorStatus.VERIFIED


@dataclass(frozen=True)
class AuditLogEntry:
    action: AuditAction
    entity_type: str
    entity_id: str
    user_name: str
    user_id: str | None = None
    entity_name: str | None = None
    old_values: dict[str, Any] | None = None
    new_values: dict[str, Any] | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        object.__setattr__(self, "action", AuditAction(self.action))


@dataclass(frozen=True)
class LoginAuditEntry:
    email: str
    success: bool
    reason: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class DismissedAlert:
    alert_key: str
    dismissed_by: str | None = None
    id: str = field(default_factory=new_id)
    dismissed_at: datetime = field(default_factory=utcnow)
    created_at: datetime = field(default_factory=utcnow)


def compute_roas(revenue: float, investment: float) -> float:
    """Revenue divided by spend, zero when nothing was spent."""
    if not investment:
        return 0.0
    return revenue / investment


def field_names(entity_type: type) -> tuple[str, ...]:
    return tuple(f.name for f in fields(entity_type))


def snapshot(entity: Any) -> dict[str, Any]:
    """JSON-safe dict of an entity, used for audit before/after values."""
    return {key: _json_safe(value) for key, value in asdict(entity).items()}


def _json_safe(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    return value
