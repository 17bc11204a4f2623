"""Pydantic models for the finance record endpoints.

Create models carry the form validation rules; Update models make every
field optional and are applied as partial updates.
"""

import datetime as dt
from typing import Annotated, Any, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from finops.domain.entities import (
    AdPlatform,
    CollaboratorStatus,
    CollaboratorType,
    PlatformType,
    ReimbursementStatus,
    ToolCategory,
    ToolStatus,
)



class _Strict(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    def changes(self) -> dict[str, Any]:
        """Only the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


class PlatformCreate(_Strict):
    name: str = Field(..., min_length=1, max_length=100)
    type: PlatformType
    balance: float = Field(0, ge=0)
    currency: str = Field("BRL", min_length=1, max_length=10)
    notes: Optional[str] = Field(None, max_length=500)

    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {"name": "Banco Inter", "type": "bank", "balance": 15000, "currency": "BRL"}
        },
    )


class PlatformUpdate(_Strict):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    type: Optional[PlatformType] = None
    balance: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = Field(None, min_length=1, max_length=10)
    notes: Optional[str] = Field(None, max_length=500)


class ToolCreate(_Strict):
    name: str = Field(..., min_length=1, max_length=100)
    category: ToolCategory
    monthly_value: float = Field(..., ge=0)
    currency: str = Field("BRL", min_length=1, max_length=10)
    due_date: dt.date
    status: ToolStatus = ToolStatus.ACTIVE
    payment_method: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=500)


class ToolUpdate(_Strict):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[ToolCategory] = None
    monthly_value: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = Field(None, min_length=1, max_length=10)
    due_date: Optional[dt.date] = None
    status: Optional[ToolStatus] = None
    payment_method: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=500)


class CollaboratorCreate(_Strict):
    name: str = Field(..., min_length=1, max_length=100)
    type: CollaboratorType
    role: str = Field(..., min_length=1, max_length=100)
    monthly_value: float = Field(..., ge=0)
    payment_date: dt.date
    status: CollaboratorStatus = CollaboratorStatus.ACTIVE
    notes: Optional[str] = Field(None, max_length=500)


class CollaboratorUpdate(_Strict):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    type: Optional[CollaboratorType] = None
    role: Optional[str] = Field(None, min_length=1, max_length=100)
    monthly_value: Optional[float] = Field(None, ge=0)
    payment_date: Optional[dt.date] = None
    status: Optional[CollaboratorStatus] = None
    notes: Optional[str] = Field(None, max_length=500)


class AdPerformanceCreate(_Strict):
    platform: AdPlatform
    date: dt.date
    investment: float = Field(..., ge=0)
    revenue: float = Field(..., ge=0)
    sales: int = Field(..., ge=0)
    cpa: Optional[float] = Field(None, ge=0)
    manager: str = Field(..., min_length=1, max_length=255)
    notes: Optional[str] = Field(None, max_length=500)


class AdPerformanceUpdate(_Strict):
    platform: Optional[AdPlatform] = None
    date: Optional[dt.date] = None
    investment: Optional[float] = Field(None, ge=0)
    revenue: Optional[float] = Field(None, ge=0)
    sales: Optional[int] = Field(None, ge=0)
    cpa: Optional[float] = Field(None, ge=0)
    manager: Optional[str] = Field(None, min_length=1, max_length=255)
    notes: Optional[str] = Field(None, max_length=500)


class WithdrawalCreate(_Strict):
    amount: float = Field(..., ge=0.01)
    date: dt.date
    reason: str = Field(..., min_length=1, max_length=200)
    destination: str = Field(..., min_length=1, max_length=255)
    notes: Optional[str] = Field(None, max_length=500)


class WithdrawalUpdate(_Strict):
    amount: Optional[float] = Field(None, ge=0.01)
    date: Optional[dt.date] = None
    reason: Optional[str] = Field(None, min_length=1, max_length=200)
    destination: Optional[str] = Field(None, min_length=1, max_length=255)
    notes: Optional[str] = Field(None, max_length=500)


def _receipt_url(value: Optional[str]) -> Optional[str]:
    if value and not value.lower().startswith(("https://", "http://", "[")):
        raise ValueError("receipt_url must be an http(s) URL or a JSON list of URLs")
    return value


ReceiptUrl = Annotated[Optional[str], AfterValidator(_receipt_url)]


class TaxCreate(_Strict):
    description: str = Field(..., min_length=1, max_length=200)
    amount: float = Field(..., ge=0)
    tax_date: dt.date
    due_date: dt.date
    paid: bool = False
    receipt_url: ReceiptUrl = Field(None, max_length=4000)
    notes: Optional[str] = Field(None, max_length=500)



class TaxUpdate(_Strict):
    description: Optional[str] = Field(None, min_length=1, max_length=200)
    amount: Optional[float] = Field(None, ge=0)
    tax_date: Optional[dt.date] = None
    due_date: Optional[dt.date] = None
    receipt_url: ReceiptUrl = Field(None, max_length=4000)
    notes: Optional[str] = Field(None, max_length=500)



class TaxPaidUpdate(BaseModel):
    paid: bool


class VariableExpenseCreate(_Strict):
    description: str = Field(..., min_length=1, max_length=200)
    amount: float = Field(..., ge=0.01)
    category: str = Field(..., min_length=1, max_length=100)
    date: dt.date
    payment_method: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=500)
    is_reimbursement: bool = False
    receipt_url: ReceiptUrl = Field(None, max_length=2000)



class VariableExpenseUpdate(_Strict):
    description: Optional[str] = Field(None, min_length=1, max_length=200)
    amount: Optional[float] = Field(None, ge=0.01)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    date: Optional[dt.date] = None
    payment_method: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=500)
    is_reimbursement: Optional[bool] = None
    receipt_url: ReceiptUrl = Field(None, max_length=2000)
    reimbursement_status: Optional[ReimbursementStatus] = None

