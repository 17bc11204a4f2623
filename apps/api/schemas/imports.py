"""Response models for spreadsheet import preview and submission."""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class _FromAttributes(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class CampaignRowOut(_FromAttributes):
    line: int
    campaign_name: str
    status: str
    budget: str
    sales: int
    cpa: float
    spend: float
    revenue: float
    profit: float
    roas: float
    margin: str
    impressions: int
    clicks: int
    ctr: str
    cpc: float
    cpm: float
    hook: str
    conv_checkout: str
    conv_body: str
    frequency: str
    rejected_sales: int
    ic: int
    cpi: float


class RowWarningOut(_FromAttributes):
    line: int
    column: Optional[str] = None
    message: str


class TotalsOut(_FromAttributes):
    investment: float
    revenue: float
    sales: int
    cpa: Optional[float] = None


class ImportPreviewResponse(BaseModel):
    """What the operator reviews before confirming an import."""

    summary: Optional[CampaignRowOut] = None
    campaigns: list[CampaignRowOut]
    warnings: list[RowWarningOut]
    totals: TotalsOut


class ImportResultResponse(BaseModel):
    ad_performance_id: str
    campaigns_imported: int
    totals: TotalsOut
    warnings: list[RowWarningOut]
