"""In-memory shapes produced by the campaign spreadsheet parser."""

from dataclasses import dataclass, field, fields
from typing import Any


@dataclass(frozen=True)
class ImportedCampaignRow:
    """One campaign line of an uploaded spreadsheet."""

    line: int
    campaign_name: str
    status: str = ""
    budget: str = ""
    sales: int = 0
    cpa: float = 0.0
    spend: float = 0.0
    revenue: float = 0.0
    profit: float = 0.0
    roas: float = 0.0
    margin: str = ""
    impressions: int = 0
    clicks: int = 0
    ctr: str = ""
    cpc: float = 0.0
    cpm: float = 0.0
    hook: str = ""
    conv_checkout: str = ""
    conv_body: str = ""
    frequency: str = ""
    rejected_sales: int = 0
    ic: int = 0
    cpi: float = 0.0

    def values(self) -> dict[str, Any]:
        """Column values without the source line number."""
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name != "line"}


@dataclass(frozen=True)
class ImportSummaryRow(ImportedCampaignRow):
    """File-level rollup row, recognised by "Campanhas" in its name."""


@dataclass(frozen=True)
class ImportRowWarning:
    """Something the operator should know about a row that was still accepted."""

    line: int
    column: str | None
    message: str


@dataclass(frozen=True)
class ImportTotals:
    investment: float
    revenue: float
    sales: int
    cpa: float | None


@dataclass(frozen=True)
class ParsedImport:
    summary: ImportSummaryRow | None = None
    campaigns: tuple[ImportedCampaignRow, ...] = ()
    warnings: tuple[ImportRowWarning, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.campaigns

    def totals(self) -> ImportTotals:
        """Totals for the parent record: the summary row's when present, else sums."""
        if self.summary is not None:
            investment = self.summary.spend
            revenue = self.summary.revenue
            sales = self.summary.sales
        else:
            investment = sum(c.spend for c in self.campaigns)
            revenue = sum(c.revenue for c in self.campaigns)
            sales = sum(c.sales for c in self.campaigns)

        cpa = investment / sales if sales > 0 else None
        return ImportTotals(investment=investment, revenue=revenue, sales=sales, cpa=cpa)
