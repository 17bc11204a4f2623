"""Dashboard aggregations over finance records.

All functions are pure: callers pass the records and the reference date.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Iterable, Sequence

from finops.domain.entities import (
    AdPerformance,
    Collaborator,
    CollaboratorStatus,
    Platform,
    Tax,
    Tool,
    ToolStatus,
    VariableExpense,
)

BASE_CURRENCY = "BRL"
DEFAULT_FOREIGN_RATE = 5.5
LOW_BALANCE_BASE = 10_000.0
LOW_BALANCE_FOREIGN = 2_000.0
LOW_ROAS_THRESHOLD = 2.0
TOOL_DUE_WINDOW_DAYS = 3
MAX_ALERTS = 5

MONTH_NAMES = (
    "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
    "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
)


class AlertSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class Alert:
    key: str
    severity: AlertSeverity
    title: str
    description: str
    dismissible: bool


@dataclass(frozen=True)
class MonthOption:
    value: str
    label: str


@dataclass(frozen=True)
class PerformancePoint:
    date: date
    revenue: float
    ad_spend: float
    sales: int


@dataclass(frozen=True)
class TaxSummary:
    pending_total: float
    paid_total: float
    pending_count: int
    paid_count: int


@dataclass(frozen=True)
class DashboardSnapshot:
    total_balance: float
    monthly_fixed_cost: float
    monthly_revenue: float
    average_roas: float
    alerts: tuple[Alert, ...]
    month_options: tuple[MonthOption, ...]
    selected_month: str
    performance: tuple[PerformancePoint, ...]
    taxes: TaxSummary
    variable_expense_total: float
    generated_for: date = field(default_factory=date.today)


def to_base_currency(amount: float, currency: str, rate: float = DEFAULT_FOREIGN_RATE) -> float:
    return amount if currency == BASE_CURRENCY else amount * rate


def total_balance(platforms: Iterable[Platform], rate: float = DEFAULT_FOREIGN_RATE) -> float:
    return sum(to_base_currency(p.balance, p.currency, rate) for p in platforms)


def monthly_fixed_cost(
    tools: Iterable[Tool],
    collaborators: Iterable[Collaborator],
    rate: float = DEFAULT_FOREIGN_RATE,
) -> float:
    """Active subscriptions (converted) plus active collaborators."""
    tools_cost = sum(
        to_base_currency(t.monthly_value, t.currency, rate)
        for t in tools
        if t.status is ToolStatus.ACTIVE
    )
    team_cost = sum(c.monthly_value for c in collaborators if c.status is CollaboratorStatus.ACTIVE)
    return tools_cost + team_cost


def month_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def ads_in_month(ads: Iterable[AdPerformance], key: str) -> list[AdPerformance]:
    return [ad for ad in ads if month_key(ad.date) == key]


def monthly_revenue(ads: Sequence[AdPerformance]) -> float:
    return sum(ad.revenue for ad in ads)


def average_roas(ads: Sequence[AdPerformance]) -> float:
    if not ads:
        return 0.0
    return sum(ad.roas or 0.0 for ad in ads) / len(ads)


def build_alerts(
    tools: Iterable[Tool],
    platforms: Iterable[Platform],
    current_month_ads: Sequence[AdPerformance],
    dismissed_keys: set[str],
    today: date,
    limit: int = MAX_ALERTS,
) -> list[Alert]:
    """
    Build the dashboard alert list.

    Tool alerts come first and are the only dismissible kind. Low balance
    and low ROAS alerts always show while the condition holds.
    """
    alerts: list[Alert] = []

    for tool in tools:
        if tool.status is not ToolStatus.ACTIVE:
            continue
        key = f"tool-{tool.id}"
        if key in dismissed_keys:
            continue
        days = (tool.due_date - today).days
        if 0 <= days <= TOOL_DUE_WINDOW_DAYS:
            plural = "" if days == 1 else "s"
            alerts.append(
                Alert(
                    key=key,
                    severity=AlertSeverity.WARNING,
                    title=f"{tool.name} vence em {days} dia{plural}",
                    description=f"Vencimento: {tool.due_date.strftime('%d/%m/%Y')}",
                    dismissible=True,
                )
            )

    for platform in platforms:
        threshold = LOW_BALANCE_BASE if platform.currency == BASE_CURRENCY else LOW_BALANCE_FOREIGN
        if platform.balance < threshold:
            symbol = "R$" if platform.currency == BASE_CURRENCY else "$"
            alerts.append(
                Alert(
                    key=f"platform-{platform.id}",
                    severity=AlertSeverity.CRITICAL,
                    title=f"Saldo baixo em {platform.name}",
                    description=f"Saldo atual: {symbol} {platform.balance:,.2f}",
                    dismissible=False,
                )
            )

    low_roas = [ad for ad in current_month_ads if (ad.roas or 0.0) < LOW_ROAS_THRESHOLD]
    if low_roas:
        names = list(dict.fromkeys(ad.platform.value for ad in low_roas))
        alerts.append(
            Alert(
                key="low-roas",
                severity=AlertSeverity.INFO,
                title="ROAS abaixo da média",
                description=(
                    f"{len(low_roas)} registro(s) com ROAS < {LOW_ROAS_THRESHOLD:.1f} "
                    f"em {', '.join(names)}"
                ),
                dismissible=False,
            )
        )

    return alerts[:limit]


def month_options(ads: Iterable[AdPerformance]) -> list[MonthOption]:
    """Distinct months with ad records, newest first."""
    keys = sorted({month_key(ad.date) for ad in ads}, reverse=True)
    return [MonthOption(value=key, label=_month_label(key)) for key in keys]


def performance_series(ads: Iterable[AdPerformance]) -> list[PerformancePoint]:
    """Revenue, spend and sales per day, oldest day first."""
    grouped: dict[date, list[float]] = defaultdict(lambda: [0.0, 0.0, 0])
    for ad in ads:
        bucket = grouped[ad.date]
        bucket[0] += ad.revenue
        bucket[1] += ad.investment
        bucket[2] += ad.sales

    return [
        PerformancePoint(date=day, revenue=revenue, ad_spend=spend, sales=int(sales))
        for day, (revenue, spend, sales) in sorted(grouped.items())
    ]


def tax_summary(taxes: Iterable[Tax]) -> TaxSummary:
    """Totals of pending and paid taxes."""
    taxes = list(taxes)
    pending = [t.amount for t in taxes if not t.paid]
    paid = [t.amount for t in taxes if t.paid]
    return TaxSummary(
        pending_total=sum(pending),
        paid_total=sum(paid),
        pending_count=len(pending),
        paid_count=len(paid),
    )


def variable_expense_total(expenses: Iterable[VariableExpense]) -> float:
    return sum(e.amount for e in expenses)


def _month_label(key: str) -> str:
    year, month = key.split("-")
    return f"{MONTH_NAMES[int(month) - 1]} {year}"


def build_snapshot(
    platforms: Sequence[Platform],
    tools: Sequence[Tool],
    collaborators: Sequence[Collaborator],
    ads: Sequence[AdPerformance],
    taxes: Sequence[Tax],
    expenses: Sequence[VariableExpense],
    dismissed_keys: set[str],
    today: date,
    selected_month: str | None = None,
    rate: float = DEFAULT_FOREIGN_RATE,
) -> DashboardSnapshot:
    """Assemble every dashboard figure for ``today`` and the selected month."""
    current_key = month_key(today)
    selected = selected_month or current_key
    current_ads = ads_in_month(ads, current_key)

    return DashboardSnapshot(
        total_balance=total_balance(platforms, rate),
        monthly_fixed_cost=monthly_fixed_cost(tools, collaborators, rate),
        monthly_revenue=monthly_revenue(current_ads),
        average_roas=average_roas(current_ads),
        alerts=tuple(build_alerts(tools, platforms, current_ads, dismissed_keys, today)),
        month_options=tuple(month_options(ads)),
        selected_month=selected,
        performance=tuple(performance_series(ads_in_month(ads, selected))),
        taxes=tax_summary(taxes),
        variable_expense_total=variable_expense_total(expenses),
        generated_for=today,
    )
