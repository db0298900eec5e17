import calendar
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date as dt_date

from prettytable import PrettyTable

from .records import Expense, Income, Investment
from .validation import current_month, shift_month

UNKNOWN_BUCKET = "Unknown"


def _amount(value) -> float:
    try:
        return float(value or 0.0)
    except (TypeError, ValueError):
        return 0.0


def total_invested(investments: Iterable[Investment]) -> float:
    return sum((_amount(inv.invested) for inv in investments), 0.0)


def total_current(investments: Iterable[Investment]) -> float:
    return sum((_amount(inv.current) for inv in investments), 0.0)


def total_gain(investments: Iterable[Investment]) -> float:
    return sum((inv.gain for inv in investments), 0.0)


def gain_percent(investments: Iterable[Investment]) -> float:
    """Gain as a percentage of the invested total; 0.0 when nothing is invested."""
    items = list(investments)
    invested = total_invested(items)
    if invested <= 0:
        return 0.0
    return total_gain(items) / invested * 100


def total_amount(records: Iterable[Income | Expense]) -> float:
    return sum((_amount(record.amount) for record in records), 0.0)


def records_in_month(
    records: Iterable[Investment | Income | Expense],
    month: str | None = None,
    today: dt_date | None = None,
) -> list:
    prefix = month or current_month(today)
    return [record for record in records if str(record.date or "").startswith(prefix)]


def monthly_total(
    records: Iterable[Income | Expense], month: str | None = None, today: dt_date | None = None
) -> float:
    """Sum amounts of records whose date starts with ``month`` (YYYY-MM).

    ``month`` defaults to the current calendar month.
    """
    return total_amount(records_in_month(records, month, today))


def group_by_category(expenses: Iterable[Income | Expense]) -> dict[str, float]:
    totals: dict[str, float] = {}
    for record in expenses:
        category = getattr(record, "category", "") or ""
        if not category:
            continue
        totals[category] = totals.get(category, 0.0) + _amount(record.amount)
    return totals


def group_by_member(expenses: Iterable[Income | Expense]) -> dict[str, float]:
    totals: dict[str, float] = {}
    for record in expenses:
        member = getattr(record, "added_by", "") or UNKNOWN_BUCKET
        totals[member] = totals.get(member, 0.0) + _amount(record.amount)
    return totals


def group_investments_by_type(investments: Iterable[Investment]) -> dict[str, dict[str, float]]:
    groups: dict[str, dict[str, float]] = {}
    for inv in investments:
        bucket = groups.setdefault(inv.type or UNKNOWN_BUCKET, {"invested": 0.0, "current": 0.0})
        bucket["invested"] += _amount(inv.invested)
        bucket["current"] += _amount(inv.current)
    return groups


@dataclass(frozen=True)
class TrendPoint:
    month: str
    label: str
    total: float


def monthly_trend(
    expenses: Iterable[Expense], months_back: int = 6, today: dt_date | None = None
) -> list[TrendPoint]:
    """Totals for the last ``months_back`` calendar months, oldest first.

    Months without records are present with a zero total.
    """
    if months_back < 0:
        raise ValueError("months_back cannot be negative")
    items = list(expenses)
    now = today or dt_date.today()
    points: list[TrendPoint] = []
    for offset in range(months_back - 1, -1, -1):
        year, month = shift_month(now.year, now.month, -offset)
        key = f"{year:04d}-{month:02d}"
        points.append(TrendPoint(key, calendar.month_abbr[month], monthly_total(items, key)))
    return points


def net_total(
    total_income: float, total_expenses: float, invested: float, gain: float
) -> float:
    # Losses are not subtracted; only a positive gain is added back.
    return total_income - total_expenses - invested + max(gain, 0.0)


@dataclass(frozen=True)
class Dashboard:
    month: str
    total_income: float
    month_expenses: float
    total_invested: float
    total_current: float
    total_gain: float
    gain_percent: float
    net_total: float
    by_category: dict[str, float] = field(default_factory=dict)
    by_member: dict[str, float] = field(default_factory=dict)
    by_investment_type: dict[str, dict[str, float]] = field(default_factory=dict)
    trend: list[TrendPoint] = field(default_factory=list)

    def as_table(self) -> str:
        table = PrettyTable()
        table.field_names = ["Metric", "Amount"]
        table.align["Metric"] = "l"
        table.align["Amount"] = "r"
        table.add_row(["Total income", _fmt(self.total_income)])
        table.add_row([f"Expenses ({self.month})", _fmt(self.month_expenses)])
        table.add_row(["Invested", _fmt(self.total_invested)])
        table.add_row(["Current value", _fmt(self.total_current)])
        table.add_row(
            ["Gain / loss", f"{_fmt(self.total_gain)} ({self.gain_percent:.2f}%)"], divider=True
        )
        table.add_row(["NET TOTAL", _fmt(self.net_total)])

        sections = [str(table)]
        if self.by_category:
            sections.append(_breakdown_table("Category", self.by_category))
        if self.by_member:
            sections.append(_breakdown_table("Member", self.by_member))
        if self.by_investment_type:
            sections.append(_investment_types_table(self.by_investment_type))
        if self.trend:
            trend = PrettyTable()
            trend.field_names = ["Month", "Expenses"]
            for point in self.trend:
                trend.add_row([f"{point.label} {point.month[:4]}", _fmt(point.total)])
            sections.append(str(trend))
        return "\n\n".join(sections)


def _fmt(value: float) -> str:
    return f"{value:.2f}" if value >= 0 else f"({abs(value):.2f})"


def _breakdown_table(label: str, totals: dict[str, float]) -> str:
    table = PrettyTable()
    table.field_names = [label, "Amount"]
    for name, amount in sorted(totals.items(), key=lambda item: item[1], reverse=True):
        table.add_row([name, _fmt(amount)])
    return str(table)


def _investment_types_table(groups: dict[str, dict[str, float]]) -> str:
    table = PrettyTable()
    table.field_names = ["Type", "Invested", "Current"]
    for name, sums in sorted(groups.items()):
        table.add_row([name, _fmt(sums["invested"]), _fmt(sums["current"])])
    return str(table)


def build_dashboard(
    investments: Iterable[Investment],
    incomes: Iterable[Income],
    expenses: Iterable[Expense],
    month: str | None = None,
    today: dt_date | None = None,
    months_back: int = 6,
) -> Dashboard:
    """Dashboard summary: all-time income against one month of expenses."""
    investments = list(investments)
    incomes = list(incomes)
    expenses = list(expenses)
    target_month = month or current_month(today)
    month_expenses = records_in_month(expenses, target_month)

    income = total_amount(incomes)
    spent = total_amount(month_expenses)
    invested = total_invested(investments)
    gain = total_gain(investments)
    return Dashboard(
        month=target_month,
        total_income=income,
        month_expenses=spent,
        total_invested=invested,
        total_current=total_current(investments),
        total_gain=gain,
        gain_percent=gain_percent(investments),
        net_total=net_total(income, spent, invested, gain),
        by_category=group_by_category(month_expenses),
        by_member=group_by_member(expenses),
        by_investment_type=group_investments_by_type(investments),
        trend=monthly_trend(expenses, months_back, today),
    )


@dataclass(frozen=True)
class MonthAnalytics:
    """Figures restricted to records dated in one month."""

    month: str
    income: float
    expenses: float
    invested: float
    current: float
    gain: float
    gain_percent: float
    by_category: dict[str, float] = field(default_factory=dict)
    by_investment_type: dict[str, dict[str, float]] = field(default_factory=dict)

    def as_table(self) -> str:
        table = PrettyTable()
        table.field_names = ["Metric", self.month]
        table.align["Metric"] = "l"
        table.align[self.month] = "r"
        table.add_row(["Income", _fmt(self.income)])
        table.add_row(["Expenses", _fmt(self.expenses)])
        table.add_row(["Invested", _fmt(self.invested)])
        table.add_row(["Current value", _fmt(self.current)])
        table.add_row(["Gain / loss", f"{_fmt(self.gain)} ({self.gain_percent:.2f}%)"])

        sections = [str(table)]
        if self.by_category:
            sections.append(_breakdown_table("Category", self.by_category))
        if self.by_investment_type:
            sections.append(_investment_types_table(self.by_investment_type))
        return "\n\n".join(sections)


def build_month_analytics(
    investments: Iterable[Investment],
    incomes: Iterable[Income],
    expenses: Iterable[Expense],
    month: str | None = None,
    today: dt_date | None = None,
) -> MonthAnalytics:
    """Per-month view: investments, incomes and expenses all filtered by date prefix.

    The investment-type split covers every investment, not just the month's.
    """
    investments = list(investments)
    target_month = month or current_month(today)
    month_investments = records_in_month(investments, target_month)
    month_expenses = records_in_month(expenses, target_month)
    return MonthAnalytics(
        month=target_month,
        income=monthly_total(incomes, target_month),
        expenses=total_amount(month_expenses),
        invested=total_invested(month_investments),
        current=total_current(month_investments),
        gain=total_gain(month_investments),
        gain_percent=gain_percent(month_investments),
        by_category=group_by_category(month_expenses),
        by_investment_type=group_investments_by_type(investments),
    )
