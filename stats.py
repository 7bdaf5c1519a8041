"""Period aggregation and monthly insight calculations.

Everything here is a pure function of its inputs: entries and categories are
read-only snapshots, ``now`` is passed in explicitly, and results are fresh
dataclasses that are never persisted.

Entries and categories are duck-typed. ORM rows from ``models`` work, as do
the lightweight ``EntryRecord`` / ``CategoryRecord`` below.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Iterable, Optional, Sequence, Union

from models import EntryKind, HealthRating, ReportPeriod
from periods import (
    BucketLabel,
    DateLike,
    bucket_label_for,
    day_label,
    days_in_month,
    is_in_month,
    is_in_period,
    parse_entry_date,
)


logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_COLOR = "#cbd5e1"

HEALTH_MESSAGES: dict[HealthRating, str] = {
    HealthRating.excellent: (
        "Outstanding! You're in the top 10% of savers. Keep this momentum!"
    ),
    HealthRating.deficit: (
        "You're spending more than you earn. Review high-cost categories immediately."
    ),
    HealthRating.healthy: (
        "Solid financial management. You're building a good safety net."
    ),
    HealthRating.stable: (
        "You're doing okay, but try to find 5% more savings this month."
    ),
}


@dataclass(frozen=True)
class EntryRecord:
    id: Union[int, str]
    amount_cents: int
    kind: EntryKind
    date: DateLike
    category_id: Union[int, str, None] = None
    category_name: str = ""
    recorded_at: Optional[datetime] = None


@dataclass(frozen=True)
class CategoryRecord:
    id: Union[int, str]
    name: str
    kind: EntryKind
    color: str = DEFAULT_CATEGORY_COLOR
    icon: str = "Tag"


@dataclass
class CategoryTotal:
    name: str
    value: int
    color: str


@dataclass
class TimeBucket:
    label: str
    income: int = 0
    expense: int = 0


@dataclass
class StatsReport:
    total_income: int = 0
    total_expense: int = 0
    balance: int = 0
    income_count: int = 0
    expense_count: int = 0
    total_count: int = 0
    category_breakdown: list[CategoryTotal] = field(default_factory=list)
    time_series: list[TimeBucket] = field(default_factory=list)
    day_span: int = 1
    opening_balance: Optional[int] = None
    closing_balance: Optional[int] = None


@dataclass
class Insights:
    year: int
    month: int
    is_current_month: bool
    days_in_month: int
    effective_days: int
    total_income: int
    total_expense: int
    expense_count: int
    entry_count: int
    daily_avg: float
    projected_month_end: float
    savings_rate: float
    avg_per_tx: float
    tx_velocity: float
    health: HealthRating
    recommendation: str
    has_data: bool

    @property
    def headline_expense(self) -> float:
        """Forecast while the month is running, the settled total afterwards."""
        if self.is_current_month:
            return self.projected_month_end
        return float(self.total_expense)

    @property
    def savings_progress(self) -> float:
        return min(max(self.savings_rate, 0.0), 100.0)


def _is_income(entry) -> bool:
    return EntryKind(entry.kind) == EntryKind.income


def aggregate(
    entries: Iterable,
    categories: Sequence,
    bucket_label: BucketLabel = day_label,
) -> StatsReport:
    """Fold ``entries`` into totals, an expense breakdown and a time series.

    The breakdown is keyed by the entry's snapshot ``category_name``; the
    colour comes from the live category list and falls back to a neutral
    grey when the category has been deleted. Buckets keep first-seen order.
    """
    colors = {c.id: c.color for c in categories}
    report = StatsReport()
    breakdown: dict[str, CategoryTotal] = {}
    buckets: dict[str, TimeBucket] = {}
    min_date: Optional[date] = None
    max_date: Optional[date] = None

    for entry in entries:
        d = parse_entry_date(entry.date)
        if d is None:
            logger.warning(f"aggregate_skip: entry={entry.id} date={entry.date!r}")
            continue
        if min_date is None or d < min_date:
            min_date = d
        if max_date is None or d > max_date:
            max_date = d

        amount = entry.amount_cents
        label = bucket_label(d, getattr(entry, "recorded_at", None))
        bucket = buckets.get(label)
        if bucket is None:
            bucket = buckets[label] = TimeBucket(label)

        report.total_count += 1
        if _is_income(entry):
            report.total_income += amount
            report.income_count += 1
            bucket.income += amount
        else:
            report.total_expense += amount
            report.expense_count += 1
            bucket.expense += amount
            slot = breakdown.get(entry.category_name)
            if slot is None:
                color = colors.get(entry.category_id) or DEFAULT_CATEGORY_COLOR
                slot = breakdown[entry.category_name] = CategoryTotal(
                    entry.category_name, 0, color
                )
            slot.value += amount

    report.balance = report.total_income - report.total_expense
    report.category_breakdown = list(breakdown.values())
    report.time_series = list(buckets.values())
    if min_date is not None and max_date is not None:
        report.day_span = (max_date - min_date).days + 1
    return report


def classify_health(savings_rate: float) -> HealthRating:
    # Order matters: the ladder is first-match, not independent thresholds.
    if savings_rate > 25:
        return HealthRating.excellent
    if savings_rate < 0:
        return HealthRating.deficit
    if savings_rate > 15:
        return HealthRating.healthy
    return HealthRating.stable


def compute_insights(
    entries: Iterable,
    now: Union[date, datetime],
    view_year: int,
    view_month: int,
) -> Insights:
    """Burn rate, forecast and savings health for one calendar month.

    For the running month the divisor is today's day of month, so the daily
    burn keeps moving even when nothing new is recorded. A past month uses
    its full length.
    """
    today = now.date() if isinstance(now, datetime) else now
    month_entries = [e for e in entries if is_in_month(e.date, view_year, view_month)]

    total_income = 0
    total_expense = 0
    expense_count = 0
    for entry in month_entries:
        if _is_income(entry):
            total_income += entry.amount_cents
        else:
            total_expense += entry.amount_cents
            expense_count += 1

    month_length = days_in_month(view_year, view_month)
    is_current = today.year == view_year and today.month == view_month
    effective_days = today.day if is_current else month_length

    daily_avg = total_expense / effective_days
    projected = daily_avg * month_length
    if total_income > 0:
        savings_rate = (total_income - total_expense) / total_income * 100
    else:
        savings_rate = 0.0
    avg_per_tx = total_expense / expense_count if expense_count > 0 else 0.0
    velocity = len(month_entries) / effective_days
    health = classify_health(savings_rate)

    return Insights(
        year=view_year,
        month=view_month,
        is_current_month=is_current,
        days_in_month=month_length,
        effective_days=effective_days,
        total_income=total_income,
        total_expense=total_expense,
        expense_count=expense_count,
        entry_count=len(month_entries),
        daily_avg=daily_avg,
        projected_month_end=projected,
        savings_rate=savings_rate,
        avg_per_tx=avg_per_tx,
        tx_velocity=velocity,
        health=health,
        recommendation=HEALTH_MESSAGES[health],
        has_data=len(month_entries) > 0,
    )


def period_report(
    entries: Iterable,
    categories: Sequence,
    period: ReportPeriod,
    now: Union[date, datetime],
) -> StatsReport:
    period = ReportPeriod(period)
    selected = [e for e in entries if is_in_period(e.date, period, now)]
    return aggregate(selected, categories, bucket_label_for(period))


def month_report(
    entries: Iterable,
    categories: Sequence,
    year: int,
    month: int,
    opening_balance_lookup: Optional[Callable[[int, int], int]] = None,
) -> StatsReport:
    """Aggregate one calendar month and roll it onto its opening balance."""
    selected = [e for e in entries if is_in_month(e.date, year, month)]
    report = aggregate(selected, categories, day_label)
    opening_balance = 0
    if opening_balance_lookup is not None:
        opening_balance = opening_balance_lookup(year, month)
    report.opening_balance = opening_balance
    report.closing_balance = opening_balance + report.balance
    return report


def _sort_key(entry) -> tuple[date, datetime]:
    recorded = getattr(entry, "recorded_at", None) or datetime.min
    return parse_entry_date(entry.date), recorded


def month_entries(entries: Iterable, year: int, month: int) -> list:
    """Entries of one month, newest first; ``recorded_at`` breaks ties."""
    selected = [e for e in entries if is_in_month(e.date, year, month)]
    return sorted(selected, key=_sort_key, reverse=True)


def months_with_data(entries: Iterable, year: int) -> set[int]:
    months: set[int] = set()
    for entry in entries:
        d = parse_entry_date(entry.date)
        if d is not None and d.year == year:
            months.add(d.month)
    return months
