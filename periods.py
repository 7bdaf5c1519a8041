from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Union

from models import DatePreset, ReportPeriod


MONTH_ABBR = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
WEEKDAY_ABBR = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

DateLike = Union[date, datetime, str, None]


@dataclass(frozen=True)
class MonthRange:
    year: int
    month: int
    start: date
    end: date


def parse_entry_date(value: DateLike) -> Optional[date]:
    """Return the calendar date of ``value`` or ``None`` when it is unusable.

    Entry dates are opaque calendar dates; no timezone conversion is applied.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def _as_date(now: Union[date, datetime]) -> date:
    if isinstance(now, datetime):
        return now.date()
    return now


def is_in_period(
    entry_date: DateLike, period: ReportPeriod, now: Union[date, datetime]
) -> bool:
    d = parse_entry_date(entry_date)
    if d is None:
        return False
    today = _as_date(now)
    if period == ReportPeriod.today:
        return d == today
    if period == ReportPeriod.yesterday:
        return d == today - timedelta(days=1)
    if period == ReportPeriod.week:
        # Rolling window with no upper bound: future-dated entries still count.
        return d >= today - timedelta(days=7)
    if period == ReportPeriod.month:
        return d.year == today.year and d.month == today.month
    if period == ReportPeriod.year:
        return d.year == today.year
    raise ValueError(f"Unknown report period: {period!r}")


def is_in_month(entry_date: DateLike, year: int, month: int) -> bool:
    d = parse_entry_date(entry_date)
    return d is not None and d.year == year and d.month == month


def days_in_month(year: int, month: int) -> int:
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    return (next_month - date(year, month, 1)).days


def previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def month_bounds(year: int, month: int) -> MonthRange:
    first = date(year, month, 1)
    last = first.replace(day=days_in_month(year, month))
    return MonthRange(year, month, first, last)


def preset_range(
    preset: DatePreset,
    now: Union[date, datetime],
    custom_date: Optional[date] = None,
) -> tuple[Optional[date], Optional[date]]:
    """Inclusive ``(start, end)`` bounds for a transaction-list date preset.

    ``None`` on either side means unbounded. Weeks start on Sunday. CUSTOM
    without a date does not filter.
    """
    today = _as_date(now)
    preset = DatePreset(preset)
    if preset == DatePreset.today:
        return today, today
    if preset == DatePreset.yesterday:
        yesterday = today - timedelta(days=1)
        return yesterday, yesterday
    if preset == DatePreset.this_week:
        return today - timedelta(days=(today.weekday() + 1) % 7), None
    if preset == DatePreset.last_7_days:
        return today - timedelta(days=7), None
    if preset == DatePreset.this_month:
        bounds = month_bounds(today.year, today.month)
        return bounds.start, bounds.end
    if preset == DatePreset.last_30_days:
        return today - timedelta(days=30), None
    return custom_date, custom_date


def day_label(d: date, _recorded_at: Optional[datetime] = None) -> str:
    return f"{d.day:02d} {MONTH_ABBR[d.month - 1]}"


def month_label(d: date, _recorded_at: Optional[datetime] = None) -> str:
    return MONTH_ABBR[d.month - 1]


def weekday_label(d: date, _recorded_at: Optional[datetime] = None) -> str:
    return WEEKDAY_ABBR[d.weekday()]


def time_label(_d: date, recorded_at: Optional[datetime] = None) -> str:
    if recorded_at is None:
        return "00:00"
    return recorded_at.strftime("%H:%M")


BucketLabel = Callable[[date, Optional[datetime]], str]

_BUCKET_LABELS: dict[ReportPeriod, BucketLabel] = {
    ReportPeriod.today: time_label,
    ReportPeriod.yesterday: time_label,
    ReportPeriod.week: weekday_label,
    ReportPeriod.month: day_label,
    ReportPeriod.year: month_label,
}


def bucket_label_for(period: ReportPeriod) -> BucketLabel:
    return _BUCKET_LABELS[ReportPeriod(period)]
