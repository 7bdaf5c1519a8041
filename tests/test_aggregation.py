from datetime import date, datetime

from models import Category, Entry, EntryKind, ReportPeriod
from periods import weekday_label
from stats import (
    CategoryRecord,
    EntryRecord,
    aggregate,
    month_entries,
    month_report,
    months_with_data,
    period_report,
)


FOOD = CategoryRecord(id="c-food", name="Food", kind=EntryKind.expense, color="#f97316")
SALARY = CategoryRecord(
    id="c-salary", name="Salary", kind=EntryKind.income, color="#10b981"
)
CATEGORIES = [FOOD, SALARY]


def _expense(entry_id, amount, day, category=FOOD, **kwargs) -> EntryRecord:
    return EntryRecord(
        id=entry_id,
        amount_cents=amount,
        kind=EntryKind.expense,
        date=day,
        category_id=category.id,
        category_name=category.name,
        **kwargs,
    )


def _income(entry_id, amount, day, **kwargs) -> EntryRecord:
    return EntryRecord(
        id=entry_id,
        amount_cents=amount,
        kind=EntryKind.income,
        date=day,
        category_id=SALARY.id,
        category_name=SALARY.name,
        **kwargs,
    )


def test_month_period_report_scenario() -> None:
    entries = [
        _expense("e1", 500, "2024-03-05"),
        _income("e2", 1000, "2024-03-10"),
        _expense("e3", 700, "2024-02-28"),
    ]

    report = period_report(entries, CATEGORIES, ReportPeriod.month, date(2024, 3, 15))

    assert report.total_income == 1000
    assert report.total_expense == 500
    assert report.balance == 500
    assert report.income_count == 1
    assert report.expense_count == 1
    assert report.total_count == 2
    assert [(c.name, c.value) for c in report.category_breakdown] == [("Food", 500)]
    assert report.category_breakdown[0].color == "#f97316"
    assert report.day_span == 6
    assert {b.label: (b.income, b.expense) for b in report.time_series} == {
        "05 Mar": (0, 500),
        "10 Mar": (1000, 0),
    }


def test_empty_input_has_span_of_one() -> None:
    report = aggregate([], CATEGORIES)
    assert report.total_count == 0
    assert report.balance == 0
    assert report.day_span == 1
    assert report.category_breakdown == []
    assert report.time_series == []


def test_single_day_span_is_one() -> None:
    report = aggregate([_expense("e1", 10, "2024-03-05")], CATEGORIES)
    assert report.day_span == 1


def test_order_does_not_change_totals() -> None:
    entries = [
        _expense("e1", 120, "2024-03-01"),
        _income("e2", 5000, "2024-03-02"),
        _expense("e3", 80, "2024-03-02"),
        _expense("e4", 333, "2024-03-09"),
    ]
    forward = aggregate(entries, CATEGORIES)
    backward = aggregate(list(reversed(entries)), CATEGORIES)

    assert forward.total_income == backward.total_income
    assert forward.total_expense == backward.total_expense
    assert forward.balance == backward.balance
    assert forward.day_span == backward.day_span == 9
    assert {c.name: c.value for c in forward.category_breakdown} == {
        c.name: c.value for c in backward.category_breakdown
    }
    assert {b.label: (b.income, b.expense) for b in forward.time_series} == {
        b.label: (b.income, b.expense) for b in backward.time_series
    }


def test_balance_is_exact_difference() -> None:
    entries = [
        _income("i1", 1_000_001, "2024-05-01"),
        _expense("x1", 333_333, "2024-05-02"),
        _expense("x2", 333_334, "2024-05-03"),
    ]
    report = aggregate(entries, CATEGORIES)
    assert report.balance == report.total_income - report.total_expense == 333_334


def test_time_series_keeps_first_seen_bucket_order() -> None:
    entries = [
        _expense("e1", 10, "2024-03-09"),
        _expense("e2", 20, "2024-03-04"),
        _income("e3", 30, "2024-03-09"),
    ]
    report = aggregate(entries, CATEGORIES)
    assert [b.label for b in report.time_series] == ["09 Mar", "04 Mar"]
    assert (report.time_series[0].income, report.time_series[0].expense) == (30, 10)


def test_custom_bucket_label_function() -> None:
    entries = [
        _expense("e1", 10, "2024-03-11"),
        _expense("e2", 20, "2024-03-18"),
    ]
    report = aggregate(entries, CATEGORIES, weekday_label)
    assert [(b.label, b.expense) for b in report.time_series] == [("Mon", 30)]


def test_intraday_buckets_use_recorded_time() -> None:
    entries = [
        _expense("e1", 10, "2024-03-15", recorded_at=datetime(2024, 3, 15, 8, 5)),
        _expense("e2", 15, "2024-03-15", recorded_at=datetime(2024, 3, 15, 8, 5)),
        _expense("e3", 20, "2024-03-15", recorded_at=datetime(2024, 3, 15, 13, 40)),
    ]
    report = period_report(entries, CATEGORIES, ReportPeriod.today, date(2024, 3, 15))
    assert {b.label: b.expense for b in report.time_series} == {
        "08:05": 25,
        "13:40": 20,
    }


def test_deleted_category_falls_back_to_snapshot_name_and_neutral_color() -> None:
    gone = CategoryRecord(id="c-gone", name="Travel", kind=EntryKind.expense)
    entries = [
        EntryRecord(
            id="e1",
            amount_cents=900,
            kind=EntryKind.expense,
            date="2024-03-05",
            category_id=gone.id,
            category_name="Travel",
        )
    ]
    report = aggregate(entries, CATEGORIES)
    assert report.category_breakdown[0].name == "Travel"
    assert report.category_breakdown[0].value == 900
    assert report.category_breakdown[0].color == "#cbd5e1"


def test_breakdown_merges_categories_sharing_a_name() -> None:
    other_food = CategoryRecord(
        id="c-food-2", name="Food", kind=EntryKind.expense, color="#000000"
    )
    entries = [
        _expense("e1", 100, "2024-03-05"),
        _expense("e2", 250, "2024-03-06", category=other_food),
    ]
    report = aggregate(entries, CATEGORIES + [other_food])
    assert [(c.name, c.value) for c in report.category_breakdown] == [("Food", 350)]


def test_income_entries_stay_out_of_breakdown() -> None:
    report = aggregate([_income("i1", 100, "2024-03-05")], CATEGORIES)
    assert report.category_breakdown == []


def test_expense_entry_with_income_category_is_accepted() -> None:
    entries = [_expense("e1", 40, "2024-03-05", category=SALARY)]
    report = aggregate(entries, CATEGORIES)
    assert report.total_expense == 40
    assert report.category_breakdown[0].name == "Salary"


def test_malformed_dates_are_skipped() -> None:
    entries = [
        _expense("e1", 100, "2024-03-05"),
        _expense("bad", 999, "05/03/2024"),
        _income("worse", 999, ""),
    ]
    report = aggregate(entries, CATEGORIES)
    assert report.total_expense == 100
    assert report.total_income == 0
    assert report.total_count == 1
    assert report.day_span == 1


def test_inputs_are_not_mutated() -> None:
    entries = [_expense("e2", 1, "2024-03-09"), _expense("e1", 2, "2024-03-01")]
    categories = list(CATEGORIES)
    snapshot = (list(entries), list(categories))

    aggregate(entries, categories)
    month_entries(entries, 2024, 3)

    assert (entries, categories) == snapshot


def test_orm_rows_are_accepted() -> None:
    groceries = Category(
        id=3, name="Groceries", kind=EntryKind.expense, color="#ef4444"
    )
    row = Entry(
        id=1,
        date=date(2024, 3, 5),
        recorded_at=datetime(2024, 3, 5, 10, 0),
        kind=EntryKind.expense,
        amount_cents=450,
        category_id=3,
        category_name="Groceries",
    )
    report = aggregate([row], [groceries])
    assert report.category_breakdown[0].color == "#ef4444"
    assert report.total_expense == 450


def test_month_report_adds_opening_balance() -> None:
    entries = [
        _income("i1", 2000, "2024-03-01"),
        _expense("e1", 500, "2024-03-02"),
        _expense("e2", 9999, "2024-04-01"),
    ]
    lookups = []

    def lookup(year: int, month: int) -> int:
        lookups.append((year, month))
        return 6000

    report = month_report(entries, CATEGORIES, 2024, 3, lookup)

    assert lookups == [(2024, 3)]
    assert report.balance == 1500
    assert report.opening_balance == 6000
    assert report.closing_balance == 7500


def test_month_report_without_opening_balance() -> None:
    report = month_report([], CATEGORIES, 2024, 3)
    assert report.opening_balance == 0
    assert report.closing_balance == 0


def test_month_entries_sorted_newest_first_with_recorded_tiebreak() -> None:
    entries = [
        _expense("a", 1, "2024-03-02", recorded_at=datetime(2024, 3, 2, 8, 0)),
        _expense("b", 1, "2024-03-09", recorded_at=datetime(2024, 3, 9, 8, 0)),
        _expense("c", 1, "2024-03-02", recorded_at=datetime(2024, 3, 2, 20, 0)),
        _expense("d", 1, "2024-04-01"),
    ]
    assert [e.id for e in month_entries(entries, 2024, 3)] == ["b", "c", "a"]


def test_months_with_data() -> None:
    entries = [
        _expense("a", 1, "2024-01-05"),
        _expense("b", 1, "2024-03-09"),
        _expense("c", 1, "2023-03-02"),
        _expense("d", 1, "garbage"),
    ]
    assert months_with_data(entries, 2024) == {1, 3}
