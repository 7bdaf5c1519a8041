from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import Session

from clock import local_now
from config import get_settings
from models import (
    Category,
    DatePreset,
    Entry,
    EntryKind,
    OpeningBalanceLine,
    PaymentMode,
    ReportPeriod,
)
from periods import month_bounds, preset_range, previous_month
from schemas import (
    CategoryIn,
    CategoryUpdate,
    EntryIn,
    MonthKey,
    OpeningBalanceEntry,
)
from stats import (
    Insights,
    StatsReport,
    compute_insights,
    month_entries,
    month_report,
    months_with_data,
    period_report,
)


logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES: tuple[CategoryIn, ...] = (
    CategoryIn(name="Salary", kind=EntryKind.income, color="#10b981", icon="Banknote"),
    CategoryIn(
        name="Freelance", kind=EntryKind.income, color="#6366f1", icon="Briefcase"
    ),
    CategoryIn(
        name="Groceries", kind=EntryKind.expense, color="#ef4444", icon="ShoppingCart"
    ),
    CategoryIn(name="Rent", kind=EntryKind.expense, color="#8b5cf6", icon="Home"),
    CategoryIn(name="Food", kind=EntryKind.expense, color="#f97316", icon="Coffee"),
)


@dataclass
class EntryFilters:
    query: Optional[str] = None
    kind: Optional[EntryKind] = None
    payment_mode: Optional[PaymentMode] = None
    min_amount_cents: Optional[int] = None
    max_amount_cents: Optional[int] = None
    preset: Optional[DatePreset] = None
    custom_date: Optional[date] = None


def get_current_profile_id() -> str:
    return get_settings().default_profile_id


def delete_profile_data(session: Session, profile_id: str) -> None:
    for model in (Entry, Category, OpeningBalanceLine):
        session.execute(delete(model).where(model.profile_id == profile_id))
    session.commit()
    logger.info(f"profile_data_deleted: profile={profile_id}")


class CategoryService:
    def __init__(self, session: Session, profile_id: Optional[str] = None) -> None:
        self.session = session
        self.profile_id = profile_id or get_current_profile_id()

    def list_all(self) -> list[Category]:
        stmt = (
            select(Category)
            .where(Category.profile_id == self.profile_id)
            .order_by(Category.kind, Category.name, Category.id)
        )
        return list(self.session.scalars(stmt).all())

    def get(self, category_id: int) -> Category:
        category = self.session.get(Category, category_id)
        if not category or category.profile_id != self.profile_id:
            raise ValueError("Category not found")
        return category

    def create(self, data: CategoryIn) -> Category:
        # Duplicate names are allowed; they merge in the expense breakdown.
        category = Category(
            profile_id=self.profile_id,
            name=data.name.strip(),
            kind=data.kind,
            color=data.color,
            icon=data.icon,
        )
        self.session.add(category)
        self.session.commit()
        self.session.refresh(category)
        return category

    def update(self, category_id: int, data: CategoryUpdate) -> Category:
        """Rename or restyle a category. Entries keep their snapshot name."""
        category = self.get(category_id)
        if data.name is not None:
            category.name = data.name.strip()
        if data.color is not None:
            category.color = data.color
        if data.icon is not None:
            category.icon = data.icon
        self.session.commit()
        self.session.refresh(category)
        return category

    def delete(self, category_id: int) -> None:
        category = self.get(category_id)
        self.session.delete(category)
        self.session.commit()
        logger.info(
            f"category_deleted: profile={self.profile_id} category={category_id}"
        )

    def ensure_defaults(self) -> list[Category]:
        existing = self.list_all()
        if existing:
            return existing
        for data in DEFAULT_CATEGORIES:
            self.session.add(
                Category(
                    profile_id=self.profile_id,
                    name=data.name,
                    kind=data.kind,
                    color=data.color,
                    icon=data.icon,
                )
            )
        self.session.commit()
        logger.info(f"default_categories_seeded: profile={self.profile_id}")
        return self.list_all()


class EntryService:
    def __init__(self, session: Session, profile_id: Optional[str] = None) -> None:
        self.session = session
        self.profile_id = profile_id or get_current_profile_id()

    def list_all(
        self,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        filters: Optional[EntryFilters] = None,
        now: Optional[Union[date, datetime]] = None,
    ) -> list[Entry]:
        """Entries of the profile, newest first, narrowed by ``filters``."""
        stmt = select(Entry).where(Entry.profile_id == self.profile_id)
        if start is not None:
            stmt = stmt.where(Entry.date >= start)
        if end is not None:
            stmt = stmt.where(Entry.date <= end)
        if filters is not None:
            stmt = self._apply_filters(stmt, filters, now or local_now())
        stmt = stmt.order_by(Entry.date.desc(), Entry.recorded_at.desc(), Entry.id)
        return list(self.session.scalars(stmt).all())

    def _apply_filters(self, stmt, filters: EntryFilters, now):
        if filters.query:
            like = f"%{filters.query.strip().lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(func.coalesce(Entry.description, "")).like(like),
                    func.lower(Entry.category_name).like(like),
                )
            )
        if filters.kind:
            stmt = stmt.where(Entry.kind == filters.kind)
        if filters.payment_mode:
            stmt = stmt.where(Entry.payment_mode == filters.payment_mode)
        if filters.min_amount_cents is not None:
            stmt = stmt.where(Entry.amount_cents >= filters.min_amount_cents)
        if filters.max_amount_cents is not None:
            stmt = stmt.where(Entry.amount_cents <= filters.max_amount_cents)
        if filters.preset:
            start, end = preset_range(filters.preset, now, filters.custom_date)
            if start is not None:
                stmt = stmt.where(Entry.date >= start)
            if end is not None:
                stmt = stmt.where(Entry.date <= end)
        return stmt

    def get(self, entry_id: int) -> Entry:
        entry = self.session.get(Entry, entry_id)
        if not entry or entry.profile_id != self.profile_id:
            raise ValueError("Entry not found")
        return entry

    def _category_name(self, category_id: int) -> str:
        return CategoryService(self.session, self.profile_id).get(category_id).name

    def create(self, data: EntryIn) -> Entry:
        entry = Entry(
            profile_id=self.profile_id,
            date=data.date,
            recorded_at=data.recorded_at or local_now(),
            kind=data.kind,
            amount_cents=data.amount_cents,
            category_id=data.category_id,
            category_name=self._category_name(data.category_id),
            description=data.description,
            quantity=data.quantity,
            unit=data.unit,
            payment_mode=data.payment_mode,
        )
        self.session.add(entry)
        self.session.commit()
        self.session.refresh(entry)
        return entry

    def update(self, entry_id: int, data: EntryIn) -> Entry:
        entry = self.get(entry_id)
        entry.date = data.date
        entry.kind = data.kind
        entry.amount_cents = data.amount_cents
        entry.category_id = data.category_id
        entry.category_name = self._category_name(data.category_id)
        entry.description = data.description
        entry.quantity = data.quantity
        entry.unit = data.unit
        entry.payment_mode = data.payment_mode
        if data.recorded_at is not None:
            entry.recorded_at = data.recorded_at
        self.session.commit()
        self.session.refresh(entry)
        return entry

    def delete(self, entry_id: int) -> None:
        entry = self.get(entry_id)
        self.session.delete(entry)
        self.session.commit()


class OpeningBalanceService:
    """Manually declared starting liquidity per (profile, year, month)."""

    def __init__(self, session: Session, profile_id: Optional[str] = None) -> None:
        self.session = session
        self.profile_id = profile_id or get_current_profile_id()

    def _lines(self, year: int, month: int) -> list[OpeningBalanceLine]:
        stmt = (
            select(OpeningBalanceLine)
            .where(
                OpeningBalanceLine.profile_id == self.profile_id,
                OpeningBalanceLine.year == year,
                OpeningBalanceLine.month == month,
            )
            .order_by(OpeningBalanceLine.position, OpeningBalanceLine.id)
        )
        return list(self.session.scalars(stmt).all())

    def has_record(self, year: int, month: int) -> bool:
        return bool(self._lines(year, month))

    def get_entries(self, year: int, month: int) -> list[OpeningBalanceEntry]:
        return [
            OpeningBalanceEntry(
                id=line.entry_id, source=line.source, amount_cents=line.amount_cents
            )
            for line in self._lines(year, month)
        ]

    def get_total(self, year: int, month: int) -> int:
        return sum(line.amount_cents for line in self._lines(year, month))

    def save(self, year: int, month: int, entries: list[OpeningBalanceEntry]) -> None:
        """Replace the whole list for the month; this is not a merge."""
        key = MonthKey(year=year, month=month)
        ids = [item.id for item in entries]
        if len(set(ids)) != len(ids):
            raise ValueError("Duplicate opening balance id")
        self.session.execute(
            delete(OpeningBalanceLine).where(
                OpeningBalanceLine.profile_id == self.profile_id,
                OpeningBalanceLine.year == key.year,
                OpeningBalanceLine.month == key.month,
            )
        )
        for position, item in enumerate(entries):
            self.session.add(
                OpeningBalanceLine(
                    profile_id=self.profile_id,
                    year=key.year,
                    month=key.month,
                    position=position,
                    entry_id=item.id,
                    source=item.source,
                    amount_cents=item.amount_cents,
                )
            )
        self.session.commit()
        logger.info(
            f"opening_balance_saved: profile={self.profile_id} "
            f"year={key.year} month={key.month} lines={len(entries)}"
        )

    def carry_forward(self, year: int, month: int) -> list[OpeningBalanceEntry]:
        """Draft copies of the previous month's lines with fresh ids.

        Nothing is persisted; the caller decides whether to ``save`` them.
        """
        key = MonthKey(year=year, month=month)
        prev_year, prev_month = previous_month(key.year, key.month)
        return [
            OpeningBalanceEntry(source=item.source, amount_cents=item.amount_cents)
            for item in self.get_entries(prev_year, prev_month)
        ]


class StatsService:
    def __init__(self, session: Session, profile_id: Optional[str] = None) -> None:
        self.session = session
        self.profile_id = profile_id or get_current_profile_id()
        self.entries = EntryService(session, self.profile_id)
        self.categories = CategoryService(session, self.profile_id)
        self.opening_balances = OpeningBalanceService(session, self.profile_id)

    def period_stats(
        self,
        period: ReportPeriod,
        now: Optional[Union[date, datetime]] = None,
    ) -> StatsReport:
        now = now or local_now()
        return period_report(
            self.entries.list_all(), self.categories.list_all(), period, now
        )

    def month_stats(self, year: int, month: int) -> StatsReport:
        bounds = month_bounds(year, month)
        entries = self.entries.list_all(start=bounds.start, end=bounds.end)
        return month_report(
            entries,
            self.categories.list_all(),
            year,
            month,
            opening_balance_lookup=self.opening_balances.get_total,
        )

    def insights(
        self,
        year: int,
        month: int,
        now: Optional[Union[date, datetime]] = None,
    ) -> Insights:
        now = now or local_now()
        bounds = month_bounds(year, month)
        entries = self.entries.list_all(start=bounds.start, end=bounds.end)
        return compute_insights(entries, now, year, month)

    def month_entries(self, year: int, month: int) -> list[Entry]:
        bounds = month_bounds(year, month)
        return month_entries(
            self.entries.list_all(start=bounds.start, end=bounds.end), year, month
        )

    def months_with_data(self, year: int) -> set[int]:
        entries = self.entries.list_all(
            start=date(year, 1, 1), end=date(year, 12, 31)
        )
        return months_with_data(entries, year)
