from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from database import Base


class EntryKind(str, Enum):
    income = "INCOME"
    expense = "EXPENSE"


class PaymentMode(str, Enum):
    cash = "CASH"
    upi = "UPI"
    card = "CARD"
    bank = "BANK"
    wallet = "WALLET"
    net_banking = "NET_BANKING"
    other = "OTHER"


class ReportPeriod(str, Enum):
    today = "TODAY"
    yesterday = "YESTERDAY"
    week = "WEEK"
    month = "MONTH"
    year = "YEAR"


class DatePreset(str, Enum):
    today = "TODAY"
    yesterday = "YESTERDAY"
    this_week = "THIS_WEEK"
    last_7_days = "LAST_7_DAYS"
    this_month = "THIS_MONTH"
    last_30_days = "LAST_30_DAYS"
    custom = "CUSTOM"


class HealthRating(str, Enum):
    excellent = "EXCELLENT"
    deficit = "DEFICIT"
    healthy = "HEALTHY"
    stable = "STABLE"


ENTRY_KIND_ENUM = SAEnum(
    EntryKind,
    name="entrykind",
    values_callable=lambda enum_cls: [member.value for member in enum_cls],
)

PAYMENT_MODE_ENUM = SAEnum(
    PaymentMode,
    name="paymentmode",
    values_callable=lambda enum_cls: [member.value for member in enum_cls],
)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class Category(Base, TimestampMixin):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    profile_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    kind: Mapped[EntryKind] = mapped_column(ENTRY_KIND_ENUM, nullable=False)
    color: Mapped[str] = mapped_column(String(9), nullable=False, default="#cbd5e1")
    icon: Mapped[str] = mapped_column(String(50), nullable=False, default="Tag")

    __table_args__ = (Index("ix_categories_profile_kind", "profile_id", "kind"),)


class Entry(Base, TimestampMixin):
    __tablename__ = "entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    profile_id: Mapped[str] = mapped_column(String(64), nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    recorded_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    kind: Mapped[EntryKind] = mapped_column(ENTRY_KIND_ENUM, nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    # Plain column: a deleted category leaves the reference dangling.
    category_id: Mapped[int] = mapped_column(Integer, nullable=False)
    category_name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    quantity: Mapped[Decimal] = mapped_column(
        Numeric(12, 3), nullable=False, default=Decimal("1")
    )
    unit: Mapped[str] = mapped_column(String(20), nullable=False, default="unit")
    payment_mode: Mapped[PaymentMode] = mapped_column(
        PAYMENT_MODE_ENUM, nullable=False, default=PaymentMode.cash
    )

    __table_args__ = (
        Index("ix_entries_profile_date", "profile_id", "date"),
        Index("ix_entries_profile_kind_date", "profile_id", "kind", "date"),
        CheckConstraint("amount_cents >= 0", name="ck_entries_amount_positive"),
    )


class OpeningBalanceLine(Base, TimestampMixin):
    __tablename__ = "opening_balance_lines"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    profile_id: Mapped[str] = mapped_column(String(64), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    entry_id: Mapped[str] = mapped_column(String(32), nullable=False)
    source: Mapped[str] = mapped_column(String(100), nullable=False)
    # Negative amounts represent debt or an overdraft.
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "profile_id",
            "year",
            "month",
            "entry_id",
            name="uq_opening_balance_month_entry",
        ),
        Index("ix_opening_balance_profile_month", "profile_id", "year", "month"),
        CheckConstraint("month BETWEEN 1 AND 12", name="ck_opening_balance_month"),
    )
