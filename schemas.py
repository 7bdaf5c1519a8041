import datetime as dt
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from models import EntryKind, PaymentMode


class CategoryIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    kind: EntryKind
    color: str = Field(default="#cbd5e1", max_length=9)
    icon: str = Field(default="Tag", max_length=50)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    color: Optional[str] = Field(default=None, max_length=9)
    icon: Optional[str] = Field(default=None, max_length=50)


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    kind: EntryKind
    color: str
    icon: str


class EntryIn(BaseModel):
    date: date
    recorded_at: Optional[datetime] = None
    kind: EntryKind
    amount_cents: int = Field(..., ge=0)
    category_id: int
    description: Optional[str] = Field(default=None, max_length=200)
    quantity: Decimal = Field(default=Decimal("1"), gt=0)
    unit: str = Field(default="unit", max_length=20)
    payment_mode: PaymentMode = PaymentMode.cash


class EntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date: dt.date
    recorded_at: datetime
    kind: EntryKind
    amount_cents: int
    category_id: int
    category_name: str
    description: Optional[str]
    quantity: Decimal
    unit: str
    payment_mode: PaymentMode


def _new_line_id() -> str:
    return uuid4().hex


class OpeningBalanceEntry(BaseModel):
    id: str = Field(default_factory=_new_line_id, min_length=1, max_length=32)
    source: str = Field(..., min_length=1, max_length=100)
    amount_cents: int


class MonthKey(BaseModel):
    year: int = Field(..., ge=1970, le=3000)
    month: int = Field(..., ge=1, le=12)
