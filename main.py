import logging
from dataclasses import asdict
from datetime import date
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Response
from sqlalchemy.orm import Session

from config import get_settings
from database import get_db
from models import DatePreset, EntryKind, PaymentMode, ReportPeriod
from schemas import (
    CategoryIn,
    CategoryOut,
    CategoryUpdate,
    EntryIn,
    EntryOut,
    MonthKey,
    OpeningBalanceEntry,
)
from services import (
    CategoryService,
    EntryFilters,
    EntryService,
    OpeningBalanceService,
    StatsService,
)


logging.basicConfig(level=get_settings().log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Ledger Insights")


def profile_from_request(x_profile_id: Optional[str] = Header(default=None)) -> str:
    return x_profile_id or get_settings().default_profile_id


def month_key(year: int, month: int) -> MonthKey:
    try:
        return MonthKey(year=year, month=month)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


def _service_error(exc: ValueError) -> HTTPException:
    status = 404 if "not found" in str(exc).lower() else 400
    return HTTPException(status_code=status, detail=str(exc))


@app.get("/api/stats")
def api_stats(
    period: ReportPeriod = ReportPeriod.month,
    db: Session = Depends(get_db),
    profile_id: str = Depends(profile_from_request),
):
    return asdict(StatsService(db, profile_id).period_stats(period))


@app.get("/api/months/{year}/{month}")
def api_month(
    year: int,
    month: int,
    db: Session = Depends(get_db),
    profile_id: str = Depends(profile_from_request),
):
    key = month_key(year, month)
    service = StatsService(db, profile_id)
    report = service.month_stats(key.year, key.month)
    entries = service.month_entries(key.year, key.month)
    return {
        **asdict(report),
        "entries": [
            EntryOut.model_validate(e).model_dump(mode="json") for e in entries
        ],
    }


@app.get("/api/insights/{year}/{month}")
def api_insights(
    year: int,
    month: int,
    db: Session = Depends(get_db),
    profile_id: str = Depends(profile_from_request),
):
    key = month_key(year, month)
    service = StatsService(db, profile_id)
    insights = service.insights(key.year, key.month)
    return {
        **asdict(insights),
        "headline_expense": insights.headline_expense,
        "savings_progress": insights.savings_progress,
        "months_with_data": sorted(service.months_with_data(key.year)),
    }


@app.get("/api/opening-balances/{year}/{month}")
def api_opening_balances(
    year: int,
    month: int,
    db: Session = Depends(get_db),
    profile_id: str = Depends(profile_from_request),
):
    key = month_key(year, month)
    service = OpeningBalanceService(db, profile_id)
    return {
        "year": key.year,
        "month": key.month,
        "entries": service.get_entries(key.year, key.month),
        "total_cents": service.get_total(key.year, key.month),
    }


@app.put("/api/opening-balances/{year}/{month}")
def api_save_opening_balances(
    year: int,
    month: int,
    entries: list[OpeningBalanceEntry],
    db: Session = Depends(get_db),
    profile_id: str = Depends(profile_from_request),
):
    key = month_key(year, month)
    service = OpeningBalanceService(db, profile_id)
    try:
        service.save(key.year, key.month, entries)
    except ValueError as exc:
        raise _service_error(exc) from exc
    return {
        "year": key.year,
        "month": key.month,
        "entries": service.get_entries(key.year, key.month),
        "total_cents": service.get_total(key.year, key.month),
    }


@app.post("/api/opening-balances/{year}/{month}/carry-forward")
def api_carry_forward(
    year: int,
    month: int,
    db: Session = Depends(get_db),
    profile_id: str = Depends(profile_from_request),
):
    key = month_key(year, month)
    drafts = OpeningBalanceService(db, profile_id).carry_forward(key.year, key.month)
    return {"year": key.year, "month": key.month, "entries": drafts}


@app.get("/api/categories", response_model=list[CategoryOut])
def api_categories(
    db: Session = Depends(get_db),
    profile_id: str = Depends(profile_from_request),
):
    return CategoryService(db, profile_id).ensure_defaults()


@app.post("/api/categories", response_model=CategoryOut, status_code=201)
def api_create_category(
    data: CategoryIn,
    db: Session = Depends(get_db),
    profile_id: str = Depends(profile_from_request),
):
    return CategoryService(db, profile_id).create(data)


@app.patch("/api/categories/{category_id}", response_model=CategoryOut)
def api_update_category(
    category_id: int,
    data: CategoryUpdate,
    db: Session = Depends(get_db),
    profile_id: str = Depends(profile_from_request),
):
    try:
        return CategoryService(db, profile_id).update(category_id, data)
    except ValueError as exc:
        raise _service_error(exc) from exc


@app.delete("/api/categories/{category_id}", status_code=204)
def api_delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    profile_id: str = Depends(profile_from_request),
):
    try:
        CategoryService(db, profile_id).delete(category_id)
    except ValueError as exc:
        raise _service_error(exc) from exc
    return Response(status_code=204)


@app.get("/api/entries", response_model=list[EntryOut])
def api_entries(
    q: Optional[str] = None,
    kind: Optional[EntryKind] = None,
    payment_mode: Optional[PaymentMode] = None,
    min_amount: Optional[int] = Query(default=None, ge=0),
    max_amount: Optional[int] = Query(default=None, ge=0),
    preset: Optional[DatePreset] = None,
    custom_date: Optional[date] = None,
    db: Session = Depends(get_db),
    profile_id: str = Depends(profile_from_request),
):
    filters = EntryFilters(
        query=q,
        kind=kind,
        payment_mode=payment_mode,
        min_amount_cents=min_amount,
        max_amount_cents=max_amount,
        preset=preset,
        custom_date=custom_date,
    )
    return EntryService(db, profile_id).list_all(filters=filters)


@app.post("/api/entries", response_model=EntryOut, status_code=201)
def api_create_entry(
    data: EntryIn,
    db: Session = Depends(get_db),
    profile_id: str = Depends(profile_from_request),
):
    try:
        entry = EntryService(db, profile_id).create(data)
    except ValueError as exc:
        raise _service_error(exc) from exc
    logger.info(f"entry_created: profile={profile_id} entry={entry.id}")
    return entry


@app.put("/api/entries/{entry_id}", response_model=EntryOut)
def api_update_entry(
    entry_id: int,
    data: EntryIn,
    db: Session = Depends(get_db),
    profile_id: str = Depends(profile_from_request),
):
    try:
        return EntryService(db, profile_id).update(entry_id, data)
    except ValueError as exc:
        raise _service_error(exc) from exc


@app.delete("/api/entries/{entry_id}", status_code=204)
def api_delete_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    profile_id: str = Depends(profile_from_request),
):
    try:
        EntryService(db, profile_id).delete(entry_id)
    except ValueError as exc:
        raise _service_error(exc) from exc
    return Response(status_code=204)
