# routers/v1/reports.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from schemas import ReceivablesOut
from services.revenue import receivables, revenue_by_source

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/revenue-by-source")
def get_revenue_by_source(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    if date_from and date_to and date_from > date_to:
        raise HTTPException(status_code=400, detail="date_from must be on or before date_to")
    buckets = revenue_by_source(db, date_from=date_from, date_to=date_to)
    return {
        "currency": settings.currency,
        "date_from": date_from,
        "date_to": date_to,
        "sources": {k: float(v) for k, v in buckets.items()},
        "total": float(sum(buckets.values())),
    }


@router.get("/receivables", response_model=ReceivablesOut)
def get_receivables(db: Session = Depends(get_db)):
    return receivables(db)
