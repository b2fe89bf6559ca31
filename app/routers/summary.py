import logging
from datetime import date, datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.config import settings
from app.core.security import get_current_user_id
from app.db.store import StoreUnavailable, TransactionStore, get_transaction_store
from app.models.summary import DashboardSummary, MonthlyBucket
from app.utils.analyzer import FinanceAnalyzer

router = APIRouter()
logger = logging.getLogger(__name__)
finance_analyzer = FinanceAnalyzer(settings.HEALTH_THRESHOLDS_JSON, trend_months=settings.TREND_MONTHS)


def get_today() -> date:
    """The only place the wall clock is read; override in tests."""
    return datetime.utcnow().date()


def _reference_date(as_of: Optional[date], today: date) -> date:
    return as_of or today


def _load(store: TransactionStore, user_id: str):
    try:
        return store.get(user_id)
    except StoreUnavailable as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@router.get("", response_model=DashboardSummary)
def get_summary(
    months: int = Query(default=settings.TREND_MONTHS, ge=1, le=120),
    as_of: Optional[date] = Query(default=None, description="Reference date, YYYY-MM-DD"),
    today: date = Depends(get_today),
    user_id: str = Depends(get_current_user_id),
    store: TransactionStore = Depends(get_transaction_store),
) -> DashboardSummary:
    transactions = _load(store, user_id)
    reference = _reference_date(as_of, today)
    logger.info(f"Summarizing {len(transactions)} transactions for user {user_id} as of {reference}")
    return finance_analyzer.summarize(transactions, reference, months)


@router.get("/monthly")
def get_monthly_trend(
    months: int = Query(default=settings.TREND_MONTHS, ge=1, le=120),
    as_of: Optional[date] = Query(default=None),
    today: date = Depends(get_today),
    user_id: str = Depends(get_current_user_id),
    store: TransactionStore = Depends(get_transaction_store),
) -> Dict[str, List[MonthlyBucket]]:
    transactions = _load(store, user_id)
    return {"buckets": finance_analyzer.monthly_trend(transactions, _reference_date(as_of, today), months)}
