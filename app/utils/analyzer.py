from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import List, Optional, Sequence

from app.models.summary import DashboardSummary, MonthlyBucket
from app.models.transaction import Transaction
from app.utils.aggregation import (
    compute_category_breakdown,
    compute_monthly_buckets,
    compute_totals,
    month_key,
)
from app.utils.comparison import compute_month_over_month
from app.utils.health import HealthScorer


class FinanceAnalyzer:
    """
    Dashboard analytics for one owner's transactions: totals, category
    breakdown, monthly trend, month-over-month deltas and the health score.
    Stateless apart from the health thresholds loaded at construction, so a
    single instance can be shared between requests.
    """

    def __init__(
        self,
        health_thresholds_path: Optional[str | Path] = None,
        trend_months: int = 6,
    ) -> None:
        self._trend_months = trend_months
        self._scorer = HealthScorer.from_file(health_thresholds_path)

    @property
    def scorer(self) -> HealthScorer:
        return self._scorer

    def monthly_trend(
        self,
        transactions: Sequence[Transaction],
        reference_date: date,
        months: Optional[int] = None,
    ) -> List[MonthlyBucket]:
        if months is None:
            months = self._trend_months
        return compute_monthly_buckets(transactions, months, reference_date)

    def summarize(
        self,
        transactions: Sequence[Transaction],
        reference_date: date,
        months: Optional[int] = None,
    ) -> DashboardSummary:
        totals = compute_totals(transactions)
        breakdown = compute_category_breakdown(transactions)

        return DashboardSummary(
            reference_month=month_key(reference_date),
            transaction_count=len(transactions),
            totals=totals,
            category_breakdown=breakdown,
            monthly_buckets=self.monthly_trend(transactions, reference_date, months),
            month_over_month=compute_month_over_month(transactions, reference_date),
            health_score=self._scorer.score(transactions, totals, breakdown),
            health_components=self._scorer.components(transactions, totals, breakdown),
        )
