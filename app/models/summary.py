from typing import List, Optional

from pydantic import BaseModel


class Totals(BaseModel):
    income: float = 0.0
    expenses: float = 0.0
    net: float = 0.0
    savings_rate: int = 0


class CategoryTotal(BaseModel):
    category: str
    total: float


class MonthlyBucket(BaseModel):
    month: str  # YYYY-MM
    income: float = 0.0
    expenses: float = 0.0


class MonthOverMonth(BaseModel):
    # None means there was no previous-month baseline to compare against
    income_change: Optional[int] = None
    expense_change: Optional[int] = None
    net_change: Optional[int] = None
    savings_change: Optional[int] = None


class HealthComponents(BaseModel):
    savings: int
    expense_ratio: int
    diversification: int
    consistency: int


class DashboardSummary(BaseModel):
    reference_month: str
    transaction_count: int
    totals: Totals
    category_breakdown: List[CategoryTotal]
    monthly_buckets: List[MonthlyBucket]
    month_over_month: MonthOverMonth
    health_score: int
    health_components: HealthComponents
