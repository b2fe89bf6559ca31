"""
Pure aggregation helpers over a user's transaction list.

Nothing in here reads the clock or touches storage: callers pass the
reference date explicitly and get back fresh summary models.
"""
from __future__ import annotations

import math
import re
from collections import defaultdict
from datetime import date, datetime
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

from app.models.summary import CategoryTotal, MonthlyBucket, Totals

if TYPE_CHECKING:
    from app.models.transaction import Transaction

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_date(value: object) -> Optional[date]:
    """Parse a ``YYYY-MM-DD`` string, returning None for anything malformed or unreal."""
    if not isinstance(value, str) or not _DATE_PATTERN.match(value):
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None


def month_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def shift_month(day: date, delta: int) -> date:
    """First day of the month ``delta`` months away from ``day``."""
    index = day.year * 12 + (day.month - 1) + delta
    return date(index // 12, index % 12 + 1, 1)


def round_half_up(value: float) -> Optional[int]:
    """Half-up rounding (.5 goes towards +inf); None for inf/nan."""
    if not math.isfinite(value):
        return None
    return int(math.floor(value + 0.5))


def to_cents(value: float) -> float:
    return round(value, 2)


def savings_rate(income: float, expenses: float) -> int:
    if income > 0:
        rate = round_half_up((income - expenses) / income * 100)
        return rate if rate is not None else 0
    return 0


def compute_totals(transactions: Iterable["Transaction"]) -> Totals:
    income = 0.0
    expenses = 0.0
    for tx in transactions:
        if tx.type == "income":
            income += tx.amount
        elif tx.type == "expense":
            expenses += tx.amount
    income, expenses = to_cents(income), to_cents(expenses)
    return Totals(
        income=income,
        expenses=expenses,
        net=to_cents(income - expenses),
        savings_rate=savings_rate(income, expenses),
    )


def compute_category_breakdown(transactions: Iterable["Transaction"]) -> List[CategoryTotal]:
    """Expense totals per category, largest first. Ties keep first-seen order."""
    groups: Dict[str, float] = {}
    for tx in transactions:
        if tx.type != "expense":
            continue
        groups[tx.category] = groups.get(tx.category, 0.0) + tx.amount

    ordered = sorted(groups.items(), key=lambda item: item[1], reverse=True)
    return [CategoryTotal(category=name, total=to_cents(total)) for name, total in ordered]


def last_n_month_keys(n: int, reference_date: date) -> List[str]:
    return [month_key(shift_month(reference_date, -offset)) for offset in range(n - 1, -1, -1)]


def compute_monthly_buckets(
    transactions: Iterable["Transaction"],
    n: int,
    reference_date: date,
) -> List[MonthlyBucket]:
    keys = last_n_month_keys(n, reference_date)
    sums: Dict[str, Dict[str, float]] = defaultdict(lambda: {"income": 0.0, "expenses": 0.0})

    window = set(keys)
    for tx in transactions:
        day = parse_date(tx.date)
        if day is None:
            continue
        key = month_key(day)
        if key not in window:
            continue
        if tx.type == "income":
            sums[key]["income"] += tx.amount
        elif tx.type == "expense":
            sums[key]["expenses"] += tx.amount

    return [
        MonthlyBucket(month=key, income=to_cents(sums[key]["income"]), expenses=to_cents(sums[key]["expenses"]))
        for key in keys
    ]
