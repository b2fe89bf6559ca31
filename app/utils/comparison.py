from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Iterable, Optional

from app.models.summary import MonthOverMonth
from app.utils.aggregation import month_key, parse_date, round_half_up, savings_rate, shift_month

if TYPE_CHECKING:
    from app.models.transaction import Transaction


def percent_change(current: float, previous: float) -> Optional[int]:
    """
    Signed percentage change from ``previous`` to ``current``.

    Returns None when there is no positive baseline, so "no prior data" is
    never confused with a 0% change.
    """
    if not previous > 0:
        return None
    return round_half_up((current - previous) / previous * 100)


def compute_month_over_month(
    transactions: Iterable["Transaction"],
    reference_date: date,
) -> MonthOverMonth:
    current_key = month_key(reference_date)
    previous_key = month_key(shift_month(reference_date, -1))

    current_income = current_expense = 0.0
    previous_income = previous_expense = 0.0

    for tx in transactions:
        day = parse_date(tx.date)
        if day is None:
            continue
        key = month_key(day)
        if key == current_key:
            if tx.type == "income":
                current_income += tx.amount
            elif tx.type == "expense":
                current_expense += tx.amount
        elif key == previous_key:
            if tx.type == "income":
                previous_income += tx.amount
            elif tx.type == "expense":
                previous_expense += tx.amount

    return MonthOverMonth(
        income_change=percent_change(current_income, previous_income),
        expense_change=percent_change(current_expense, previous_expense),
        net_change=percent_change(current_income - current_expense, previous_income - previous_expense),
        savings_change=percent_change(
            savings_rate(current_income, current_expense),
            savings_rate(previous_income, previous_expense),
        ),
    )
