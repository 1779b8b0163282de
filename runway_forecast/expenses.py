"""Headcount and non-headcount expense amortization by month."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Sequence

import pandas as pd

from runway_forecast.calendar_utils import months_between
from runway_forecast.inputs import AssumptionsInput, ExpenseFrequency, ExpenseInput, ExpenseRow, HeadcountRow


@dataclass(frozen=True)
class ExpenseMonth:
    headcount_expense: float
    non_headcount_expense: float

    @property
    def total_expense(self) -> float:
        return self.headcount_expense + self.non_headcount_expense


def annual_step_factor(annual_rate_pct: float, start_month: str, month: str) -> float:
    """Compound `annual_rate_pct` once per full 12 months elapsed since `start_month`."""
    elapsed = months_between(start_month, month)
    years = max(0, elapsed) // 12
    return (1.0 + float(annual_rate_pct) / 100.0) ** years


def headcount_cost(row: HeadcountRow, month: str, assumptions: AssumptionsInput) -> float:
    if months_between(row.start_month, month) < 0:
        return 0.0
    growth = annual_step_factor(assumptions.salary_growth_rate, row.start_month, month)
    loaded = float(row.base_salary) * (1.0 + float(assumptions.salary_tax_rate) / 100.0)
    return loaded * float(row.fte) * growth


def _is_active(row: ExpenseRow, month: str) -> bool:
    if months_between(row.start_month, month) < 0:
        return False
    if row.end_month and months_between(row.end_month, month) > 0:
        return False
    return True


def _monthly_charge(row: ExpenseRow, month: str, inflation: float) -> float:
    return float(row.amount) * inflation


def _annual_charge(row: ExpenseRow, month: str, inflation: float) -> float:
    return float(row.amount) * inflation / 12.0


def _one_time_charge(row: ExpenseRow, month: str, inflation: float) -> float:
    return float(row.amount) if month == row.start_month else 0.0


_CHARGE_BY_FREQUENCY: dict[ExpenseFrequency, Callable[[ExpenseRow, str, float], float]] = {
    ExpenseFrequency.MONTHLY: _monthly_charge,
    ExpenseFrequency.ANNUAL: _annual_charge,
    ExpenseFrequency.ONE_TIME: _one_time_charge,
}


def non_headcount_cost(row: ExpenseRow, month: str, assumptions: AssumptionsInput) -> float:
    if not _is_active(row, month):
        return 0.0
    charge = _CHARGE_BY_FREQUENCY[ExpenseFrequency(row.frequency)]
    inflation = annual_step_factor(assumptions.inflation_rate, row.start_month, month)
    return charge(row, month, inflation)


def expenses_for_month(expenses: ExpenseInput, month: str, assumptions: AssumptionsInput) -> ExpenseMonth:
    """Total headcount and non-headcount cost for one "YYYY-MM" month."""
    headcount = sum(headcount_cost(row, month, assumptions) for row in expenses.headcount)
    non_headcount = sum(non_headcount_cost(row, month, assumptions) for row in expenses.non_headcount)
    return ExpenseMonth(headcount_expense=float(headcount), non_headcount_expense=float(non_headcount))


def expenses_by_category(expenses: ExpenseInput, month: str, assumptions: AssumptionsInput) -> dict[str, float]:
    """Per-category cost for one month (headcount and non-headcount combined)."""
    totals: dict[str, float] = defaultdict(float)
    for row in expenses.headcount:
        totals[row.category] += headcount_cost(row, month, assumptions)
    for row in expenses.non_headcount:
        totals[row.category] += non_headcount_cost(row, month, assumptions)
    return dict(totals)


def expense_category_frame(expenses: ExpenseInput, months: Sequence[str], assumptions: AssumptionsInput) -> pd.DataFrame:
    """Wide table of per-category cost, one row per month."""
    rows = [{"Month": month, **expenses_by_category(expenses, month, assumptions)} for month in months]
    df = pd.DataFrame(rows)
    if df.empty:
        return pd.DataFrame(columns=["Month"])
    return df.fillna(0.0).round(2)
