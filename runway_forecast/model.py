"""Forecast engine: month-by-month SaaS revenue, expense, cash and summary metrics."""

from __future__ import annotations

from dataclasses import asdict, dataclass

import pandas as pd

from runway_forecast.calendar_utils import add_months, parse_month
from runway_forecast.cash import CashPosition, advance_cash, net_burn
from runway_forecast.expenses import expenses_for_month
from runway_forecast.inputs import AssumptionsInput, ExpenseInput, RevenueConfig
from runway_forecast.metrics import ForecastSummary, compute_summary
from runway_forecast.revenue import RevenueState, advance_revenue


@dataclass
class ForecastMonth:
    month_index: int
    date: str

    plg_mrr: float
    sales_mrr: float
    partner_mrr: float
    total_mrr: float
    total_arr: float

    plg_customers: float
    sales_customers: float
    partner_customers: float
    total_customers: float
    new_plg_customers: float
    new_sales_customers: float
    new_partner_customers: float
    new_customers: float

    new_mrr: float
    churned_mrr: float
    expansion_mrr: float

    headcount_expense: float
    non_headcount_expense: float
    total_expense: float

    net_burn: float
    cumulative_burn: float
    cash_remaining: float


@dataclass
class ForecastResult:
    months: list[ForecastMonth]
    summary: ForecastSummary

    def to_dict(self) -> dict:
        return {"months": [asdict(m) for m in self.months], "summary": self.summary.to_dict()}

    def to_frame(self) -> pd.DataFrame:
        return forecast_frame(self)


MONTH_COLUMNS = [
    ("month_index", "Month Index"),
    ("date", "Month"),
    ("plg_mrr", "PLG MRR"),
    ("sales_mrr", "Sales MRR"),
    ("partner_mrr", "Partner MRR"),
    ("total_mrr", "MRR"),
    ("total_arr", "ARR"),
    ("plg_customers", "PLG Customers"),
    ("sales_customers", "Sales Customers"),
    ("partner_customers", "Partner Customers"),
    ("total_customers", "Total Customers"),
    ("new_customers", "New Customers"),
    ("new_mrr", "New MRR"),
    ("churned_mrr", "Churned MRR"),
    ("expansion_mrr", "Expansion MRR"),
    ("headcount_expense", "Headcount Expense"),
    ("non_headcount_expense", "Non-Headcount Expense"),
    ("total_expense", "Total Expense"),
    ("net_burn", "Net Burn"),
    ("cumulative_burn", "Cumulative Burn"),
    ("cash_remaining", "Cash Remaining"),
]


def _round2(value: float) -> float:
    return round(float(value), 2)


def build_forecast(
    months: int,
    start_month: str,
    revenue: RevenueConfig,
    expenses: ExpenseInput,
    assumptions: AssumptionsInput,
) -> ForecastResult:
    """Project `months` months starting at `start_month` ("YYYY-MM").

    Revenue channels, expenses and cash are recomputed from scratch on every
    call; the inputs are never modified.
    """
    parse_month(start_month)
    if int(months) < 0:
        raise ValueError("months must be non-negative.")

    out: list[ForecastMonth] = []
    revenue_state = RevenueState()
    cash = CashPosition(cash_on_hand=float(assumptions.cash_on_hand))

    for m in range(int(months)):
        date = add_months(start_month, m)
        revenue_state, rev = advance_revenue(revenue, assumptions, revenue_state)
        cost = expenses_for_month(expenses, date, assumptions)
        headcount = _round2(cost.headcount_expense)
        non_headcount = _round2(cost.non_headcount_expense)

        total_mrr = rev.total_mrr
        burn = net_burn(cost.total_expense, total_mrr)
        cash = advance_cash(cash, burn)

        out.append(
            ForecastMonth(
                month_index=m,
                date=date,
                plg_mrr=_round2(rev.plg_mrr),
                sales_mrr=_round2(rev.sales_mrr),
                partner_mrr=_round2(rev.partner_mrr),
                total_mrr=_round2(total_mrr),
                total_arr=_round2(total_mrr * 12),
                plg_customers=_round2(rev.plg_customers),
                sales_customers=_round2(rev.sales_customers),
                partner_customers=_round2(rev.partner_customers),
                total_customers=_round2(rev.total_customers),
                new_plg_customers=_round2(rev.new_plg_customers),
                new_sales_customers=_round2(rev.new_sales_customers),
                new_partner_customers=_round2(rev.new_partner_customers),
                new_customers=_round2(rev.new_customers),
                new_mrr=_round2(rev.new_mrr),
                churned_mrr=_round2(rev.churned_mrr),
                expansion_mrr=_round2(rev.expansion_mrr),
                headcount_expense=headcount,
                non_headcount_expense=non_headcount,
                total_expense=_round2(headcount + non_headcount),
                net_burn=_round2(burn),
                cumulative_burn=_round2(cash.cumulative_burn),
                cash_remaining=_round2(cash.cash_remaining),
            )
        )

    return ForecastResult(months=out, summary=compute_summary(out, revenue, assumptions))


def forecast_frame(result: ForecastResult) -> pd.DataFrame:
    """Tabular view of the monthly series with display column names."""
    columns = [field for field, _ in MONTH_COLUMNS]
    df = pd.DataFrame([asdict(m) for m in result.months], columns=columns)
    return df.rename(columns=dict(MONTH_COLUMNS))
