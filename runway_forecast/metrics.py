"""Investor-facing summary metrics derived from the monthly forecast series."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Sequence

from runway_forecast.cash import INFINITE_RUNWAY, runway_months
from runway_forecast.inputs import AssumptionsInput, RevenueConfig
from runway_forecast.revenue import CHANNELS, channel_churn_rates, retention_factors

if TYPE_CHECKING:
    from runway_forecast.model import ForecastMonth


# Reported instead of an infinite or undefined ratio.
INFINITE_METRIC = INFINITE_RUNWAY
TRAILING_WINDOW_MONTHS = 12
# Customer lifetime used for LTV when churn is zero.
MAX_LIFETIME_MONTHS = 60


@dataclass
class ForecastSummary:
    projected_arr: float
    projected_mrr: float
    net_new_arr: float
    annual_nrr: float
    annual_grr: float
    total_customers: float
    cash_on_hand: float
    monthly_burn: float
    runway_months: float
    cac: float
    cac_payback_months: float
    ltv_cac_ratio: float
    burn_multiple: float
    rule_of_40: float

    def to_dict(self) -> dict:
        return asdict(self)


def _safe_div(a: float, b: float) -> float:
    return float(a / b) if b else 0.0


def _round2(value: float) -> float:
    return round(float(value), 2)


def _channel_mrr(month: "ForecastMonth") -> dict[str, float]:
    return {"plg": month.plg_mrr, "sales": month.sales_mrr, "partners": month.partner_mrr}


def trailing_retention(
    months: Sequence["ForecastMonth"], revenue: RevenueConfig, assumptions: AssumptionsInput
) -> tuple[float, float]:
    """Return (NRR %, GRR %) of the cohort present at the start of the trailing window.

    The window covers the last 12 month-over-month steps, or the whole series
    when it is shorter than 13 months. GRR is clamped to [0, 100].
    """
    if not months:
        return 0.0, 0.0
    anchor = max(0, len(months) - TRAILING_WINDOW_MONTHS - 1)
    steps = len(months) - 1 - anchor
    start = _channel_mrr(months[anchor])
    start_total = sum(start.values())
    if start_total <= 0:
        return 0.0, 0.0

    factors = retention_factors(revenue, assumptions)
    net = sum(start[c] * factors[c].net**steps for c in CHANNELS)
    gross = sum(start[c] * factors[c].gross**steps for c in CHANNELS)
    nrr = net / start_total * 100.0
    grr = min(100.0, max(0.0, gross / start_total * 100.0))
    return nrr, grr


def blended_churn_rate(month: "ForecastMonth", revenue: RevenueConfig, assumptions: AssumptionsInput) -> float:
    """MRR-weighted monthly churn percent across channels."""
    mrr = _channel_mrr(month)
    total = sum(mrr.values())
    if total <= 0:
        return float(assumptions.churn_rate)
    rates = channel_churn_rates(revenue, assumptions)
    return sum(mrr[c] * rates[c] for c in CHANNELS) / total


def _annualized_growth_pct(months: Sequence["ForecastMonth"]) -> float:
    last = months[-1].total_mrr
    if len(months) > TRAILING_WINDOW_MONTHS:
        base = months[-TRAILING_WINDOW_MONTHS - 1].total_mrr
        periods = TRAILING_WINDOW_MONTHS
    else:
        base = months[0].total_mrr
        periods = len(months) - 1
    if base <= 0:
        return 100.0 if last > 0 else 0.0
    if periods <= 0:
        return 0.0
    return (last - base) / base * 100.0 * TRAILING_WINDOW_MONTHS / periods


def _profit_margin_pct(month: "ForecastMonth") -> float:
    if month.total_mrr > 0:
        return (month.total_mrr - month.total_expense) / month.total_mrr * 100.0
    return -100.0 if month.total_expense > 0 else 0.0


def _cac_payback(cac: float, months: Sequence["ForecastMonth"]) -> float:
    if cac <= 0:
        return 0.0
    avg_new_mrr = _safe_div(sum(m.new_mrr for m in months), sum(m.new_customers for m in months))
    if avg_new_mrr <= 0:
        return INFINITE_METRIC
    return min(INFINITE_METRIC, cac / avg_new_mrr)


def _ltv_cac(cac: float, month: "ForecastMonth", revenue: RevenueConfig, assumptions: AssumptionsInput) -> float:
    if cac <= 0:
        return 0.0
    if month.total_customers > 0:
        arpa = month.total_mrr / month.total_customers
    else:
        arpa = float(assumptions.base_acv) / 12.0
    churn = blended_churn_rate(month, revenue, assumptions) / 100.0
    ltv = arpa / churn if churn > 0 else arpa * MAX_LIFETIME_MONTHS
    return ltv / cac


def _burn_multiple(monthly_burn: float, net_new_arr: float, horizon: int) -> float:
    if monthly_burn <= 0:
        return 0.0
    monthly_net_new_arr = _safe_div(net_new_arr, horizon)
    if monthly_net_new_arr <= 0:
        return INFINITE_METRIC
    return min(INFINITE_METRIC, monthly_burn / monthly_net_new_arr)


def empty_summary(assumptions: AssumptionsInput) -> ForecastSummary:
    return ForecastSummary(
        projected_arr=0.0,
        projected_mrr=0.0,
        net_new_arr=0.0,
        annual_nrr=0.0,
        annual_grr=0.0,
        total_customers=0.0,
        cash_on_hand=float(assumptions.cash_on_hand),
        monthly_burn=0.0,
        runway_months=0.0,
        cac=float(assumptions.cac),
        cac_payback_months=0.0,
        ltv_cac_ratio=0.0,
        burn_multiple=0.0,
        rule_of_40=0.0,
    )


def compute_summary(
    months: Sequence["ForecastMonth"], revenue: RevenueConfig, assumptions: AssumptionsInput
) -> ForecastSummary:
    if not months:
        return empty_summary(assumptions)

    first = months[0]
    last = months[-1]
    cac = float(assumptions.cac)
    net_new_arr = last.total_arr - first.total_arr
    nrr, grr = trailing_retention(months, revenue, assumptions)

    return ForecastSummary(
        projected_arr=_round2(last.total_arr),
        projected_mrr=_round2(last.total_mrr),
        net_new_arr=_round2(net_new_arr),
        annual_nrr=_round2(nrr),
        annual_grr=_round2(grr),
        total_customers=_round2(last.total_customers),
        cash_on_hand=float(assumptions.cash_on_hand),
        monthly_burn=_round2(last.net_burn),
        runway_months=_round2(runway_months(assumptions.cash_on_hand, [m.net_burn for m in months])),
        cac=cac,
        cac_payback_months=_round2(_cac_payback(cac, months)),
        ltv_cac_ratio=_round2(_ltv_cac(cac, last, revenue, assumptions)),
        burn_multiple=_round2(_burn_multiple(last.net_burn, net_new_arr, len(months))),
        rule_of_40=_round2(_annualized_growth_pct(months) + _profit_margin_pct(last)),
    )
