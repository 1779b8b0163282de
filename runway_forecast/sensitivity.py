"""One-way sensitivity analysis helpers."""

from __future__ import annotations

from dataclasses import fields, replace

import pandas as pd

from runway_forecast.model import ForecastResult, build_forecast
from runway_forecast.schema import PCT_FIELDS, PlanInputs


DEFAULT_SENSITIVITY_DRIVERS = [
    "plg.monthly_trials",
    "plg.trial_conversion_rate",
    "plg.churn_rate",
    "sales.monthly_sqls",
    "sales.close_rate",
    "partners.monthly_referrals",
    "partners.commission_rate",
    "assumptions.cac",
    "assumptions.churn_rate",
    "assumptions.salary_tax_rate",
    "assumptions.cash_on_hand",
]


TARGET_OPTIONS = [
    "Projected ARR",
    "Net New ARR",
    "Runway Months",
    "Minimum Cash Remaining",
    "Total Expense",
    "Burn Multiple",
    "LTV/CAC",
]

_SECTIONS = ("plg", "sales", "partners", "assumptions")


def available_sensitivity_drivers(plan: PlanInputs) -> list[str]:
    drivers = []
    for section in _SECTIONS:
        record = _section(plan, section)
        drivers.extend(f"{section}.{f.name}" for f in fields(record))
    return sorted(drivers)


def _section(plan: PlanInputs, section: str):
    if section == "assumptions":
        return plan.assumptions
    return getattr(plan.revenue, section)


def scale_driver(plan: PlanInputs, driver: str, mult: float) -> PlanInputs:
    """Return a copy of `plan` with one numeric driver multiplied by `mult`."""
    section, _, name = driver.partition(".")
    if section not in _SECTIONS:
        raise ValueError(f"Unknown sensitivity driver: {driver}")
    record = _section(plan, section)
    value = float(getattr(record, name)) * float(mult)
    if name in PCT_FIELDS[section]:
        value = min(max(value, 0.0), 100.0)
    updated = replace(record, **{name: value})
    if section == "assumptions":
        return replace(plan, assumptions=updated)
    return replace(plan, revenue=replace(plan.revenue, **{section: updated}))


def run_plan(plan: PlanInputs) -> ForecastResult:
    return build_forecast(plan.months, plan.start_month, plan.revenue, plan.expenses, plan.assumptions)


def evaluate_outputs(result: ForecastResult) -> dict:
    s = result.summary
    return {
        "Projected ARR": s.projected_arr,
        "Net New ARR": s.net_new_arr,
        "Runway Months": s.runway_months,
        "Minimum Cash Remaining": min((m.cash_remaining for m in result.months), default=s.cash_on_hand),
        "Total Expense": float(sum(m.total_expense for m in result.months)),
        "Burn Multiple": s.burn_multiple,
        "LTV/CAC": s.ltv_cac_ratio,
    }


def run_one_way_sensitivity(plan: PlanInputs, delta_pct: float, drivers: list[str] | None = None) -> pd.DataFrame:
    base = evaluate_outputs(run_plan(plan))

    if drivers is None or len(drivers) == 0:
        drivers = list(DEFAULT_SENSITIVITY_DRIVERS)

    rows = []
    for driver in drivers:
        for case, mult in [("Low", 1 - delta_pct), ("High", 1 + delta_pct)]:
            out = evaluate_outputs(run_plan(scale_driver(plan, driver, mult)))
            rows.append(
                {
                    "Driver": driver,
                    "Case": case,
                    **{k: out[k] for k in base.keys()},
                    **{f"Delta {k}": out[k] - base[k] for k in base.keys()},
                }
            )

    return pd.DataFrame(rows)
