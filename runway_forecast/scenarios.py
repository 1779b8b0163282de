"""Side-by-side forecasts for alternative revenue configurations."""

from __future__ import annotations

from dataclasses import replace
from typing import Mapping

import pandas as pd

from runway_forecast.defaults import DEFAULT_REVENUE_CONFIG
from runway_forecast.inputs import AssumptionsInput, ExpenseInput, RevenueConfig
from runway_forecast.model import ForecastResult, build_forecast


BASE_SCENARIO = "Base"

SUMMARY_LABELS = {
    "projected_arr": "Projected ARR",
    "projected_mrr": "Projected MRR",
    "net_new_arr": "Net New ARR",
    "annual_nrr": "NRR %",
    "annual_grr": "GRR %",
    "total_customers": "Customers",
    "monthly_burn": "Monthly Burn",
    "runway_months": "Runway Months",
    "cac_payback_months": "CAC Payback Months",
    "ltv_cac_ratio": "LTV/CAC",
    "burn_multiple": "Burn Multiple",
    "rule_of_40": "Rule of 40",
}


def scaled_scenario(config: RevenueConfig, volume_mult: float) -> RevenueConfig:
    """Scale top-of-funnel volume (trials, SQLs, referrals) of every channel."""
    mult = max(0.0, float(volume_mult))
    return RevenueConfig(
        plg=replace(config.plg, monthly_trials=config.plg.monthly_trials * mult),
        sales=replace(config.sales, monthly_sqls=config.sales.monthly_sqls * mult),
        partners=replace(config.partners, monthly_referrals=config.partners.monthly_referrals * mult),
    )


def default_scenarios(base: RevenueConfig = DEFAULT_REVENUE_CONFIG) -> dict[str, RevenueConfig]:
    return {
        "Downside": scaled_scenario(base, 0.5),
        BASE_SCENARIO: base,
        "Upside": scaled_scenario(base, 1.5),
    }


def run_scenarios(
    months: int,
    start_month: str,
    scenarios: Mapping[str, RevenueConfig],
    expenses: ExpenseInput,
    assumptions: AssumptionsInput,
) -> dict[str, ForecastResult]:
    """Run one independent forecast per named revenue configuration."""
    return {
        name: build_forecast(months, start_month, config, expenses, assumptions) for name, config in scenarios.items()
    }


def scenario_comparison_frame(results: Mapping[str, ForecastResult]) -> pd.DataFrame:
    rows = []
    for name, result in results.items():
        summary = result.summary.to_dict()
        rows.append({"Scenario": name, **{label: summary[key] for key, label in SUMMARY_LABELS.items()}})
    return pd.DataFrame(rows, columns=["Scenario", *SUMMARY_LABELS.values()])


def scenario_mrr_frame(results: Mapping[str, ForecastResult]) -> pd.DataFrame:
    """Long-format MRR and cash series for charting scenarios together."""
    frames = []
    for name, result in results.items():
        df = result.to_frame()[["Month", "MRR", "Cash Remaining"]].copy()
        df["Scenario"] = name
        frames.append(df)
    if not frames:
        return pd.DataFrame(columns=["Month", "MRR", "Cash Remaining", "Scenario"])
    return pd.concat(frames, ignore_index=True)
