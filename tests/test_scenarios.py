from __future__ import annotations

from runway_forecast.scenarios import (
    BASE_SCENARIO,
    SUMMARY_LABELS,
    default_scenarios,
    run_scenarios,
    scaled_scenario,
    scenario_comparison_frame,
    scenario_mrr_frame,
)


def test_default_scenarios_bracket_the_base(base_plan):
    results = run_scenarios(
        base_plan.months, base_plan.start_month, default_scenarios(base_plan.revenue), base_plan.expenses, base_plan.assumptions
    )
    assert list(results) == ["Downside", BASE_SCENARIO, "Upside"]
    arr = {name: r.summary.projected_arr for name, r in results.items()}
    assert arr["Downside"] < arr[BASE_SCENARIO] < arr["Upside"]


def test_scaled_scenario_to_zero_removes_new_business(base_plan):
    config = scaled_scenario(base_plan.revenue, 0.0)
    assert config.plg.monthly_trials == 0
    assert config.sales.monthly_sqls == 0
    assert config.partners.monthly_referrals == 0
    assert config.plg.avg_acv == base_plan.revenue.plg.avg_acv


def test_comparison_and_series_frames(base_plan):
    results = run_scenarios(
        base_plan.months, base_plan.start_month, default_scenarios(base_plan.revenue), base_plan.expenses, base_plan.assumptions
    )
    table = scenario_comparison_frame(results)
    assert list(table.columns) == ["Scenario", *SUMMARY_LABELS.values()]
    assert list(table["Scenario"]) == ["Downside", BASE_SCENARIO, "Upside"]

    series = scenario_mrr_frame(results)
    assert len(series) == 3 * base_plan.months
    assert set(series["Scenario"]) == {"Downside", BASE_SCENARIO, "Upside"}


def test_empty_scenario_set():
    assert scenario_comparison_frame({}).empty
    assert list(scenario_mrr_frame({}).columns) == ["Month", "MRR", "Cash Remaining", "Scenario"]
