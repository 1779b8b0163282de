from __future__ import annotations

import pytest

from runway_forecast.sensitivity import (
    DEFAULT_SENSITIVITY_DRIVERS,
    TARGET_OPTIONS,
    available_sensitivity_drivers,
    run_one_way_sensitivity,
    scale_driver,
)


def test_sensitivity_has_low_and_high_rows_per_driver(base_plan):
    df = run_one_way_sensitivity(base_plan, 0.1, ["plg.monthly_trials", "assumptions.cash_on_hand"])
    assert len(df) == 4
    assert set(df["Case"]) == {"Low", "High"}
    for target in TARGET_OPTIONS:
        assert f"Delta {target}" in df.columns


def test_more_trials_raise_arr(base_plan):
    df = run_one_way_sensitivity(base_plan, 0.2, ["plg.monthly_trials"]).set_index("Case")
    assert df.loc["High", "Delta Projected ARR"] > 0
    assert df.loc["Low", "Delta Projected ARR"] < 0


def test_cash_does_not_move_revenue(base_plan):
    df = run_one_way_sensitivity(base_plan, 0.2, ["assumptions.cash_on_hand"])
    assert (df["Delta Projected ARR"] == 0).all()
    assert (df.set_index("Case").loc["High", "Delta Minimum Cash Remaining"]) == pytest.approx(200_000, abs=0.01)


def test_default_driver_list_used_when_none_selected(base_plan):
    df = run_one_way_sensitivity(base_plan, 0.1, drivers=[])
    assert sorted(df["Driver"].unique()) == sorted(DEFAULT_SENSITIVITY_DRIVERS)


def test_scale_driver_clamps_percentages(base_plan):
    plan = scale_driver(base_plan, "plg.churn_rate", 100)
    assert plan.revenue.plg.churn_rate == 100.0
    assert base_plan.revenue.plg.churn_rate == 3.0


def test_scale_driver_rejects_unknown_section(base_plan):
    with pytest.raises(ValueError):
        scale_driver(base_plan, "pricing.list_price", 1.1)


def test_available_drivers_cover_every_section(base_plan):
    drivers = available_sensitivity_drivers(base_plan)
    assert "assumptions.cac" in drivers
    assert "partners.commission_rate" in drivers
    assert set(DEFAULT_SENSITIVITY_DRIVERS) <= set(drivers)
