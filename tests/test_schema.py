from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal

import pytest

from runway_forecast.defaults import DEFAULT_ASSUMPTIONS, DEFAULT_HORIZON_MONTHS, DEFAULT_REVENUE_CONFIG, DEFAULT_START_MONTH
from runway_forecast.inputs import ExpenseFrequency, ExpenseInput, HeadcountRow
from runway_forecast.schema import migrate_plan_payload, parse_frequency, validate_plan_inputs


def test_empty_payload_falls_back_to_defaults():
    plan, warnings, unknown = migrate_plan_payload({})
    assert plan.months == DEFAULT_HORIZON_MONTHS
    assert plan.start_month == DEFAULT_START_MONTH
    assert plan.revenue == DEFAULT_REVENUE_CONFIG
    assert plan.assumptions == DEFAULT_ASSUMPTIONS
    assert plan.expenses == ExpenseInput()
    assert warnings == []
    assert unknown == []


def test_non_dict_payload_warns():
    plan, warnings, _ = migrate_plan_payload(None)
    assert plan.assumptions == DEFAULT_ASSUMPTIONS
    assert warnings


def test_camel_case_payload_with_decimals_and_dates():
    plan, warnings, unknown = migrate_plan_payload(
        {
            "horizonMonths": "18",
            "startMonth": datetime(2025, 4, 15, 9, 30),
            "assumptions": {"cashOnHand": Decimal("250000.50"), "salaryTaxRate": "30", "cac": 4000},
            "revenueConfig": {"plg": {"monthlyTrials": 900, "trialConversionRate": Decimal("5")}},
            "headcount": [
                {"role": "CTO", "category": "rnd", "baseSalary": Decimal("9000"), "fte": "0.5", "startDate": date(2025, 6, 3)}
            ],
            "nonHeadcount": [
                {"name": "Audit", "category": "ops", "amount": "6000", "frequency": "YEARLY", "startMonth": "2025-05"},
                {"name": "Offsite", "category": "ops", "amount": 3000, "frequency": "ONE_TIME", "startMonth": "2025-09-01"},
            ],
            "planName": "Seed",
        }
    )
    assert warnings == []
    assert unknown == ["planName"]
    assert plan.months == 18
    assert plan.start_month == "2025-04"
    assert plan.assumptions.cash_on_hand == 250000.5
    assert plan.assumptions.salary_tax_rate == 30.0
    assert plan.assumptions.churn_rate == DEFAULT_ASSUMPTIONS.churn_rate
    assert plan.revenue.plg.monthly_trials == 900.0
    assert plan.revenue.plg.avg_acv == DEFAULT_REVENUE_CONFIG.plg.avg_acv
    assert plan.revenue.sales == DEFAULT_REVENUE_CONFIG.sales
    assert plan.expenses.headcount == (HeadcountRow("CTO", "rnd", 9000.0, 0.5, "2025-06"),)
    audit, offsite = plan.expenses.non_headcount
    assert audit.frequency is ExpenseFrequency.ANNUAL
    assert offsite.frequency is ExpenseFrequency.ONE_TIME
    assert offsite.start_month == "2025-09"
    assert offsite.end_month is None


def test_headcount_without_start_uses_plan_start():
    plan, _, _ = migrate_plan_payload({"startMonth": "2026-02", "headcount": [{"role": "PM", "baseSalary": 6000}]})
    row = plan.expenses.headcount[0]
    assert row.start_month == "2026-02"
    assert row.fte == 1.0


def test_invalid_rows_are_skipped_with_warnings():
    plan, warnings, _ = migrate_plan_payload(
        {
            "headcount": [{"role": "Ghost"}, "not-a-row", {"role": "Eng", "baseSalary": 5000}],
            "nonHeadcount": [
                {"name": "Bad freq", "amount": 10, "frequency": "weekly", "startMonth": "2025-01"},
                {"name": "NaN", "amount": float("nan"), "frequency": "monthly", "startMonth": "2025-01"},
                {"name": "Ok", "amount": 10, "frequency": "monthly", "startMonth": "2025-01"},
            ],
        }
    )
    assert [r.role for r in plan.expenses.headcount] == ["Eng"]
    assert [r.name for r in plan.expenses.non_headcount] == ["Ok"]
    assert len(warnings) == 4


def test_invalid_scalars_reset_to_defaults():
    plan, warnings, _ = migrate_plan_payload(
        {"months": "many", "startMonth": "2025-13", "assumptions": {"cac": "lots", "churnRate": True}}
    )
    assert plan.months == DEFAULT_HORIZON_MONTHS
    assert plan.start_month == DEFAULT_START_MONTH
    assert plan.assumptions.cac == DEFAULT_ASSUMPTIONS.cac
    assert plan.assumptions.churn_rate == DEFAULT_ASSUMPTIONS.churn_rate
    assert len(warnings) == 4


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("MONTHLY", ExpenseFrequency.MONTHLY),
        ("YEARLY", ExpenseFrequency.ANNUAL),
        ("annual", ExpenseFrequency.ANNUAL),
        ("one_time", ExpenseFrequency.ONE_TIME),
        ("ONE-TIME", ExpenseFrequency.ONE_TIME),
        (ExpenseFrequency.MONTHLY, ExpenseFrequency.MONTHLY),
    ],
)
def test_parse_frequency(raw, expected):
    assert parse_frequency(raw) is expected


def test_parse_frequency_rejects_unknown():
    with pytest.raises(ValueError):
        parse_frequency("weekly")


def test_validate_accepts_defaults(base_plan):
    validate_plan_inputs(base_plan)


def test_validate_allows_negative_cash(base_plan):
    validate_plan_inputs(replace(base_plan, assumptions=replace(base_plan.assumptions, cash_on_hand=-5_000)))


@pytest.mark.parametrize(
    "mutate",
    [
        lambda p: replace(p, months=121),
        lambda p: replace(p, months=-1),
        lambda p: replace(p, start_month="2025-1"),
        lambda p: replace(p, assumptions=replace(p.assumptions, churn_rate=150)),
        lambda p: replace(p, assumptions=replace(p.assumptions, cac=-1)),
        lambda p: replace(p, revenue=replace(p.revenue, plg=replace(p.revenue.plg, trial_conversion_rate=101))),
        lambda p: replace(p, revenue=replace(p.revenue, sales=replace(p.revenue.sales, monthly_sqls=-3))),
    ],
)
def test_validate_rejects_out_of_range(base_plan, mutate):
    with pytest.raises(ValueError):
        validate_plan_inputs(mutate(base_plan))


def test_validate_rejects_bad_rows(base_plan):
    row = base_plan.expenses.headcount[0]
    too_many = replace(base_plan, expenses=replace(base_plan.expenses, headcount=(replace(row, fte=11),)))
    with pytest.raises(ValueError, match="fte"):
        validate_plan_inputs(too_many)

    line = base_plan.expenses.non_headcount[0]
    backwards = replace(line, start_month="2025-06", end_month="2025-03")
    with pytest.raises(ValueError, match="end_month"):
        validate_plan_inputs(replace(base_plan, expenses=replace(base_plan.expenses, non_headcount=(backwards,))))
