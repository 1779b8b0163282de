from __future__ import annotations

from pathlib import Path

import pytest

import runway_forecast.runtime_logging as runtime_logging
from runway_forecast.defaults import DEFAULT_ASSUMPTIONS, DEFAULT_REVENUE_CONFIG, ZERO_REVENUE_CONFIG
from runway_forecast.inputs import AssumptionsInput, ExpenseInput, RevenueConfig
from runway_forecast.schema import PlanInputs, migrate_plan_payload


@pytest.fixture
def assumptions() -> AssumptionsInput:
    return DEFAULT_ASSUMPTIONS


@pytest.fixture
def revenue() -> RevenueConfig:
    return DEFAULT_REVENUE_CONFIG


@pytest.fixture
def zero_revenue() -> RevenueConfig:
    return ZERO_REVENUE_CONFIG


@pytest.fixture
def no_expenses() -> ExpenseInput:
    return ExpenseInput()


@pytest.fixture
def base_plan() -> PlanInputs:
    plan, _, _ = migrate_plan_payload(
        {
            "months": 12,
            "startMonth": "2025-01",
            "assumptions": {"cashOnHand": 1_000_000},
            "headcount": [{"role": "Engineer", "category": "rnd", "baseSalary": 8000, "fte": 2}],
            "nonHeadcount": [
                {"name": "Hosting", "category": "cos", "amount": 2000, "frequency": "MONTHLY", "startMonth": "2025-01"}
            ],
        }
    )
    return plan


@pytest.fixture
def runtime_log(tmp_path, monkeypatch) -> Path:
    log_file = Path(tmp_path) / "runtime_events.jsonl"
    monkeypatch.setattr(runtime_logging, "LOG_DIR", Path(tmp_path))
    monkeypatch.setattr(runtime_logging, "RUNTIME_EVENTS_LOG_FILE", log_file)
    return log_file
