"""Entry point used by callers holding a raw plan payload."""

from __future__ import annotations

from typing import Any

from runway_forecast.model import ForecastResult, build_forecast
from runway_forecast.runtime_logging import append_runtime_event
from runway_forecast.schema import PlanInputs, migrate_plan_payload, validate_plan_inputs


def prepare_plan(payload: Any) -> PlanInputs:
    plan, warnings, unknown_keys = migrate_plan_payload(payload)
    if warnings or unknown_keys:
        append_runtime_event(
            level="WARNING",
            event="plan_payload_coerced",
            message=f"{len(warnings)} field(s) reset, {len(unknown_keys)} unknown key(s) ignored.",
            context={"warnings": warnings, "unknown_keys": unknown_keys},
        )
    validate_plan_inputs(plan)
    return plan


def run_plan_forecast(payload: Any) -> ForecastResult:
    """Coerce, validate and forecast a plan payload.

    Raises ValueError for payloads that fail validation; the failure is
    recorded in the runtime event log first.
    """
    try:
        plan = prepare_plan(payload)
        result = build_forecast(plan.months, plan.start_month, plan.revenue, plan.expenses, plan.assumptions)
    except ValueError as exc:
        append_runtime_event(
            level="ERROR",
            event="forecast_failed",
            message=str(exc),
            exc=exc,
        )
        raise

    append_runtime_event(
        level="INFO",
        event="forecast_built",
        message=f"Forecast built for {plan.months} month(s) from {plan.start_month}.",
        context={
            "headcount_rows": len(plan.expenses.headcount),
            "non_headcount_rows": len(plan.expenses.non_headcount),
            "projected_arr": result.summary.projected_arr,
            "runway_months": result.summary.runway_months,
        },
    )
    return result
