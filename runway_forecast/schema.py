"""Plan payload coercion and validation for the forecast engine.

Payloads arrive from the data-access layer as plain dicts with camelCase or
snake_case keys, Decimal or string numbers, and dates or ISO strings for
months. They are converted into the engine's frozen input records, falling
back to defaults for anything missing.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace
from typing import Any

from runway_forecast.calendar_utils import date_to_month, parse_month
from runway_forecast.defaults import (
    DEFAULT_ASSUMPTIONS,
    DEFAULT_HORIZON_MONTHS,
    DEFAULT_REVENUE_CONFIG,
    DEFAULT_START_MONTH,
    MAX_HORIZON_MONTHS,
)
from runway_forecast.inputs import (
    AssumptionsInput,
    ExpenseFrequency,
    ExpenseInput,
    ExpenseRow,
    HeadcountRow,
    PartnersConfig,
    PlgConfig,
    RevenueConfig,
    SalesConfig,
)


# Persisted frequency codes and engine tags.
FREQUENCY_ALIASES = {
    "MONTHLY": ExpenseFrequency.MONTHLY,
    "YEARLY": ExpenseFrequency.ANNUAL,
    "ANNUAL": ExpenseFrequency.ANNUAL,
    "ONE_TIME": ExpenseFrequency.ONE_TIME,
    "ONETIME": ExpenseFrequency.ONE_TIME,
}

PLAN_KEY_ALIASES = {
    "months": ("months", "horizonMonths", "horizon_months"),
    "start_month": ("startMonth", "start_month"),
    "assumptions": ("assumptions",),
    "revenue": ("revenue", "revenueConfig", "revenue_config", "config"),
    "headcount": ("headcount", "people"),
    "non_headcount": ("nonHeadcount", "non_headcount", "expenses"),
}

PCT_FIELDS = {
    "assumptions": ("churn_rate", "expansion_rate", "salary_tax_rate", "salary_growth_rate", "inflation_rate"),
    "plg": ("trial_conversion_rate", "churn_rate", "expansion_rate"),
    "sales": ("close_rate", "churn_rate", "expansion_rate"),
    "partners": ("close_rate", "commission_rate"),
}
MAX_FTE = 10.0


@dataclass(frozen=True)
class PlanInputs:
    months: int
    start_month: str
    revenue: RevenueConfig
    expenses: ExpenseInput
    assumptions: AssumptionsInput


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _lookup(payload: dict, *keys: str) -> Any:
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return None


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        raise TypeError("boolean is not a number")
    out = float(value)
    if not math.isfinite(out):
        raise ValueError("number must be finite")
    return out


def to_month(value: Any) -> str:
    """Accept a "YYYY-MM" label, a date/datetime or an ISO date string."""
    if isinstance(value, str) and len(value.strip()) == 7:
        return parse_month(value.strip()).strftime("%Y-%m")
    return date_to_month(value)


def _coerce_record(cls, payload: Any, defaults, warnings: list[str], key_name: str):
    """Build a numeric dataclass record from `payload`, defaulting per field."""
    if payload is None:
        return defaults
    if not isinstance(payload, dict):
        warnings.append(f"{key_name} ignored because it is not an object.")
        return defaults
    values: dict[str, float] = {}
    for f in fields(cls):
        raw = _lookup(payload, f.name, _camel(f.name))
        default = getattr(defaults, f.name)
        if raw is None:
            values[f.name] = default
            continue
        try:
            values[f.name] = _to_float(raw)
        except (TypeError, ValueError, ArithmeticError):
            warnings.append(f"{key_name}.{f.name} invalid and reset to default.")
            values[f.name] = default
    return cls(**values)


def parse_assumptions(payload: Any, warnings: list[str] | None = None) -> AssumptionsInput:
    warnings = warnings if warnings is not None else []
    return _coerce_record(AssumptionsInput, payload, DEFAULT_ASSUMPTIONS, warnings, "assumptions")


def parse_revenue_config(payload: Any, warnings: list[str] | None = None) -> RevenueConfig:
    warnings = warnings if warnings is not None else []
    if payload is None:
        return DEFAULT_REVENUE_CONFIG
    if not isinstance(payload, dict):
        warnings.append("revenue ignored because it is not an object.")
        return DEFAULT_REVENUE_CONFIG
    return RevenueConfig(
        plg=_coerce_record(PlgConfig, payload.get("plg"), DEFAULT_REVENUE_CONFIG.plg, warnings, "revenue.plg"),
        sales=_coerce_record(SalesConfig, payload.get("sales"), DEFAULT_REVENUE_CONFIG.sales, warnings, "revenue.sales"),
        partners=_coerce_record(
            PartnersConfig, payload.get("partners"), DEFAULT_REVENUE_CONFIG.partners, warnings, "revenue.partners"
        ),
    )


def parse_frequency(value: Any) -> ExpenseFrequency:
    if isinstance(value, ExpenseFrequency):
        return value
    text = str(value or "").strip()
    alias = FREQUENCY_ALIASES.get(text.upper().replace("-", "_"))
    if alias is not None:
        return alias
    return ExpenseFrequency(text.lower())


def _records(raw: Any, warnings: list[str], key_name: str) -> list[Any]:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return list(raw)
    warnings.append(f"{key_name} ignored because it is not a list.")
    return []


def parse_headcount(raw: Any, plan_start: str, warnings: list[str]) -> tuple[HeadcountRow, ...]:
    rows: list[HeadcountRow] = []
    for idx, item in enumerate(_records(raw, warnings, "headcount")):
        if not isinstance(item, dict):
            warnings.append(f"headcount[{idx}] ignored because entry is not an object.")
            continue
        start = _lookup(item, "startMonth", "start_month", "startDate", "start_date")
        fte = _lookup(item, "fte")
        try:
            row = HeadcountRow(
                role=str(item.get("role", "")),
                category=str(item.get("category", "ops")),
                base_salary=_to_float(_lookup(item, "baseSalary", "base_salary", "salary")),
                fte=_to_float(fte) if fte is not None else 1.0,
                start_month=to_month(start) if start is not None else plan_start,
            )
        except (TypeError, ValueError, ArithmeticError):
            warnings.append(f"headcount[{idx}] ignored because salary, fte or start month is invalid.")
            continue
        rows.append(row)
    return tuple(rows)


def parse_non_headcount(raw: Any, warnings: list[str]) -> tuple[ExpenseRow, ...]:
    rows: list[ExpenseRow] = []
    for idx, item in enumerate(_records(raw, warnings, "non_headcount")):
        if not isinstance(item, dict):
            warnings.append(f"non_headcount[{idx}] ignored because entry is not an object.")
            continue
        end = _lookup(item, "endMonth", "end_month")
        try:
            row = ExpenseRow(
                name=str(item.get("name", "")),
                category=str(item.get("category", "ops")),
                amount=_to_float(item.get("amount")),
                frequency=parse_frequency(item.get("frequency")),
                start_month=to_month(_lookup(item, "startMonth", "start_month")),
                end_month=to_month(end) if end is not None else None,
            )
        except (TypeError, ValueError, ArithmeticError):
            warnings.append(f"non_headcount[{idx}] ignored because amount, frequency or months are invalid.")
            continue
        rows.append(row)
    return tuple(rows)


def migrate_plan_payload(payload: Any) -> tuple[PlanInputs, list[str], list[str]]:
    """Convert a plan payload into engine inputs.

    Returns (inputs, warnings, unknown_keys).
    """
    warnings: list[str] = []
    if not isinstance(payload, dict):
        warnings.append("Plan payload is not an object; defaults used.")
        payload = {}

    known = {alias for aliases in PLAN_KEY_ALIASES.values() for alias in aliases}
    unknown_keys = sorted(k for k in payload if k not in known)

    def pick(name: str) -> Any:
        return _lookup(payload, *PLAN_KEY_ALIASES[name])

    raw_start = pick("start_month")
    try:
        start_month = to_month(raw_start) if raw_start is not None else DEFAULT_START_MONTH
    except (TypeError, ValueError):
        warnings.append("start_month invalid; reset to default.")
        start_month = DEFAULT_START_MONTH

    raw_months = pick("months")
    try:
        months = int(raw_months) if raw_months is not None else DEFAULT_HORIZON_MONTHS
    except (TypeError, ValueError):
        warnings.append("months invalid; reset to default.")
        months = DEFAULT_HORIZON_MONTHS

    inputs = PlanInputs(
        months=months,
        start_month=start_month,
        revenue=parse_revenue_config(pick("revenue"), warnings),
        expenses=ExpenseInput(
            headcount=parse_headcount(pick("headcount"), start_month, warnings),
            non_headcount=parse_non_headcount(pick("non_headcount"), warnings),
        ),
        assumptions=parse_assumptions(pick("assumptions"), warnings),
    )
    return inputs, warnings, unknown_keys


def _check_pct(record: Any, names: tuple[str, ...], key_name: str) -> None:
    for name in names:
        val = float(getattr(record, name))
        if not (0 <= val <= 100):
            raise ValueError(f"{key_name}.{name} must be in [0,100].")


def _check_non_negative(record: Any, key_name: str) -> None:
    for f in fields(record):
        val = getattr(record, f.name)
        if isinstance(val, (int, float)) and float(val) < 0:
            raise ValueError(f"{key_name}.{f.name} must be non-negative.")


def validate_plan_inputs(plan: PlanInputs) -> None:
    """Reject inputs the API layer would refuse; the engine itself does not re-check."""
    if not (0 <= int(plan.months) <= MAX_HORIZON_MONTHS):
        raise ValueError(f"months must be in [0,{MAX_HORIZON_MONTHS}].")
    parse_month(plan.start_month)

    _check_pct(plan.assumptions, PCT_FIELDS["assumptions"], "assumptions")
    _check_non_negative(replace(plan.assumptions, cash_on_hand=0.0), "assumptions")
    for name in ("plg", "sales", "partners"):
        record = getattr(plan.revenue, name)
        _check_pct(record, PCT_FIELDS[name], f"revenue.{name}")
        _check_non_negative(record, f"revenue.{name}")

    for idx, row in enumerate(plan.expenses.headcount):
        parse_month(row.start_month)
        if row.base_salary < 0:
            raise ValueError(f"headcount[{idx}].base_salary must be non-negative.")
        if not (0 <= row.fte <= MAX_FTE):
            raise ValueError(f"headcount[{idx}].fte must be in [0,{MAX_FTE:g}].")

    for idx, row in enumerate(plan.expenses.non_headcount):
        parse_month(row.start_month)
        if row.amount < 0:
            raise ValueError(f"non_headcount[{idx}].amount must be non-negative.")
        if row.end_month is not None and parse_month(row.end_month) < parse_month(row.start_month):
            raise ValueError(f"non_headcount[{idx}].end_month must not precede start_month.")
