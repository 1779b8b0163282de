"""Forecast roll-forward and identity checks."""

from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd

from runway_forecast.inputs import AssumptionsInput
from runway_forecast.model import ForecastResult


# Month fields are rounded to cents independently, so identities hold to within rounding.
DEFAULT_TOLERANCE = 0.5


def _finding(
    check: str,
    max_abs_delta: float,
    month: str,
    lhs_name: str,
    rhs_name: str,
) -> dict[str, Any]:
    return {
        "Check": check,
        "Max Abs Delta": float(max_abs_delta),
        "Month of Max Delta": month,
        "LHS": lhs_name,
        "RHS": rhs_name,
    }


def _month_of_max_delta(df: pd.DataFrame, delta: np.ndarray) -> str:
    if len(delta) == 0:
        return ""
    idx = int(np.argmax(np.abs(delta)))
    if "Month" in df.columns and idx < len(df):
        return str(df.iloc[idx]["Month"])
    return str(idx)


def _check_series_identity(
    findings: list[dict[str, Any]],
    df: pd.DataFrame,
    check_name: str,
    lhs_name: str,
    rhs_name: str,
    lhs: np.ndarray,
    rhs: np.ndarray,
    tol: float,
) -> None:
    delta = np.nan_to_num(np.asarray(lhs, dtype=float) - np.asarray(rhs, dtype=float), nan=0.0)
    if len(delta) == 0:
        return
    max_abs = float(np.max(np.abs(delta)))
    if max_abs > float(tol):
        findings.append(_finding(check_name, max_abs, _month_of_max_delta(df, delta), lhs_name, rhs_name))


def run_integrity_checks(
    result: ForecastResult | pd.DataFrame, assumptions: AssumptionsInput, tol: float = DEFAULT_TOLERANCE
) -> list[dict[str, Any]]:
    """Return integrity findings (empty list means all checks passed)."""
    df = result.to_frame() if isinstance(result, ForecastResult) else result
    if not isinstance(df, pd.DataFrame) or df.empty:
        return []

    findings: list[dict[str, Any]] = []

    _check_series_identity(
        findings,
        df,
        "MRR identity",
        "MRR",
        "PLG+Sales+Partner MRR",
        df["MRR"].to_numpy(),
        (df["PLG MRR"] + df["Sales MRR"] + df["Partner MRR"]).to_numpy(),
        tol,
    )
    _check_series_identity(
        findings,
        df,
        "ARR identity",
        "ARR",
        "MRR * 12",
        df["ARR"].to_numpy(),
        (df["MRR"] * 12).to_numpy(),
        tol * 12,
    )
    _check_series_identity(
        findings,
        df,
        "Customer identity",
        "Total Customers",
        "PLG+Sales+Partner Customers",
        df["Total Customers"].to_numpy(),
        (df["PLG Customers"] + df["Sales Customers"] + df["Partner Customers"]).to_numpy(),
        tol,
    )

    # MRR bridge: this month = last month + new - churned + expansion (month before the first is zero).
    prev_mrr = np.insert(df["MRR"].to_numpy(dtype=float)[:-1], 0, 0.0)
    _check_series_identity(
        findings,
        df,
        "MRR movement roll-forward",
        "MRR",
        "Prior MRR + New - Churned + Expansion",
        df["MRR"].to_numpy(),
        prev_mrr + (df["New MRR"] - df["Churned MRR"] + df["Expansion MRR"]).to_numpy(),
        tol,
    )

    _check_series_identity(
        findings,
        df,
        "Expense identity",
        "Total Expense",
        "Headcount + Non-Headcount Expense",
        df["Total Expense"].to_numpy(),
        (df["Headcount Expense"] + df["Non-Headcount Expense"]).to_numpy(),
        tol,
    )
    _check_series_identity(
        findings,
        df,
        "Net burn identity",
        "Net Burn",
        "Total Expense - MRR",
        df["Net Burn"].to_numpy(),
        (df["Total Expense"] - df["MRR"]).to_numpy(),
        tol,
    )
    _check_series_identity(
        findings,
        df,
        "Cumulative burn roll-forward",
        "Cumulative Burn",
        "Running sum of Net Burn",
        df["Cumulative Burn"].to_numpy(),
        np.cumsum(df["Net Burn"].to_numpy(dtype=float)),
        tol,
    )
    _check_series_identity(
        findings,
        df,
        "Cash identity",
        "Cash Remaining",
        "Cash on Hand - Cumulative Burn",
        df["Cash Remaining"].to_numpy(),
        float(assumptions.cash_on_hand) - df["Cumulative Burn"].to_numpy(dtype=float),
        tol,
    )

    return findings
