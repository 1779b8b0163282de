import json
from dataclasses import asdict

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from runway_forecast.cash import is_infinite_runway
from runway_forecast.defaults import (
    ASSUMPTION_HELP,
    DEFAULT_ASSUMPTIONS,
    DEFAULT_HORIZON_MONTHS,
    DEFAULT_REVENUE_CONFIG,
    DEFAULT_START_MONTH,
    EXPENSE_CATEGORIES,
    MAX_HORIZON_MONTHS,
)
from runway_forecast.expenses import expense_category_frame
from runway_forecast.integrity_checks import run_integrity_checks
from runway_forecast.model import ForecastResult
from runway_forecast.runtime_logging import (
    install_global_exception_logging,
    runtime_events_frame,
    runtime_log_path,
)
from runway_forecast.scenarios import (
    default_scenarios,
    run_scenarios,
    scenario_comparison_frame,
    scenario_mrr_frame,
)
from runway_forecast.schema import PlanInputs
from runway_forecast.sensitivity import DEFAULT_SENSITIVITY_DRIVERS, TARGET_OPTIONS, run_one_way_sensitivity
from runway_forecast.service import prepare_plan, run_plan_forecast


install_global_exception_logging()


HEADCOUNT_COLUMNS = ["role", "category", "base_salary", "fte", "start_month"]
EXPENSE_COLUMNS = ["name", "category", "amount", "frequency", "start_month", "end_month"]
FREQUENCY_OPTIONS = ["monthly", "annual", "one_time"]

DEFAULT_HEADCOUNT = pd.DataFrame(
    [
        {"role": "Founder / CEO", "category": "ops", "base_salary": 10000.0, "fte": 1.0, "start_month": DEFAULT_START_MONTH},
        {"role": "Engineer", "category": "rnd", "base_salary": 9000.0, "fte": 2.0, "start_month": DEFAULT_START_MONTH},
        {"role": "Account Executive", "category": "gtm", "base_salary": 7000.0, "fte": 1.0, "start_month": "2025-04"},
    ],
    columns=HEADCOUNT_COLUMNS,
)

DEFAULT_EXPENSES = pd.DataFrame(
    [
        {"name": "Cloud hosting", "category": "cos", "amount": 3000.0, "frequency": "monthly", "start_month": DEFAULT_START_MONTH, "end_month": ""},
        {"name": "Insurance", "category": "ops", "amount": 12000.0, "frequency": "annual", "start_month": DEFAULT_START_MONTH, "end_month": ""},
        {"name": "Launch event", "category": "gtm", "amount": 25000.0, "frequency": "one_time", "start_month": "2025-06", "end_month": ""},
    ],
    columns=EXPENSE_COLUMNS,
)

CHANNEL_FIELD_LABELS = {
    "plg": {
        "monthly_trials": "Monthly Trials",
        "trial_conversion_rate": "Trial Conversion %",
        "avg_acv": "PLG Avg ACV",
        "churn_rate": "PLG Churn % / mo",
        "expansion_rate": "PLG Expansion % / mo",
    },
    "sales": {
        "monthly_sqls": "Monthly SQLs",
        "close_rate": "Sales Close %",
        "avg_acv": "Sales Avg ACV",
        "churn_rate": "Sales Churn % / mo",
        "expansion_rate": "Sales Expansion % / mo",
    },
    "partners": {
        "monthly_referrals": "Monthly Referrals",
        "close_rate": "Partner Close %",
        "avg_acv": "Partner Avg ACV",
        "commission_rate": "Partner Commission %",
    },
}


def _format_money(value: float) -> str:
    return f"${value:,.0f}"


def _format_ratio_metric(value: float, suffix: str = "") -> str:
    if is_infinite_runway(value):
        return "∞"
    return f"{value:,.1f}{suffix}"


def _editor_records(df: pd.DataFrame, required: list[str]) -> list[dict]:
    clean = df.dropna(subset=required)
    records = []
    for row in clean.to_dict("records"):
        records.append({k: (None if isinstance(v, str) and not v.strip() else v) for k, v in row.items()})
    return records


def _payload_from_state(headcount_df: pd.DataFrame, expenses_df: pd.DataFrame) -> dict:
    return {
        "months": int(st.session_state["horizon_months"]),
        "start_month": str(st.session_state["start_month"]),
        "assumptions": {k: float(st.session_state[f"assumption_{k}"]) for k in asdict(DEFAULT_ASSUMPTIONS)},
        "revenue": {
            channel: {k: float(st.session_state[f"{channel}_{k}"]) for k in labels}
            for channel, labels in CHANNEL_FIELD_LABELS.items()
        },
        "headcount": _editor_records(headcount_df, ["base_salary"]),
        "non_headcount": _editor_records(expenses_df, ["amount", "frequency", "start_month"]),
    }


def _serialize_payload(payload: dict) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)


@st.cache_data(show_spinner=False)
def _run_forecast_cached(payload_json: str) -> ForecastResult:
    return run_plan_forecast(json.loads(payload_json))


@st.cache_data(show_spinner=False)
def _prepare_plan_cached(payload_json: str) -> PlanInputs:
    return prepare_plan(json.loads(payload_json))


@st.cache_data(show_spinner=False)
def _run_sensitivity_cached(payload_json: str, delta: float, drivers: tuple[str, ...]) -> pd.DataFrame:
    return run_one_way_sensitivity(_prepare_plan_cached(payload_json), delta, drivers=list(drivers))


st.set_page_config(page_title="SaaS Runway Forecast", layout="wide")
st.title("SaaS Revenue, Expense and Runway Forecast")

with st.sidebar:
    st.header("Plan")
    st.text_input("Start Month", value=DEFAULT_START_MONTH, key="start_month", help="First forecast month as YYYY-MM.")
    st.number_input(
        "Horizon Months",
        min_value=0,
        max_value=MAX_HORIZON_MONTHS,
        value=DEFAULT_HORIZON_MONTHS,
        step=1,
        key="horizon_months",
        help="Number of months to project.",
    )

    st.header("Assumptions")
    for name, default in asdict(DEFAULT_ASSUMPTIONS).items():
        st.number_input(
            name.replace("_", " ").title(),
            value=float(default),
            min_value=0.0 if name != "cash_on_hand" else None,
            key=f"assumption_{name}",
            help=ASSUMPTION_HELP.get(name, name),
        )

    for channel, labels in CHANNEL_FIELD_LABELS.items():
        st.header({"plg": "Product-Led Growth", "sales": "Sales-Led", "partners": "Partners"}[channel])
        defaults = asdict(getattr(DEFAULT_REVENUE_CONFIG, channel))
        for name, label in labels.items():
            st.number_input(
                label,
                value=float(defaults[name]),
                min_value=0.0,
                key=f"{channel}_{name}",
                help=f"{label} for the {channel} channel.",
            )

st.subheader("Headcount")
headcount_df = st.data_editor(
    DEFAULT_HEADCOUNT,
    num_rows="dynamic",
    key="headcount_editor",
    column_config={
        "category": st.column_config.SelectboxColumn("category", options=list(EXPENSE_CATEGORIES)),
    },
)
st.subheader("Non-Headcount Expenses")
expenses_df = st.data_editor(
    DEFAULT_EXPENSES,
    num_rows="dynamic",
    key="expenses_editor",
    column_config={
        "category": st.column_config.SelectboxColumn("category", options=list(EXPENSE_CATEGORIES)),
        "frequency": st.column_config.SelectboxColumn("frequency", options=FREQUENCY_OPTIONS),
    },
)

payload = _payload_from_state(headcount_df, expenses_df)
payload_json = _serialize_payload(payload)
try:
    result = _run_forecast_cached(payload_json)
    plan = _prepare_plan_cached(payload_json)
except ValueError as exc:
    st.error(f"Forecast inputs rejected: {exc}")
    st.stop()

summary = result.summary
df = result.to_frame()

summary_tab, monthly_tab, scenario_tab, sens_tab, diag_tab = st.tabs(
    ["Summary Dashboard", "Monthly Forecast", "Scenarios", "Sensitivity", "Diagnostics"]
)

with summary_tab:
    c1, c2, c3, c4, c5 = st.columns(5)
    c1.metric("Projected ARR", _format_money(summary.projected_arr), f"Net new {_format_money(summary.net_new_arr)}")
    c2.metric("Customers", f"{summary.total_customers:,.0f}")
    c3.metric("Monthly Burn", _format_money(summary.monthly_burn))
    c4.metric("Runway", "Profitable" if is_infinite_runway(summary.runway_months) else f"{summary.runway_months:,.1f} mo")
    c5.metric("Rule of 40", f"{summary.rule_of_40:,.1f}")

    d1, d2, d3, d4, d5 = st.columns(5)
    d1.metric("NRR", f"{summary.annual_nrr:,.1f}%")
    d2.metric("GRR", f"{summary.annual_grr:,.1f}%")
    d3.metric("CAC Payback", _format_ratio_metric(summary.cac_payback_months, " mo"))
    d4.metric("LTV/CAC", f"{summary.ltv_cac_ratio:,.2f}x")
    d5.metric("Burn Multiple", _format_ratio_metric(summary.burn_multiple, "x"))

    if len(df) > 0:
        mrr = df[["Month", "PLG MRR", "Sales MRR", "Partner MRR"]].melt("Month", var_name="Channel", value_name="MRR")
        st.plotly_chart(px.area(mrr, x="Month", y="MRR", color="Channel", title="MRR by Channel"), width="stretch")

        fig = go.Figure()
        fig.add_trace(go.Bar(x=df["Month"], y=df["Total Expense"], name="Total Expense"))
        fig.add_trace(go.Scatter(x=df["Month"], y=df["MRR"], name="MRR"))
        fig.update_layout(title="Expenses vs MRR")
        st.plotly_chart(fig, width="stretch")

        st.plotly_chart(px.line(df, x="Month", y="Cash Remaining", title="Cash Remaining"), width="stretch")

        by_cat = expense_category_frame(plan.expenses, df["Month"].tolist(), plan.assumptions)
        if len(by_cat.columns) > 1:
            cat_melt = by_cat.melt("Month", var_name="Category", value_name="Expense")
            st.plotly_chart(px.bar(cat_melt, x="Month", y="Expense", color="Category", title="Expenses by Category"), width="stretch")
    else:
        st.info("Horizon is zero months; nothing to chart.")

with monthly_tab:
    st.dataframe(df, width="stretch", hide_index=True)
    st.download_button(
        "Download CSV",
        data=df.to_csv(index=False).encode("utf-8"),
        file_name="runway_forecast.csv",
        mime="text/csv",
        help="Download the monthly forecast as CSV.",
    )

with scenario_tab:
    scenario_results = run_scenarios(plan.months, plan.start_month, default_scenarios(plan.revenue), plan.expenses, plan.assumptions)
    st.dataframe(scenario_comparison_frame(scenario_results), width="stretch", hide_index=True)
    series = scenario_mrr_frame(scenario_results)
    if len(series) > 0:
        st.plotly_chart(px.line(series, x="Month", y="MRR", color="Scenario", title="MRR by Scenario"), width="stretch")
        st.plotly_chart(
            px.line(series, x="Month", y="Cash Remaining", color="Scenario", title="Cash Remaining by Scenario"),
            width="stretch",
        )

with sens_tab:
    delta = st.slider(
        "Sensitivity delta",
        min_value=0.01,
        max_value=0.5,
        value=0.1,
        step=0.01,
        key="sensitivity_delta",
        help="Each driver is shocked down and up by this fraction.",
    )
    drivers = st.multiselect(
        "Drivers",
        options=DEFAULT_SENSITIVITY_DRIVERS,
        default=DEFAULT_SENSITIVITY_DRIVERS,
        key="sensitivity_drivers",
        help="Inputs to shock one at a time.",
    )
    target = st.selectbox("Target metric", TARGET_OPTIONS, key="sensitivity_target", help="Output compared against the base case.")
    if drivers:
        sens_df = _run_sensitivity_cached(payload_json, float(delta), tuple(sorted(drivers)))
        tornado = sens_df.pivot(index="Driver", columns="Case", values=f"Delta {target}").fillna(0)
        tdf = tornado[["Low", "High"]].reset_index().melt(id_vars="Driver", var_name="Case", value_name="Delta")
        st.plotly_chart(
            px.bar(tdf, x="Delta", y="Driver", color="Case", orientation="h", title=f"Tornado Chart for {target}"),
            width="stretch",
        )
        st.dataframe(sens_df, width="stretch", hide_index=True)
    else:
        st.info("No sensitivity drivers selected.")

with diag_tab:
    findings = run_integrity_checks(result, plan.assumptions)
    if findings:
        st.warning(f"{len(findings)} integrity check(s) failed.")
        st.dataframe(pd.DataFrame(findings), width="stretch", hide_index=True)
    else:
        st.success("All forecast integrity checks passed.")
    st.caption(f"Runtime log: {runtime_log_path()}")
    st.dataframe(runtime_events_frame(limit=50), width="stretch", hide_index=True)
