"""Default plan inputs used when a plan has not configured its own values."""

from __future__ import annotations

from runway_forecast.inputs import AssumptionsInput, PartnersConfig, PlgConfig, RevenueConfig, SalesConfig


DEFAULT_START_MONTH = "2025-01"
DEFAULT_HORIZON_MONTHS = 24
MAX_HORIZON_MONTHS = 120

DEFAULT_ASSUMPTIONS = AssumptionsInput(
    cac=5000.0,
    churn_rate=3.0,
    expansion_rate=5.0,
    base_acv=12000.0,
    salary_tax_rate=35.0,
    salary_growth_rate=5.0,
    inflation_rate=2.0,
    cash_on_hand=0.0,
)

# Non-zero placeholders so a brand-new plan shows a growing forecast immediately.
DEFAULT_REVENUE_CONFIG = RevenueConfig(
    plg=PlgConfig(
        monthly_trials=500.0,
        trial_conversion_rate=8.0,
        avg_acv=12000.0,
        churn_rate=3.0,
        expansion_rate=5.0,
    ),
    sales=SalesConfig(
        monthly_sqls=50.0,
        close_rate=25.0,
        avg_acv=12000.0,
        churn_rate=3.0,
        expansion_rate=5.0,
    ),
    partners=PartnersConfig(
        monthly_referrals=20.0,
        close_rate=40.0,
        avg_acv=12000.0,
        commission_rate=20.0,
    ),
)

ZERO_REVENUE_CONFIG = RevenueConfig(
    plg=PlgConfig(0.0, 0.0, 0.0, 0.0, 0.0),
    sales=SalesConfig(0.0, 0.0, 0.0, 0.0, 0.0),
    partners=PartnersConfig(0.0, 0.0, 0.0, 0.0),
)

EXPENSE_CATEGORIES = {
    "cos": "Cost of sales / Cost of revenue",
    "gtm": "GTM - Sales, Marketing, Business Development",
    "rnd": "R&D - Product & Engineering",
    "cs": "Customer Support & Success",
    "ops": "Operations & G&A",
}

ASSUMPTION_HELP = {
    "cash_on_hand": "Cash in the bank at the start of the forecast.",
    "cac": "Blended cost to acquire a new customer across all channels.",
    "churn_rate": "Monthly churn; also drives the partner channel.",
    "expansion_rate": "Monthly expansion on surviving customers (upsells, seat growth).",
    "base_acv": "Starting annual contract value for new customers before upsells.",
    "salary_tax_rate": "Employer contributions and taxes added on top of gross salary.",
    "salary_growth_rate": "Expected annual increase in salaries.",
    "inflation_rate": "Annual inflation applied to non-salary costs.",
}
