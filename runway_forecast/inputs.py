"""Input records consumed by the forecast engine.

All percentages are whole-number percent (3 means 3%). Records are frozen so a
caller can reuse the same inputs across repeated what-if runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class PlgConfig:
    monthly_trials: float
    trial_conversion_rate: float
    avg_acv: float
    churn_rate: float
    expansion_rate: float


@dataclass(frozen=True)
class SalesConfig:
    monthly_sqls: float
    close_rate: float
    avg_acv: float
    churn_rate: float
    expansion_rate: float


@dataclass(frozen=True)
class PartnersConfig:
    """Partner channel; churn comes from the global assumptions."""

    monthly_referrals: float
    close_rate: float
    avg_acv: float
    commission_rate: float


@dataclass(frozen=True)
class RevenueConfig:
    plg: PlgConfig
    sales: SalesConfig
    partners: PartnersConfig


class ExpenseFrequency(str, Enum):
    MONTHLY = "monthly"
    ANNUAL = "annual"
    ONE_TIME = "one_time"


@dataclass(frozen=True)
class HeadcountRow:
    """An ongoing hire, active from `start_month` to the end of the horizon."""

    role: str
    category: str
    base_salary: float
    fte: float
    start_month: str


@dataclass(frozen=True)
class ExpenseRow:
    name: str
    category: str
    amount: float
    frequency: ExpenseFrequency
    start_month: str
    end_month: Optional[str] = None


@dataclass(frozen=True)
class ExpenseInput:
    headcount: tuple[HeadcountRow, ...] = field(default_factory=tuple)
    non_headcount: tuple[ExpenseRow, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class AssumptionsInput:
    cac: float
    churn_rate: float
    expansion_rate: float
    base_acv: float
    salary_tax_rate: float
    salary_growth_rate: float
    inflation_rate: float
    cash_on_hand: float = 0.0
