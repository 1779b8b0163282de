"""Revenue stream simulator for the PLG, sales-assisted and partner channels.

Each channel carries a small (customers, MRR) state from one month to the
next. Customers are fractional: the model is a continuous approximation of
the customer base, not a headcount of logos.

Monthly step for a channel, in order:

1. churn removes ``churn_rate`` percent of the existing customers and of the
   existing MRR (churned MRR is valued at the pre-churn MRR per customer);
2. expansion lifts the surviving MRR by ``expansion_rate`` percent;
3. this month's new customers join at entry ACV (``avg_acv / 12``).

Partner MRR is recorded net of the partner commission and churns at the
global churn assumption; the partner channel has no expansion.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from runway_forecast.inputs import AssumptionsInput, RevenueConfig


CHANNELS = ("plg", "sales", "partners")


@dataclass(frozen=True)
class ChannelState:
    customers: float = 0.0
    mrr: float = 0.0


@dataclass(frozen=True)
class ChannelStep:
    state: ChannelState
    new_customers: float
    new_mrr: float
    churned_mrr: float
    expansion_mrr: float


@dataclass(frozen=True)
class RevenueState:
    plg: ChannelState = field(default_factory=ChannelState)
    sales: ChannelState = field(default_factory=ChannelState)
    partners: ChannelState = field(default_factory=ChannelState)


@dataclass(frozen=True)
class RevenueMonth:
    """Revenue figures for one simulated month, summed across channels where noted."""

    plg_mrr: float
    sales_mrr: float
    partner_mrr: float
    plg_customers: float
    sales_customers: float
    partner_customers: float
    new_plg_customers: float
    new_sales_customers: float
    new_partner_customers: float
    new_mrr: float
    churned_mrr: float
    expansion_mrr: float

    @property
    def total_mrr(self) -> float:
        return self.plg_mrr + self.sales_mrr + self.partner_mrr

    @property
    def total_customers(self) -> float:
        return self.plg_customers + self.sales_customers + self.partner_customers

    @property
    def new_customers(self) -> float:
        return self.new_plg_customers + self.new_sales_customers + self.new_partner_customers


@dataclass(frozen=True)
class RetentionFactors:
    """Monthly multipliers applied to an existing cohort's MRR."""

    gross: float
    net: float


def _pct(value: float) -> float:
    return float(value) / 100.0


def advance_channel(
    state: ChannelState,
    new_customers: float,
    avg_acv: float,
    churn_rate: float,
    expansion_rate: float,
    retained_share: float = 1.0,
) -> ChannelStep:
    """Advance one channel by one month.

    `retained_share` scales the entry MRR of new customers (partner revenue
    after commission). Existing MRR already carries that share.
    """
    churn = _pct(churn_rate)
    churned_customers = state.customers * churn
    churned_mrr = state.mrr * churn
    surviving_mrr = state.mrr - churned_mrr
    expansion_mrr = surviving_mrr * _pct(expansion_rate)
    new_mrr = float(new_customers) * float(avg_acv) / 12.0 * float(retained_share)

    next_state = ChannelState(
        customers=state.customers - churned_customers + float(new_customers),
        mrr=surviving_mrr + expansion_mrr + new_mrr,
    )
    return ChannelStep(
        state=next_state,
        new_customers=float(new_customers),
        new_mrr=new_mrr,
        churned_mrr=churned_mrr,
        expansion_mrr=expansion_mrr,
    )


def advance_revenue(
    config: RevenueConfig, assumptions: AssumptionsInput, state: RevenueState
) -> tuple[RevenueState, RevenueMonth]:
    """Advance all three channels one month; return the new state and the month's figures."""
    plg = config.plg
    sales = config.sales
    partners = config.partners

    plg_step = advance_channel(
        state.plg,
        new_customers=plg.monthly_trials * _pct(plg.trial_conversion_rate),
        avg_acv=plg.avg_acv,
        churn_rate=plg.churn_rate,
        expansion_rate=plg.expansion_rate,
    )
    # Same-month close: no sales-cycle delay between SQL and closed deal.
    sales_step = advance_channel(
        state.sales,
        new_customers=sales.monthly_sqls * _pct(sales.close_rate),
        avg_acv=sales.avg_acv,
        churn_rate=sales.churn_rate,
        expansion_rate=sales.expansion_rate,
    )
    partner_step = advance_channel(
        state.partners,
        new_customers=partners.monthly_referrals * _pct(partners.close_rate),
        avg_acv=partners.avg_acv,
        churn_rate=assumptions.churn_rate,
        expansion_rate=0.0,
        retained_share=1.0 - _pct(partners.commission_rate),
    )

    steps = (plg_step, sales_step, partner_step)
    month = RevenueMonth(
        plg_mrr=plg_step.state.mrr,
        sales_mrr=sales_step.state.mrr,
        partner_mrr=partner_step.state.mrr,
        plg_customers=plg_step.state.customers,
        sales_customers=sales_step.state.customers,
        partner_customers=partner_step.state.customers,
        new_plg_customers=plg_step.new_customers,
        new_sales_customers=sales_step.new_customers,
        new_partner_customers=partner_step.new_customers,
        new_mrr=sum(s.new_mrr for s in steps),
        churned_mrr=sum(s.churned_mrr for s in steps),
        expansion_mrr=sum(s.expansion_mrr for s in steps),
    )
    next_state = RevenueState(plg=plg_step.state, sales=sales_step.state, partners=partner_step.state)
    return next_state, month


def simulate_revenue(config: RevenueConfig, assumptions: AssumptionsInput, months: int) -> list[RevenueMonth]:
    out: list[RevenueMonth] = []
    state = RevenueState()
    for _ in range(max(0, int(months))):
        state, month = advance_revenue(config, assumptions, state)
        out.append(month)
    return out


def channel_churn_rates(config: RevenueConfig, assumptions: AssumptionsInput) -> dict[str, float]:
    return {
        "plg": float(config.plg.churn_rate),
        "sales": float(config.sales.churn_rate),
        "partners": float(assumptions.churn_rate),
    }


def retention_factors(config: RevenueConfig, assumptions: AssumptionsInput) -> dict[str, RetentionFactors]:
    """Per-channel monthly gross (churn only) and net (churn and expansion) retention."""
    expansion = {
        "plg": _pct(config.plg.expansion_rate),
        "sales": _pct(config.sales.expansion_rate),
        "partners": 0.0,
    }
    out: dict[str, RetentionFactors] = {}
    for channel, churn_rate in channel_churn_rates(config, assumptions).items():
        gross = 1.0 - _pct(churn_rate)
        out[channel] = RetentionFactors(gross=gross, net=gross * (1.0 + expansion[channel]))
    return out
