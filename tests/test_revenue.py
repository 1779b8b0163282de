from __future__ import annotations

from dataclasses import replace

import pytest

from runway_forecast.revenue import (
    ChannelState,
    advance_channel,
    channel_churn_rates,
    retention_factors,
    simulate_revenue,
)


def test_first_month_is_new_business_only(revenue, assumptions):
    first = simulate_revenue(revenue, assumptions, 1)[0]

    # 500 trials * 8%, 50 SQLs * 25%, 20 referrals * 40% at 1000/month entry MRR.
    assert first.plg_mrr == pytest.approx(40_000.0)
    assert first.sales_mrr == pytest.approx(12_500.0)
    assert first.partner_mrr == pytest.approx(6_400.0)  # net of 20% commission
    assert first.total_mrr == pytest.approx(58_900.0)
    assert first.total_customers == pytest.approx(60.5)
    assert first.churned_mrr == 0.0
    assert first.expansion_mrr == 0.0
    assert first.new_mrr == pytest.approx(58_900.0)


def test_second_month_applies_churn_then_expansion_then_new(revenue, assumptions):
    second = simulate_revenue(revenue, assumptions, 2)[1]

    # 40000 - 3% churn = 38800, +5% expansion = 1940, + 40000 new.
    assert second.plg_mrr == pytest.approx(80_740.0)
    assert second.plg_customers == pytest.approx(78.8)
    # Partners churn at the global rate and do not expand.
    assert second.partner_mrr == pytest.approx(6_400.0 * 0.97 + 6_400.0)


def test_mrr_movements_reconcile_every_month(revenue, assumptions):
    months = simulate_revenue(revenue, assumptions, 36)
    prev_total = 0.0
    for month in months:
        assert month.total_mrr == pytest.approx(
            prev_total + month.new_mrr - month.churned_mrr + month.expansion_mrr, abs=1e-6
        )
        prev_total = month.total_mrr


def test_zero_config_produces_no_revenue(zero_revenue, assumptions):
    months = simulate_revenue(zero_revenue, assumptions, 12)
    assert len(months) == 12
    assert all(m.total_mrr == 0.0 and m.total_customers == 0.0 for m in months)


def test_advance_channel_scales_new_mrr_by_retained_share():
    step = advance_channel(ChannelState(), new_customers=10, avg_acv=1200, churn_rate=5, expansion_rate=0, retained_share=0.5)
    assert step.new_mrr == pytest.approx(500.0)
    assert step.state == ChannelState(customers=10.0, mrr=500.0)


def test_full_churn_empties_existing_base():
    step = advance_channel(ChannelState(customers=10, mrr=1000), new_customers=0, avg_acv=1200, churn_rate=100, expansion_rate=50)
    assert step.churned_mrr == pytest.approx(1000.0)
    assert step.expansion_mrr == 0.0
    assert step.state.mrr == 0.0
    assert step.state.customers == 0.0


def test_partner_churn_follows_global_assumption(revenue, assumptions):
    rates = channel_churn_rates(revenue, replace(assumptions, churn_rate=10.0))
    assert rates == {"plg": 3.0, "sales": 3.0, "partners": 10.0}


def test_retention_factors(revenue, assumptions):
    factors = retention_factors(revenue, assumptions)
    assert factors["plg"].gross == pytest.approx(0.97)
    assert factors["plg"].net == pytest.approx(0.97 * 1.05)
    assert factors["partners"].net == pytest.approx(factors["partners"].gross)
