"""Net burn, cash roll-forward and runway."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np


INFINITE_RUNWAY = 999.0


@dataclass(frozen=True)
class CashPosition:
    cash_on_hand: float
    cumulative_burn: float = 0.0

    @property
    def cash_remaining(self) -> float:
        return self.cash_on_hand - self.cumulative_burn


def net_burn(total_expense: float, total_mrr: float) -> float:
    """Positive when the month burns cash."""
    return float(total_expense) - float(total_mrr)


def advance_cash(position: CashPosition, month_net_burn: float) -> CashPosition:
    return CashPosition(
        cash_on_hand=position.cash_on_hand,
        cumulative_burn=position.cumulative_burn + float(month_net_burn),
    )


def is_infinite_runway(runway_months: float) -> bool:
    return float(runway_months) >= INFINITE_RUNWAY


def runway_months(cash_on_hand: float, net_burns: Sequence[float]) -> float:
    """Months until cash reaches zero, linearly interpolated inside the crossing month.

    Returns INFINITE_RUNWAY when cash never runs out within the horizon and the
    last month is not burning, including plans that start with no cash and
    never burn it. When the horizon ends still burning, the last month's burn
    is extrapolated forward.
    """
    burns = np.asarray(list(net_burns), dtype=float)
    if len(burns) == 0:
        return 0.0
    start_cash = float(cash_on_hand)

    cash_after = start_cash - np.cumsum(burns)
    crossed = np.flatnonzero(cash_after <= 0)
    if len(crossed):
        m = int(crossed[0])
        cash_before = start_cash if m == 0 else float(cash_after[m - 1])
        if cash_before <= 0:
            return float(m)
        # cash_before > 0 and cash_after[m] <= 0, so this month's burn is positive.
        return float(min(INFINITE_RUNWAY, m + cash_before / float(burns[m])))

    last_burn = float(burns[-1])
    if last_burn <= 0:
        return INFINITE_RUNWAY
    extrapolated = len(burns) + float(cash_after[-1]) / last_burn
    return float(min(INFINITE_RUNWAY, extrapolated))
