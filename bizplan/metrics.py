"""Projection metrics: totals, burn, break-even month and runway."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Sequence

import numpy as np


RUNWAY_INFINITE = math.inf
NO_BREAK_EVEN = -1


class RunwayMode(str, Enum):
    """How runway is measured.

    REFERENCE_MONTH: remaining balance at a selected month divided by the
    average burn from that month to the end of the plan (cash plan editor).
    WHOLE_HORIZON: number of leading months up to the last month with a
    positive balance (scenario comparison and exports).
    """

    REFERENCE_MONTH = "reference-month"
    WHOLE_HORIZON = "whole-horizon"


@dataclass(frozen=True)
class Metrics:
    revenues: list[float]
    costs: list[float]
    net_cashflow: list[float]
    cash_balance: list[float]
    total_revenue: float
    total_cost: float
    avg_monthly_burn: float
    break_even_month: int
    runway: float
    adjusted_initial_cash: float = 0.0
    runway_mode: str = RunwayMode.WHOLE_HORIZON.value
    reference_month: int = 0

    @property
    def runway_is_infinite(self) -> bool:
        return math.isinf(self.runway)

    @property
    def ending_cash(self) -> float:
        return self.cash_balance[-1] if self.cash_balance else self.adjusted_initial_cash

    @property
    def minimum_cash(self) -> float:
        return min(self.cash_balance) if self.cash_balance else self.adjusted_initial_cash

    def to_dict(self) -> dict:
        out = asdict(self)
        # JSON has no infinity; None marks "never depletes".
        out["runway"] = None if self.runway_is_infinite else self.runway
        return out


def _safe_div(a: float, b: float) -> float:
    return float(a / b) if b else 0.0


def _as_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(list(values), dtype=float)


def break_even_month(net_cashflow: Sequence[float]) -> int:
    """First month index with non-negative net cash flow, or -1."""
    for idx, value in enumerate(net_cashflow):
        if value >= 0:
            return idx
    return NO_BREAK_EVEN


def clamp_reference_month(reference_month: int, horizon: int) -> int:
    """Reference month index forced into 0..horizon-1 (0 for an empty plan)."""
    return min(max(0, int(reference_month)), max(0, int(horizon) - 1))


def runway_from_reference(net_cashflow: Sequence[float], cash_balance: Sequence[float], reference_month: int) -> float:
    """Months of runway from `reference_month` at the average remaining burn.

    Infinite when the remaining average net cash flow is non-negative, 0 when
    the balance at the reference month is already depleted.
    """
    net = _as_array(net_cashflow)
    balance = _as_array(cash_balance)
    if len(net) == 0:
        return RUNWAY_INFINITE
    ref = clamp_reference_month(reference_month, len(net))
    remaining = net[ref:]
    remaining_avg = _safe_div(float(remaining.sum()), len(remaining))
    if remaining_avg >= 0:
        return RUNWAY_INFINITE
    balance_at_ref = float(balance[ref]) if ref < len(balance) else 0.0
    if balance_at_ref <= 0:
        return 0
    return math.floor(balance_at_ref / abs(remaining_avg))


def runway_whole_horizon(cash_balance: Sequence[float]) -> int:
    """Index of the last strictly positive balance plus one, or 0."""
    for idx in range(len(cash_balance) - 1, -1, -1):
        if cash_balance[idx] > 0:
            return idx + 1
    return 0


def extract_metrics(
    revenue: Sequence[float],
    cost: Sequence[float],
    net_cashflow: Sequence[float],
    cash_balance: Sequence[float],
    *,
    runway_mode: RunwayMode | str = RunwayMode.WHOLE_HORIZON,
    reference_month: int = 0,
    adjusted_initial_cash: float = 0.0,
) -> Metrics:
    """Totals, burn, break-even and runway for one projected scenario.

    Never raises for the series themselves; empty or negative series are
    fine. The one precondition is `runway_mode`: a string that is
    not a RunwayMode value raises ValueError.
    """
    mode = RunwayMode(runway_mode)
    rev = _as_array(revenue)
    cst = _as_array(cost)
    net = _as_array(net_cashflow)
    bal = _as_array(cash_balance)

    if mode is RunwayMode.REFERENCE_MONTH:
        runway = runway_from_reference(net, bal, reference_month)
    else:
        runway = runway_whole_horizon(bal.tolist())

    return Metrics(
        revenues=rev.tolist(),
        costs=cst.tolist(),
        net_cashflow=net.tolist(),
        cash_balance=bal.tolist(),
        total_revenue=float(rev.sum()),
        total_cost=float(cst.sum()),
        avg_monthly_burn=_safe_div(float(cst.sum()), len(cst)),
        break_even_month=break_even_month(net.tolist()),
        runway=runway,
        adjusted_initial_cash=float(adjusted_initial_cash),
        runway_mode=mode.value,
        reference_month=clamp_reference_month(reference_month, len(net)),
    )
