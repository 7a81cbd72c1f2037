"""Scenario-adjusted cash-flow projection engine.

Pipeline: rows -> aggregate -> apply_scenario -> integrate -> extract_metrics.
Every function here is pure and never raises for malformed row data; missing
or non-numeric month values count as 0.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Sequence

import numpy as np
import pandas as pd

from bizplan.calendar_utils import plan_dates, year_month_labels
from bizplan.defaults import DEFAULT_HORIZON_MONTHS
from bizplan.metrics import Metrics, RunwayMode, extract_metrics
from bizplan.models import CashPlan, CashPlanRow, ScenarioParams
from bizplan.schema import COST_CATEGORIES, coerce_float


CategoryFilter = Callable[[str], bool]


def revenue_only(category: str) -> bool:
    return category == "revenue"


def all_costs(category: str) -> bool:
    return category in COST_CATEGORIES


def _row_category(row: CashPlanRow | dict) -> str:
    if isinstance(row, CashPlanRow):
        return row.category
    return str(row.get("category", ""))


def _row_values(row: CashPlanRow | dict) -> Sequence[Any]:
    values = row.monthly_values if isinstance(row, CashPlanRow) else row.get("monthly_values")
    return values if isinstance(values, (list, tuple)) else []


def aggregate(rows: Iterable[CashPlanRow | dict], category_filter: CategoryFilter, horizon: int) -> np.ndarray:
    """Per-month sum of matching rows, always `horizon` long (zeros when nothing matches)."""
    horizon = max(0, int(horizon))
    totals = np.zeros(horizon, dtype=float)
    for row in rows:
        if not category_filter(_row_category(row)):
            continue
        values = _row_values(row)
        for m in range(min(len(values), horizon)):
            totals[m] += coerce_float(values[m])
    return totals


def _params(params: ScenarioParams | dict | None) -> ScenarioParams:
    if isinstance(params, ScenarioParams):
        return params
    return ScenarioParams.from_dict(params or {})


def growth_factors(growth_pct: float, length: int) -> np.ndarray:
    """Compounding monthly multipliers; month 0 is always 1.0."""
    t = np.arange(max(0, int(length)))
    return np.power(1.0 + coerce_float(growth_pct) / 100.0, t)


def apply_scenario(
    revenue: Sequence[float], cost: Sequence[float], params: ScenarioParams | dict | None
) -> tuple[np.ndarray, np.ndarray]:
    """Scale revenue and cost by the scenario's compounding monthly growth rates.

    The initial-cash adjustment only affects the integrator seed and the
    headcount growth parameter is not applied.
    """
    p = _params(params)
    rev = np.asarray(revenue, dtype=float)
    cst = np.asarray(cost, dtype=float)
    return rev * growth_factors(p.revenue_growth_pct, len(rev)), cst * growth_factors(p.cost_growth_pct, len(cst))


def adjusted_initial_cash(initial_cash: float, initial_cash_adjustment_pct: float = 0.0) -> float:
    return coerce_float(initial_cash) * (1.0 + coerce_float(initial_cash_adjustment_pct) / 100.0)


def integrate(net_cashflow: Sequence[float], initial_cash: float, initial_cash_adjustment_pct: float = 0.0) -> np.ndarray:
    """Running cash balance seeded with the adjusted initial cash; may go negative."""
    balance = np.zeros(len(net_cashflow), dtype=float)
    cash = adjusted_initial_cash(initial_cash, initial_cash_adjustment_pct)
    for m, flow in enumerate(net_cashflow):
        cash = cash + float(flow)
        balance[m] = cash
    return balance


def _plan_field(plan: CashPlan | dict, key: str, default: Any) -> Any:
    if isinstance(plan, CashPlan):
        return getattr(plan, key)
    return plan.get(key, default)


def project_scenario(
    plan: CashPlan | dict,
    rows: Iterable[CashPlanRow | dict],
    params: ScenarioParams | dict | None = None,
    *,
    runway_mode: RunwayMode | str = RunwayMode.WHOLE_HORIZON,
    reference_month: int = 0,
) -> Metrics:
    """Run the full projection for one scenario of a plan."""
    p = _params(params)
    horizon = int(_plan_field(plan, "months", DEFAULT_HORIZON_MONTHS) or 0)
    initial_cash = coerce_float(_plan_field(plan, "initial_cash", 0.0))
    rows = list(rows)

    base_revenue = aggregate(rows, revenue_only, horizon)
    base_cost = aggregate(rows, all_costs, horizon)
    revenue, cost = apply_scenario(base_revenue, base_cost, p)
    net = revenue - cost
    balance = integrate(net, initial_cash, p.initial_cash_adjustment_pct)

    return extract_metrics(
        revenue,
        cost,
        net,
        balance,
        runway_mode=runway_mode,
        reference_month=reference_month,
        adjusted_initial_cash=adjusted_initial_cash(initial_cash, p.initial_cash_adjustment_pct),
    )


def category_totals(rows: Iterable[CashPlanRow | dict], horizon: int) -> pd.DataFrame:
    """Unadjusted monthly totals per category, one column per category."""
    rows = list(rows)
    return pd.DataFrame(
        {
            "Revenue": aggregate(rows, revenue_only, horizon),
            "Cost": aggregate(rows, lambda c: c == "cost", horizon),
            "Headcount": aggregate(rows, lambda c: c == "headcount", horizon),
            "Other": aggregate(rows, lambda c: c == "other", horizon),
        }
    )


def projection_frame(plan: CashPlan, metrics: Metrics) -> pd.DataFrame:
    """Monthly table of a projection for display, charts and export."""
    horizon = len(metrics.net_cashflow)
    dates = plan_dates(plan.start_month, horizon)
    return pd.DataFrame(
        {
            "Month_Number": np.arange(1, horizon + 1, dtype=int),
            "Date": dates,
            "Year_Month_Label": year_month_labels(dates),
            "Revenue": metrics.revenues,
            "Cost": metrics.costs,
            "Net Cash Flow": metrics.net_cashflow,
            "Cash Balance": metrics.cash_balance,
        }
    )
