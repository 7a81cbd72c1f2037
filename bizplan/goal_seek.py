"""What-if goal seek: find the growth rate that reaches a cash target."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable

from bizplan.models import CashPlan, CashPlanRow, ScenarioParams
from bizplan.projection import project_scenario


@dataclass
class GoalSeekResult:
    status: str
    value: float | None
    achieved: float | None
    iterations: int
    message: str

    @property
    def solved(self) -> bool:
        return self.status == "solved"


def solve_bounded_scalar(
    evaluator: Callable[[float], float],
    target: float,
    lower_bound: float,
    upper_bound: float,
    tol: float = 1e-3,
    max_iter: int = 60,
) -> GoalSeekResult:
    """Bisection for evaluator(x) == target with x in [lower_bound, upper_bound]."""
    lo = float(lower_bound)
    hi = float(upper_bound)
    if hi <= lo:
        return GoalSeekResult("failed", None, None, 0, "Upper bound must be greater than lower bound.")

    f_lo = float(evaluator(lo)) - target
    f_hi = float(evaluator(hi)) - target
    if f_lo == 0:
        return GoalSeekResult("solved", lo, target, 0, "Solved at lower bound.")
    if f_hi == 0:
        return GoalSeekResult("solved", hi, target, 0, "Solved at upper bound.")
    if f_lo * f_hi > 0:
        return GoalSeekResult("failed", None, None, 0, "Target is not bracketed by the bounds. Widen the search range.")

    mid = lo
    y_mid = f_lo + target
    for i in range(1, max_iter + 1):
        mid = 0.5 * (lo + hi)
        y_mid = float(evaluator(mid))
        f_mid = y_mid - target
        if abs(f_mid) <= tol:
            return GoalSeekResult("solved", mid, y_mid, i, "Converged.")
        if f_lo * f_mid < 0:
            hi = mid
        else:
            lo = mid
            f_lo = f_mid

    return GoalSeekResult("failed", mid, y_mid, max_iter, "Reached max iterations before tolerance was met.")


def ending_cash_for_revenue_growth(plan: CashPlan, rows: list[CashPlanRow], params: ScenarioParams) -> Callable[[float], float]:
    def _evaluate(revenue_growth_pct: float) -> float:
        trial = replace(params, revenue_growth_pct=revenue_growth_pct)
        return project_scenario(plan, rows, trial).ending_cash

    return _evaluate


def solve_revenue_growth_for_ending_cash(
    plan: CashPlan,
    rows: list[CashPlanRow],
    params: ScenarioParams,
    target_ending_cash: float,
    lower_pct: float = -50.0,
    upper_pct: float = 50.0,
    tol: float = 0.5,
) -> GoalSeekResult:
    """Monthly revenue growth % that lands the final cash balance on the target."""
    evaluator = ending_cash_for_revenue_growth(plan, rows, params)
    return solve_bounded_scalar(evaluator, float(target_ending_cash), lower_pct, upper_pct, tol=tol)
