from __future__ import annotations

import numpy as np
import pytest

from bizplan.models import CashPlanRow, ScenarioParams
from bizplan.projection import (
    aggregate,
    all_costs,
    apply_scenario,
    category_totals,
    growth_factors,
    integrate,
    project_scenario,
    projection_frame,
    revenue_only,
)


def _row(category: str, values: list, row_id: str = "x") -> CashPlanRow:
    return CashPlanRow(id=row_id, cash_plan_id="p", category=category, name=row_id, monthly_values=values)


@pytest.mark.parametrize("horizon", [0, 1, 3, 24])
def test_aggregate_with_no_matching_rows_is_zero_series(horizon):
    rows = [_row("revenue", [5.0] * horizon)]
    out = aggregate(rows, lambda c: False, horizon)
    assert len(out) == horizon
    assert np.all(out == 0.0)


def test_aggregate_sums_cost_categories_and_pads_short_rows():
    rows = [
        _row("cost", [100.0, 100.0, 100.0], "a"),
        _row("headcount", [50.0], "b"),
        _row("other", [1.0, 2.0, 3.0, 4.0], "c"),
        _row("revenue", [999.0, 999.0, 999.0], "d"),
    ]
    out = aggregate(rows, all_costs, 3)
    assert out.tolist() == [151.0, 102.0, 103.0]
    assert aggregate(rows, revenue_only, 3).tolist() == [999.0, 999.0, 999.0]


def test_aggregate_accepts_plain_dict_rows_and_bad_values():
    rows = [{"category": "revenue", "monthly_values": [10, "abc", None]}]
    assert aggregate(rows, revenue_only, 3).tolist() == [10.0, 0.0, 0.0]


def test_default_params_reproduce_unscaled_series():
    rev = np.array([1000.0, 1200.0, 900.0])
    cost = np.array([800.0, 810.0, 820.0])
    out_rev, out_cost = apply_scenario(rev, cost, {})
    assert out_rev.tolist() == rev.tolist()
    assert out_cost.tolist() == cost.tolist()


def test_compounding_factors():
    factors = growth_factors(10.0, 3)
    assert factors[0] == pytest.approx(1.0)
    assert factors[1] == pytest.approx(1.1)
    assert factors[2] == pytest.approx(1.21)


def test_growth_applies_independently_to_revenue_and_cost():
    rev, cost = apply_scenario([100.0, 100.0], [100.0, 100.0], ScenarioParams(revenue_growth_pct=0.0, cost_growth_pct=-50.0))
    assert rev.tolist() == [100.0, 100.0]
    assert cost.tolist() == pytest.approx([100.0, 50.0])


def test_headcount_growth_is_not_applied():
    rev, cost = apply_scenario([100.0, 100.0], [10.0, 10.0], {"headcount_growth_pct": 25.0})
    assert rev.tolist() == [100.0, 100.0]
    assert cost.tolist() == [10.0, 10.0]


def test_integrate_running_balance():
    assert integrate([100.0, -50.0, 200.0], 1000.0, 0.0).tolist() == [1100.0, 1050.0, 1250.0]


def test_integrate_applies_initial_cash_adjustment_and_allows_negative_balances():
    balance = integrate([-300.0, -300.0], 500.0, -20.0)
    assert balance.tolist() == pytest.approx([100.0, -200.0])


def test_integrate_empty_series():
    assert integrate([], 1000.0).tolist() == []


def test_end_to_end_scenario(sample_plan, sample_rows):
    params = ScenarioParams(revenue_growth_pct=10.0, cost_growth_pct=0.0, initial_cash_adjustment_pct=-20.0)
    m = project_scenario(sample_plan, sample_rows, params)
    assert m.revenues == pytest.approx([1000.0, 1100.0, 1210.0])
    assert m.costs == pytest.approx([800.0, 800.0, 800.0])
    assert m.net_cashflow == pytest.approx([200.0, 300.0, 410.0])
    assert m.adjusted_initial_cash == pytest.approx(400.0)
    assert m.cash_balance == pytest.approx([600.0, 900.0, 1310.0])
    assert m.break_even_month == 0
    assert m.total_revenue == pytest.approx(3310.0)
    assert m.total_cost == pytest.approx(2400.0)


def test_projection_is_deterministic(sample_plan, sample_rows):
    params = {"revenue_growth_pct": 3.3, "cost_growth_pct": 1.7, "initial_cash_adjustment_pct": 12.5}
    first = project_scenario(sample_plan, sample_rows, params)
    second = project_scenario(sample_plan, sample_rows, params)
    assert first == second


def test_projection_with_no_rows_is_flat(sample_plan):
    m = project_scenario(sample_plan, [], None)
    assert m.net_cashflow == [0.0, 0.0, 0.0]
    assert m.cash_balance == [500.0, 500.0, 500.0]
    assert m.avg_monthly_burn == 0.0


def test_projection_accepts_plan_dict(sample_rows):
    m = project_scenario({"months": 2, "initial_cash": 0.0}, sample_rows)
    assert m.cash_balance == pytest.approx([200.0, 400.0])


def test_category_totals_columns(sample_rows):
    totals = category_totals(sample_rows, 3)
    assert list(totals.columns) == ["Revenue", "Cost", "Headcount", "Other"]
    assert totals["Cost"].tolist() == [800.0, 800.0, 800.0]
    assert totals["Headcount"].sum() == 0.0


def test_projection_frame_layout(sample_plan, sample_rows):
    m = project_scenario(sample_plan, sample_rows)
    frame = projection_frame(sample_plan, m)
    assert frame["Month_Number"].tolist() == [1, 2, 3]
    assert frame["Year_Month_Label"].iloc[0] == "2026-01"
    assert frame["Cash Balance"].tolist() == pytest.approx([700.0, 900.0, 1100.0])
