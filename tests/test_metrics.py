from __future__ import annotations

import math

import pytest

from bizplan.metrics import (
    NO_BREAK_EVEN,
    RUNWAY_INFINITE,
    RunwayMode,
    break_even_month,
    extract_metrics,
    runway_from_reference,
    runway_whole_horizon,
)


def test_break_even_sentinel_when_never_non_negative():
    assert break_even_month([-10.0, -5.0, -1.0]) == NO_BREAK_EVEN == -1


def test_break_even_is_first_non_negative_month():
    assert break_even_month([-10.0, 0.0, 5.0]) == 1
    assert break_even_month([]) == -1


def test_runway_infinite_when_remaining_burn_is_non_negative():
    runway = runway_from_reference([-100.0, 50.0, 60.0], [900.0, 950.0, 1010.0], 1)
    assert math.isinf(runway)
    assert runway == RUNWAY_INFINITE


def test_runway_zero_when_balance_depleted_regardless_of_burn():
    assert runway_from_reference([-100.0, -100.0], [0.0, -100.0], 0) == 0
    assert runway_from_reference([-1.0, -1.0], [-5.0, -6.0], 0) == 0


def test_runway_is_floored():
    # avg burn from month 0 = 300; 1000 / 300 = 3.33
    assert runway_from_reference([-300.0, -300.0, -300.0], [1000.0, 700.0, 400.0], 0) == 3


def test_runway_reference_month_is_clamped():
    net = [-100.0, -200.0]
    bal = [500.0, 300.0]
    assert runway_from_reference(net, bal, 99) == runway_from_reference(net, bal, 1) == 1
    assert runway_from_reference(net, bal, -3) == runway_from_reference(net, bal, 0)


def test_runway_empty_series_is_infinite():
    assert math.isinf(runway_from_reference([], [], 0))


def test_runway_whole_horizon_counts_up_to_last_positive_balance():
    assert runway_whole_horizon([100.0, -5.0, 20.0, 0.0]) == 3
    assert runway_whole_horizon([-1.0, -2.0]) == 0
    assert runway_whole_horizon([]) == 0


def test_avg_burn_of_empty_cost_is_zero():
    m = extract_metrics([], [], [], [])
    assert m.avg_monthly_burn == 0.0
    assert not math.isnan(m.avg_monthly_burn)
    assert m.ending_cash == 0.0


def test_extract_metrics_reference_mode():
    m = extract_metrics(
        [100.0, 100.0],
        [200.0, 200.0],
        [-100.0, -100.0],
        [250.0, 150.0],
        runway_mode=RunwayMode.REFERENCE_MONTH,
        reference_month=0,
        adjusted_initial_cash=350.0,
    )
    assert m.total_revenue == 200.0
    assert m.total_cost == 400.0
    assert m.avg_monthly_burn == 200.0
    assert m.runway == 2
    assert m.minimum_cash == 150.0
    assert m.runway_mode == "reference-month"


def test_metrics_to_dict_encodes_infinite_runway_as_none():
    m = extract_metrics([10.0], [0.0], [10.0], [10.0], runway_mode="reference-month")
    assert m.runway_is_infinite
    assert m.to_dict()["runway"] is None


def test_unknown_runway_mode_is_rejected():
    with pytest.raises(ValueError):
        extract_metrics([], [], [], [], runway_mode="monthly")


def test_metrics_store_the_clamped_reference_month():
    net = [-100.0, -200.0]
    bal = [500.0, 300.0]
    late = extract_metrics([0.0, 0.0], [100.0, 200.0], net, bal, runway_mode=RunwayMode.REFERENCE_MONTH, reference_month=99)
    early = extract_metrics([0.0, 0.0], [100.0, 200.0], net, bal, runway_mode=RunwayMode.REFERENCE_MONTH, reference_month=-3)
    assert late.reference_month == 1
    assert early.reference_month == 0
    assert extract_metrics([], [], [], [], reference_month=5).reference_month == 0
