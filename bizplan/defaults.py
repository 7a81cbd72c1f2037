"""Default values for new plans, scenarios and memos."""

from __future__ import annotations


DEFAULT_HORIZON_MONTHS = 24
DEFAULT_CURRENCY = "EUR"
DEFAULT_INITIAL_CASH = 0.0
DEFAULT_USER = "local"

DEFAULT_SCENARIO_PARAMS = {
    "revenue_growth_pct": 0.0,
    "cost_growth_pct": 0.0,
    "headcount_growth_pct": 0.0,
    "initial_cash_adjustment_pct": 0.0,
}

BASE_SCENARIO_NAME = "Basis"

PRESET_SCENARIOS = {
    "best": {
        "name": "Best Case",
        "params": {
            "revenue_growth_pct": 15.0,
            "cost_growth_pct": 5.0,
            "headcount_growth_pct": 0.0,
            "initial_cash_adjustment_pct": 20.0,
        },
    },
    "worst": {
        "name": "Worst Case",
        "params": {
            "revenue_growth_pct": -10.0,
            "cost_growth_pct": 15.0,
            "headcount_growth_pct": 0.0,
            "initial_cash_adjustment_pct": -20.0,
        },
    },
}

DEFAULT_ROW_NAMES = {
    "revenue": "Neuer Umsatz",
    "cost": "Neue Kosten",
    "headcount": "Neue Stelle",
    "other": "Sonstiges",
}

DUPLICATE_SUFFIX = " (Kopie)"
