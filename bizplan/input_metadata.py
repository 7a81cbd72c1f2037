"""Scenario parameter guidance and advisory range checks."""

from __future__ import annotations

from typing import Any

from bizplan.models import ScenarioParams


PARAM_LABELS: dict[str, str] = {
    "revenue_growth_pct": "Umsatzwachstum % / Monat",
    "cost_growth_pct": "Kostenwachstum % / Monat",
    "headcount_growth_pct": "Headcount-Wachstum % / Monat",
    "initial_cash_adjustment_pct": "Startkapital-Anpassung %",
}

PARAM_GUIDANCE: dict[str, dict[str, Any]] = {
    "revenue_growth_pct": {"min": -50.0, "max": 50.0, "note": "Compounds monthly; small values add up quickly over 24 months."},
    "cost_growth_pct": {"min": -50.0, "max": 50.0, "note": "Applied to costs, headcount and other rows alike."},
    "headcount_growth_pct": {"min": -50.0, "max": 50.0, "note": "Stored with the scenario; not applied to the projection."},
    "initial_cash_adjustment_pct": {"min": -100.0, "max": 100.0, "note": "-100 removes all starting cash."},
}


def _fmt(v: float) -> str:
    if abs(v - round(v)) < 1e-9:
        return f"{int(round(v))}"
    return f"{v:.3f}".rstrip("0").rstrip(".")


def help_with_guidance(key: str, base_help: str) -> str:
    g = PARAM_GUIDANCE.get(key)
    if not g:
        return base_help
    return f"{base_help} Reasonable range: {_fmt(g['min'])} to {_fmt(g['max'])}. {g['note']}"


def advisory_warnings(params: ScenarioParams | dict) -> list[str]:
    """Out-of-range notes; values are never clamped."""
    values = params.to_dict() if isinstance(params, ScenarioParams) else dict(params or {})
    warnings: list[str] = []
    for key, g in PARAM_GUIDANCE.items():
        if key not in values:
            continue
        try:
            v = float(values[key])
        except (TypeError, ValueError):
            continue
        if v < g["min"] or v > g["max"]:
            warnings.append(
                f"{PARAM_LABELS[key]}={_fmt(v)} is outside the recommended range [{_fmt(g['min'])}, {_fmt(g['max'])}]."
            )
    return warnings
