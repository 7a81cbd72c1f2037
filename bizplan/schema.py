"""Record schema constants and sanitizers for stored and imported values."""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any

import pandas as pd

from bizplan.defaults import DEFAULT_HORIZON_MONTHS, DEFAULT_SCENARIO_PARAMS


SCHEMA_VERSION = 1

PROJECT_KIND = "projects"
BUSINESS_CASE_KIND = "business_cases"
CASH_PLAN_KIND = "cash_plans"
CASH_PLAN_ROW_KIND = "cash_plan_rows"
SCENARIO_KIND = "scenarios"
MEMO_KIND = "memos"
RECORD_KINDS = (
    PROJECT_KIND,
    BUSINESS_CASE_KIND,
    CASH_PLAN_KIND,
    CASH_PLAN_ROW_KIND,
    SCENARIO_KIND,
    MEMO_KIND,
)

CATEGORIES = ("revenue", "cost", "headcount", "other")
COST_CATEGORIES = ("cost", "headcount", "other")
CATEGORY_LABELS = {
    "revenue": "Umsatz",
    "cost": "Kosten",
    "headcount": "Headcount",
    "other": "Sonstige",
}

SCENARIO_TYPES = ("base", "best", "worst", "custom")
SCENARIO_TYPE_LABELS = {
    "base": "Basis",
    "best": "Best Case",
    "worst": "Worst Case",
    "custom": "Benutzerdefiniert",
}

BUSINESS_CASE_TYPES = ("saas", "marketplace", "ecommerce", "ai", "service", "custom")
BUSINESS_CASE_STATUSES = ("draft", "active", "archived")

# Accepted aliases: parameter keys without the _pct suffix.
LEGACY_PARAM_KEYS = {
    "revenue_growth": "revenue_growth_pct",
    "cost_growth": "cost_growth_pct",
    "headcount_growth": "headcount_growth_pct",
    "initial_cash_adjustment": "initial_cash_adjustment_pct",
}


def coerce_float(value: Any, default: float = 0.0) -> float:
    """Return a finite float, falling back to default for blanks, text, NaN and inf."""
    if value is None or isinstance(value, bool):
        return float(default)
    try:
        out = float(value)
    except (TypeError, ValueError):
        return float(default)
    if math.isnan(out) or math.isinf(out):
        return float(default)
    return out


def _is_numeric_like(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        out = float(value)
    except (TypeError, ValueError):
        return False
    return not (math.isnan(out) or math.isinf(out))


def sanitize_horizon(raw: Any, warnings: list[str] | None = None) -> int:
    try:
        months = int(raw)
    except (TypeError, ValueError):
        months = 0
    if months <= 0:
        if warnings is not None:
            warnings.append(f"months={raw!r} invalid; reset to {DEFAULT_HORIZON_MONTHS}.")
        return DEFAULT_HORIZON_MONTHS
    return months


def sanitize_monthly_values(
    raw_values: Any, horizon: int, warnings: list[str] | None = None, key_name: str = "monthly_values"
) -> list[float]:
    """Return exactly `horizon` floats; missing months become 0.0 and extra months are dropped."""
    horizon = max(0, int(horizon))
    if raw_values is None:
        return [0.0] * horizon
    if isinstance(raw_values, (pd.Series, tuple)):
        raw_values = list(raw_values)
    if not isinstance(raw_values, list):
        if warnings is not None:
            warnings.append(f"{key_name} ignored because it is not a list.")
        return [0.0] * horizon

    if len(raw_values) > horizon and warnings is not None:
        warnings.append(f"{key_name} has {len(raw_values)} values; truncated to {horizon} months.")
    out: list[float] = []
    for idx in range(horizon):
        if idx >= len(raw_values):
            out.append(0.0)
            continue
        value = raw_values[idx]
        if value is not None and value != "" and not _is_numeric_like(value) and warnings is not None:
            warnings.append(f"{key_name}[{idx}] is not numeric and was set to 0.")
        out.append(coerce_float(value))
    return out


def sanitize_category(raw: Any, warnings: list[str] | None = None, key_name: str = "category") -> str:
    text = str(raw or "").strip().lower()
    if text in CATEGORIES:
        return text
    if warnings is not None:
        warnings.append(f"{key_name}={raw!r} unknown; using 'other'.")
    return "other"


def sanitize_scenario_type(raw: Any, warnings: list[str] | None = None) -> str:
    text = str(raw or "").strip().lower()
    if text in SCENARIO_TYPES:
        return text
    if warnings is not None:
        warnings.append(f"scenario type {raw!r} unknown; using 'custom'.")
    return "custom"


def sanitize_scenario_params(raw: Any, warnings: list[str] | None = None) -> dict[str, float]:
    """Normalize a stored parameter set; absent values mean "no change" (0)."""
    params = dict(DEFAULT_SCENARIO_PARAMS)
    if not isinstance(raw, dict):
        if raw is not None and warnings is not None:
            warnings.append("Scenario parameters ignored because they are not an object.")
        return params

    for key, value in raw.items():
        target = LEGACY_PARAM_KEYS.get(key, key)
        if target not in params:
            continue
        if target != key and target in raw:
            # The current key wins over a legacy alias.
            continue
        if value is not None and not _is_numeric_like(value) and warnings is not None:
            warnings.append(f"{target} invalid and reset to 0.")
        params[target] = coerce_float(value)
    return params


def sanitize_start_month(raw: Any) -> date:
    """Return the first day of the month for a date, timestamp or ISO string."""
    if isinstance(raw, datetime):
        return date(raw.year, raw.month, 1)
    if isinstance(raw, date):
        return date(raw.year, raw.month, 1)
    try:
        ts = pd.Timestamp(str(raw))
    except (TypeError, ValueError):
        ts = pd.Timestamp.now()
    if pd.isna(ts):
        ts = pd.Timestamp.now()
    return date(int(ts.year), int(ts.month), 1)


def sanitize_choice(raw: Any, options: tuple[str, ...], default: str) -> str:
    text = str(raw or "").strip().lower()
    return text if text in options else default
