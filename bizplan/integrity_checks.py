"""Projection identity and roll-forward checks."""

from __future__ import annotations

from typing import Any, Callable

import numpy as np
import pandas as pd


SERIES_COLUMNS = ["Revenue", "Cost", "Net Cash Flow", "Cash Balance"]

# (check, checked column, expression label, expected values from the series dict)
Identity = tuple[str, str, str, Callable[[dict[str, np.ndarray], float], np.ndarray]]

IDENTITIES: list[Identity] = [
    (
        "Net cash flow identity",
        "Net Cash Flow",
        "Revenue - Cost",
        lambda s, seed: s["Revenue"] - s["Cost"],
    ),
    (
        "Cash roll-forward",
        "Cash Balance",
        "Prior Cash Balance + Net Cash Flow",
        lambda s, seed: np.concatenate([[seed], s["Cash Balance"][:-1]]) + s["Net Cash Flow"],
    ),
]


def _finding(check: str, max_abs_delta: float, month: str, lhs_name: str, rhs_name: str) -> dict[str, Any]:
    return {
        "Check": check,
        "Max Abs Delta": float(max_abs_delta),
        "Month of Max Delta": month,
        "LHS": lhs_name,
        "RHS": rhs_name,
    }


def _month_label(df: pd.DataFrame, idx: int) -> str:
    if "Year_Month_Label" in df.columns and 0 <= idx < len(df):
        return str(df.iloc[idx]["Year_Month_Label"])
    return str(idx)


def run_integrity_checks(df: pd.DataFrame, adjusted_initial_cash: float, tol: float = 1e-6) -> list[dict[str, Any]]:
    """Check a projection frame; an empty list means every identity holds.

    Non-finite cells are reported once under "Finite values"; the identity
    checks count their deltas as 0.
    """
    if not isinstance(df, pd.DataFrame):
        return [_finding("Projection not available", np.nan, "", "", "")]
    if df.empty:
        return []

    series = {col: df[col].to_numpy(dtype=float) for col in SERIES_COLUMNS}
    seed = float(adjusted_initial_cash)
    findings: list[dict[str, Any]] = []

    for check, column, expression, expected in IDENTITIES:
        delta = np.nan_to_num(series[column] - expected(series, seed), nan=0.0, posinf=0.0, neginf=0.0)
        max_abs = float(np.max(np.abs(delta)))
        if max_abs > float(tol):
            idx = int(np.argmax(np.abs(delta)))
            findings.append(_finding(check, max_abs, _month_label(df, idx), column, expression))

    bad = ~np.isfinite(np.column_stack([series[col] for col in SERIES_COLUMNS]))
    if bad.any():
        first_row = int(np.argwhere(bad)[0][0])
        findings.append(_finding("Finite values", np.nan, _month_label(df, first_row), "Projection values", "finite numbers"))
    return findings
