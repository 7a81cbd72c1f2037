"""Calendar helpers for plan month indexes."""

from __future__ import annotations

from datetime import date

import pandas as pd


MONTH_ABBREVIATIONS_DE = ["Jan", "Feb", "Mär", "Apr", "Mai", "Jun", "Jul", "Aug", "Sep", "Okt", "Nov", "Dez"]


def month_name(month_index: int) -> str:
    """Abbreviated German month name for a 0-based calendar month; '' when out of range."""
    if 0 <= int(month_index) < 12:
        return MONTH_ABBREVIATIONS_DE[int(month_index)]
    return ""


def plan_dates(start_month: date, months: int) -> pd.DatetimeIndex:
    """Month-start dates for plan indexes 0..months-1."""
    start = pd.Timestamp(start_month.year, start_month.month, 1)
    return pd.date_range(start=start, periods=max(0, int(months)), freq="MS")


def year_month_labels(dates: pd.DatetimeIndex) -> list[str]:
    return [d.strftime("%Y-%m") for d in dates]


def short_month_labels(dates: pd.DatetimeIndex) -> list[str]:
    """Labels like 'Mär 26' for axis ticks and table headers."""
    return [f"{month_name(d.month - 1)} {d.strftime('%y')}" for d in dates]


def current_month_start() -> date:
    today = date.today()
    return date(today.year, today.month, 1)
