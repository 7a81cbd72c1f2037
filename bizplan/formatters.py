"""Display formatting for euro amounts, dates and projection KPIs."""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any

import pandas as pd

from bizplan.calendar_utils import month_name


_LEADING_NUMBER = re.compile(r"-?(\d+\.?\d*|\.\d+)")


def _group_de(value: float, decimals: int) -> str:
    # Python groups with "," and uses "." for decimals; de-DE swaps them.
    text = f"{abs(value):,.{decimals}f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def format_euro(value: Any) -> str:
    """Format as de-DE euro currency with two decimals, e.g. '1.234,56 €'."""
    try:
        num = float(value)
    except (TypeError, ValueError):
        num = 0.0
    if math.isnan(num) or math.isinf(num):
        num = 0.0
    sign = "-" if num < 0 and round(abs(num), 2) != 0 else ""
    return f"{sign}{_group_de(num, 2)} €"


def format_euro_short(value: Any) -> str:
    try:
        num = float(value)
    except (TypeError, ValueError):
        num = 0.0
    if abs(num) >= 1_000_000:
        return f"€{num / 1_000_000:.1f}M"
    if abs(num) >= 1_000:
        return f"€{num / 1_000:.0f}K"
    return format_euro(num)


def parse_euro(text: str) -> float:
    """Parse a euro string such as '1.234,56 €' back to a number; 0.0 when unparseable."""
    if not text:
        return 0.0
    clean = re.sub(r"[^0-9,-]", "", str(text)).replace(",", ".", 1)
    match = _LEADING_NUMBER.match(clean)
    if not match:
        return 0.0
    try:
        return float(match.group(0))
    except ValueError:
        return 0.0


def _as_date(value: date | datetime | str) -> date:
    if isinstance(value, (date, datetime)):
        return value
    return pd.Timestamp(value).to_pydatetime()


def format_date(value: date | datetime | str) -> str:
    d = _as_date(value)
    return f"{d.day}. {month_name(d.month - 1)} {d.year}"


def format_month_year(value: date | datetime | str) -> str:
    d = _as_date(value)
    return f"{month_name(d.month - 1)} {d.year}"


def format_break_even(break_even_month: int) -> str:
    if break_even_month is None or int(break_even_month) < 0:
        return "Nicht erreicht"
    return f"Monat {int(break_even_month) + 1}"


def format_runway(runway: float) -> str:
    if runway is None:
        return "-"
    if math.isinf(runway):
        return "∞"
    return f"{int(runway)} Monate"
