"""Spreadsheet exports of cash plans and projections."""

from __future__ import annotations

from io import BytesIO

import pandas as pd

from bizplan.models import CashPlan, CashPlanRow
from bizplan.schema import CATEGORIES, CATEGORY_LABELS


EXCEL_SHEET_NAME = "Cashflow"
YEAR_ONE_MONTHS = 12


def _month_columns(months: int) -> list[str]:
    return [f"Monat {i + 1}" for i in range(months)]


def cash_plan_grid_frame(plan: CashPlan, rows: list[CashPlanRow]) -> pd.DataFrame:
    """Rows grouped by category, each group closed by a TOTAL row and a blank separator."""
    month_cols = _month_columns(plan.months)
    columns = ["Kategorie", "Name", *month_cols, "Jahr 1 Total"]
    records: list[dict] = []
    for category in CATEGORIES:
        label = CATEGORY_LABELS[category]
        group = [r for r in rows if r.category == category]
        for row in group:
            values = [row.value_at(m) for m in range(plan.months)]
            records.append(
                {
                    "Kategorie": label,
                    "Name": row.name,
                    **dict(zip(month_cols, values)),
                    "Jahr 1 Total": sum(values[:YEAR_ONE_MONTHS]),
                }
            )
        totals = [sum(r.value_at(m) for r in group) for m in range(plan.months)]
        records.append(
            {
                "Kategorie": label,
                "Name": "TOTAL",
                **dict(zip(month_cols, totals)),
                "Jahr 1 Total": sum(totals[:YEAR_ONE_MONTHS]),
            }
        )
        records.append({col: None for col in columns})
    return pd.DataFrame(records, columns=columns)


def cash_plan_excel_bytes(plan: CashPlan, rows: list[CashPlanRow]) -> bytes:
    output = BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        cash_plan_grid_frame(plan, rows).to_excel(writer, sheet_name=EXCEL_SHEET_NAME, index=False)
    output.seek(0)
    return output.getvalue()


def cash_plan_csv_text(plan: CashPlan, rows: list[CashPlanRow]) -> str:
    """Importable CSV: Name, Kategorie and one column per month."""
    month_cols = _month_columns(plan.months)
    records = [
        {"Name": r.name, "Kategorie": CATEGORY_LABELS[r.category], **{col: r.value_at(m) for m, col in enumerate(month_cols)}}
        for r in rows
    ]
    return pd.DataFrame(records, columns=["Name", "Kategorie", *month_cols]).to_csv(index=False)


def projection_csv_text(frame: pd.DataFrame) -> str:
    out = frame.copy()
    if "Date" in out.columns:
        out["Date"] = pd.to_datetime(out["Date"]).dt.strftime("%Y-%m-%d")
    return out.to_csv(index=False)
