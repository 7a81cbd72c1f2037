"""CSV import of cash plan rows."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from io import StringIO

import pandas as pd

from bizplan.schema import CATEGORY_LABELS, coerce_float, sanitize_category


_MONTH_COLUMN = re.compile(r"^(Monat|Month|M)\s*\d+$", re.IGNORECASE)
_BARE_NUMBER_COLUMN = re.compile(r"^\d+$")
_NAME_COLUMNS = ("Name", "name")
_CATEGORY_COLUMNS = ("Kategorie", "category", "Category")
# Exported sheets carry the German labels.
_CATEGORY_BY_LABEL = {label.lower(): key for key, label in CATEGORY_LABELS.items()}


@dataclass
class ImportedRow:
    name: str
    category: str
    values: list[float] = field(default_factory=list)


def is_month_column(column: str) -> bool:
    text = str(column).strip()
    return bool(_MONTH_COLUMN.match(text) or _BARE_NUMBER_COLUMN.match(text))


def _first_present(record: dict, keys: tuple[str, ...]) -> str:
    for key in keys:
        value = record.get(key)
        if value is None or (isinstance(value, float) and pd.isna(value)):
            continue
        text = str(value).strip()
        if text:
            return text
    return ""


def parse_csv_for_import(csv_text: str) -> tuple[list[ImportedRow], list[str]]:
    """Parse rows with a name, an optional category and month columns.

    Month values come from columns named like "Monat 1", "Month 1", "M1" or
    plain digits, in column order. Rows without a name or without any month
    column are skipped.
    """
    warnings: list[str] = []
    if not str(csv_text or "").strip():
        return [], ["CSV is empty."]
    try:
        frame = pd.read_csv(StringIO(csv_text), dtype=object, skip_blank_lines=True)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        return [], [f"Could not parse CSV: {exc}"]

    month_cols = [c for c in frame.columns if is_month_column(c)]
    if not month_cols:
        warnings.append("No month columns found (expected headers like 'Monat 1' or 'Month 1').")

    rows: list[ImportedRow] = []
    for idx, record in enumerate(frame.to_dict(orient="records")):
        name = _first_present(record, _NAME_COLUMNS)
        if not name or not month_cols:
            continue
        raw_category = _first_present(record, _CATEGORY_COLUMNS) or "other"
        raw_category = _CATEGORY_BY_LABEL.get(raw_category.lower(), raw_category)
        category = sanitize_category(raw_category, warnings, key_name=f"row {idx + 1} category")
        values = [coerce_float(record.get(col)) for col in month_cols]
        rows.append(ImportedRow(name=name, category=category, values=values))
    return rows, warnings
