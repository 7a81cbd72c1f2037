from __future__ import annotations

from bizplan.csv_import import is_month_column, parse_csv_for_import


def test_month_column_patterns():
    for header in ("Monat 1", "Month 12", "M3", "m 4", "7"):
        assert is_month_column(header), header
    for header in ("Name", "Kategorie", "Jahr 1 Total", "Monat"):
        assert not is_month_column(header), header


def test_parse_rows_with_german_headers():
    text = "Name,Kategorie,Monat 1,Monat 2,Monat 3\nAbo,revenue,100,200,abc\nMiete,Kosten,50,50,50\n"
    rows, warnings = parse_csv_for_import(text)
    assert [r.name for r in rows] == ["Abo", "Miete"]
    assert rows[0].category == "revenue"
    assert rows[0].values == [100.0, 200.0, 0.0]
    assert rows[1].category == "cost"
    assert warnings == []


def test_unknown_category_falls_back_to_other_with_warning():
    text = "name,category,Month 1\nThing,capex,10\nNo category,,5\n"
    rows, warnings = parse_csv_for_import(text)
    assert [r.category for r in rows] == ["other", "other"]
    assert len(warnings) == 1
    assert "capex" in warnings[0]


def test_rows_without_name_are_skipped():
    rows, _ = parse_csv_for_import("Name,1,2\n,5,5\nKept,1,2\n")
    assert [r.name for r in rows] == ["Kept"]
    assert rows[0].values == [1.0, 2.0]


def test_missing_month_columns_yield_no_rows():
    rows, warnings = parse_csv_for_import("Name,Kategorie\nAbo,revenue\n")
    assert rows == []
    assert any("No month columns" in w for w in warnings)


def test_empty_csv():
    assert parse_csv_for_import("  ") == ([], ["CSV is empty."])
