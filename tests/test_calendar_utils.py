from __future__ import annotations

from datetime import date

from bizplan.calendar_utils import month_name, plan_dates, short_month_labels, year_month_labels


def test_plan_dates_roll_over_year_end():
    dates = plan_dates(date(2025, 11, 15), 4)
    assert year_month_labels(dates) == ["2025-11", "2025-12", "2026-01", "2026-02"]
    assert len(plan_dates(date(2026, 1, 1), 0)) == 0


def test_short_month_labels_use_german_abbreviations():
    dates = plan_dates(date(2026, 2, 1), 3)
    assert short_month_labels(dates) == ["Feb 26", "Mär 26", "Apr 26"]
    assert month_name(11) == "Dez"
    assert month_name(12) == ""
