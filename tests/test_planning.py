from __future__ import annotations

import pytest

from bizplan import persistence, planning
from bizplan.csv_import import ImportedRow
from bizplan.schema import CASH_PLAN_ROW_KIND, SCENARIO_KIND


def test_projects_are_scoped_to_current_user(monkeypatch):
    planning.create_project("Mine")
    monkeypatch.setattr(planning, "CURRENT_USER", "someone-else")
    assert planning.list_projects() == []
    planning.create_project("Theirs")
    assert [p.name for p in planning.list_projects()] == ["Theirs"]


def test_project_name_is_required():
    with pytest.raises(ValueError, match="name is required"):
        planning.create_project("   ")


def test_business_case_validation():
    project = planning.create_project("P")
    with pytest.raises(ValueError):
        planning.create_business_case(project.id, "Case", case_type="hardware")
    with pytest.raises(ValueError):
        planning.create_business_case("missing", "Case")
    case = planning.create_business_case(project.id, "Case", case_type="marketplace")
    updated = planning.update_business_case(case.id, status="active", name="Renamed")
    assert updated.status == "active"
    assert updated.name == "Renamed"
    assert updated.type == "marketplace"


def test_cash_plan_is_created_lazily_with_base_scenario(stored_plan):
    case, plan = stored_plan
    assert plan.months == 24
    assert plan.currency == "EUR"
    assert plan.initial_cash == 0.0
    assert plan.start_month.day == 1
    again = planning.get_or_create_cash_plan(case.id)
    assert again.id == plan.id
    scenarios = planning.list_scenarios(plan.id)
    assert len(scenarios) == 1
    assert scenarios[0].is_base
    assert scenarios[0].name == "Basis"


def test_row_editing_operations(stored_plan):
    _, plan = stored_plan
    revenue = planning.add_row(plan.id, "revenue", "Licenses")
    cost = planning.add_row(plan.id, "cost")
    assert cost.name == "Neue Kosten"
    assert len(revenue.monthly_values) == 24

    planning.set_month_value(revenue.id, 2, "1500")
    planning.rename_row(cost.id, "Servers")
    planning.set_row_category(cost.id, "other")
    rows = planning.list_rows(plan.id)
    assert rows[0].monthly_values[2] == 1500.0
    assert rows[1].name == "Servers"
    assert rows[1].category == "other"

    with pytest.raises(ValueError):
        planning.set_month_value(revenue.id, 24, 1.0)
    with pytest.raises(ValueError):
        planning.set_row_category(cost.id, "capex")
    with pytest.raises(ValueError):
        planning.rename_row(cost.id, "")


def test_set_row_values_fits_horizon(stored_plan):
    _, plan = stored_plan
    row = planning.add_row(plan.id, "revenue")
    updated = planning.set_row_values(row.id, [1, 2, 3])
    assert updated.monthly_values[:4] == [1.0, 2.0, 3.0, 0.0]
    assert len(updated.monthly_values) == 24


def test_move_and_duplicate_rows(stored_plan):
    _, plan = stored_plan
    a = planning.add_row(plan.id, "revenue", "A")
    b = planning.add_row(plan.id, "revenue", "B")
    c = planning.add_row(plan.id, "cost", "C")

    order = [r.name for r in planning.move_row(c.id, -1)]
    assert order == ["A", "C", "B"]
    order = [r.name for r in planning.move_row(a.id, -1)]
    assert order == ["A", "C", "B"]

    copy = planning.duplicate_row(a.id)
    assert copy.name == "A (Kopie)"
    assert [r.name for r in planning.list_rows(plan.id)] == ["A", "A (Kopie)", "C", "B"]

    planning.delete_row(b.id)
    assert [r.name for r in planning.list_rows(plan.id)] == ["A", "A (Kopie)", "C"]


def test_import_rows_appends_or_replaces(stored_plan):
    _, plan = stored_plan
    planning.add_row(plan.id, "revenue", "Existing")
    imported = [ImportedRow(name="Ads", category="cost", values=[10.0, 20.0])]
    planning.import_rows(plan.id, imported)
    assert [r.name for r in planning.list_rows(plan.id)] == ["Existing", "Ads"]
    planning.import_rows(plan.id, imported, replace=True)
    rows = planning.list_rows(plan.id)
    assert [r.name for r in rows] == ["Ads"]
    assert rows[0].monthly_values[:3] == [10.0, 20.0, 0.0]


def test_scenario_lifecycle(stored_plan):
    _, plan = stored_plan
    best = planning.create_preset_scenario(plan.id, "best")
    assert best.type == "best"
    assert best.params.revenue_growth_pct == 15.0
    assert best.params.initial_cash_adjustment_pct == 20.0

    custom = planning.create_scenario(plan.id, "Slow ramp", {"revenue_growth": 2.0})
    assert custom.params.revenue_growth_pct == 2.0
    renamed = planning.update_scenario(custom.id, name="Slower ramp", params={"revenue_growth_pct": 1.0})
    assert renamed.name == "Slower ramp"
    assert renamed.params.revenue_growth_pct == 1.0

    assert [s.name for s in planning.list_scenarios(plan.id)] == ["Basis", "Best Case", "Slower ramp"]
    planning.delete_scenario(custom.id)
    assert len(planning.list_scenarios(plan.id)) == 2


def test_base_scenario_cannot_be_deleted(stored_plan):
    _, plan = stored_plan
    base = planning.ensure_base_scenario(plan.id)
    with pytest.raises(ValueError, match="base scenario"):
        planning.delete_scenario(base.id)


def test_memo_get_or_create_and_save(stored_plan):
    case, _ = stored_plan
    memo = planning.get_or_create_memo(case.id)
    assert memo.section("problem") == ""
    saved = planning.save_memo_sections(memo.id, {"problem": "Too many spreadsheets.", "bogus": "x"})
    assert saved.section("problem") == "Too many spreadsheets."
    assert planning.get_or_create_memo(case.id).id == memo.id


def test_delete_business_case_cascades(stored_plan):
    case, plan = stored_plan
    planning.add_row(plan.id, "revenue")
    planning.create_preset_scenario(plan.id, "worst")
    planning.get_or_create_memo(case.id)

    planning.delete_business_case(case.id)
    assert persistence.list_records(CASH_PLAN_ROW_KIND) == []
    assert persistence.list_records(SCENARIO_KIND) == []
    assert planning.count_dashboard_items() == {"projects": 1, "business_cases": 0, "cash_plans": 0}


def test_delete_project_cascades(stored_plan):
    case, _ = stored_plan
    planning.delete_project(case.project_id)
    assert planning.count_dashboard_items() == {"projects": 0, "business_cases": 0, "cash_plans": 0}


def test_plan_records_are_scoped_to_the_owning_user(stored_plan, monkeypatch):
    case, plan = stored_plan
    row = planning.add_row(plan.id, "revenue", "Licenses", [100.0] * plan.months)
    base = planning.list_scenarios(plan.id)[0]
    memo = planning.get_or_create_memo(case.id)

    monkeypatch.setattr(planning, "CURRENT_USER", "someone-else")
    with pytest.raises(ValueError, match="not found"):
        planning.set_initial_cash(plan.id, -999.0)
    with pytest.raises(ValueError, match="not found"):
        planning.delete_row(row.id)
    with pytest.raises(ValueError, match="not found"):
        planning.create_scenario(plan.id, "Other")
    with pytest.raises(ValueError, match="not found"):
        planning.update_scenario(base.id, name="Renamed")
    with pytest.raises(ValueError, match="not found"):
        planning.save_memo_sections(memo.id, {"problem": "x"})
    with pytest.raises(ValueError, match="not found"):
        planning.import_rows(plan.id, [], replace=True)

    monkeypatch.setattr(planning, "CURRENT_USER", "tester")
    assert planning.get_cash_plan(plan.id).initial_cash == plan.initial_cash
    assert [r.id for r in planning.list_rows(plan.id)] == [row.id]
    assert [s.name for s in planning.list_scenarios(plan.id)] == [base.name]
    assert planning.get_or_create_memo(case.id).section("problem") == ""


def test_cleared_editor_cells_do_not_count_as_changes(stored_plan):
    _, plan = stored_plan
    row = planning.add_row(plan.id, "cost", "Rent", [0.0] * plan.months)
    edited = [float("nan")] + [None] * (plan.months - 1)
    assert not planning.row_values_changed(row, edited)
    assert planning.row_values_changed(row, [5.0] + [0.0] * (plan.months - 1))
