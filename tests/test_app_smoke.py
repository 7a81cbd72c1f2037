from __future__ import annotations

from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

from bizplan import planning


APP_PATH = str(Path(__file__).resolve().parents[1] / "app.py")


def _widget_by_label(widgets, label: str):
    matches = [w for w in widgets if getattr(w, "label", "") == label]
    assert matches, f"Widget not found for label: {label}"
    return matches[0]


def _assert_no_app_exceptions(at: AppTest) -> None:
    assert len(at.exception) == 0


def _open_page(page: str) -> AppTest:
    at = AppTest.from_file(APP_PATH)
    at.run(timeout=180)
    at.radio(key="page").set_value(page)
    at.run(timeout=180)
    return at


@pytest.fixture
def seeded_case(stored_plan):
    case, plan = stored_plan
    planning.add_row(plan.id, "revenue", "Licenses", [1000.0] * plan.months)
    planning.add_row(plan.id, "cost", "Team", [1500.0] * plan.months)
    planning.set_initial_cash(plan.id, 10_000.0)
    planning.create_preset_scenario(plan.id, "best")
    planning.create_preset_scenario(plan.id, "worst")
    return case, plan


def test_app_initial_run_has_no_exceptions():
    at = AppTest.from_file(APP_PATH)
    at.run(timeout=180)
    _assert_no_app_exceptions(at)


@pytest.mark.parametrize("page", ["Dashboard", "Projects", "Business Cases", "Cash Plan", "Scenario Comparison", "Memos", "Settings"])
def test_every_page_renders_with_empty_store(page):
    _assert_no_app_exceptions(_open_page(page))


@pytest.mark.parametrize("page", ["Dashboard", "Business Cases", "Cash Plan", "Scenario Comparison", "Memos"])
def test_every_page_renders_with_data(seeded_case, page):
    _assert_no_app_exceptions(_open_page(page))


def test_cash_plan_goal_seek_flow(seeded_case):
    at = _open_page("Cash Plan")
    _assert_no_app_exceptions(at)
    at.number_input(key="goal_target_value").set_value(20_000.0)
    at.run(timeout=180)
    _widget_by_label(at.button, "Run Goal Seek").click()
    at.run(timeout=180)
    _assert_no_app_exceptions(at)
    assert at.session_state["goal_seek_result"] is not None


def test_deleting_base_scenario_is_disabled(seeded_case):
    at = _open_page("Cash Plan")
    assert _widget_by_label(at.button, "Delete Scenario").disabled


def test_create_project_form_rejects_empty_name():
    at = _open_page("Projects")
    _widget_by_label(at.button, "Create Project").click()
    at.run(timeout=180)
    _assert_no_app_exceptions(at)
    assert any("name is required" in w.value for w in at.warning)
    assert planning.list_projects() == []
