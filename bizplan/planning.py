"""Planning operations over the record store.

Projects belong to the current user; business cases, cash plans, rows,
scenarios and memos hang off them and are removed together when a parent is
deleted. Invalid user actions raise ValueError with a message fit for display.
"""

from __future__ import annotations

import os
from copy import deepcopy
from typing import Any

from bizplan import persistence
from bizplan.calendar_utils import current_month_start
from bizplan.defaults import (
    BASE_SCENARIO_NAME,
    DEFAULT_CURRENCY,
    DEFAULT_HORIZON_MONTHS,
    DEFAULT_INITIAL_CASH,
    DEFAULT_ROW_NAMES,
    DEFAULT_USER,
    DUPLICATE_SUFFIX,
    PRESET_SCENARIOS,
)
from bizplan.models import (
    MEMO_SECTION_KEYS,
    BusinessCase,
    CashPlan,
    CashPlanRow,
    Memo,
    Project,
    Scenario,
    ScenarioParams,
)
from bizplan.schema import (
    BUSINESS_CASE_KIND,
    BUSINESS_CASE_STATUSES,
    BUSINESS_CASE_TYPES,
    CASH_PLAN_KIND,
    CASH_PLAN_ROW_KIND,
    CATEGORIES,
    MEMO_KIND,
    PROJECT_KIND,
    SCENARIO_KIND,
    coerce_float,
    sanitize_monthly_values,
    sanitize_scenario_params,
)


_USER_ENV_VAR = "BIZPLAN_USER"

CURRENT_USER = DEFAULT_USER


def configure_current_user(name: str | None) -> str:
    global CURRENT_USER
    text = str(name or "").strip()
    CURRENT_USER = text or DEFAULT_USER
    return CURRENT_USER


def current_user() -> str:
    return CURRENT_USER


def _require_name(name: str, what: str) -> str:
    text = str(name or "").strip()
    if not text:
        raise ValueError(f"{what} name is required.")
    return text


# Projects


def list_projects() -> list[Project]:
    user = current_user()
    return [Project.from_record(r) for r in persistence.list_records(PROJECT_KIND, lambda r: r.get("owner") == user)]


def get_project(project_id: str) -> Project:
    record = persistence.get_record(PROJECT_KIND, project_id)
    if record is None or record.get("owner") != current_user():
        raise ValueError(f"Project {project_id} not found.")
    return Project.from_record(record)


def create_project(name: str, description: str = "") -> Project:
    record = {"name": _require_name(name, "Project"), "owner": current_user(), "description": str(description or "")}
    return Project.from_record(persistence.insert_record(PROJECT_KIND, record))


def update_project(project_id: str, *, name: str | None = None, description: str | None = None) -> Project:
    get_project(project_id)
    updates: dict[str, Any] = {}
    if name is not None:
        updates["name"] = _require_name(name, "Project")
    if description is not None:
        updates["description"] = str(description)
    return Project.from_record(persistence.update_record(PROJECT_KIND, project_id, updates))


def delete_project(project_id: str) -> None:
    get_project(project_id)
    for case in list_business_cases(project_id):
        delete_business_case(case.id)
    persistence.delete_record(PROJECT_KIND, project_id)


# Business cases


def _owned_project_ids() -> set[str]:
    return {p.id for p in list_projects()}


def list_business_cases(project_id: str | None = None) -> list[BusinessCase]:
    owned = _owned_project_ids()

    def _match(record: dict) -> bool:
        pid = record.get("project_id")
        return pid in owned and (project_id is None or pid == project_id)

    return [BusinessCase.from_record(r) for r in persistence.list_records(BUSINESS_CASE_KIND, _match)]


def get_business_case(business_case_id: str) -> BusinessCase:
    record = persistence.get_record(BUSINESS_CASE_KIND, business_case_id)
    if record is None or record.get("project_id") not in _owned_project_ids():
        raise ValueError(f"Business case {business_case_id} not found.")
    return BusinessCase.from_record(record)


def create_business_case(
    project_id: str, name: str, description: str = "", case_type: str = "custom", status: str = "draft"
) -> BusinessCase:
    get_project(project_id)
    if case_type not in BUSINESS_CASE_TYPES:
        raise ValueError(f"Unknown business case type: {case_type}")
    if status not in BUSINESS_CASE_STATUSES:
        raise ValueError(f"Unknown business case status: {status}")
    record = {
        "project_id": project_id,
        "name": _require_name(name, "Business case"),
        "description": str(description or ""),
        "type": case_type,
        "status": status,
    }
    return BusinessCase.from_record(persistence.insert_record(BUSINESS_CASE_KIND, record))


def update_business_case(business_case_id: str, **updates: Any) -> BusinessCase:
    get_business_case(business_case_id)
    clean: dict[str, Any] = {}
    if "name" in updates:
        clean["name"] = _require_name(updates["name"], "Business case")
    if "description" in updates:
        clean["description"] = str(updates["description"] or "")
    if "type" in updates:
        if updates["type"] not in BUSINESS_CASE_TYPES:
            raise ValueError(f"Unknown business case type: {updates['type']}")
        clean["type"] = updates["type"]
    if "status" in updates:
        if updates["status"] not in BUSINESS_CASE_STATUSES:
            raise ValueError(f"Unknown business case status: {updates['status']}")
        clean["status"] = updates["status"]
    return BusinessCase.from_record(persistence.update_record(BUSINESS_CASE_KIND, business_case_id, clean))


def delete_business_case(business_case_id: str) -> None:
    get_business_case(business_case_id)
    plan_ids = {
        r["id"] for r in persistence.list_records(CASH_PLAN_KIND, lambda r: r.get("business_case_id") == business_case_id)
    }
    persistence.delete_where(CASH_PLAN_ROW_KIND, lambda r: r.get("cash_plan_id") in plan_ids)
    persistence.delete_where(SCENARIO_KIND, lambda r: r.get("cash_plan_id") in plan_ids)
    persistence.delete_where(CASH_PLAN_KIND, lambda r: r.get("business_case_id") == business_case_id)
    persistence.delete_where(MEMO_KIND, lambda r: r.get("business_case_id") == business_case_id)
    persistence.delete_record(BUSINESS_CASE_KIND, business_case_id)


# Cash plans


def _owns_business_case(business_case_id: str) -> bool:
    record = persistence.get_record(BUSINESS_CASE_KIND, business_case_id)
    return record is not None and record.get("project_id") in _owned_project_ids()


def get_or_create_cash_plan(business_case_id: str) -> CashPlan:
    """Return the plan of a business case, creating it (and its base scenario) on first access."""
    get_business_case(business_case_id)
    existing = persistence.list_records(CASH_PLAN_KIND, lambda r: r.get("business_case_id") == business_case_id)
    if existing:
        plan = CashPlan.from_record(existing[0])
    else:
        record = {
            "business_case_id": business_case_id,
            "currency": DEFAULT_CURRENCY,
            "start_month": current_month_start().isoformat(),
            "months": DEFAULT_HORIZON_MONTHS,
            "initial_cash": DEFAULT_INITIAL_CASH,
        }
        plan = CashPlan.from_record(persistence.insert_record(CASH_PLAN_KIND, record))
    ensure_base_scenario(plan.id)
    return plan


def get_cash_plan(cash_plan_id: str) -> CashPlan:
    """A plan whose business case belongs to the current user."""
    record = persistence.get_record(CASH_PLAN_KIND, cash_plan_id)
    if record is None or not _owns_business_case(str(record.get("business_case_id", ""))):
        raise ValueError(f"Cash plan {cash_plan_id} not found.")
    return CashPlan.from_record(record)


def set_initial_cash(cash_plan_id: str, initial_cash: float) -> CashPlan:
    get_cash_plan(cash_plan_id)
    record = persistence.update_record(CASH_PLAN_KIND, cash_plan_id, {"initial_cash": coerce_float(initial_cash)})
    return CashPlan.from_record(record)


def count_dashboard_items() -> dict[str, int]:
    cases = list_business_cases()
    case_ids = {c.id for c in cases}
    plans = persistence.list_records(CASH_PLAN_KIND, lambda r: r.get("business_case_id") in case_ids)
    return {"projects": len(list_projects()), "business_cases": len(cases), "cash_plans": len(plans)}


# Rows


def list_rows(cash_plan_id: str) -> list[CashPlanRow]:
    plan = get_cash_plan(cash_plan_id)
    records = persistence.list_records(CASH_PLAN_ROW_KIND, lambda r: r.get("cash_plan_id") == cash_plan_id)
    rows = [CashPlanRow.from_record(r, horizon=plan.months) for r in records]
    return sorted(rows, key=lambda r: r.sort_order)


def _get_row(row_id: str) -> CashPlanRow:
    record = persistence.get_record(CASH_PLAN_ROW_KIND, row_id)
    if record is None:
        raise ValueError(f"Row {row_id} not found.")
    plan = get_cash_plan(str(record.get("cash_plan_id", "")))
    return CashPlanRow.from_record(record, horizon=plan.months)


def _save_row_fields(row_id: str, updates: dict[str, Any]) -> CashPlanRow:
    record = persistence.update_record(CASH_PLAN_ROW_KIND, row_id, updates)
    plan = get_cash_plan(str(record.get("cash_plan_id", "")))
    return CashPlanRow.from_record(record, horizon=plan.months)


def add_row(cash_plan_id: str, category: str, name: str | None = None, monthly_values: list | None = None) -> CashPlanRow:
    plan = get_cash_plan(cash_plan_id)
    if category not in CATEGORIES:
        raise ValueError(f"Unknown category: {category}")
    rows = list_rows(cash_plan_id)
    record = {
        "cash_plan_id": cash_plan_id,
        "category": category,
        "name": str(name or "").strip() or DEFAULT_ROW_NAMES[category],
        "sort_order": max((r.sort_order for r in rows), default=-1) + 1,
        "monthly_values": sanitize_monthly_values(monthly_values, plan.months),
    }
    return CashPlanRow.from_record(persistence.insert_record(CASH_PLAN_ROW_KIND, record), horizon=plan.months)


def rename_row(row_id: str, name: str) -> CashPlanRow:
    _get_row(row_id)
    return _save_row_fields(row_id, {"name": _require_name(name, "Row")})


def set_row_category(row_id: str, category: str) -> CashPlanRow:
    _get_row(row_id)
    if category not in CATEGORIES:
        raise ValueError(f"Unknown category: {category}")
    return _save_row_fields(row_id, {"category": category})


def set_month_value(row_id: str, month: int, value: Any) -> CashPlanRow:
    row = _get_row(row_id)
    if not 0 <= int(month) < len(row.monthly_values):
        raise ValueError(f"Month index {month} is outside the plan horizon.")
    values = list(row.monthly_values)
    values[int(month)] = coerce_float(value)
    return _save_row_fields(row_id, {"monthly_values": values})


def set_row_values(row_id: str, monthly_values: list) -> CashPlanRow:
    row = _get_row(row_id)
    return _save_row_fields(row_id, {"monthly_values": sanitize_monthly_values(monthly_values, len(row.monthly_values))})


def row_values_changed(row: CashPlanRow, monthly_values: list) -> bool:
    """Whether edited values differ from the stored ones; blank or NaN cells count as 0."""
    return sanitize_monthly_values(list(monthly_values), len(row.monthly_values)) != row.monthly_values


def move_row(row_id: str, direction: int) -> list[CashPlanRow]:
    """Swap a row with its neighbour (-1 up, +1 down) and renumber sort orders."""
    row = _get_row(row_id)
    rows = list_rows(row.cash_plan_id)
    idx = next(i for i, r in enumerate(rows) if r.id == row_id)
    target = idx + (1 if direction > 0 else -1)
    if 0 <= target < len(rows):
        rows[idx], rows[target] = rows[target], rows[idx]
    for order, r in enumerate(rows):
        if r.sort_order != order:
            persistence.update_record(CASH_PLAN_ROW_KIND, r.id, {"sort_order": order})
    return list_rows(row.cash_plan_id)


def duplicate_row(row_id: str) -> CashPlanRow:
    """Copy a row directly below the original."""
    row = _get_row(row_id)
    rows = list_rows(row.cash_plan_id)
    for r in rows:
        if r.sort_order > row.sort_order:
            persistence.update_record(CASH_PLAN_ROW_KIND, r.id, {"sort_order": r.sort_order + 1})
    record = {
        "cash_plan_id": row.cash_plan_id,
        "category": row.category,
        "name": f"{row.name}{DUPLICATE_SUFFIX}",
        "sort_order": row.sort_order + 1,
        "monthly_values": deepcopy(row.monthly_values),
    }
    return CashPlanRow.from_record(persistence.insert_record(CASH_PLAN_ROW_KIND, record), horizon=len(row.monthly_values))


def delete_row(row_id: str) -> None:
    _get_row(row_id)
    persistence.delete_record(CASH_PLAN_ROW_KIND, row_id)


def import_rows(cash_plan_id: str, imported: list, *, replace: bool = False) -> list[CashPlanRow]:
    """Append parsed CSV rows to a plan; with replace=True existing rows go first."""
    get_cash_plan(cash_plan_id)
    if replace:
        persistence.delete_where(CASH_PLAN_ROW_KIND, lambda r: r.get("cash_plan_id") == cash_plan_id)
    return [add_row(cash_plan_id, item.category, item.name, item.values) for item in imported]


# Scenarios


def list_scenarios(cash_plan_id: str) -> list[Scenario]:
    get_cash_plan(cash_plan_id)
    records = persistence.list_records(SCENARIO_KIND, lambda r: r.get("cash_plan_id") == cash_plan_id)
    return [Scenario.from_record(r) for r in records]


def get_scenario(scenario_id: str) -> Scenario:
    record = persistence.get_record(SCENARIO_KIND, scenario_id)
    if record is None:
        raise ValueError(f"Scenario {scenario_id} not found.")
    get_cash_plan(str(record.get("cash_plan_id", "")))
    return Scenario.from_record(record)


def ensure_base_scenario(cash_plan_id: str) -> Scenario:
    for scenario in list_scenarios(cash_plan_id):
        if scenario.is_base:
            return scenario
    record = {
        "cash_plan_id": cash_plan_id,
        "name": BASE_SCENARIO_NAME,
        "type": "base",
        "params": ScenarioParams().to_dict(),
    }
    return Scenario.from_record(persistence.insert_record(SCENARIO_KIND, record))


def create_scenario(cash_plan_id: str, name: str, params: dict | ScenarioParams | None = None) -> Scenario:
    get_cash_plan(cash_plan_id)
    if isinstance(params, ScenarioParams):
        params = params.to_dict()
    record = {
        "cash_plan_id": cash_plan_id,
        "name": _require_name(name, "Scenario"),
        "type": "custom",
        "params": sanitize_scenario_params(params),
    }
    return Scenario.from_record(persistence.insert_record(SCENARIO_KIND, record))


def create_preset_scenario(cash_plan_id: str, preset: str) -> Scenario:
    if preset not in PRESET_SCENARIOS:
        raise ValueError(f"Unknown preset: {preset}")
    get_cash_plan(cash_plan_id)
    template = PRESET_SCENARIOS[preset]
    record = {
        "cash_plan_id": cash_plan_id,
        "name": template["name"],
        "type": preset,
        "params": deepcopy(template["params"]),
    }
    return Scenario.from_record(persistence.insert_record(SCENARIO_KIND, record))


def update_scenario(scenario_id: str, *, name: str | None = None, params: dict | ScenarioParams | None = None) -> Scenario:
    get_scenario(scenario_id)
    updates: dict[str, Any] = {}
    if name is not None:
        updates["name"] = _require_name(name, "Scenario")
    if params is not None:
        if isinstance(params, ScenarioParams):
            params = params.to_dict()
        updates["params"] = sanitize_scenario_params(params)
    return Scenario.from_record(persistence.update_record(SCENARIO_KIND, scenario_id, updates))


def delete_scenario(scenario_id: str) -> None:
    scenario = get_scenario(scenario_id)
    if scenario.is_base:
        raise ValueError("The base scenario cannot be deleted.")
    persistence.delete_record(SCENARIO_KIND, scenario_id)


# Memos


def get_or_create_memo(business_case_id: str) -> Memo:
    get_business_case(business_case_id)
    existing = persistence.list_records(MEMO_KIND, lambda r: r.get("business_case_id") == business_case_id)
    if existing:
        return Memo.from_record(existing[0])
    record = {"business_case_id": business_case_id, **{key: "" for key in MEMO_SECTION_KEYS}}
    return Memo.from_record(persistence.insert_record(MEMO_KIND, record))


def save_memo_sections(memo_id: str, sections: dict[str, str]) -> Memo:
    record = persistence.get_record(MEMO_KIND, memo_id)
    if record is None or not _owns_business_case(str(record.get("business_case_id", ""))):
        raise ValueError(f"Memo {memo_id} not found.")
    updates = {key: str(sections[key] or "") for key in MEMO_SECTION_KEYS if key in sections}
    return Memo.from_record(persistence.update_record(MEMO_KIND, memo_id, updates))


configure_current_user(os.getenv(_USER_ENV_VAR, ""))
