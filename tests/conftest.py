from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from bizplan import persistence, planning, runtime_logging
from bizplan.models import CashPlan, CashPlanRow


@pytest.fixture(autouse=True)
def isolated_store(tmp_path, monkeypatch) -> Path:
    store = Path(tmp_path) / "store"
    monkeypatch.setattr(persistence, "STORE_DIR", store)
    monkeypatch.setattr(runtime_logging, "LOG_DIR", store)
    monkeypatch.setattr(runtime_logging, "RUNTIME_EVENTS_LOG_FILE", store / "app_events.jsonl")
    monkeypatch.setattr(planning, "CURRENT_USER", "tester")
    return store


@pytest.fixture
def sample_plan() -> CashPlan:
    return CashPlan(id="plan-1", business_case_id="case-1", start_month=date(2026, 1, 1), months=3, initial_cash=500.0)


@pytest.fixture
def sample_rows() -> list[CashPlanRow]:
    return [
        CashPlanRow(id="r1", cash_plan_id="plan-1", category="revenue", name="Subscriptions", monthly_values=[1000.0, 1000.0, 1000.0]),
        CashPlanRow(id="r2", cash_plan_id="plan-1", category="cost", name="Hosting", monthly_values=[800.0, 800.0, 800.0], sort_order=1),
    ]


@pytest.fixture
def stored_plan():
    """A business case with a lazily created cash plan in the isolated store."""
    project = planning.create_project("Launch")
    case = planning.create_business_case(project.id, "SaaS Tool", case_type="saas")
    plan = planning.get_or_create_cash_plan(case.id)
    return case, plan
