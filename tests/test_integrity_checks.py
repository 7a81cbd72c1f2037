from __future__ import annotations

import numpy as np

from bizplan.integrity_checks import run_integrity_checks
from bizplan.models import ScenarioParams
from bizplan.projection import project_scenario, projection_frame


def test_integrity_checks_pass_for_projections(sample_plan, sample_rows):
    for params in (
        ScenarioParams(),
        ScenarioParams(revenue_growth_pct=15.0, cost_growth_pct=5.0, initial_cash_adjustment_pct=20.0),
        ScenarioParams(revenue_growth_pct=-10.0, cost_growth_pct=15.0, initial_cash_adjustment_pct=-20.0),
    ):
        metrics = project_scenario(sample_plan, sample_rows, params)
        frame = projection_frame(sample_plan, metrics)
        assert run_integrity_checks(frame, metrics.adjusted_initial_cash) == [], params


def test_integrity_checks_detect_identity_break(sample_plan, sample_rows):
    metrics = project_scenario(sample_plan, sample_rows)
    broken = projection_frame(sample_plan, metrics)
    broken.loc[1, "Revenue"] += 1.0
    findings = run_integrity_checks(broken, metrics.adjusted_initial_cash)
    assert {f["Check"] for f in findings} == {"Net cash flow identity"}
    assert findings[0]["Month of Max Delta"] == "2026-02"


def test_integrity_checks_detect_wrong_seed(sample_plan, sample_rows):
    metrics = project_scenario(sample_plan, sample_rows)
    frame = projection_frame(sample_plan, metrics)
    findings = run_integrity_checks(frame, metrics.adjusted_initial_cash + 10.0)
    assert [f["Check"] for f in findings] == ["Cash roll-forward"]


def test_integrity_checks_flag_non_finite_values(sample_plan, sample_rows):
    frame = projection_frame(sample_plan, project_scenario(sample_plan, sample_rows))
    frame.loc[2, "Cost"] = np.inf
    checks = {f["Check"] for f in run_integrity_checks(frame, 500.0)}
    assert "Finite values" in checks
