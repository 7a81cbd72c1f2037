from __future__ import annotations

from bizplan.input_metadata import advisory_warnings, help_with_guidance
from bizplan.models import ScenarioParams


def test_help_with_guidance_appends_range():
    text = help_with_guidance("initial_cash_adjustment_pct", "Percent.")
    assert text.startswith("Percent.")
    assert "-100 to 100" in text
    assert help_with_guidance("unknown", "Base") == "Base"


def test_advisory_warnings_flag_out_of_range_without_clamping():
    params = ScenarioParams(revenue_growth_pct=75.0, initial_cash_adjustment_pct=-100.0)
    warnings = advisory_warnings(params)
    assert len(warnings) == 1
    assert "Umsatzwachstum" in warnings[0]
    assert params.revenue_growth_pct == 75.0
    assert advisory_warnings({"cost_growth_pct": "abc"}) == []
