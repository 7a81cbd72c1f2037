"""Side-by-side projection of several scenarios of one cash plan."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import pandas as pd
import plotly.graph_objects as go

from bizplan.calendar_utils import plan_dates, short_month_labels
from bizplan.formatters import format_break_even
from bizplan.metrics import Metrics, RunwayMode
from bizplan.models import CashPlan, CashPlanRow, Scenario
from bizplan.projection import project_scenario
from bizplan.schema import SCENARIO_TYPE_LABELS


MAX_COMPARED_SCENARIOS = 6
DEFAULT_SELECTION_SIZE = 3

SCENARIO_COLORS = ["#2563eb", "#16a34a", "#dc2626", "#d97706", "#22d3ee", "#9333ea"]


@dataclass(frozen=True)
class ScenarioResult:
    scenario: Scenario
    metrics: Metrics


def default_selection(scenarios: list[Scenario]) -> list[str]:
    return [s.id for s in scenarios[:DEFAULT_SELECTION_SIZE]]


def select_scenarios(scenarios: list[Scenario], selected_ids: Iterable[str]) -> list[Scenario]:
    """Selected scenarios in their stored order; at most MAX_COMPARED_SCENARIOS."""
    wanted = set(selected_ids)
    if len(wanted) > MAX_COMPARED_SCENARIOS:
        raise ValueError(f"At most {MAX_COMPARED_SCENARIOS} scenarios can be compared.")
    return [s for s in scenarios if s.id in wanted]


def compare_scenarios(plan: CashPlan, rows: list[CashPlanRow], scenarios: list[Scenario]) -> list[ScenarioResult]:
    if len(scenarios) > MAX_COMPARED_SCENARIOS:
        raise ValueError(f"At most {MAX_COMPARED_SCENARIOS} scenarios can be compared.")
    return [
        ScenarioResult(
            scenario=s,
            metrics=project_scenario(plan, rows, s.params, runway_mode=RunwayMode.WHOLE_HORIZON),
        )
        for s in scenarios
    ]


def comparison_summary(results: list[ScenarioResult]) -> pd.DataFrame:
    rows = []
    for r in results:
        m = r.metrics
        rows.append(
            {
                "Scenario": r.scenario.name,
                "Type": SCENARIO_TYPE_LABELS.get(r.scenario.type, r.scenario.type),
                "Break-even": format_break_even(m.break_even_month),
                "Runway (Months)": m.runway,
                "Start Cash": m.adjusted_initial_cash,
                "Total Revenue": m.total_revenue,
                "Total Cost": m.total_cost,
                "Ending Cash": m.ending_cash,
            }
        )
    columns = ["Scenario", "Type", "Break-even", "Runway (Months)", "Start Cash", "Total Revenue", "Total Cost", "Ending Cash"]
    return pd.DataFrame(rows, columns=columns)


def comparison_chart_frame(plan: CashPlan, results: list[ScenarioResult]) -> pd.DataFrame:
    """Long-format monthly series, one block of rows per scenario."""
    frames = []
    for r in results:
        horizon = len(r.metrics.net_cashflow)
        dates = plan_dates(plan.start_month, horizon)
        frames.append(
            pd.DataFrame(
                {
                    "Date": dates,
                    "Month": short_month_labels(dates),
                    "Month Index": range(horizon),
                    "Scenario": r.scenario.name,
                    "Revenue": r.metrics.revenues,
                    "Cost": r.metrics.costs,
                    "Net Cash Flow": r.metrics.net_cashflow,
                    "Cash Balance": r.metrics.cash_balance,
                }
            )
        )
    if not frames:
        return pd.DataFrame(columns=["Date", "Month", "Month Index", "Scenario", "Revenue", "Cost", "Net Cash Flow", "Cash Balance"])
    return pd.concat(frames, ignore_index=True)


def _color(idx: int) -> str:
    return SCENARIO_COLORS[idx % len(SCENARIO_COLORS)]


def net_cashflow_figure(chart_df: pd.DataFrame) -> go.Figure:
    fig = go.Figure()
    for idx, (name, grp) in enumerate(chart_df.groupby("Scenario", sort=False)):
        fig.add_trace(go.Scatter(x=grp["Date"], y=grp["Net Cash Flow"], name=str(name), mode="lines", line=dict(color=_color(idx), width=2)))
    fig.update_layout(title="Net-Cashflow Vergleich", yaxis_title="EUR")
    return fig


def revenue_cost_figure(chart_df: pd.DataFrame) -> go.Figure:
    fig = go.Figure()
    for idx, (name, grp) in enumerate(chart_df.groupby("Scenario", sort=False)):
        fig.add_trace(go.Bar(x=grp["Date"], y=grp["Revenue"], name=f"{name} (Umsatz)", marker_color=_color(idx), opacity=0.8))
        fig.add_trace(go.Bar(x=grp["Date"], y=grp["Cost"], name=f"{name} (Kosten)", marker_color=_color(idx), opacity=0.4))
    fig.update_layout(title="Umsatz vs. Kosten", barmode="group", yaxis_title="EUR")
    return fig


def cash_balance_figure(chart_df: pd.DataFrame) -> go.Figure:
    fig = go.Figure()
    for idx, (name, grp) in enumerate(chart_df.groupby("Scenario", sort=False)):
        fig.add_trace(
            go.Scatter(
                x=grp["Date"],
                y=grp["Cash Balance"],
                name=str(name),
                mode="lines",
                fill="tozeroy",
                line=dict(color=_color(idx)),
            )
        )
    fig.update_layout(title="Cash-Bestand Entwicklung", yaxis_title="EUR")
    return fig


def comparison_figures(chart_df: pd.DataFrame) -> dict[str, go.Figure]:
    return {
        "cashflow": net_cashflow_figure(chart_df),
        "revenue_cost": revenue_cost_figure(chart_df),
        "balance": cash_balance_figure(chart_df),
    }
