import json
from copy import deepcopy
from dataclasses import asdict
from pathlib import Path

import pandas as pd
import plotly.graph_objects as go
import streamlit as st
from streamlit.errors import StreamlitAPIException

from bizplan import persistence, planning
from bizplan.calendar_utils import plan_dates, short_month_labels
from bizplan.comparison import (
    MAX_COMPARED_SCENARIOS,
    compare_scenarios,
    comparison_chart_frame,
    comparison_figures,
    comparison_summary,
    default_selection,
    select_scenarios,
)
from bizplan.csv_import import parse_csv_for_import
from bizplan.defaults import PRESET_SCENARIOS
from bizplan.exports import cash_plan_csv_text, cash_plan_excel_bytes, projection_csv_text
from bizplan.formatters import format_break_even, format_date, format_euro, format_euro_short, format_runway
from bizplan.goal_seek import solve_revenue_growth_for_ending_cash
from bizplan.input_metadata import PARAM_GUIDANCE, PARAM_LABELS, advisory_warnings, help_with_guidance
from bizplan.integrity_checks import run_integrity_checks
from bizplan.metrics import Metrics, RunwayMode
from bizplan.models import MEMO_SECTIONS, BusinessCase, CashPlan, CashPlanRow, ScenarioParams
from bizplan.pdf_export import build_memo_pdf_bytes, build_scenario_comparison_pdf_bytes
from bizplan.projection import project_scenario, projection_frame
from bizplan.runtime_logging import (
    append_runtime_event,
    clear_runtime_events,
    configure_log_root,
    install_global_exception_logging,
    runtime_events_frame,
    runtime_log_path,
)
from bizplan.schema import (
    BUSINESS_CASE_STATUSES,
    BUSINESS_CASE_TYPES,
    CATEGORIES,
    CATEGORY_LABELS,
    SCENARIO_TYPE_LABELS,
)


install_global_exception_logging()


PAGES = ["Dashboard", "Projects", "Business Cases", "Cash Plan", "Scenario Comparison", "Memos", "Settings"]

UI_DEFAULTS = {
    "page": "Dashboard",
    "active_business_case_id": "",
    "active_scenario_id": "",
    "reference_month": 0,
    "goal_target_value": 0.0,
    "goal_seek_result": None,
    "csv_replace_rows": False,
    "memo_preview": False,
    "comparison_pdf": None,
    "memo_pdf": None,
    "runtime_log_limit": 200,
}

_CATEGORY_BY_LABEL = {label: key for key, label in CATEGORY_LABELS.items()}


def _init_state() -> None:
    for key, value in UI_DEFAULTS.items():
        st.session_state.setdefault(key, value)


def _queue_deferred_state_update(key: str, value) -> None:
    pending = st.session_state.get("_deferred_session_state_updates")
    if not isinstance(pending, dict):
        pending = {}
    pending[key] = deepcopy(value)
    st.session_state["_deferred_session_state_updates"] = pending


def _apply_deferred_state_updates() -> None:
    pending = st.session_state.get("_deferred_session_state_updates")
    if not isinstance(pending, dict) or not pending:
        return
    st.session_state["_deferred_session_state_updates"] = {}
    for key, value in pending.items():
        try:
            st.session_state[key] = deepcopy(value)
        except StreamlitAPIException:
            _queue_deferred_state_update(key, value)


def _warn(event: str, exc: Exception, context: dict | None = None) -> None:
    """Show a user-facing warning and record it in the runtime log."""
    append_runtime_event(level="WARNING", event=event, message=str(exc), context=context or {})
    st.warning(str(exc))


def _export_logger(level, event, message, context=None, exc=None) -> None:
    append_runtime_event(level=level, event=event, message=message, context=context, exc=exc)


def _rows_json(rows: list[CashPlanRow]) -> str:
    return json.dumps([r.to_record() for r in rows], sort_keys=True)


@st.cache_data(show_spinner=False)
def _project_cached(plan_json: str, rows_json: str, params_json: str, runway_mode: str, reference_month: int) -> Metrics:
    plan = CashPlan.from_record(json.loads(plan_json))
    rows = [CashPlanRow.from_record(r, horizon=plan.months) for r in json.loads(rows_json)]
    params = ScenarioParams.from_dict(json.loads(params_json))
    return project_scenario(plan, rows, params, runway_mode=runway_mode, reference_month=reference_month)


def _project(plan: CashPlan, rows: list[CashPlanRow], params: ScenarioParams, runway_mode: RunwayMode, reference_month: int = 0) -> Metrics:
    return _project_cached(
        json.dumps(plan.to_record(), sort_keys=True),
        _rows_json(rows),
        json.dumps(params.to_dict(), sort_keys=True),
        RunwayMode(runway_mode).value,
        int(reference_month),
    )


def _business_case_picker(key: str) -> BusinessCase | None:
    cases = planning.list_business_cases()
    if not cases:
        st.info("Create a project and a business case first.")
        return None
    ids = [c.id for c in cases]
    labels = {c.id: c.name for c in cases}
    active = st.session_state.get("active_business_case_id")
    index = ids.index(active) if active in ids else 0
    selected = st.selectbox("Business Case", ids, index=index, format_func=lambda cid: labels[cid], key=key)
    st.session_state["active_business_case_id"] = selected
    return next(c for c in cases if c.id == selected)


# Pages


def _render_dashboard() -> None:
    st.header("Dashboard")
    counts = planning.count_dashboard_items()
    c1, c2, c3 = st.columns(3)
    c1.metric("Projects", counts["projects"])
    c2.metric("Business Cases", counts["business_cases"])
    c3.metric("Cash Plans", counts["cash_plans"])

    cases = planning.list_business_cases()
    if not cases:
        st.caption("No business cases yet.")
        return
    projects = {p.id: p.name for p in planning.list_projects()}
    recent = sorted(cases, key=lambda c: c.updated_at, reverse=True)[:10]
    st.subheader("Recently updated")
    st.dataframe(
        pd.DataFrame(
            [
                {
                    "Business Case": c.name,
                    "Project": projects.get(c.project_id, ""),
                    "Type": c.type,
                    "Status": c.status,
                    "Updated": format_date(c.updated_at) if c.updated_at else "",
                }
                for c in recent
            ]
        ),
        hide_index=True,
        width="stretch",
    )


def _render_projects() -> None:
    st.header("Projects")
    with st.form("create_project_form", clear_on_submit=True):
        name = st.text_input("Project Name")
        description = st.text_area("Description")
        if st.form_submit_button("Create Project"):
            try:
                planning.create_project(name, description)
                st.success("Project created.")
            except ValueError as exc:
                _warn("create_project_failed", exc)

    for project in planning.list_projects():
        with st.expander(project.name):
            new_name = st.text_input("Name", value=project.name, key=f"project_name_{project.id}")
            new_desc = st.text_area("Description", value=project.description, key=f"project_desc_{project.id}")
            c1, c2 = st.columns(2)
            if c1.button("Save", key=f"project_save_{project.id}"):
                try:
                    planning.update_project(project.id, name=new_name, description=new_desc)
                    st.rerun()
                except ValueError as exc:
                    _warn("update_project_failed", exc, {"project_id": project.id})
            if c2.button("Delete Project", key=f"project_delete_{project.id}"):
                planning.delete_project(project.id)
                append_runtime_event(level="INFO", event="project_deleted", message=project.name, context={"project_id": project.id})
                st.rerun()


def _render_business_cases() -> None:
    st.header("Business Cases")
    projects = planning.list_projects()
    if not projects:
        st.info("Create a project first.")
        return
    project_labels = {p.id: p.name for p in projects}
    project_id = st.selectbox("Project", list(project_labels), format_func=lambda pid: project_labels[pid], key="bc_project")

    with st.form("create_business_case_form", clear_on_submit=True):
        name = st.text_input("Business Case Name")
        description = st.text_area("Description")
        c1, c2 = st.columns(2)
        case_type = c1.selectbox("Type", BUSINESS_CASE_TYPES, index=BUSINESS_CASE_TYPES.index("custom"))
        status = c2.selectbox("Status", BUSINESS_CASE_STATUSES)
        if st.form_submit_button("Create Business Case"):
            try:
                created = planning.create_business_case(project_id, name, description, case_type, status)
                st.session_state["active_business_case_id"] = created.id
                st.success("Business case created.")
            except ValueError as exc:
                _warn("create_business_case_failed", exc, {"project_id": project_id})

    for case in planning.list_business_cases(project_id):
        with st.expander(f"{case.name} ({case.status})"):
            new_name = st.text_input("Name", value=case.name, key=f"bc_name_{case.id}")
            new_desc = st.text_area("Description", value=case.description, key=f"bc_desc_{case.id}")
            c1, c2 = st.columns(2)
            new_type = c1.selectbox("Type", BUSINESS_CASE_TYPES, index=BUSINESS_CASE_TYPES.index(case.type), key=f"bc_type_{case.id}")
            new_status = c2.selectbox(
                "Status", BUSINESS_CASE_STATUSES, index=BUSINESS_CASE_STATUSES.index(case.status), key=f"bc_status_{case.id}"
            )
            b1, b2, b3 = st.columns(3)
            if b1.button("Save", key=f"bc_save_{case.id}"):
                try:
                    planning.update_business_case(case.id, name=new_name, description=new_desc, type=new_type, status=new_status)
                    st.rerun()
                except ValueError as exc:
                    _warn("update_business_case_failed", exc, {"business_case_id": case.id})
            if b2.button("Open Cash Plan", key=f"bc_open_{case.id}"):
                st.session_state["active_business_case_id"] = case.id
                _queue_deferred_state_update("page", "Cash Plan")
                st.rerun()
            if b3.button("Delete", key=f"bc_delete_{case.id}"):
                planning.delete_business_case(case.id)
                append_runtime_event(level="INFO", event="business_case_deleted", message=case.name, context={"business_case_id": case.id})
                st.rerun()


def _rows_editor_frame(plan: CashPlan, rows: list[CashPlanRow], month_labels: list[str]) -> pd.DataFrame:
    data = {
        "Name": [r.name for r in rows],
        "Kategorie": [CATEGORY_LABELS[r.category] for r in rows],
    }
    for m, label in enumerate(month_labels):
        data[label] = [r.value_at(m) for r in rows]
    return pd.DataFrame(data, index=[r.id for r in rows])


def _save_edited_rows(rows: list[CashPlanRow], edited: pd.DataFrame, month_labels: list[str]) -> int:
    changed = 0
    by_id = {r.id: r for r in rows}
    for row_id, values in edited.iterrows():
        row = by_id.get(row_id)
        if row is None:
            continue
        name = str(values["Name"] or "").strip()
        category = _CATEGORY_BY_LABEL.get(values["Kategorie"], row.category)
        monthly = [values[label] for label in month_labels]
        if name and name != row.name:
            planning.rename_row(row.id, name)
            changed += 1
        if category != row.category:
            planning.set_row_category(row.id, category)
            changed += 1
        if planning.row_values_changed(row, monthly):
            planning.set_row_values(row.id, monthly)
            changed += 1
    return changed


def _render_row_actions(plan: CashPlan, rows: list[CashPlanRow]) -> None:
    c1, c2 = st.columns([2, 1])
    new_category = c1.selectbox("New row category", CATEGORIES, format_func=lambda c: CATEGORY_LABELS[c], key="new_row_category")
    if c2.button("Add Row"):
        planning.add_row(plan.id, new_category)
        st.rerun()
    if not rows:
        return
    labels = {r.id: f"{r.name} ({CATEGORY_LABELS[r.category]})" for r in rows}
    row_id = st.selectbox("Row", list(labels), format_func=lambda rid: labels[rid], key="row_action_target")
    b1, b2, b3, b4 = st.columns(4)
    if b1.button("Move Up"):
        planning.move_row(row_id, -1)
        st.rerun()
    if b2.button("Move Down"):
        planning.move_row(row_id, 1)
        st.rerun()
    if b3.button("Duplicate"):
        planning.duplicate_row(row_id)
        st.rerun()
    if b4.button("Delete Row"):
        planning.delete_row(row_id)
        st.rerun()


def _render_scenario_manager(plan: CashPlan) -> ScenarioParams:
    scenarios = planning.list_scenarios(plan.id)
    ids = [s.id for s in scenarios]
    by_id = {s.id: s for s in scenarios}
    if st.session_state.get("active_scenario_id") not in ids:
        st.session_state["active_scenario_id"] = ids[0]
    scenario_id = st.radio(
        "Scenario",
        ids,
        format_func=lambda sid: f"{by_id[sid].name} ({SCENARIO_TYPE_LABELS.get(by_id[sid].type, by_id[sid].type)})",
        key="active_scenario_id",
        horizontal=True,
    )
    scenario = by_id[scenario_id]

    with st.expander("Scenario parameters", expanded=not scenario.is_base):
        name = st.text_input("Scenario Name", value=scenario.name, key=f"scenario_name_{scenario.id}")
        values = {}
        cols = st.columns(2)
        for idx, key in enumerate(PARAM_GUIDANCE):
            values[key] = cols[idx % 2].number_input(
                PARAM_LABELS[key],
                value=float(getattr(scenario.params, key)),
                step=1.0,
                help=help_with_guidance(key, "Percent."),
                key=f"scenario_{key}_{scenario.id}",
            )
        for note in advisory_warnings(values):
            st.caption(f"⚠ {note}")
        b1, b2 = st.columns(2)
        if b1.button("Save Scenario"):
            try:
                planning.update_scenario(scenario.id, name=name, params=values)
                st.rerun()
            except ValueError as exc:
                _warn("update_scenario_failed", exc, {"scenario_id": scenario.id})
        if b2.button("Delete Scenario", disabled=scenario.is_base):
            try:
                planning.delete_scenario(scenario.id)
                st.rerun()
            except ValueError as exc:
                _warn("delete_scenario_failed", exc, {"scenario_id": scenario.id})

    c1, c2, c3, c4 = st.columns([2, 1, 1, 1])
    custom_name = c1.text_input("New scenario name", key="new_scenario_name")
    if c2.button("Add Scenario"):
        try:
            created = planning.create_scenario(plan.id, custom_name)
            _queue_deferred_state_update("active_scenario_id", created.id)
            st.rerun()
        except ValueError as exc:
            _warn("create_scenario_failed", exc, {"cash_plan_id": plan.id})
    for col, preset in ((c3, "best"), (c4, "worst")):
        if col.button(f"Add {PRESET_SCENARIOS[preset]['name']}"):
            planning.create_preset_scenario(plan.id, preset)
            st.rerun()
    return scenario.params


def _render_kpis(metrics: Metrics) -> None:
    c1, c2, c3 = st.columns(3)
    c1.metric("Runway", format_runway(metrics.runway))
    c2.metric("Break-even", format_break_even(metrics.break_even_month))
    c3.metric("Ending Cash", format_euro_short(metrics.ending_cash))
    c4, c5, c6 = st.columns(3)
    c4.metric("Total Revenue", format_euro_short(metrics.total_revenue))
    c5.metric("Total Cost", format_euro_short(metrics.total_cost))
    c6.metric("Avg. Monthly Burn", format_euro_short(metrics.avg_monthly_burn))


def _projection_chart(frame: pd.DataFrame) -> go.Figure:
    fig = go.Figure()
    fig.add_trace(go.Bar(x=frame["Date"], y=frame["Revenue"], name="Umsatz", marker_color="#16a34a", opacity=0.7))
    fig.add_trace(go.Bar(x=frame["Date"], y=-frame["Cost"], name="Kosten", marker_color="#dc2626", opacity=0.7))
    fig.add_trace(go.Scatter(x=frame["Date"], y=frame["Cash Balance"], name="Cash-Bestand", mode="lines", line=dict(color="#2563eb", width=3)))
    fig.update_layout(barmode="relative", yaxis_title="EUR", legend=dict(orientation="h"))
    return fig


def _render_goal_seek(plan: CashPlan, rows: list[CashPlanRow], params: ScenarioParams) -> None:
    st.subheader("Goal Seek")
    st.number_input("Target ending cash (EUR)", step=1000.0, key="goal_target_value")
    if st.button("Run Goal Seek"):
        result = solve_revenue_growth_for_ending_cash(plan, rows, params, st.session_state["goal_target_value"])
        st.session_state["goal_seek_result"] = asdict(result)
        if not result.solved:
            append_runtime_event(level="WARNING", event="goal_seek_failed", message=result.message, context={"cash_plan_id": plan.id})
    result = st.session_state.get("goal_seek_result")
    if result:
        if result["status"] == "solved":
            st.success(f"Revenue growth of {result['value']:.2f} % per month reaches {format_euro(result['achieved'])}.")
        else:
            st.warning(result["message"])


def _render_import_export(plan: CashPlan, rows: list[CashPlanRow], frame: pd.DataFrame) -> None:
    st.subheader("Import / Export")
    upload = st.file_uploader("Import rows from CSV", type=["csv"])
    st.checkbox("Replace existing rows", key="csv_replace_rows")
    if upload is not None and st.button("Import CSV"):
        try:
            text = upload.getvalue().decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            _warn("csv_import_decode_failed", exc, {"file": upload.name})
        else:
            imported, warnings = parse_csv_for_import(text)
            for note in warnings:
                st.caption(note)
            if imported:
                planning.import_rows(plan.id, imported, replace=st.session_state["csv_replace_rows"])
                append_runtime_event(level="INFO", event="csv_imported", message=f"{len(imported)} rows", context={"cash_plan_id": plan.id})
                st.success(f"Imported {len(imported)} rows.")
            else:
                st.info("No rows were imported.")

    c1, c2, c3 = st.columns(3)
    c1.download_button(
        "Download Excel",
        cash_plan_excel_bytes(plan, rows),
        file_name="cashflow.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
    c2.download_button("Download Plan CSV", cash_plan_csv_text(plan, rows), file_name="cashflow.csv", mime="text/csv")
    c3.download_button("Download Projection CSV", projection_csv_text(frame), file_name="projection.csv", mime="text/csv")


def _render_cash_plan() -> None:
    st.header("Cash Plan")
    case = _business_case_picker("cash_plan_case")
    if case is None:
        return
    plan = planning.get_or_create_cash_plan(case.id)

    c1, c2 = st.columns([2, 1])
    initial_cash = c1.number_input("Initial Cash (EUR)", value=float(plan.initial_cash), step=1000.0, key=f"initial_cash_{plan.id}")
    if c2.button("Save Initial Cash"):
        plan = planning.set_initial_cash(plan.id, initial_cash)

    rows = planning.list_rows(plan.id)
    month_labels = short_month_labels(plan_dates(plan.start_month, plan.months))
    st.subheader("Rows")
    if rows:
        column_config = {
            "Kategorie": st.column_config.SelectboxColumn("Kategorie", options=list(CATEGORY_LABELS.values()), required=True),
            **{label: st.column_config.NumberColumn(label, format="%.2f") for label in month_labels},
        }
        edited = st.data_editor(
            _rows_editor_frame(plan, rows, month_labels),
            column_config=column_config,
            hide_index=True,
            key=f"rows_editor_{plan.id}",
        )
        if st.button("Save Rows"):
            changed = _save_edited_rows(rows, edited, month_labels)
            st.success(f"Saved {changed} change(s).")
            rows = planning.list_rows(plan.id)
    else:
        st.caption("No rows yet.")
    _render_row_actions(plan, rows)

    st.subheader("Scenarios")
    params = _render_scenario_manager(plan)

    st.selectbox(
        "Reference month for runway",
        list(range(plan.months)),
        format_func=lambda m: month_labels[m],
        key="reference_month",
    )
    metrics = _project(plan, rows, params, RunwayMode.REFERENCE_MONTH, st.session_state["reference_month"])
    _render_kpis(metrics)

    frame = projection_frame(plan, metrics)
    st.plotly_chart(_projection_chart(frame), width="stretch")
    findings = run_integrity_checks(frame, metrics.adjusted_initial_cash)
    if findings:
        append_runtime_event(level="ERROR", event="integrity_check_failed", message="Projection identities broken.", context={"findings": findings})
        with st.expander("Integrity findings", expanded=True):
            st.dataframe(pd.DataFrame(findings), hide_index=True)

    _render_goal_seek(plan, rows, params)
    _render_import_export(plan, rows, frame)


def _render_comparison() -> None:
    st.header("Scenario Comparison")
    case = _business_case_picker("comparison_case")
    if case is None:
        return
    plan = planning.get_or_create_cash_plan(case.id)
    rows = planning.list_rows(plan.id)
    scenarios = planning.list_scenarios(plan.id)
    labels = {s.id: s.name for s in scenarios}
    selection_key = f"compare_selection_{plan.id}"
    if selection_key not in st.session_state:
        st.session_state[selection_key] = default_selection(scenarios)
    selected_ids = st.multiselect(
        "Scenarios",
        list(labels),
        format_func=lambda sid: labels[sid],
        max_selections=MAX_COMPARED_SCENARIOS,
        key=selection_key,
    )
    try:
        chosen = select_scenarios(scenarios, selected_ids)
    except ValueError as exc:
        _warn("comparison_selection_invalid", exc, {"cash_plan_id": plan.id})
        return
    if not chosen:
        st.info("Select at least one scenario.")
        return

    results = compare_scenarios(plan, rows, chosen)
    summary = comparison_summary(results)
    display = summary.copy()
    display["Runway (Months)"] = [format_runway(r.metrics.runway) for r in results]
    for col in ("Start Cash", "Total Revenue", "Total Cost", "Ending Cash"):
        display[col] = display[col].map(format_euro)
    st.dataframe(display, hide_index=True, width="stretch")

    chart_df = comparison_chart_frame(plan, results)
    figures = comparison_figures(chart_df)
    tab_cf, tab_rc, tab_bal = st.tabs(["Net-Cashflow", "Umsatz vs. Kosten", "Cash-Bestand"])
    with tab_cf:
        st.plotly_chart(figures["cashflow"], width="stretch")
    with tab_rc:
        st.plotly_chart(figures["revenue_cost"], width="stretch")
    with tab_bal:
        st.plotly_chart(figures["balance"], width="stretch")

    c1, c2 = st.columns(2)
    c1.download_button("Download Comparison CSV", projection_csv_text(chart_df), file_name="scenario_comparison.csv", mime="text/csv")
    if c2.button("Generate Comparison PDF"):
        st.session_state["comparison_pdf"] = build_scenario_comparison_pdf_bytes(
            case.name, plan, results, {"log_event": _export_logger}
        )
    if st.session_state.get("comparison_pdf"):
        st.download_button(
            "Download Comparison PDF",
            st.session_state["comparison_pdf"],
            file_name="szenario_vergleich.pdf",
            mime="application/pdf",
        )


def _render_memos() -> None:
    st.header("Memos")
    case = _business_case_picker("memo_case")
    if case is None:
        return
    memo = planning.get_or_create_memo(case.id)
    st.toggle("Preview", key="memo_preview")

    edited: dict[str, str] = {}
    for section in MEMO_SECTIONS:
        key = section["key"]
        st.subheader(section["label"])
        if st.session_state["memo_preview"]:
            body = memo.section(key)
            st.markdown(body if body.strip() else "_Noch kein Inhalt vorhanden_")
        else:
            edited[key] = st.text_area(section["description"], value=memo.section(key), key=f"memo_{memo.id}_{key}", height=140)

    c1, c2 = st.columns(2)
    if not st.session_state["memo_preview"] and c1.button("Save Memo"):
        memo = planning.save_memo_sections(memo.id, edited)
        st.success("Memo saved.")
    if c2.button("Generate Memo PDF"):
        st.session_state["memo_pdf"] = build_memo_pdf_bytes(case.name, memo, {"log_event": _export_logger})
    if st.session_state.get("memo_pdf"):
        st.download_button("Download Memo PDF", st.session_state["memo_pdf"], file_name="strategiedokument.pdf", mime="application/pdf")


def _render_settings() -> None:
    st.header("Settings")
    st.caption(f"Current user: `{planning.current_user()}`")
    st.caption(f"Storage root: `{persistence.storage_root_path()}`")
    new_root = st.text_input("Storage Root", value=str(persistence.STORE_DIR))
    if st.button("Apply Storage Root"):
        persistence.configure_storage_root(new_root)
        configure_log_root(new_root)
        append_runtime_event(level="INFO", event="storage_root_changed", message=str(new_root))
        st.rerun()

    st.subheader("Runtime Diagnostics")
    log_path = Path(runtime_log_path())
    st.caption(f"Runtime log file: `{log_path}`")
    st.number_input("Recent runtime log rows", min_value=20, max_value=2000, step=20, key="runtime_log_limit")
    events = runtime_events_frame(limit=int(st.session_state["runtime_log_limit"]))
    if events.empty:
        st.caption("No runtime events logged yet.")
    else:
        st.dataframe(events, hide_index=True, width="stretch")
    if log_path.exists():
        c1, c2 = st.columns(2)
        c1.download_button(
            "Download Runtime Log (JSONL)",
            log_path.read_text(encoding="utf-8"),
            file_name="app_events.jsonl",
            mime="application/x-ndjson",
        )
        if c2.button("Clear Runtime Log"):
            clear_runtime_events()
            st.rerun()


RENDERERS = {
    "Dashboard": _render_dashboard,
    "Projects": _render_projects,
    "Business Cases": _render_business_cases,
    "Cash Plan": _render_cash_plan,
    "Scenario Comparison": _render_comparison,
    "Memos": _render_memos,
    "Settings": _render_settings,
}


st.set_page_config(page_title="Business Planner", layout="wide")
_init_state()
_apply_deferred_state_updates()

with st.sidebar:
    st.title("Business Planner")
    st.radio("Page", PAGES, key="page")

RENDERERS[st.session_state["page"]]()
