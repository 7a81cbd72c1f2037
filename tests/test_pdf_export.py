from __future__ import annotations

import bizplan.pdf_export as pdf_export
from bizplan.comparison import comparison_chart_frame, compare_scenarios
from bizplan.models import Memo, Scenario
from bizplan.pdf_export import (
    EMPTY_SECTION_TEXT,
    build_comparison_chart_images,
    build_comparison_sections,
    build_memo_pdf_bytes,
    build_memo_sections,
    build_scenario_comparison_pdf_bytes,
)


def _results(sample_plan, sample_rows):
    scenarios = [Scenario(id="s0", cash_plan_id="plan-1", name="Basis", type="base")]
    return compare_scenarios(sample_plan, sample_rows, scenarios)


def test_memo_sections_mark_empty_content():
    memo = Memo(id="m", business_case_id="c", sections={"problem": "# Pain\n- manual work"})
    sections = build_memo_sections(memo)
    assert [s["id"] for s in sections] == ["problem", "solution", "market", "competition", "gtm", "finances", "risks"]
    assert sections[0]["paragraphs"] == []
    assert sections[1]["paragraphs"] == [EMPTY_SECTION_TEXT]


def test_memo_pdf_bytes():
    memo = Memo(id="m", business_case_id="c", sections={"problem": "Too many spreadsheets.\n\n- one\n- two"})
    pdf = build_memo_pdf_bytes("SaaS Tool", memo, {"generated_at_utc": "2026-01-01T00:00:00+00:00"})
    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 500


def test_memo_pdf_falls_back_without_reportlab(monkeypatch):
    events: list[dict] = []

    def _capture(**kwargs):
        events.append(kwargs)

    def _fail(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(pdf_export, "_build_reportlab_pdf", _fail)
    memo = Memo(id="m", business_case_id="c", sections={"risks": "Churn (monthly)"})
    pdf = build_memo_pdf_bytes("Case", memo, {"log_event": _capture})
    assert pdf.startswith(b"%PDF-1.4")
    assert b"Strategiedokument" in pdf
    assert b"Churn \\(monthly\\)" in pdf
    assert any(e["event"] == "pdf_export_reportlab_fallback" for e in events)


def test_chart_images_are_placeholders_without_chart_engine(monkeypatch, sample_plan, sample_rows):
    monkeypatch.setattr(pdf_export, "_ensure_kaleido_ready", lambda options: False)
    chart_df = comparison_chart_frame(sample_plan, _results(sample_plan, sample_rows))
    images = build_comparison_chart_images(chart_df)
    assert [i["id"] for i in images] == ["cashflow", "revenue_cost", "balance"]
    assert all(i["image_bytes"] is None for i in images)
    assert all("unavailable" in i["placeholder_text"] for i in images)


def test_comparison_sections_and_pdf(sample_plan, sample_rows):
    results = _results(sample_plan, sample_rows)
    placeholders = [
        {"id": "cashflow", "title": "Net-Cashflow Vergleich", "image_bytes": None, "placeholder_text": "n/a"},
    ]
    sections = build_comparison_sections(results, placeholders)
    table = sections[0]["tables"][0]["dataframe"]
    assert table["Szenario"].tolist() == ["Basis"]
    assert table["End-Cash"].tolist() == ["1.100,00 €"]

    pdf = build_scenario_comparison_pdf_bytes("Case", sample_plan, results, {"chart_images_override": placeholders})
    assert pdf.startswith(b"%PDF")


def test_minimal_pdf_paginates_with_page_numbers():
    lines = [f"Zeile {i}" for i in range(60)]
    pdf = pdf_export._build_minimal_pdf(lines)
    assert b"/Count 2" in pdf
    assert b"(Seite 2/2) Tj" in pdf
    assert pdf.rstrip().endswith(b"%%EOF")
