"""PDF export helpers for strategy memos and scenario comparisons."""

from __future__ import annotations

from copy import deepcopy
from datetime import datetime, timezone
import html
from io import BytesIO
from typing import Any, Callable

import pandas as pd
import plotly.graph_objects as go

from bizplan.comparison import ScenarioResult, comparison_chart_frame, comparison_figures
from bizplan.formatters import format_break_even, format_euro, format_runway
from bizplan.models import CashPlan, MEMO_SECTIONS, Memo


DEFAULT_OPTIONS = {
    "chart_width_px": 1400,
    "chart_height_px": 800,
    "allow_chrome_bootstrap": False,
}

MEMO_TITLE = "Strategiedokument"
COMPARISON_TITLE = "Szenario-Vergleich"
EMPTY_SECTION_TEXT = "Noch kein Inhalt vorhanden"

# A4 portrait in points, for the ReportLab-free fallback writer.
PAGE_WIDTH_PT = 595
PAGE_HEIGHT_PT = 842
FALLBACK_LINES_PER_PAGE = 48
FALLBACK_LINE_HEIGHT_PT = 14

COMPARISON_CHARTS = [
    ("cashflow", "Net-Cashflow Vergleich"),
    ("revenue_cost", "Umsatz vs. Kosten"),
    ("balance", "Cash-Bestand Entwicklung"),
]

_KALEIDO_READY: bool | None = None
_REPORTLAB_READY: bool | None = None


def _merge_options(options: dict | None) -> dict:
    out = deepcopy(DEFAULT_OPTIONS)
    if isinstance(options, dict):
        out.update(options)
    return out


def _log_event(
    options: dict,
    *,
    level: str,
    event: str,
    message: str,
    context: dict[str, Any] | None = None,
    exc: BaseException | None = None,
) -> None:
    logger: Callable[..., Any] | None = options.get("log_event")
    if not callable(logger):
        return
    try:
        logger(level=level, event=event, message=message, context=context or {}, exc=exc)
    except Exception:
        # Export logging should never break document generation.
        return


def _ensure_reportlab_ready(options: dict) -> bool:
    global _REPORTLAB_READY
    if _REPORTLAB_READY is not None:
        return _REPORTLAB_READY
    try:
        import reportlab  # noqa: F401

        _REPORTLAB_READY = True
    except ImportError as exc:
        _REPORTLAB_READY = False
        _log_event(
            options,
            level="WARNING",
            event="pdf_dependency_missing",
            message="ReportLab is not installed; PDF export will use the plain-text fallback.",
            context={"package": "reportlab"},
            exc=exc,
        )
    return _REPORTLAB_READY


def _chart_smoke_test() -> None:
    fig = go.Figure(data=[go.Scatter(x=[0, 1], y=[0, 1])])
    fig.to_image(format="png", width=320, height=200, scale=1)


def _bootstrap_chrome(options: dict) -> bool:
    """Let plotly fetch a headless Chrome for Kaleido, then probe again."""
    _log_event(
        options,
        level="INFO",
        event="pdf_chart_engine_bootstrap_started",
        message="Chart export probe failed; fetching Chrome for Kaleido.",
    )
    try:
        import plotly.io as pio

        if hasattr(pio, "get_chrome"):
            pio.get_chrome()
        _chart_smoke_test()
    except Exception as exc:
        _log_event(
            options,
            level="ERROR",
            event="pdf_chart_engine_bootstrap_failed",
            message="Chart export still unavailable after Chrome bootstrap.",
            exc=exc,
        )
        return False
    _log_event(
        options,
        level="INFO",
        event="pdf_chart_engine_bootstrap_succeeded",
        message="Chart export ready after Chrome bootstrap.",
    )
    return True


def _ensure_kaleido_ready(options: dict) -> bool:
    """True once charts render to PNG. Only success is cached; failures are probed again next export."""
    global _KALEIDO_READY
    if _KALEIDO_READY:
        return True
    try:
        import kaleido  # noqa: F401
    except ImportError:
        _KALEIDO_READY = False
        return False
    try:
        _chart_smoke_test()
        _KALEIDO_READY = True
    except Exception as exc:
        if options.get("allow_chrome_bootstrap"):
            _KALEIDO_READY = _bootstrap_chrome(options)
        else:
            _KALEIDO_READY = False
            _log_event(
                options,
                level="WARNING",
                event="pdf_chart_smoke_test_failed",
                message="Kaleido is installed but could not render a test chart.",
                context={"detail": str(exc)},
            )
    return bool(_KALEIDO_READY)


def _safe_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _utc_iso_now() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def _pdf_escape(text: str) -> str:
    text = text.replace("€", "EUR").replace("∞", "unbegrenzt")
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def _page_stream(page_lines: list[str], page_no: int, page_count: int) -> bytes:
    cmds = ["BT", "/F1 10 Tf", f"{FALLBACK_LINE_HEIGHT_PT} TL", f"50 {PAGE_HEIGHT_PT - 50} Td"]
    cmds.extend(f"({_pdf_escape(line[:220])}) Tj T*" for line in page_lines)
    cmds.extend(["ET", "BT", "/F1 8 Tf", f"{PAGE_WIDTH_PT - 110} 30 Td", f"(Seite {page_no}/{page_count}) Tj", "ET"])
    return "\n".join(cmds).encode("latin-1", errors="replace")


def _build_minimal_pdf(lines: list[str]) -> bytes:
    """Plain Helvetica text on A4 pages with page numbers; used when ReportLab is unavailable."""
    lines = lines or ["Business Plan", EMPTY_SECTION_TEXT]
    pages = [lines[i : i + FALLBACK_LINES_PER_PAGE] for i in range(0, len(lines), FALLBACK_LINES_PER_PAGE)]

    # Object ids: 1 catalog, 2 page tree, 3 font, then one (page, content) pair per page.
    bodies: list[bytes] = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica /Encoding /WinAnsiEncoding >>",
    ]
    page_refs: list[str] = []
    for page_no, page_lines in enumerate(pages, start=1):
        page_id = len(bodies) + 1
        page_refs.append(f"{page_id} 0 R")
        stream = _page_stream(page_lines, page_no, len(pages))
        bodies.append(
            (
                f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 {PAGE_WIDTH_PT} {PAGE_HEIGHT_PT}] "
                f"/Resources << /Font << /F1 3 0 R >> >> /Contents {page_id + 1} 0 R >>"
            ).encode("ascii")
        )
        bodies.append(f"<< /Length {len(stream)} >>\nstream\n".encode("ascii") + stream + b"\nendstream")
    bodies[1] = f"<< /Type /Pages /Count {len(pages)} /Kids [{' '.join(page_refs)}] >>".encode("ascii")

    out = BytesIO()
    out.write(b"%PDF-1.4\n")
    offsets: list[int] = []
    for obj_id, body in enumerate(bodies, start=1):
        offsets.append(out.tell())
        out.write(f"{obj_id} 0 obj\n".encode("ascii") + body + b"\nendobj\n")
    xref_start = out.tell()
    size = len(bodies) + 1
    out.write(f"xref\n0 {size}\n0000000000 65535 f \n".encode("ascii"))
    for offset in offsets:
        out.write(f"{offset:010d} 00000 n \n".encode("ascii"))
    out.write(f"trailer\n<< /Size {size} /Root 1 0 R >>\nstartxref\n{xref_start}\n%%EOF\n".encode("ascii"))
    return out.getvalue()


def render_plotly_figure_png(fig: go.Figure, width_px: int, height_px: int) -> bytes:
    """PNG bytes of a plotly figure at print size (minimum 640x360)."""
    if fig is None:
        raise ValueError("Figure is required.")
    width_px = max(640, _safe_int(width_px, DEFAULT_OPTIONS["chart_width_px"]))
    height_px = max(360, _safe_int(height_px, DEFAULT_OPTIONS["chart_height_px"]))
    fig.update_layout(template="plotly_white", width=width_px, height=height_px, margin=dict(l=50, r=40, t=70, b=50))
    try:
        return bytes(fig.to_image(format="png", width=width_px, height=height_px, scale=1))
    except Exception as exc:
        raise RuntimeError(f"Chart image render failed: {exc}") from exc


def _chart_placeholder(chart_id: str, title: str, reason: str) -> dict[str, Any]:
    return {"id": chart_id, "title": title, "image_bytes": None, "placeholder_text": reason}


def build_comparison_chart_images(chart_df: pd.DataFrame, options: dict | None = None) -> list[dict]:
    """Chart images (or placeholders) for the comparison PDF."""

    options = _merge_options(options)
    width_px = _safe_int(options.get("chart_width_px", 1400), 1400)
    height_px = _safe_int(options.get("chart_height_px", 800), 800)

    if chart_df is None or chart_df.empty:
        return [_chart_placeholder(cid, title, "No data available for this chart.") for cid, title in COMPARISON_CHARTS]

    kaleido_ok = _ensure_kaleido_ready(options)
    if not kaleido_ok:
        _log_event(
            options,
            level="WARNING",
            event="pdf_chart_engine_unavailable",
            message="Kaleido is unavailable; PDF will include chart placeholders.",
        )
        return [
            _chart_placeholder(cid, title, "Chart engine unavailable in this environment.")
            for cid, title in COMPARISON_CHARTS
        ]

    figures = comparison_figures(chart_df)
    images: list[dict[str, Any]] = []
    for chart_id, title in COMPARISON_CHARTS:
        try:
            png = render_plotly_figure_png(figures[chart_id], width_px=width_px, height_px=height_px)
        except Exception as exc:
            _log_event(
                options,
                level="ERROR",
                event="pdf_chart_render_failed",
                message=f"Chart render failed for {chart_id}.",
                context={"chart_id": chart_id, "title": title},
                exc=exc,
            )
            images.append(_chart_placeholder(chart_id, title, f"Chart render failed: {exc}"))
            continue
        images.append({"id": chart_id, "title": title, "image_bytes": png, "placeholder_text": ""})
    return images


def build_memo_sections(memo: Memo) -> list[dict]:
    sections = []
    for memo_section in MEMO_SECTIONS:
        key, label = memo_section["key"], memo_section["label"]
        body = memo.section(key).strip()
        sections.append(
            {
                "id": key,
                "title": label,
                "markdown": body,
                "paragraphs": [] if body else [EMPTY_SECTION_TEXT],
                "tables": [],
                "charts": [],
            }
        )
    return sections


def comparison_pdf_table(results: list[ScenarioResult]) -> pd.DataFrame:
    """Key figures per scenario, formatted for print."""
    return pd.DataFrame(
        [
            {
                "Szenario": r.scenario.name,
                "Break-even": format_break_even(r.metrics.break_even_month),
                "Runway": format_runway(r.metrics.runway),
                "Start-Cash": format_euro(r.metrics.adjusted_initial_cash),
                "Umsatz gesamt": format_euro(r.metrics.total_revenue),
                "Kosten gesamt": format_euro(r.metrics.total_cost),
                "End-Cash": format_euro(r.metrics.ending_cash),
            }
            for r in results
        ],
        columns=["Szenario", "Break-even", "Runway", "Start-Cash", "Umsatz gesamt", "Kosten gesamt", "End-Cash"],
    )


def build_comparison_sections(results: list[ScenarioResult], chart_images: list[dict]) -> list[dict]:
    return [
        {
            "id": "summary",
            "title": "Kennzahlen",
            "paragraphs": [f"{len(results)} Szenarien im Vergleich."],
            "tables": [{"title": "Szenario-Kennzahlen", "dataframe": comparison_pdf_table(results)}],
            "charts": [],
        },
        {
            "id": "charts",
            "title": "Diagramme",
            "paragraphs": [],
            "tables": [],
            "charts": chart_images,
        },
    ]


def _reportlab_imports():
    from reportlab.lib import colors
    from reportlab.lib.pagesizes import A4, landscape
    from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
    from reportlab.lib.units import inch
    from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

    return {
        "colors": colors,
        "A4": A4,
        "landscape": landscape,
        "ParagraphStyle": ParagraphStyle,
        "getSampleStyleSheet": getSampleStyleSheet,
        "inch": inch,
        "Image": Image,
        "Paragraph": Paragraph,
        "SimpleDocTemplate": SimpleDocTemplate,
        "Spacer": Spacer,
        "Table": Table,
        "TableStyle": TableStyle,
    }


def _markdown_flowables(markdown: str, rl: dict, styles) -> list[Any]:
    """Headings, bullets and paragraphs; inline markup is printed as text."""
    Paragraph = rl["Paragraph"]
    flowables: list[Any] = []
    paragraph: list[str] = []

    def _flush() -> None:
        if paragraph:
            flowables.append(Paragraph(html.escape(" ".join(paragraph)), styles["BodyText"]))
            paragraph.clear()

    for raw in markdown.splitlines():
        line = raw.strip()
        if not line:
            _flush()
        elif line.startswith("#"):
            _flush()
            flowables.append(Paragraph(html.escape(line.lstrip("#").strip()), styles["Heading3"]))
        elif line[:2] in ("- ", "* "):
            _flush()
            flowables.append(Paragraph(html.escape(line[2:]), styles["Bullet"], bulletText="•"))
        else:
            paragraph.append(line)
    _flush()
    return flowables


def _append_table(story: list[Any], table_spec: dict, rl: dict, styles, total_width: float) -> None:
    Paragraph = rl["Paragraph"]
    Spacer = rl["Spacer"]
    Table = rl["Table"]
    TableStyle = rl["TableStyle"]
    colors = rl["colors"]

    story.append(Paragraph(html.escape(str(table_spec.get("title", "Table"))), styles["Heading3"]))
    df = table_spec.get("dataframe")
    if not isinstance(df, pd.DataFrame) or df.empty:
        story.append(Paragraph("No data available.", styles["BodyText"]))
        story.append(Spacer(1, 8))
        return
    header = [Paragraph(html.escape(str(c)), styles["TableHeader"]) for c in df.columns]
    body = [[Paragraph(html.escape(str(v)), styles["TableCell"]) for v in row] for row in df.itertuples(index=False)]
    t = Table([header] + body, repeatRows=1, colWidths=[total_width / len(df.columns)] * len(df.columns))
    t.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#d9e6f2")),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.HexColor("#102a43")),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("GRID", (0, 0), (-1, -1), 0.3, colors.HexColor("#bcccdc")),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f7fafc")]),
            ]
        )
    )
    story.append(t)
    story.append(Spacer(1, 8))


def _build_reportlab_pdf(title: str, subtitle: str, sections: list[dict], *, landscape_page: bool = False) -> bytes:
    rl = _reportlab_imports()
    Paragraph = rl["Paragraph"]
    Spacer = rl["Spacer"]
    Image = rl["Image"]
    ParagraphStyle = rl["ParagraphStyle"]
    inch = rl["inch"]

    styles = rl["getSampleStyleSheet"]()
    styles.add(ParagraphStyle(name="Small", parent=styles["BodyText"], fontSize=8, leading=10))
    styles.add(ParagraphStyle(name="TableHeader", parent=styles["BodyText"], fontName="Helvetica-Bold", fontSize=8, leading=10))
    styles.add(ParagraphStyle(name="TableCell", parent=styles["BodyText"], fontName="Helvetica", fontSize=8, leading=10))

    pagesize = rl["landscape"](rl["A4"]) if landscape_page else rl["A4"]
    buf = BytesIO()
    doc = rl["SimpleDocTemplate"](
        buf,
        pagesize=pagesize,
        leftMargin=0.6 * inch,
        rightMargin=0.6 * inch,
        topMargin=0.6 * inch,
        bottomMargin=0.6 * inch,
        title=title,
    )
    content_width = pagesize[0] - 1.2 * inch

    story: list[Any] = [
        Paragraph(html.escape(title), styles["Title"]),
        Paragraph(html.escape(subtitle), styles["Small"]),
        Spacer(1, 12),
    ]
    for section in sections:
        story.append(Paragraph(html.escape(str(section.get("title", "Section"))), styles["Heading2"]))
        if section.get("markdown"):
            story.extend(_markdown_flowables(section["markdown"], rl, styles))
        for para in section.get("paragraphs", []):
            story.append(Paragraph(html.escape(str(para)), styles["BodyText"]))
        for table_spec in section.get("tables", []):
            _append_table(story, table_spec, rl, styles, content_width)
        for chart in section.get("charts", []):
            story.append(Paragraph(html.escape(str(chart.get("title", "Chart"))), styles["Heading3"]))
            image_bytes = chart.get("image_bytes")
            if image_bytes:
                img = Image(BytesIO(image_bytes))
                img.drawWidth = content_width
                img.drawHeight = content_width * 0.5
                story.append(img)
            else:
                story.append(Paragraph(html.escape(str(chart.get("placeholder_text") or "Chart unavailable.")), styles["BodyText"]))
        story.append(Spacer(1, 10))

    doc.build(story)
    return buf.getvalue()


def _build_fallback_text_pdf(title: str, subtitle: str, sections: list[dict]) -> bytes:
    lines = [title, subtitle, ""]
    for section in sections:
        lines.append(str(section.get("title", "Section")))
        for text_line in str(section.get("markdown", "")).splitlines():
            lines.append(f"  {text_line}")
        for para in section.get("paragraphs", []):
            lines.append(f"  {para}")
        for table_spec in section.get("tables", []):
            df = table_spec.get("dataframe")
            if isinstance(df, pd.DataFrame):
                for row in df.itertuples(index=False):
                    lines.append("  " + " | ".join(str(v) for v in row))
        for chart in section.get("charts", []):
            lines.append(f"  Chart: {chart.get('title', 'Untitled')} ({'ok' if chart.get('image_bytes') else 'placeholder'})")
        lines.append("")
    return _build_minimal_pdf(lines)


def _render_pdf(title: str, subtitle: str, sections: list[dict], options: dict, *, landscape_page: bool = False) -> bytes:
    try:
        if not _ensure_reportlab_ready(options):
            raise RuntimeError("ReportLab unavailable.")
        pdf_bytes = _build_reportlab_pdf(title, subtitle, sections, landscape_page=landscape_page)
        if not pdf_bytes.startswith(b"%PDF"):
            raise RuntimeError("ReportLab returned unexpected output.")
        return pdf_bytes
    except Exception as exc:
        _log_event(
            options,
            level="WARNING",
            event="pdf_export_reportlab_fallback",
            message="ReportLab unavailable or failed; using minimal PDF fallback.",
            context={"title": title},
            exc=exc,
        )
        return _build_fallback_text_pdf(title, subtitle, sections)


def build_memo_pdf_bytes(business_case_name: str, memo: Memo, options: dict | None = None) -> bytes:
    """Strategy memo with every section in fixed order; empty sections are marked."""

    merged = _merge_options(options)
    generated_at = str(merged.get("generated_at_utc") or _utc_iso_now())
    subtitle = f"{business_case_name} | Erstellt (UTC): {generated_at}"
    return _render_pdf(MEMO_TITLE, subtitle, build_memo_sections(memo), merged)


def build_scenario_comparison_pdf_bytes(
    business_case_name: str,
    plan: CashPlan,
    results: list[ScenarioResult],
    options: dict | None = None,
) -> bytes:
    """Key-figure table plus the three comparison charts."""

    merged = _merge_options(options)
    chart_images = merged.get("chart_images_override")
    if not isinstance(chart_images, list):
        chart_images = build_comparison_chart_images(comparison_chart_frame(plan, results), merged)
    generated_at = str(merged.get("generated_at_utc") or _utc_iso_now())
    subtitle = f"{business_case_name} | Erstellt (UTC): {generated_at}"
    sections = build_comparison_sections(results, chart_images)
    return _render_pdf(COMPARISON_TITLE, subtitle, sections, merged, landscape_page=True)
