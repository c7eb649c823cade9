from __future__ import annotations

import re
from html import escape
from pathlib import Path

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.pdfgen.canvas import Canvas
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..models import (
    DetailSection,
    FooterSection,
    HeaderSection,
    InsightSection,
    RankedTableSection,
    Report,
    SummarySection,
)

BRAND_BLUE = colors.HexColor("#1F4E78")
SEVERITY_COLORS = {
    "CRITICAL": colors.HexColor("#DC2626"),
    "HIGH": colors.HexColor("#EA580C"),
    "MEDIUM": colors.HexColor("#CA8A04"),
    "LOW": colors.HexColor("#16A34A"),
}
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


def filename_slug(name: str) -> str:
    return _UNSAFE_FILENAME_CHARS.sub("", "_".join(name.split())) or "Project"


def report_filename(report: Report, extension: str = "pdf") -> str:
    header = report.section("header")
    project_name = header.project_name if isinstance(header, HeaderSection) else "Unknown Project"
    slug = filename_slug(project_name)
    return f"Risk_Analysis_{slug}_{report.generated_at.date().isoformat()}.{extension}"


def footer_line(page: int, page_count: int, footer_text: str) -> str:
    line = f"Page {page} of {page_count}"
    return f"{line} | {footer_text}" if footer_text else line


def _grid_style(header_bg=BRAND_BLUE) -> list[tuple]:
    return [
        ("BACKGROUND", (0, 0), (-1, 0), header_bg),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("BACKGROUND", (0, 1), (-1, -1), colors.HexColor("#F8FAFC")),
    ]


def _header_flowables(section: HeaderSection, styles) -> list:
    return [
        Paragraph(escape(section.title), styles["Title"]),
        Paragraph(f"Project: {escape(section.project_name)}", styles["Heading3"]),
        Paragraph(f"Budget: {escape(section.budget)} | Duration: {escape(section.duration)}", styles["Normal"]),
        Paragraph(f"Report Generated: {escape(section.generated_at)}", styles["Normal"]),
        Spacer(1, 10),
    ]


def _summary_flowables(section: SummarySection, styles) -> list:
    data = [["Metric", "Value"]] + [[row.label, row.value] for row in section.rows]
    table = Table(data, hAlign="LEFT", colWidths=[260, 160])
    table.setStyle(TableStyle(_grid_style() + [("ALIGN", (1, 1), (1, -1), "RIGHT")]))
    return [Paragraph(escape(section.title), styles["Heading2"]), table, Spacer(1, 10)]


def _ranked_flowables(section: RankedTableSection, styles) -> list:
    data = [list(section.columns)]
    style = _grid_style()
    for index, row in enumerate(section.rows, start=1):
        data.append([str(row.rank), row.activity_id, row.name, row.score, row.severity, row.status])
        color = SEVERITY_COLORS.get(row.severity)
        if color is not None:
            style.append(("TEXTCOLOR", (4, index), (4, index), color))
        if row.severity in {"CRITICAL", "HIGH"}:
            style.append(("FONTNAME", (4, index), (4, index), "Helvetica-Bold"))
    table = Table(data, hAlign="LEFT", repeatRows=1, colWidths=[24, 60, 220, 40, 60, 60])
    table.setStyle(TableStyle(style))
    return [Paragraph(escape(section.title), styles["Heading2"]), table, Spacer(1, 10)]


def _detail_flowables(section: DetailSection, styles) -> list:
    story: list = [Paragraph(escape(section.title), styles["Heading2"])]
    for risk in section.risks:
        story.append(Paragraph(escape(risk.heading), styles["Heading3"]))
        for block in risk.blocks:
            story.append(Paragraph(f"<b>{escape(block.label)}</b>", styles["BodyText"]))
            for label, value in block.fields:
                story.append(Paragraph(f"&nbsp;&nbsp;{escape(label)}: {escape(value)}", styles["BodyText"]))
        story.append(Spacer(1, 8))
    return story


def _insight_flowables(section: InsightSection, styles) -> list:
    story: list = [Paragraph(escape(section.title), styles["Heading2"])]
    for paragraph in section.text.split("\n\n"):
        lines = [escape(line) for line in paragraph.splitlines() if line.strip()]
        if lines:
            story.append(Paragraph("<br/>".join(lines), styles["BodyText"]))
            story.append(Spacer(1, 6))
    return story


def _numbered_canvas(footer_text: str) -> type[Canvas]:
    """Canvas class that defers page output until the page count is known."""

    class NumberedCanvas(Canvas):
        def __init__(self, *args, **kwargs) -> None:
            super().__init__(*args, **kwargs)
            self._page_states: list[dict] = []

        def showPage(self) -> None:
            self._page_states.append(dict(self.__dict__))
            self._startPage()

        def save(self) -> None:
            page_count = len(self._page_states)
            for state in self._page_states:
                self.__dict__.update(state)
                self.saveState()
                self.setFont("Helvetica", 8)
                self.setFillColor(colors.grey)
                self.drawString(28, 14, footer_line(self.getPageNumber(), page_count, footer_text))
                self.restoreState()
                super().showPage()
            super().save()

    return NumberedCanvas


def render_report_pdf(report: Report, destination: Path) -> Path:
    """Render a Report with reportlab.

    ``destination`` may be a directory (existing, or any path without a suffix), in which case
    the file is named by report_filename().
    """
    destination = Path(destination)
    is_dir = destination.is_dir() or not destination.suffix
    pdf_path = destination / report_filename(report) if is_dir else destination
    pdf_path.parent.mkdir(parents=True, exist_ok=True)

    styles = getSampleStyleSheet()
    footer = report.section("footer")
    footer_text = footer.text if isinstance(footer, FooterSection) else ""

    story: list = []
    for section in report.sections:
        if section.page_break_before and story:
            story.append(PageBreak())
        if isinstance(section, HeaderSection):
            story.extend(_header_flowables(section, styles))
        elif isinstance(section, SummarySection):
            story.extend(_summary_flowables(section, styles))
        elif isinstance(section, RankedTableSection):
            story.extend(_ranked_flowables(section, styles))
        elif isinstance(section, DetailSection):
            story.extend(_detail_flowables(section, styles))
        elif isinstance(section, InsightSection):
            story.extend(_insight_flowables(section, styles))

    doc = SimpleDocTemplate(str(pdf_path), pagesize=A4, leftMargin=28, rightMargin=28, topMargin=24)
    doc.build(story, canvasmaker=_numbered_canvas(footer_text))
    return pdf_path
