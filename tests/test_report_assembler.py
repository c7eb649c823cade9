from __future__ import annotations

from datetime import datetime, timezone

import pytest

from project_risk_monitor.core import aggregate, assess_activities, normalize_batch
from project_risk_monitor.models import (
    DetailSection,
    FooterSection,
    HeaderSection,
    InsightSection,
    PortfolioSummary,
    ProjectInfo,
    RankedTableSection,
    SummarySection,
)
from project_risk_monitor.reporting import (
    DETAIL_COUNT,
    RANKED_TABLE_SIZE,
    assemble_report,
    format_money,
    ranked_table_csv,
)

GENERATED_AT = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)
DETAIL_BLOCK_LABELS = [
    "Activity Info",
    "Schedule",
    "Baseline",
    "Progress",
    "CPM Analysis",
    "Dependencies",
    "Resources",
    "Risk Data",
    "Factor Breakdown",
]


def _ranked(records: list[dict]):
    normalized = normalize_batch(records)
    return aggregate(assess_activities(normalized.activities))


def _fields(block) -> dict[str, str]:
    return dict(block.fields)


def test_empty_portfolio_still_produces_every_structural_section() -> None:
    report = assemble_report(PortfolioSummary(), [], generated_at=GENERATED_AT)

    assert report.kinds == ["header", "summary", "ranked_table", "details", "footer"]
    header = report.section("header")
    assert isinstance(header, HeaderSection)
    assert header.project_name == "Unknown Project"
    assert header.budget == "N/A"
    assert header.duration == "N/A"
    ranked = report.section("ranked_table")
    assert isinstance(ranked, RankedTableSection)
    assert ranked.rows == ()
    details = report.section("details")
    assert isinstance(details, DetailSection)
    assert details.risks == ()
    assert ranked_table_csv(report) == "#,ID,Activity,Score,Severity,Status\n"


def test_header_uses_project_metadata(sample_records) -> None:
    summary, ranked = _ranked(sample_records)
    project = ProjectInfo(name="Harbour Bridge", budget=1_250_000.0, duration="9 months")

    report = assemble_report(summary, ranked, project, generated_at=GENERATED_AT)

    header = report.section("header")
    assert header.project_name == "Harbour Bridge"
    assert header.budget == "$1,250,000"
    assert header.duration == "9 months"
    assert header.generated_at == GENERATED_AT.isoformat()


def test_summary_rows_reflect_portfolio(sample_records) -> None:
    summary, ranked = _ranked(sample_records)

    report = assemble_report(summary, ranked, generated_at=GENERATED_AT)

    section = report.section("summary")
    assert isinstance(section, SummarySection)
    rows = {row.label: row.value for row in section.rows}
    assert rows["Total Activities"] == "3"
    assert rows["Total Risks Identified"] == "3"
    assert rows["Total EMV"] == "$10,050"
    assert rows["Total Delay"] == "7 days"


def test_ranked_table_and_details_follow_ranking_order(sample_records) -> None:
    summary, ranked = _ranked(sample_records)

    report = assemble_report(summary, ranked, generated_at=GENERATED_AT)

    table = report.section("ranked_table")
    assert [row.activity_id for row in table.rows] == [item.activity.id for item in ranked]
    assert [row.rank for row in table.rows] == [1, 2, 3]
    top = table.rows[0]
    assert top.activity_id == "A1"
    assert top.status == "5d late"
    assert top.severity in {"HIGH", "CRITICAL"}
    on_time = next(row for row in table.rows if row.activity_id == "A2")
    assert on_time.status == "On time"

    details = report.section("details")
    assert [risk.rank for risk in details.risks] == [1, 2, 3]
    assert details.risks[0].heading == "Risk #1: Foundation pour"


def test_table_and_details_are_truncated() -> None:
    records = [{"id": f"T{i}", "name": "Activity " + "x" * 60, "delayImpactDays": i} for i in range(1, 13)]
    summary, ranked = _ranked(records)

    report = assemble_report(summary, ranked, generated_at=GENERATED_AT)

    table = report.section("ranked_table")
    assert len(table.rows) == RANKED_TABLE_SIZE
    assert all(len(row.name) == 40 for row in table.rows)
    assert len(report.section("details").risks) == DETAIL_COUNT


def test_detail_blocks_always_present_with_fallbacks() -> None:
    summary, ranked = _ranked([{"id": "B1", "name": "Bare activity"}])

    report = assemble_report(summary, ranked, generated_at=GENERATED_AT)

    blocks = report.section("details").risks[0].blocks
    assert [block.label for block in blocks] == DETAIL_BLOCK_LABELS
    by_label = {block.label: _fields(block) for block in blocks}
    assert by_label["Schedule"]["Planned Start"] == "TBD"
    assert by_label["Schedule"]["Planned Finish"] == "TBD"
    assert by_label["Schedule"]["Actual Start"] == "N/A"
    assert by_label["Baseline"]["Finish Variance"] == "N/A"
    assert by_label["Resources"]["Resource"] == "TBD"
    assert by_label["Resources"]["Role"] == "TBD"
    assert by_label["Dependencies"]["Predecessors"] == "None"
    assert by_label["CPM Analysis"]["Total Float"] == "N/A"
    assert len(by_label["Factor Breakdown"]) == 6


def test_insight_section_only_for_non_blank_text(sample_records) -> None:
    summary, ranked = _ranked(sample_records)

    without = assemble_report(summary, ranked, insight="   \n", generated_at=GENERATED_AT)
    with_text = assemble_report(summary, ranked, insight="Recover A1 first.", generated_at=GENERATED_AT)

    assert "insight" not in without.kinds
    assert with_text.kinds[-2:] == ["insight", "footer"]
    insight = with_text.section("insight")
    assert isinstance(insight, InsightSection)
    assert insight.page_break_before is True
    assert insight.text == "Recover A1 first."


def test_footer_names_generator_and_date() -> None:
    report = assemble_report(PortfolioSummary(), [], generated_at=GENERATED_AT)
    footer = report.section("footer")
    assert isinstance(footer, FooterSection)
    assert footer.text == "Generated by Project Risk Monitor | 2025-03-01"


def test_assembly_is_deterministic(sample_records) -> None:
    summary, ranked = _ranked(sample_records)
    first = assemble_report(summary, ranked, generated_at=GENERATED_AT)
    second = assemble_report(summary, ranked, generated_at=GENERATED_AT)
    assert first == second
    assert first.to_dict()["sections"][0]["kind"] == "header"


@pytest.mark.parametrize(("value", "expected"), [(8000, "$8,000"), (1234.5, "$1,234.50"), (0, "$0")])
def test_format_money(value: float, expected: str) -> None:
    assert format_money(value) == expected
