from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Sequence

from ..core.aggregation import natural_id_key
from ..core.factors import FACTOR_LABELS
from ..models import (
    DetailBlock,
    DetailSection,
    FooterSection,
    HeaderSection,
    InsightSection,
    MetricRow,
    PortfolioSummary,
    ProjectInfo,
    RankedRow,
    RankedTableSection,
    Report,
    ReportSection,
    RiskAssessment,
    RiskDetail,
    SummarySection,
)

REPORT_TITLE = "Schedule Risk Analysis Report"
GENERATOR_NAME = "Project Risk Monitor"
RANKED_TABLE_SIZE = 10
DETAIL_COUNT = 5
NAME_DISPLAY_LENGTH = 40

UNKNOWN_PROJECT = "Unknown Project"
NOT_AVAILABLE = "N/A"
TO_BE_DETERMINED = "TBD"
NONE_LISTED = "None"

RANKED_COLUMNS = ("#", "ID", "Activity", "Score", "Severity", "Status")


def format_money(value: float) -> str:
    if float(value).is_integer():
        return f"${value:,.0f}"
    return f"${value:,.2f}"


def format_days(value: float) -> str:
    number = float(value)
    return f"{number:.0f}" if number.is_integer() else f"{number:.1f}"


def _days_or(value: float | None, fallback: str = NOT_AVAILABLE) -> str:
    return f"{format_days(value)} days" if value is not None else fallback


def _date_or(value: date | None, fallback: str) -> str:
    return value.isoformat() if value is not None else fallback


def _number_or(value: float | None) -> str:
    return format_days(value) if value is not None else NOT_AVAILABLE


def _ids_or_none(values: frozenset[str]) -> str:
    if not values:
        return NONE_LISTED
    return ", ".join(sorted(values, key=natural_id_key))


def delay_status(assessment: RiskAssessment) -> str:
    delay = assessment.activity.delay_impact_days
    return f"{format_days(delay)}d late" if delay > 0 else "On time"


def _finish_variance(assessment: RiskAssessment) -> str:
    activity = assessment.activity
    if activity.planned_finish is None or activity.baseline_finish is None:
        return NOT_AVAILABLE
    return f"{(activity.planned_finish - activity.baseline_finish).days:+d} days"


def _header(project: ProjectInfo, generated_at: datetime) -> HeaderSection:
    return HeaderSection(
        title=REPORT_TITLE,
        project_name=(project.name or "").strip() or UNKNOWN_PROJECT,
        budget=format_money(project.budget) if project.budget is not None else NOT_AVAILABLE,
        duration=(project.duration or "").strip() or NOT_AVAILABLE,
        generated_at=generated_at.isoformat(),
    )


def _summary(summary: PortfolioSummary) -> SummarySection:
    rows = (
        MetricRow("Total Activities", str(summary.total_activities)),
        MetricRow("Critical Path Activities", str(summary.critical_path_count)),
        MetricRow("Critical Risks", str(summary.critical_count)),
        MetricRow("High Risks", str(summary.high_count)),
        MetricRow("Medium Risks", str(summary.medium_count)),
        MetricRow("Low Risks", str(summary.low_count)),
        MetricRow("Total Risks Identified", str(summary.total_risks)),
        MetricRow("Total EMV", format_money(summary.total_emv)),
        MetricRow("Total Delay", f"{format_days(summary.total_delay_days)} days"),
    )
    return SummarySection(title="Executive Summary", rows=rows)


def _ranked_table(ranked: Sequence[RiskAssessment]) -> RankedTableSection:
    rows = tuple(
        RankedRow(
            rank=index,
            activity_id=item.activity.id,
            name=item.activity.name[:NAME_DISPLAY_LENGTH],
            score=f"{item.risk_score:.0f}",
            severity=item.severity.label,
            status=delay_status(item),
        )
        for index, item in enumerate(ranked[:RANKED_TABLE_SIZE], start=1)
    )
    return RankedTableSection(title="Top Risks", columns=RANKED_COLUMNS, rows=rows)


def detail_blocks(assessment: RiskAssessment) -> tuple[DetailBlock, ...]:
    """Fixed labeled sub-blocks for one assessment; every field is always present."""
    a = assessment.activity
    return (
        DetailBlock(
            "Activity Info",
            (
                ("Activity ID", a.id),
                ("Name", a.name),
                ("Work Package", a.work_package or NOT_AVAILABLE),
                ("Type", a.activity_type or NOT_AVAILABLE),
            ),
        ),
        DetailBlock(
            "Schedule",
            (
                ("Planned Start", _date_or(a.planned_start, TO_BE_DETERMINED)),
                ("Planned Finish", _date_or(a.planned_finish, TO_BE_DETERMINED)),
                ("Planned Duration", _days_or(a.planned_duration)),
                ("Remaining Duration", _days_or(a.remaining_duration)),
                ("Actual Start", _date_or(a.actual_start, NOT_AVAILABLE)),
                ("Actual Finish", _date_or(a.actual_finish, NOT_AVAILABLE)),
            ),
        ),
        DetailBlock(
            "Baseline",
            (
                ("Baseline Start", _date_or(a.baseline_start, NOT_AVAILABLE)),
                ("Baseline Finish", _date_or(a.baseline_finish, NOT_AVAILABLE)),
                ("Baseline Duration", _days_or(a.baseline_duration)),
                ("Finish Variance", _finish_variance(assessment)),
            ),
        ),
        DetailBlock(
            "Progress",
            (
                ("Percent Complete", f"{a.percent_complete:.0f}%"),
                ("Status", a.status),
            ),
        ),
        DetailBlock(
            "CPM Analysis",
            (
                ("Early Start", _number_or(a.early_start)),
                ("Early Finish", _number_or(a.early_finish)),
                ("Late Start", _number_or(a.late_start)),
                ("Late Finish", _number_or(a.late_finish)),
                ("Total Float", _days_or(a.total_float)),
                ("Critical Path", "Yes" if a.is_critical_path else "No"),
            ),
        ),
        DetailBlock(
            "Dependencies",
            (
                ("Predecessors", _ids_or_none(a.predecessor_ids)),
                ("Successors", _ids_or_none(a.successor_ids)),
                ("Dependency Type", a.dependency_type.value),
            ),
        ),
        DetailBlock(
            "Resources",
            (
                ("Resource", a.resource_id or TO_BE_DETERMINED),
                ("Role", a.role or TO_BE_DETERMINED),
                ("FTE Allocation", f"{a.fte_allocation:.0f}%"),
                ("Resource Capacity", f"{a.resource_max_fte:.1f} FTE"),
                ("Skills", ", ".join(sorted(a.skill_tags)) if a.skill_tags else NONE_LISTED),
            ),
        ),
        DetailBlock(
            "Risk Data",
            (
                ("Risk Score", f"{assessment.risk_score:.0f}/100 ({assessment.severity.label})"),
                ("Probability", f"{a.probability * 100:.0f}%"),
                ("Cost Impact", format_money(a.cost_impact)),
                ("EMV", format_money(a.emv)),
                ("Delay Impact", f"{format_days(a.delay_impact_days)} days"),
            ),
        ),
        DetailBlock(
            "Factor Breakdown",
            tuple((FACTOR_LABELS.get(name, name), f"{value:.0f}/100") for name, value in assessment.factors.items()),
        ),
    )


def _details(ranked: Sequence[RiskAssessment]) -> DetailSection:
    risks = tuple(
        RiskDetail(
            rank=index,
            heading=f"Risk #{index}: {item.activity.name}",
            severity=item.severity.label,
            blocks=detail_blocks(item),
        )
        for index, item in enumerate(ranked[:DETAIL_COUNT], start=1)
    )
    return DetailSection(title="Detailed Risk Analysis", risks=risks)


def assemble_report(
    summary: PortfolioSummary,
    ranked: Sequence[RiskAssessment],
    project: ProjectInfo | None = None,
    insight: str | None = None,
    *,
    generated_at: datetime | None = None,
) -> Report:
    """Build the ordered, immutable section list handed to a rendering collaborator.

    ``ranked`` must already be in ranking order. The insight section is emitted only for a
    non-blank narrative and always starts on a fresh page.
    """
    project = project or ProjectInfo()
    generated_at = generated_at or datetime.now(timezone.utc)

    sections: list[ReportSection] = [
        _header(project, generated_at),
        _summary(summary),
        _ranked_table(ranked),
        _details(ranked),
    ]
    if insight and insight.strip():
        sections.append(InsightSection(title="Executive Insights", text=insight.strip()))
    sections.append(FooterSection(text=f"Generated by {GENERATOR_NAME} | {generated_at.date().isoformat()}"))
    return Report(project=project, generated_at=generated_at, sections=tuple(sections))
