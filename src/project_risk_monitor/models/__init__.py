from .activity import Activity, DependencyType, RawActivityRecord
from .assessment import SEVERITY_ORDER, PortfolioSummary, RejectedRecord, RiskAssessment, Severity
from .report import (
    DetailBlock,
    DetailSection,
    FooterSection,
    HeaderSection,
    InsightSection,
    MetricRow,
    ProjectInfo,
    RankedRow,
    RankedTableSection,
    Report,
    ReportSection,
    RiskDetail,
    SummarySection,
)

__all__ = [
    "Activity",
    "DependencyType",
    "DetailBlock",
    "DetailSection",
    "FooterSection",
    "HeaderSection",
    "InsightSection",
    "MetricRow",
    "PortfolioSummary",
    "ProjectInfo",
    "RankedRow",
    "RankedTableSection",
    "RawActivityRecord",
    "RejectedRecord",
    "Report",
    "ReportSection",
    "RiskAssessment",
    "RiskDetail",
    "SEVERITY_ORDER",
    "Severity",
    "SummarySection",
]
