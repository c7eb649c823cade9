from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Mapping

from .audit import AuditAction, AuditEvent, AuditSink, NullAuditSink, new_session_id
from .core import aggregate, assess_activities, compute_critical_path, normalize_batch, simulate_mitigation
from .core.mitigation import MitigationResult
from .errors import ValidationError
from .models import Activity, PortfolioSummary, ProjectInfo, RejectedRecord, Report, RiskAssessment
from .narrative import NarrativeClient, request_insight
from .reporting import assemble_report, ranked_table_csv
from .reporting.pdf import render_report_pdf

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class AnalysisResult:
    project: ProjectInfo
    ranked: tuple[RiskAssessment, ...]
    summary: PortfolioSummary
    rejected: tuple[RejectedRecord, ...]
    report: Report
    insight: str | None = None

    def find(self, activity_id: str) -> RiskAssessment | None:
        for item in self.ranked:
            if item.activity.id == activity_id:
                return item
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary.to_dict(),
            "ranked": [item.to_dict() for item in self.ranked],
            "rejected": [item.to_dict() for item in self.rejected],
            "insight": self.insight,
            "report": self.report.to_dict(),
        }


class RiskAnalyzer:
    """Runs normalize -> score -> aggregate -> assemble for one caller.

    Collaborators are injected: the audit sink receives event notifications and the
    narrative client supplies the optional insight text. Failures in either never abort
    an analysis.
    """

    def __init__(
        self,
        *,
        audit_sink: AuditSink | None = None,
        narrative_client: NarrativeClient | None = None,
        user: str = "PM User",
        session_id: str | None = None,
    ) -> None:
        self.audit_sink = audit_sink or NullAuditSink()
        self.narrative_client = narrative_client
        self.user = user
        self.session_id = session_id or new_session_id()

    def _emit(self, action: str, details: Mapping[str, Any]) -> None:
        event = AuditEvent(action=action, details=dict(details), user=self.user, session_id=self.session_id)
        try:
            self.audit_sink.record(event)
        except Exception:
            logger.exception("Audit sink failed to record %s", action)

    def note_import(self, source: str, record_count: int) -> None:
        self._emit(AuditAction.DATA_IMPORTED, {"source": source, "recordCount": record_count})

    def _recompute_cpm(self, activities: tuple[Activity, ...]) -> tuple[Activity, ...]:
        try:
            return tuple(compute_critical_path(activities))
        except ValidationError as exc:
            logger.warning("Critical path recomputation skipped: %s", exc.reason)
            self._emit(AuditAction.ERROR_OCCURRED, {"stage": "cpm", "reason": exc.reason})
            return activities

    def analyze(
        self,
        records: Iterable[Mapping[str, Any] | Activity],
        project: ProjectInfo | None = None,
        *,
        recompute_cpm: bool = False,
        include_insight: bool = True,
        generated_at: datetime | None = None,
    ) -> AnalysisResult:
        project = project or ProjectInfo()
        records = list(records)
        started = time.perf_counter()
        self._emit(
            AuditAction.RISK_ANALYSIS_STARTED,
            {"projectName": project.name, "recordCount": len(records)},
        )

        normalized = normalize_batch(records)
        if normalized.rejected:
            self._emit(
                AuditAction.RECORDS_REJECTED,
                {"rejected": [item.to_dict() for item in normalized.rejected]},
            )
        activities = normalized.activities
        if recompute_cpm:
            activities = self._recompute_cpm(activities)

        summary, ranked = aggregate(assess_activities(activities))

        insight = None
        if include_insight and self.narrative_client is not None:
            self._emit(AuditAction.AI_INSIGHT_REQUESTED, {"projectName": project.name, "risks": len(ranked)})
            insight = request_insight(self.narrative_client, project, summary, ranked)
            if insight:
                self._emit(AuditAction.AI_INSIGHT_GENERATED, {"projectName": project.name, "chars": len(insight)})

        report = assemble_report(summary, ranked, project, insight, generated_at=generated_at)
        elapsed = time.perf_counter() - started

        self._emit(
            AuditAction.RISK_ANALYSIS_RUN,
            {
                "projectName": project.name,
                "risksFound": summary.total_risks,
                "criticalRisks": summary.critical_count,
                "rejectedRecords": len(normalized.rejected),
                "totalEMV": summary.total_emv,
                "analysisTime": round(elapsed, 3),
                "insightIncluded": insight is not None,
            },
        )
        logger.info(
            "Risk analysis complete for %s: activities=%s rejected=%s critical=%s",
            project.name or "unnamed project",
            summary.total_activities,
            len(normalized.rejected),
            summary.critical_count,
        )
        return AnalysisResult(
            project=project,
            ranked=tuple(ranked),
            summary=summary,
            rejected=normalized.rejected,
            report=report,
            insight=insight,
        )

    def export_pdf(self, result: AnalysisResult, destination: Path) -> Path:
        pdf_path = render_report_pdf(result.report, destination)
        self._emit(
            AuditAction.REPORT_EXPORTED,
            {"projectName": result.project.name, "format": "pdf", "filename": pdf_path.name},
        )
        logger.info("Report exported for %s: %s", result.project.name or "unnamed project", pdf_path)
        return pdf_path

    def export_csv(self, result: AnalysisResult, destination: Path) -> Path:
        csv_path = Path(destination)
        csv_path.parent.mkdir(parents=True, exist_ok=True)
        csv_path.write_text(ranked_table_csv(result.report), encoding="utf-8")
        self._emit(
            AuditAction.REPORT_EXPORTED,
            {"projectName": result.project.name, "format": "csv", "filename": csv_path.name},
        )
        logger.info("Ranked table exported for %s: %s", result.project.name or "unnamed project", csv_path)
        return csv_path

    def simulate(self, result: AnalysisResult, activity_id: str, strategy: str) -> MitigationResult:
        assessment = result.find(activity_id)
        if assessment is None:
            raise KeyError(activity_id)
        outcome = simulate_mitigation(assessment, strategy)
        self._emit(
            AuditAction.MITIGATION_SIMULATED,
            {
                "activityId": activity_id,
                "strategy": outcome.strategy,
                "riskReduction": outcome.risk_reduction,
                "cost": outcome.cost,
                "roi": outcome.roi_percent,
            },
        )
        return outcome


def run_analysis(
    records: Iterable[Mapping[str, Any] | Activity],
    project: ProjectInfo | None = None,
    **kwargs: Any,
) -> AnalysisResult:
    """One-shot analysis with no audit trail and no narrative collaborator."""
    return RiskAnalyzer().analyze(records, project, **kwargs)
