from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Query, Request
from fastapi.responses import FileResponse, JSONResponse, Response

from app.services.audit_store import SqlAuditSink
from project_risk_monitor.audit import AuditAction, AuditEvent
from project_risk_monitor.config import get_settings
from project_risk_monitor.errors import ValidationError
from project_risk_monitor.io import project_info_from
from project_risk_monitor.narrative import OpenAINarrativeClient
from project_risk_monitor.pipeline import AnalysisResult, RiskAnalyzer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["analysis"])


class PayloadError(ValueError):
    pass


def get_audit_sink(request: Request) -> SqlAuditSink:
    return request.app.state.audit_sink


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": message})


def _bool_field(payload: dict[str, Any], key: str, default: bool) -> bool:
    value = payload.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise PayloadError(f"'{key}' must be true or false")
    return value


def _analyzer_for(payload: dict[str, Any], sink: SqlAuditSink, *, with_narrative: bool) -> RiskAnalyzer:
    settings = get_settings()
    user = str(payload.get("user") or "").strip() or settings.audit_default_user
    session_id = str(payload.get("sessionId") or "").strip() or None
    client = OpenAINarrativeClient.from_settings(settings) if with_narrative else None
    return RiskAnalyzer(audit_sink=sink, narrative_client=client, user=user, session_id=session_id)


def _run(payload: Any, sink: SqlAuditSink, *, with_narrative: bool) -> tuple[RiskAnalyzer, AnalysisResult]:
    if not isinstance(payload, dict):
        raise PayloadError("request body must be a JSON object")
    activities = payload.get("activities")
    if not isinstance(activities, list):
        raise PayloadError("'activities' must be a list of activity records")
    project_raw = payload.get("project") or {}
    if not isinstance(project_raw, dict):
        raise PayloadError("'project' must be an object")

    include_insight = _bool_field(payload, "includeInsight", True) and with_narrative
    recompute_cpm = _bool_field(payload, "recomputeCpm", False)
    analyzer = _analyzer_for(payload, sink, with_narrative=include_insight)
    analyzer.note_import("api", len(activities))
    result = analyzer.analyze(
        activities,
        project_info_from(project_raw),
        recompute_cpm=recompute_cpm,
        include_insight=include_insight,
    )
    return analyzer, result


@router.post("/analyses")
def create_analysis(payload: Any = Body(...), sink: SqlAuditSink = Depends(get_audit_sink)):
    try:
        _, result = _run(payload, sink, with_narrative=True)
    except PayloadError as exc:
        return _bad_request(str(exc))
    return result.to_dict()


@router.post("/reports/pdf")
def export_report_pdf(payload: Any = Body(...), sink: SqlAuditSink = Depends(get_audit_sink)):
    try:
        analyzer, result = _run(payload, sink, with_narrative=True)
    except PayloadError as exc:
        return _bad_request(str(exc))
    export_dir = get_settings().export_dir
    export_dir.mkdir(parents=True, exist_ok=True)
    # One working directory per request; removed once the response has been sent.
    work_dir = Path(tempfile.mkdtemp(prefix="report_", dir=export_dir))
    try:
        pdf_path = analyzer.export_pdf(result, work_dir)
    except Exception:
        shutil.rmtree(work_dir, ignore_errors=True)
        raise
    cleanup = BackgroundTasks()
    cleanup.add_task(shutil.rmtree, work_dir, ignore_errors=True)
    return FileResponse(
        path=str(pdf_path),
        media_type="application/pdf",
        filename=pdf_path.name,
        background=cleanup,
    )


@router.post("/mitigations/simulate")
def simulate_mitigation(payload: Any = Body(...), sink: SqlAuditSink = Depends(get_audit_sink)):
    try:
        analyzer, result = _run(payload, sink, with_narrative=False)
    except PayloadError as exc:
        return _bad_request(str(exc))

    activity_id = str(payload.get("activityId") or "").strip()
    strategy = str(payload.get("strategy") or "").strip()
    if not activity_id or not strategy:
        return _bad_request("'activityId' and 'strategy' are required")
    try:
        outcome = analyzer.simulate(result, activity_id, strategy)
    except KeyError:
        return JSONResponse(status_code=404, content={"error": "activity_not_found", "activityId": activity_id})
    except ValidationError as exc:
        return _bad_request(exc.reason)
    return outcome.to_dict()


@router.get("/audit")
def list_audit_events(
    limit: int = Query(default=100, ge=1, le=1000),
    action: str = Query(default=""),
    user: str = Query(default=""),
    sink: SqlAuditSink = Depends(get_audit_sink),
):
    events = sink.events(action=action or None, user=user or None, limit=limit)
    return {
        "items": [event.to_dict() for event in events],
        "stats": sink.stats(),
    }


@router.get("/audit/export")
def export_audit_log(sink: SqlAuditSink = Depends(get_audit_sink)):
    body = sink.export_csv()
    sink.record(
        AuditEvent(
            action=AuditAction.AUDIT_LOG_EXPORTED,
            details={"format": "csv"},
            user=get_settings().audit_default_user,
        )
    )
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="audit_log.csv"'},
    )
