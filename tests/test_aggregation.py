from __future__ import annotations

import pytest

from project_risk_monitor.core import aggregate, natural_id_key, normalize_activity, rank_assessments, summarize
from project_risk_monitor.models import PortfolioSummary, RiskAssessment, Severity


def _assessment(record: dict, risk_score: float, severity: Severity = Severity.HIGH) -> RiskAssessment:
    return RiskAssessment(activity=normalize_activity(record), factors={}, risk_score=risk_score, severity=severity)


def test_equal_score_and_cost_rank_by_natural_id() -> None:
    a10 = _assessment({"id": "A10", "costImpact": 100}, 55.0)
    a2 = _assessment({"id": "A2", "costImpact": 100}, 55.0)

    ranked = rank_assessments([a10, a2])

    assert [item.activity.id for item in ranked] == ["A2", "A10"]


def test_score_then_cost_then_id() -> None:
    items = [
        _assessment({"id": "C", "costImpact": 10}, 40.0, Severity.MEDIUM),
        _assessment({"id": "B", "costImpact": 900}, 40.0, Severity.MEDIUM),
        _assessment({"id": "A", "costImpact": 0}, 91.0, Severity.CRITICAL),
        _assessment({"id": "D", "costImpact": 900}, 40.0, Severity.MEDIUM),
    ]

    ranked = rank_assessments(items)

    assert [item.activity.id for item in ranked] == ["A", "B", "D", "C"]


def test_ranking_is_independent_of_input_order() -> None:
    items = [_assessment({"id": f"T{i}", "costImpact": i % 3}, float(i % 4) * 10) for i in range(12)]
    forward = [item.activity.id for item in rank_assessments(items)]
    backward = [item.activity.id for item in rank_assessments(list(reversed(items)))]
    assert forward == backward


def test_natural_id_key_orders_digit_runs_numerically() -> None:
    ids = ["WP-10.2", "WP-2.10", "WP-2.9", "wp-1", "B", "A"]
    assert sorted(ids, key=natural_id_key) == ["A", "B", "wp-1", "WP-2.9", "WP-2.10", "WP-10.2"]


def test_summary_counts_and_totals() -> None:
    items = [
        _assessment({"id": "S1", "probability": 0.5, "costImpact": 1000, "delayImpactDays": 3, "isCriticalPath": True}, 75.0, Severity.CRITICAL),
        _assessment({"id": "S2", "probability": 0.2, "costImpact": 500, "delayImpactDays": 1.5}, 52.0, Severity.HIGH),
        _assessment({"id": "S3"}, 10.0, Severity.LOW),
    ]

    summary = summarize(items)

    assert summary.total_activities == 3
    assert summary.critical_path_count == 1
    assert summary.critical_count == 1
    assert summary.high_count == 1
    assert summary.medium_count == 0
    assert summary.low_count == 1
    assert summary.total_risks == 3
    assert summary.total_emv == pytest.approx(600.0)
    assert summary.total_delay_days == pytest.approx(4.5)
    assert sum(summary.severity_counts.values()) == summary.total_activities


def test_empty_input_gives_zero_summary_and_empty_ranking() -> None:
    summary, ranked = aggregate([])
    assert summary == PortfolioSummary()
    assert ranked == []
    assert summary.to_dict()["severityCounts"] == {"critical": 0, "high": 0, "medium": 0, "low": 0}
