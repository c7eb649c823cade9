from __future__ import annotations

import math
import re
from collections import Counter
from typing import Iterable, Sequence

from ..models import PortfolioSummary, RiskAssessment, Severity

_DIGIT_RUNS = re.compile(r"(\d+)")


def natural_id_key(activity_id: str) -> tuple:
    """Order ids by their digit runs numerically ("A2" before "A10"), then by the raw string."""
    parts = _DIGIT_RUNS.split(activity_id)
    # re.split with a capture group alternates text/digits, so positions stay type-aligned.
    key = tuple(int(part) if i % 2 else part.lower() for i, part in enumerate(parts))
    return key, activity_id


def ranking_key(assessment: RiskAssessment) -> tuple:
    return (-assessment.risk_score, -assessment.activity.cost_impact, natural_id_key(assessment.activity.id))


def rank_assessments(assessments: Iterable[RiskAssessment]) -> list[RiskAssessment]:
    """Descending score, then descending cost impact, then ascending id."""
    return sorted(assessments, key=ranking_key)


def summarize(assessments: Sequence[RiskAssessment]) -> PortfolioSummary:
    counts = Counter(item.severity for item in assessments)
    return PortfolioSummary(
        total_activities=len(assessments),
        critical_path_count=sum(1 for item in assessments if item.activity.is_critical_path),
        critical_count=counts.get(Severity.CRITICAL, 0),
        high_count=counts.get(Severity.HIGH, 0),
        medium_count=counts.get(Severity.MEDIUM, 0),
        low_count=counts.get(Severity.LOW, 0),
        total_risks=len(assessments),
        total_emv=math.fsum(item.activity.probability * item.activity.cost_impact for item in assessments),
        total_delay_days=math.fsum(item.activity.delay_impact_days for item in assessments),
    )


def aggregate(assessments: Iterable[RiskAssessment]) -> tuple[PortfolioSummary, list[RiskAssessment]]:
    items = list(assessments)
    return summarize(items), rank_assessments(items)
