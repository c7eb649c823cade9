from __future__ import annotations

import math
from typing import Mapping

from ..errors import ComputationError
from ..models import Activity, RiskAssessment, Severity
from .factors import (
    COST_EXPOSURE,
    CRITICAL_PATH_PROXIMITY,
    DEPENDENCY_RISK,
    PROGRESS_DEVIATION,
    RESOURCE_OVERALLOCATION,
    SCHEDULE_SLIPPAGE,
    PortfolioContext,
    clip,
    compute_factors,
    exposure_multiplier,
)

FACTOR_WEIGHTS: dict[str, float] = {
    SCHEDULE_SLIPPAGE: 0.30,
    COST_EXPOSURE: 0.15,
    DEPENDENCY_RISK: 0.10,
    RESOURCE_OVERALLOCATION: 0.10,
    CRITICAL_PATH_PROXIMITY: 0.25,
    PROGRESS_DEVIATION: 0.10,
}

# (lower bound, severity), highest first. A score equal to a bound belongs to that band.
SEVERITY_BANDS: tuple[tuple[float, Severity], ...] = (
    (70.0, Severity.CRITICAL),
    (50.0, Severity.HIGH),
    (30.0, Severity.MEDIUM),
    (0.0, Severity.LOW),
)


def severity_for(score: float) -> Severity:
    for lower, severity in SEVERITY_BANDS:
        if score >= lower:
            return severity
    raise ComputationError(f"risk score {score!r} matched no severity band")


def score(factors: Mapping[str, float], multiplier: float = 1.0) -> tuple[float, Severity]:
    """Weighted mean of the known factors, scaled by ``multiplier`` and clipped to [0, 100].

    Missing factors count as 0 and unknown keys are ignored.
    """
    total = 0.0
    for name, weight in FACTOR_WEIGHTS.items():
        value = factors.get(name, 0.0)
        if value is None or not math.isfinite(float(value)):
            value = 0.0
        total += clip(value) * weight
    risk_score = clip(total * max(multiplier, 0.0))
    return risk_score, severity_for(risk_score)


def assess_activity(activity: Activity, context: PortfolioContext | None = None) -> RiskAssessment:
    factors = compute_factors(activity, context)
    risk_score, severity = score(factors, exposure_multiplier(activity))
    return RiskAssessment(activity=activity, factors=factors, risk_score=risk_score, severity=severity)


def assess_activities(activities: list[Activity] | tuple[Activity, ...]) -> list[RiskAssessment]:
    context = PortfolioContext.from_activities(activities)
    return [assess_activity(activity, context) for activity in activities]
