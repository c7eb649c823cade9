from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ..models import Activity, DependencyType

SCHEDULE_SLIPPAGE = "schedule_slippage"
COST_EXPOSURE = "cost_exposure"
DEPENDENCY_RISK = "dependency_risk"
RESOURCE_OVERALLOCATION = "resource_overallocation"
CRITICAL_PATH_PROXIMITY = "critical_path_proximity"
PROGRESS_DEVIATION = "progress_deviation"

# Evaluation order; every factors mapping is built in this order.
FACTOR_NAMES = (
    SCHEDULE_SLIPPAGE,
    COST_EXPOSURE,
    DEPENDENCY_RISK,
    RESOURCE_OVERALLOCATION,
    CRITICAL_PATH_PROXIMITY,
    PROGRESS_DEVIATION,
)

FACTOR_LABELS = {
    SCHEDULE_SLIPPAGE: "Schedule Slippage",
    COST_EXPOSURE: "Cost Exposure",
    DEPENDENCY_RISK: "Dependency Risk",
    RESOURCE_OVERALLOCATION: "Resource Overallocation",
    CRITICAL_PATH_PROXIMITY: "Critical Path Proximity",
    PROGRESS_DEVIATION: "Progress Deviation",
}

EMV_HALF_SATURATION = 10_000.0
DEFAULT_FLOAT_HORIZON_DAYS = 10.0
OVERALLOCATION_SPAN = 0.5
PREDECESSOR_WEIGHT = 15.0
SUCCESSOR_WEIGHT = 10.0
DEPENDENCY_TYPE_MULTIPLIERS = {
    DependencyType.FS: 1.0,
    DependencyType.SS: 1.1,
    DependencyType.FF: 1.1,
    DependencyType.SF: 1.25,
}
# Activity-type keywords (case-insensitive substring match) and their score multipliers.
TYPE_MULTIPLIERS: tuple[tuple[tuple[str, ...], float], ...] = (
    (("security", "compliance"), 1.3),
    (("patient", "clinical"), 1.2),
)
CONCURRENCY_THRESHOLD = 2
CONCURRENCY_MULTIPLIER = 1.15
EXPECTED_PROGRESS_BY_STATUS = {
    "completed": 100.0,
    "complete": 100.0,
    "in-progress": 50.0,
}


@dataclass(slots=True, frozen=True)
class PortfolioContext:
    """Portfolio-wide references for the factors that rank an activity against its peers."""

    max_emv: float = 0.0
    max_float: float = 0.0

    @classmethod
    def from_activities(cls, activities: Iterable[Activity]) -> "PortfolioContext":
        max_emv = 0.0
        max_float = 0.0
        for activity in activities:
            max_emv = max(max_emv, activity.emv)
            if activity.total_float is not None:
                max_float = max(max_float, activity.total_float)
        return cls(max_emv=max_emv, max_float=max_float)


def clip(value: float) -> float:
    return max(0.0, min(100.0, float(value)))


def _baseline_slip_days(activity: Activity) -> float:
    slip = 0.0
    if activity.planned_finish is not None and activity.baseline_finish is not None:
        slip = max(slip, float((activity.planned_finish - activity.baseline_finish).days))
    if activity.baseline_duration is not None:
        slip = max(slip, activity.planned_duration - activity.baseline_duration)
    return slip


def schedule_slippage(activity: Activity) -> float:
    if activity.planned_duration <= 0:
        return 0.0
    slip_days = max(activity.delay_impact_days, _baseline_slip_days(activity))
    return clip(slip_days / activity.planned_duration * 200.0)


def cost_exposure(activity: Activity, context: PortfolioContext | None = None) -> float:
    emv = activity.emv
    if emv <= 0:
        return 0.0
    if context is not None and context.max_emv > 0:
        return clip(emv / max(context.max_emv, emv) * 100.0)
    return clip(emv / (emv + EMV_HALF_SATURATION) * 100.0)


def dependency_risk(activity: Activity) -> float:
    raw = len(activity.predecessor_ids) * PREDECESSOR_WEIGHT + len(activity.successor_ids) * SUCCESSOR_WEIGHT
    return clip(raw * DEPENDENCY_TYPE_MULTIPLIERS.get(activity.dependency_type, 1.0))


def resource_overallocation(activity: Activity) -> float:
    load = (activity.fte_allocation / 100.0) / activity.resource_max_fte
    if load <= 1.0:
        return 0.0
    return clip((load - 1.0) / OVERALLOCATION_SPAN * 100.0)


def critical_path_proximity(activity: Activity, context: PortfolioContext | None = None) -> float:
    if activity.is_critical_path:
        return 100.0
    if activity.total_float is None:
        return 0.0
    if activity.total_float <= 0:
        return 100.0
    horizon = DEFAULT_FLOAT_HORIZON_DAYS
    if context is not None and context.max_float > 0:
        horizon = context.max_float
    return clip(100.0 - activity.total_float / horizon * 100.0)


def progress_deviation(activity: Activity) -> float:
    expected = EXPECTED_PROGRESS_BY_STATUS.get(activity.status, 0.0)
    return clip(abs(expected - activity.percent_complete) * 2.0)


def compute_factors(activity: Activity, context: PortfolioContext | None = None) -> dict[str, float]:
    """Risk factors for one activity, each clipped to [0, 100], in FACTOR_NAMES order.

    ``context`` carries the only cross-activity inputs (largest EMV and largest float in the
    portfolio); without it the factors fall back to fixed reference scales.
    """
    return {
        SCHEDULE_SLIPPAGE: schedule_slippage(activity),
        COST_EXPOSURE: cost_exposure(activity, context),
        DEPENDENCY_RISK: dependency_risk(activity),
        RESOURCE_OVERALLOCATION: resource_overallocation(activity),
        CRITICAL_PATH_PROXIMITY: critical_path_proximity(activity, context),
        PROGRESS_DEVIATION: progress_deviation(activity),
    }


def exposure_multiplier(activity: Activity) -> float:
    """Score multiplier (>= 1.0) for sensitive activity types and heavily-converging activities."""
    multiplier = 1.0
    kind = (activity.activity_type or "").lower()
    for keywords, factor in TYPE_MULTIPLIERS:
        if any(keyword in kind for keyword in keywords):
            multiplier *= factor
    if len(activity.predecessor_ids) > CONCURRENCY_THRESHOLD:
        multiplier *= CONCURRENCY_MULTIPLIER
    return multiplier
