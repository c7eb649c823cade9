from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any

from ..errors import ValidationError
from ..models import RiskAssessment

DELAY_COST_PER_DAY = 50_000.0


@dataclass(slots=True, frozen=True)
class MitigationStrategy:
    name: str
    score_ratio: float
    score_floor: float
    delay_reduction: float
    cost: float
    success_rate: int
    blocked_ratio: float


STRATEGIES: dict[str, MitigationStrategy] = {
    "add-resource": MitigationStrategy("Add Resource", 0.46, 20.0, 0.67, 15_000.0, 82, 0.35),
    "fast-track": MitigationStrategy("Fast-Track", 0.55, 30.0, 0.55, 8_000.0, 75, 0.45),
    "reduce-scope": MitigationStrategy("Reduce Scope", 0.39, 15.0, 1.0, 0.0, 90, 0.25),
}


@dataclass(slots=True, frozen=True)
class MitigationSnapshot:
    risk_score: float
    delay_days: float
    blocked_tasks: int


@dataclass(slots=True, frozen=True)
class MitigationResult:
    activity_id: str
    strategy: str
    before: MitigationSnapshot
    after: MitigationSnapshot
    cost: float
    success_rate: int
    delay_cost_avoided: float
    roi_percent: int | None
    savings: float

    @property
    def risk_reduction(self) -> float:
        return self.before.risk_score - self.after.risk_score

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["risk_reduction"] = self.risk_reduction
        return payload


def get_strategy(name: str) -> MitigationStrategy:
    key = "-".join(str(name or "").replace("_", " ").lower().split())
    strategy = STRATEGIES.get(key)
    if strategy is None:
        raise ValidationError(f"unknown mitigation strategy: {name!r}")
    return strategy


def simulate_mitigation(assessment: RiskAssessment, strategy: str | MitigationStrategy) -> MitigationResult:
    """Project the effect of one recovery strategy on an assessed activity."""
    plan = strategy if isinstance(strategy, MitigationStrategy) else get_strategy(strategy)
    activity = assessment.activity

    before = MitigationSnapshot(
        risk_score=assessment.risk_score,
        delay_days=activity.delay_impact_days,
        blocked_tasks=len(activity.successor_ids),
    )
    after_score = min(before.risk_score, max(plan.score_floor, before.risk_score * plan.score_ratio))
    after_delay = max(0.0, before.delay_days - math.ceil(before.delay_days * plan.delay_reduction))
    after = MitigationSnapshot(
        risk_score=after_score,
        delay_days=after_delay,
        blocked_tasks=math.ceil(before.blocked_tasks * plan.blocked_ratio),
    )

    avoided = (before.delay_days - after.delay_days) * DELAY_COST_PER_DAY
    roi = math.floor(avoided / plan.cost * 100) if plan.cost > 0 else None
    return MitigationResult(
        activity_id=activity.id,
        strategy=plan.name,
        before=before,
        after=after,
        cost=plan.cost,
        success_rate=plan.success_rate,
        delay_cost_avoided=avoided,
        roi_percent=roi,
        savings=avoided - plan.cost,
    )
