from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, TypedDict


class DependencyType(str, Enum):
    FS = "FS"
    SS = "SS"
    FF = "FF"
    SF = "SF"


class RawActivityRecord(TypedDict, total=False):
    id: str
    name: str
    workPackage: str
    activityType: str
    plannedStart: str
    plannedFinish: str
    plannedDuration: float
    remainingDuration: float
    actualStart: str
    actualFinish: str
    baselineStart: str
    baselineFinish: str
    baselineDuration: float
    percentComplete: float
    status: str
    earlyStart: float
    earlyFinish: float
    lateStart: float
    lateFinish: float
    totalFloat: float
    isCriticalPath: bool
    predecessorIds: list[str]
    successorIds: list[str]
    dependencyType: str
    resourceId: str
    role: str
    fteAllocation: float
    resourceMaxFte: float
    skillTags: list[str]
    probability: float
    costImpact: float
    delayImpactDays: float


@dataclass(slots=True, frozen=True)
class Activity:
    id: str
    name: str
    work_package: str | None = None
    activity_type: str | None = None
    planned_start: date | None = None
    planned_finish: date | None = None
    planned_duration: float = 5.0
    remaining_duration: float | None = None
    actual_start: date | None = None
    actual_finish: date | None = None
    baseline_start: date | None = None
    baseline_finish: date | None = None
    baseline_duration: float | None = None
    percent_complete: float = 0.0
    status: str = "not-started"
    early_start: float | None = None
    early_finish: float | None = None
    late_start: float | None = None
    late_finish: float | None = None
    total_float: float | None = None
    is_critical_path: bool = False
    predecessor_ids: frozenset[str] = field(default_factory=frozenset)
    successor_ids: frozenset[str] = field(default_factory=frozenset)
    dependency_type: DependencyType = DependencyType.FS
    resource_id: str | None = None
    role: str | None = None
    fte_allocation: float = 100.0
    resource_max_fte: float = 1.0
    skill_tags: frozenset[str] = field(default_factory=frozenset)
    probability: float = 0.5
    cost_impact: float = 0.0
    delay_impact_days: float = 0.0

    @property
    def emv(self) -> float:
        return self.probability * self.cost_impact

    def to_record(self) -> dict[str, Any]:
        """Canonical camelCase record; normalizing it yields an equal Activity."""
        return {
            "id": self.id,
            "name": self.name,
            "workPackage": self.work_package,
            "activityType": self.activity_type,
            "plannedStart": _iso(self.planned_start),
            "plannedFinish": _iso(self.planned_finish),
            "plannedDuration": self.planned_duration,
            "remainingDuration": self.remaining_duration,
            "actualStart": _iso(self.actual_start),
            "actualFinish": _iso(self.actual_finish),
            "baselineStart": _iso(self.baseline_start),
            "baselineFinish": _iso(self.baseline_finish),
            "baselineDuration": self.baseline_duration,
            "percentComplete": self.percent_complete,
            "status": self.status,
            "earlyStart": self.early_start,
            "earlyFinish": self.early_finish,
            "lateStart": self.late_start,
            "lateFinish": self.late_finish,
            "totalFloat": self.total_float,
            "isCriticalPath": self.is_critical_path,
            "predecessorIds": sorted(self.predecessor_ids),
            "successorIds": sorted(self.successor_ids),
            "dependencyType": self.dependency_type.value,
            "resourceId": self.resource_id,
            "role": self.role,
            "fteAllocation": self.fte_allocation,
            "resourceMaxFte": self.resource_max_fte,
            "skillTags": sorted(self.skill_tags),
            "probability": self.probability,
            "costImpact": self.cost_impact,
            "delayImpactDays": self.delay_impact_days,
        }


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None
