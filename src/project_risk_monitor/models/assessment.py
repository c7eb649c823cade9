from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from .activity import Activity


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def label(self) -> str:
        return self.value.upper()


# Highest tier first; the order every severity listing in reports follows.
SEVERITY_ORDER = (Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW)


@dataclass(slots=True, frozen=True, eq=False)
class RiskAssessment:
    activity: Activity
    factors: Mapping[str, float]
    risk_score: float
    severity: Severity

    def __post_init__(self) -> None:
        object.__setattr__(self, "factors", MappingProxyType(dict(self.factors)))

    @property
    def emv(self) -> float:
        return self.activity.emv

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RiskAssessment):
            return NotImplemented
        return (
            self.activity == other.activity
            and dict(self.factors) == dict(other.factors)
            and self.risk_score == other.risk_score
            and self.severity == other.severity
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "activity": self.activity.to_record(),
            "factors": dict(self.factors),
            "riskScore": self.risk_score,
            "severity": self.severity.value,
            "emv": self.emv,
        }


@dataclass(slots=True, frozen=True)
class PortfolioSummary:
    total_activities: int = 0
    critical_path_count: int = 0
    critical_count: int = 0
    high_count: int = 0
    medium_count: int = 0
    low_count: int = 0
    total_risks: int = 0
    total_emv: float = 0.0
    total_delay_days: float = 0.0

    @property
    def severity_counts(self) -> dict[Severity, int]:
        return {
            Severity.CRITICAL: self.critical_count,
            Severity.HIGH: self.high_count,
            Severity.MEDIUM: self.medium_count,
            Severity.LOW: self.low_count,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalActivities": self.total_activities,
            "criticalPathCount": self.critical_path_count,
            "severityCounts": {sev.value: count for sev, count in self.severity_counts.items()},
            "totalRisks": self.total_risks,
            "totalEMV": self.total_emv,
            "totalDelayDays": self.total_delay_days,
        }


@dataclass(slots=True, frozen=True)
class RejectedRecord:
    index: int
    record_id: str
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, "id": self.record_id, "reason": self.reason}
