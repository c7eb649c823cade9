from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Union


@dataclass(slots=True, frozen=True)
class ProjectInfo:
    name: str | None = None
    budget: float | None = None
    duration: str | None = None
    category: str | None = None


@dataclass(slots=True, frozen=True)
class MetricRow:
    label: str
    value: str


@dataclass(slots=True, frozen=True)
class RankedRow:
    rank: int
    activity_id: str
    name: str
    score: str
    severity: str
    status: str


@dataclass(slots=True, frozen=True)
class DetailBlock:
    label: str
    fields: tuple[tuple[str, str], ...]


@dataclass(slots=True, frozen=True)
class RiskDetail:
    rank: int
    heading: str
    severity: str
    blocks: tuple[DetailBlock, ...]


@dataclass(slots=True, frozen=True)
class HeaderSection:
    kind: ClassVar[str] = "header"
    title: str
    project_name: str
    budget: str
    duration: str
    generated_at: str
    page_break_before: bool = False


@dataclass(slots=True, frozen=True)
class SummarySection:
    kind: ClassVar[str] = "summary"
    title: str
    rows: tuple[MetricRow, ...]
    page_break_before: bool = False


@dataclass(slots=True, frozen=True)
class RankedTableSection:
    kind: ClassVar[str] = "ranked_table"
    title: str
    columns: tuple[str, ...]
    rows: tuple[RankedRow, ...]
    page_break_before: bool = False


@dataclass(slots=True, frozen=True)
class DetailSection:
    kind: ClassVar[str] = "details"
    title: str
    risks: tuple[RiskDetail, ...]
    page_break_before: bool = False


@dataclass(slots=True, frozen=True)
class InsightSection:
    kind: ClassVar[str] = "insight"
    title: str
    text: str
    page_break_before: bool = True


@dataclass(slots=True, frozen=True)
class FooterSection:
    kind: ClassVar[str] = "footer"
    text: str
    page_break_before: bool = False


ReportSection = Union[
    HeaderSection,
    SummarySection,
    RankedTableSection,
    DetailSection,
    InsightSection,
    FooterSection,
]


@dataclass(slots=True, frozen=True)
class Report:
    project: ProjectInfo
    generated_at: datetime
    sections: tuple[ReportSection, ...] = field(default_factory=tuple)

    def section(self, kind: str) -> ReportSection | None:
        for item in self.sections:
            if item.kind == kind:
                return item
        return None

    @property
    def kinds(self) -> list[str]:
        return [item.kind for item in self.sections]

    def to_dict(self) -> dict[str, Any]:
        return {
            "project": asdict(self.project),
            "generatedAt": self.generated_at.isoformat(),
            "sections": [{"kind": item.kind, **asdict(item)} for item in self.sections],
        }
