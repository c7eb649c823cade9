from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Iterable, Mapping

from ..errors import ValidationError
from ..models import Activity, DependencyType, RejectedRecord

logger = logging.getLogger(__name__)

DEFAULT_PLANNED_DURATION_DAYS = 5.0
DEFAULT_STATUS = "not-started"
_MISSING = object()
_ID_SPLIT = re.compile(r"[|;,]")


def _text(value: Any) -> Any:
    clean = " ".join(str(value).split())
    return clean or _MISSING


def _number(value: Any) -> Any:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        raw = str(value).strip().replace(",", "").replace("$", "").rstrip("%").strip()
        if not raw:
            return _MISSING
        try:
            number = float(raw)
        except ValueError:
            return _MISSING
    return number if math.isfinite(number) else _MISSING


def _probability(value: Any) -> Any:
    number = _number(value)
    if number is _MISSING:
        return _MISSING
    if isinstance(value, str) and value.strip().endswith("%"):
        number = number / 100.0
    return min(1.0, max(0.0, number))


def _date(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = str(value).strip()
    if not raw:
        return _MISSING
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        return _MISSING


def _flag(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    key = str(value).strip().lower()
    if key in {"yes", "y", "true", "1"}:
        return True
    if key in {"no", "n", "false", "0"}:
        return False
    return _MISSING


def _id_set(value: Any) -> Any:
    if isinstance(value, str):
        items: Iterable[Any] = _ID_SPLIT.split(value)
    elif isinstance(value, Iterable):
        items = value
    else:
        items = [value]
    return frozenset(clean for clean in (" ".join(str(item).split()) for item in items) if clean)


def _dependency_type(value: Any) -> Any:
    key = str(getattr(value, "value", value)).strip().upper()
    try:
        return DependencyType(key)
    except ValueError:
        return _MISSING


def _status(value: Any) -> Any:
    clean = "-".join(str(value).replace("_", " ").lower().split())
    return clean or _MISSING


def _non_negative(coerce: Callable[[Any], Any]) -> Callable[[Any], Any]:
    def _wrapped(value: Any) -> Any:
        number = coerce(value)
        return number if number is _MISSING else max(0.0, number)

    return _wrapped


def _percent(value: Any) -> Any:
    number = _number(value)
    return number if number is _MISSING else min(100.0, max(0.0, number))


def _positive(value: Any) -> Any:
    number = _number(value)
    return number if number is _MISSING or number > 0 else _MISSING


@dataclass(slots=True, frozen=True)
class FieldSpec:
    attr: str
    aliases: tuple[str, ...]
    coerce: Callable[[Any], Any]
    default: Any = None


# Ordered alias resolution: the first present, non-null, non-blank source key wins.
# The first alias of each entry is the canonical record key emitted by Activity.to_record().
FIELD_ALIASES: tuple[FieldSpec, ...] = (
    FieldSpec("id", ("id", "activityId", "activity_id", "ID", "Activity", "task_code"), _text),
    FieldSpec("name", ("name", "activityName", "activity_name", "Name", "Description", "task_name"), _text),
    FieldSpec("work_package", ("workPackage", "work_package", "WorkPackage", "wbs", "WBS"), _text),
    FieldSpec("activity_type", ("activityType", "activity_type", "type", "Type"), _text),
    FieldSpec("planned_start", ("plannedStart", "planned_start", "startDate", "start_date", "StartDate", "Start"), _date),
    FieldSpec(
        "planned_finish",
        ("plannedFinish", "planned_finish", "finishDate", "finish_date", "FinishDate", "endDate", "Finish"),
        _date,
    ),
    FieldSpec(
        "planned_duration",
        ("plannedDuration", "planned_duration", "duration", "Duration", "originalDuration"),
        _non_negative(_number),
        DEFAULT_PLANNED_DURATION_DAYS,
    ),
    FieldSpec("remaining_duration", ("remainingDuration", "remaining_duration", "RemainingDuration"), _non_negative(_number)),
    FieldSpec("actual_start", ("actualStart", "actual_start", "ActualStart"), _date),
    FieldSpec("actual_finish", ("actualFinish", "actual_finish", "ActualFinish"), _date),
    FieldSpec("baseline_start", ("baselineStart", "baseline_start", "BaselineStart", "blStart"), _date),
    FieldSpec("baseline_finish", ("baselineFinish", "baseline_finish", "BaselineFinish", "blFinish"), _date),
    FieldSpec(
        "baseline_duration",
        ("baselineDuration", "baseline_duration", "BaselineDuration"),
        _non_negative(_number),
    ),
    FieldSpec(
        "percent_complete",
        ("percentComplete", "percent_complete", "completionPercent", "CompletionPercent", "PercentComplete", "progress"),
        _percent,
        0.0,
    ),
    FieldSpec("status", ("status", "Status"), _status, DEFAULT_STATUS),
    FieldSpec("early_start", ("earlyStart", "early_start", "ES"), _number),
    FieldSpec("early_finish", ("earlyFinish", "early_finish", "EF"), _number),
    FieldSpec("late_start", ("lateStart", "late_start", "LS"), _number),
    FieldSpec("late_finish", ("lateFinish", "late_finish", "LF"), _number),
    FieldSpec("total_float", ("totalFloat", "total_float", "float", "Float", "TotalFloat", "slack"), _number),
    FieldSpec(
        "is_critical_path",
        ("isCriticalPath", "is_critical_path", "IsCriticalPath", "criticalPath", "critical"),
        _flag,
    ),
    FieldSpec(
        "predecessor_ids",
        ("predecessorIds", "predecessor_ids", "predecessors", "Predecessors", "dependencies", "Dependencies"),
        _id_set,
        frozenset(),
    ),
    FieldSpec("successor_ids", ("successorIds", "successor_ids", "successors", "Successors"), _id_set, frozenset()),
    FieldSpec(
        "dependency_type",
        ("dependencyType", "dependency_type", "DependencyType", "relationshipType"),
        _dependency_type,
        DependencyType.FS,
    ),
    FieldSpec("resource_id", ("resourceId", "resource_id", "resource", "Resource"), _text),
    FieldSpec("role", ("role", "Role", "resourceRole"), _text),
    FieldSpec(
        "fte_allocation",
        ("fteAllocation", "fte_allocation", "allocation", "Allocation"),
        _non_negative(_number),
        100.0,
    ),
    FieldSpec("resource_max_fte", ("resourceMaxFte", "resource_max_fte", "maxFte", "MaxFTE"), _positive, 1.0),
    FieldSpec("skill_tags", ("skillTags", "skill_tags", "skills", "Skills"), _id_set, frozenset()),
    FieldSpec("probability", ("probability", "Probability", "likelihood"), _probability, 0.5),
    FieldSpec("cost_impact", ("costImpact", "cost_impact", "CostImpact", "cost"), _non_negative(_number), 0.0),
    FieldSpec(
        "delay_impact_days",
        ("delayImpactDays", "delay_impact_days", "daysDelayed", "DaysDelayed", "days_delayed"),
        _non_negative(_number),
        0.0,
    ),
)


def _resolve(record: Mapping[str, Any], entry: FieldSpec) -> Any:
    for key in entry.aliases:
        raw = record.get(key)
        if raw is None:
            continue
        value = entry.coerce(raw)
        if value is not _MISSING:
            return value
    return entry.default


def _derived_float(values: dict[str, Any]) -> float | None:
    if values["late_start"] is not None and values["early_start"] is not None:
        return values["late_start"] - values["early_start"]
    if values["late_finish"] is not None and values["early_finish"] is not None:
        return values["late_finish"] - values["early_finish"]
    return None


def normalize_activity(record: Mapping[str, Any] | Activity, *, index: int | None = None) -> Activity:
    """Resolve a raw activity-like record into a canonical Activity.

    Missing optional fields fall back to their documented defaults. Only a record with
    neither an id nor a name is rejected.
    """
    if isinstance(record, Activity):
        record = record.to_record()
    if not isinstance(record, Mapping):
        raise ValidationError("record is not a mapping", record_index=index)

    values = {entry.attr: _resolve(record, entry) for entry in FIELD_ALIASES}
    if values["id"] is None and values["name"] is None:
        raise ValidationError("record has no usable id or name", record_index=index)
    values["id"] = values["id"] if values["id"] is not None else values["name"]
    values["name"] = values["name"] if values["name"] is not None else values["id"]

    if values["total_float"] is None:
        values["total_float"] = _derived_float(values)
    if values["is_critical_path"] is None:
        values["is_critical_path"] = values["total_float"] is not None and values["total_float"] <= 0
    return Activity(**values)


@dataclass(slots=True, frozen=True)
class NormalizationResult:
    activities: tuple[Activity, ...]
    rejected: tuple[RejectedRecord, ...]


def normalize_batch(records: Iterable[Mapping[str, Any] | Activity]) -> NormalizationResult:
    activities: list[Activity] = []
    rejected: list[RejectedRecord] = []
    seen: set[str] = set()
    for index, record in enumerate(records):
        try:
            activity = normalize_activity(record, index=index)
        except ValidationError as exc:
            rejected.append(RejectedRecord(index=index, record_id="", reason=exc.reason))
            logger.warning("Rejected activity record %s: %s", index, exc.reason)
            continue
        if activity.id in seen:
            reason = f"duplicate activity id {activity.id}"
            rejected.append(RejectedRecord(index=index, record_id=activity.id, reason=reason))
            logger.warning("Rejected activity record %s: %s", index, reason)
            continue
        seen.add(activity.id)
        activities.append(activity)
    return NormalizationResult(activities=tuple(activities), rejected=tuple(rejected))
