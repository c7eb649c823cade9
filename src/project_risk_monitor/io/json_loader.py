from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..models import ProjectInfo


@dataclass(slots=True, frozen=True)
class LoadedProject:
    project: ProjectInfo
    records: list[dict[str, Any]] = field(default_factory=list)


def _optional_float(value: Any) -> float | None:
    if value is None or str(value).strip() == "":
        return None
    try:
        return float(str(value).replace(",", "").replace("$", ""))
    except ValueError:
        return None


def project_info_from(payload: dict[str, Any]) -> ProjectInfo:
    name = str(payload.get("name") or "").strip() or None
    duration = payload.get("duration")
    return ProjectInfo(
        name=name,
        budget=_optional_float(payload.get("budget")),
        duration=str(duration).strip() if duration not in (None, "") else None,
    )


def load_activity_json(path: Path) -> LoadedProject:
    raw = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(raw, dict):
        project = project_info_from(raw.get("project") or {})
        raw = raw.get("activities")
    else:
        project = ProjectInfo()
    if not isinstance(raw, list):
        raise ValueError("Input JSON must be a list of activity records or an object with an 'activities' list.")
    records: list[dict[str, Any]] = []
    for item in raw:
        if not isinstance(item, dict):
            raise ValueError("Each activity record must be an object.")
        records.append(item)
    return LoadedProject(project=project, records=records)


def dump_result_file(path: Path, payload: dict[str, object]) -> None:
    path.write_text(json.dumps(payload, indent=2, default=str) + "\n", encoding="utf-8")
