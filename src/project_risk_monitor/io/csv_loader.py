from __future__ import annotations

import csv
from pathlib import Path
from typing import Any

from ..models import ProjectInfo
from .json_loader import LoadedProject

# Column set of the import template; any canonical record key is accepted as well.
TEMPLATE_COLUMNS = (
    "ID",
    "Name",
    "Duration",
    "Dependencies",
    "Resource",
    "StartDate",
    "Status",
    "DaysDelayed",
    "Allocation",
    "CompletionPercent",
    "Type",
    "IsCriticalPath",
    "Float",
)
PROJECT_COLUMNS = ("ProjectName", "ProjectCategory")
UNNAMED_PROJECT = "Unnamed Project"
DEFAULT_CATEGORY = "General"


def _group_by_project(records: list[dict[str, Any]]) -> list[LoadedProject]:
    groups: dict[str, tuple[str, list[dict[str, Any]]]] = {}
    for record in records:
        name = str(record.pop("ProjectName", "")).strip() or UNNAMED_PROJECT
        category = str(record.pop("ProjectCategory", "")).strip() or DEFAULT_CATEGORY
        # The first row of a project fixes its category.
        groups.setdefault(name, (category, []))[1].append(record)
    return [
        LoadedProject(project=ProjectInfo(name=name, category=category), records=rows)
        for name, (category, rows) in groups.items()
    ]


def load_activity_csv(path: Path) -> list[LoadedProject]:
    """One LoadedProject per distinct ProjectName, in first-seen order.

    Files without a ProjectName column yield a single unnamed project. Activity ids only need to
    be unique within their own project.
    """
    with path.open(newline="", encoding="utf-8-sig") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            raise ValueError("CSV input has no header row.")
        records: list[dict[str, Any]] = []
        for row in reader:
            record = {str(k).strip(): v for k, v in row.items() if k is not None and v not in (None, "")}
            if record:
                records.append(record)

    if not any(str(r.get("ProjectName", "")).strip() for r in records):
        for record in records:
            for column in PROJECT_COLUMNS:
                record.pop(column, None)
        return [LoadedProject(project=ProjectInfo(), records=records)]
    return _group_by_project(records)
