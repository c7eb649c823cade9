from __future__ import annotations

from pathlib import Path

from .csv_loader import TEMPLATE_COLUMNS, load_activity_csv
from .json_loader import LoadedProject, dump_result_file, load_activity_json, project_info_from


def load_projects(path: Path) -> list[LoadedProject]:
    """Every project held by an input file; JSON files always hold exactly one."""
    if path.suffix.lower() == ".csv":
        return load_activity_csv(path)
    return [load_activity_json(path)]


def select_project(projects: list[LoadedProject], name: str) -> LoadedProject:
    wanted = name.strip().casefold()
    for loaded in projects:
        if (loaded.project.name or "").strip().casefold() == wanted:
            return loaded
    available = ", ".join(repr(p.project.name) for p in projects if p.project.name) or "none"
    raise ValueError(f"project {name!r} not found (available: {available})")


def load_activity_file(path: Path, project_name: str | None = None) -> LoadedProject:
    """Load a single project, picking ``project_name`` out of multi-project files."""
    projects = load_projects(path)
    if project_name:
        return select_project(projects, project_name)
    if len(projects) > 1:
        names = ", ".join(repr(p.project.name) for p in projects)
        raise ValueError(f"{path.name} holds {len(projects)} projects ({names}); choose one by name")
    return projects[0]


__all__ = [
    "LoadedProject",
    "TEMPLATE_COLUMNS",
    "dump_result_file",
    "load_activity_csv",
    "load_activity_file",
    "load_activity_json",
    "load_projects",
    "project_info_from",
    "select_project",
]
