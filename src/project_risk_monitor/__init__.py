from __future__ import annotations

from pathlib import Path
import sys
import tomllib

from .core import normalize_activity, normalize_batch, score
from .errors import CollaboratorError, ComputationError, ValidationError
from .pipeline import AnalysisResult, RiskAnalyzer, run_analysis

__version__ = "0.1.0"


def get_runtime_version() -> str:
    candidates: list[Path] = []
    meipass = getattr(sys, "_MEIPASS", "")
    if meipass:
        candidates.append(Path(meipass) / "pyproject.toml")

    candidates.append(Path.cwd() / "pyproject.toml")
    candidates.append(Path(__file__).resolve().parents[2] / "pyproject.toml")

    seen: set[Path] = set()
    for path in candidates:
        if path in seen:
            continue
        seen.add(path)
        if not path.exists():
            continue
        try:
            data = tomllib.loads(path.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError):
            continue
        project = data.get("project", {}) or {}
        if project.get("name") != "project-risk-monitor":
            continue
        version = str(project.get("version", "")).strip()
        if version:
            return version
    return __version__


__all__ = [
    "AnalysisResult",
    "CollaboratorError",
    "ComputationError",
    "RiskAnalyzer",
    "ValidationError",
    "__version__",
    "get_runtime_version",
    "normalize_activity",
    "normalize_batch",
    "run_analysis",
    "score",
]
