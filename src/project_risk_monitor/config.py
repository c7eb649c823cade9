from __future__ import annotations

import os
import sys
import tempfile
from functools import lru_cache
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[2]


def _load_env_file_if_present() -> None:
    env_file = BASE_DIR / ".env"
    if not env_file.exists():
        return
    try:
        lines = env_file.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError:
        return

    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if not key or key in os.environ:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        os.environ[key] = value


_load_env_file_if_present()


def _default_runtime_dir() -> Path:
    if getattr(sys, "frozen", False):
        candidates = [
            Path.home() / ".project_risk_monitor" / "data",
            Path(tempfile.gettempdir()) / "ProjectRiskMonitor" / "data",
        ]
        for path in candidates:
            try:
                path.mkdir(parents=True, exist_ok=True)
                return path
            except OSError:
                continue
    return BASE_DIR / "data"


def _split_csv(raw: str) -> list[str]:
    return [item.strip() for item in (raw or "").split(",") if item.strip()]


class Settings:
    def __init__(self) -> None:
        self.app_name: str = os.getenv("APP_NAME", "Project Risk Monitor")
        self.runtime_dir: Path = Path(os.getenv("RUNTIME_DIR", str(_default_runtime_dir()))).expanduser()
        self.export_dir: Path = self.runtime_dir / "exports"
        default_db_path: Path = self.runtime_dir / "risk_monitor.db"
        self.database_url: str = os.getenv("DATABASE_URL", f"sqlite:///{default_db_path.as_posix()}")
        self.openai_api_key: str = os.getenv("OPENAI_API_KEY", "")
        self.openai_api_url: str = os.getenv("OPENAI_API_URL", "https://api.openai.com/v1/chat/completions")
        self.openai_narrative_model: str = os.getenv("OPENAI_NARRATIVE_MODEL", "gpt-4o-mini")
        self.narrative_timeout_seconds: int = int(os.getenv("NARRATIVE_TIMEOUT_SECONDS", "30"))
        self.narrative_max_tokens: int = int(os.getenv("NARRATIVE_MAX_TOKENS", "1000"))
        self.narrative_temperature: float = float(os.getenv("NARRATIVE_TEMPERATURE", "0.7"))
        self.audit_default_user: str = os.getenv("AUDIT_DEFAULT_USER", "PM User")
        self.cors_allowed_origins: list[str] = _split_csv(
            os.getenv("CORS_ALLOWED_ORIGINS", "http://127.0.0.1,http://localhost")
        )

    @property
    def narrative_enabled(self) -> bool:
        return bool(self.openai_api_key.strip())


@lru_cache
def get_settings() -> Settings:
    return Settings()
