from pathlib import Path
from urllib.parse import unquote

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from project_risk_monitor.config import get_settings

Base = declarative_base()
SessionLocal = sessionmaker(autoflush=False, autocommit=False, future=True)
engine = None


def _ensure_sqlite_parent(database_url: str) -> None:
    if not database_url.startswith("sqlite:///"):
        return
    raw = unquote(database_url[len("sqlite:///") :])
    if not raw or raw == ":memory:":
        return
    try:
        Path(raw).parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        # SQLite reports a clearer error on connect if the directory is unusable.
        pass


def configure_database(database_url: str | None = None):
    """(Re)bind the module engine and session factory to ``database_url``."""
    global engine
    url = database_url or get_settings().database_url
    _ensure_sqlite_parent(url)
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    if engine is not None:
        engine.dispose()
    engine = create_engine(url, connect_args=connect_args, future=True)
    SessionLocal.configure(bind=engine)
    return engine
