from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from app.models import AuditLogEntry
from app.utils.jsonx import details_from_json, to_json
from project_risk_monitor.audit import AuditEvent, event_stats, events_to_csv

logger = logging.getLogger(__name__)


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _row_to_event(row: AuditLogEntry) -> AuditEvent:
    return AuditEvent(
        action=row.action,
        details=details_from_json(row.details_json),
        user=row.user,
        session_id=row.session_id,
        timestamp=row.timestamp.replace(tzinfo=timezone.utc),
        id=row.event_id,
    )


class SqlAuditSink:
    """Audit sink persisting events through SQLAlchemy sessions."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self.session_factory = session_factory

    def record(self, event: AuditEvent) -> None:
        with self.session_factory() as db:
            db.add(
                AuditLogEntry(
                    event_id=event.id,
                    timestamp=_to_naive_utc(event.timestamp),
                    user=event.user,
                    action=event.action,
                    details_json=to_json(dict(event.details)),
                    session_id=event.session_id,
                )
            )
            db.commit()
        logger.debug("Audit event recorded: %s", event.action)

    def _query(self, db: Session, *, action: str | None = None, user: str | None = None, limit: int | None = None):
        stmt = select(AuditLogEntry).order_by(AuditLogEntry.timestamp.desc(), AuditLogEntry.id.desc())
        if action:
            stmt = stmt.where(AuditLogEntry.action == action)
        if user:
            stmt = stmt.where(AuditLogEntry.user == user)
        if limit:
            stmt = stmt.limit(limit)
        return db.execute(stmt).scalars().all()

    def events(self, *, action: str | None = None, user: str | None = None, limit: int | None = None) -> list[AuditEvent]:
        """Newest first."""
        with self.session_factory() as db:
            return [_row_to_event(row) for row in self._query(db, action=action, user=user, limit=limit)]

    def stats(self) -> dict[str, Any]:
        return event_stats(self.events())

    def export_csv(self) -> str:
        return events_to_csv(self.events())
