from __future__ import annotations

import csv
import io
import json
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Protocol

from .events import AuditEvent

CSV_HEADERS = ["ID", "Timestamp", "User", "Action", "Details", "Session ID"]


class AuditSink(Protocol):
    def record(self, event: AuditEvent) -> None:
        ...


class NullAuditSink:
    def record(self, event: AuditEvent) -> None:
        return None


def events_to_csv(events: Iterable[AuditEvent]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for event in events:
        writer.writerow(
            [
                event.id,
                event.timestamp.isoformat(),
                event.user,
                event.action,
                json.dumps(dict(event.details), ensure_ascii=True, default=str, sort_keys=True),
                event.session_id,
            ]
        )
    return buffer.getvalue()


def event_stats(events: Iterable[AuditEvent], *, now: datetime | None = None) -> dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    week_ago = now - timedelta(days=7)
    items = list(events)
    return {
        "total": len(items),
        "today": sum(1 for e in items if e.timestamp.date() == now.date()),
        "thisWeek": sum(1 for e in items if e.timestamp >= week_ago),
        "byAction": dict(Counter(e.action for e in items)),
        "byUser": dict(Counter(e.user for e in items)),
    }


class InMemoryAuditSink:
    """Process-local audit trail; the host decides how long an instance lives."""

    def __init__(self) -> None:
        self._events: list[AuditEvent] = []

    def record(self, event: AuditEvent) -> None:
        self._events.append(event)

    def events(self, limit: int | None = None) -> list[AuditEvent]:
        """Newest first."""
        ordered = list(reversed(self._events))
        return ordered[:limit] if limit else ordered

    def by_action(self, action: str) -> list[AuditEvent]:
        return [e for e in self.events() if e.action == action]

    def by_user(self, user: str) -> list[AuditEvent]:
        return [e for e in self.events() if e.user == user]

    def between(self, start: datetime, end: datetime) -> list[AuditEvent]:
        return [e for e in self.events() if start <= e.timestamp <= end]

    def stats(self, *, now: datetime | None = None) -> dict[str, Any]:
        return event_stats(self._events, now=now)

    def export_csv(self) -> str:
        return events_to_csv(self.events())

    def clear(self) -> None:
        self._events.clear()
