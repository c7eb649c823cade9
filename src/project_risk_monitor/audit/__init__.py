from .events import AuditAction, AuditEvent, new_session_id
from .sinks import AuditSink, InMemoryAuditSink, NullAuditSink, event_stats, events_to_csv

__all__ = [
    "AuditAction",
    "AuditEvent",
    "AuditSink",
    "InMemoryAuditSink",
    "NullAuditSink",
    "event_stats",
    "events_to_csv",
    "new_session_id",
]
