from datetime import datetime

from sqlalchemy import Column, DateTime, Index, Integer, String, Text

from app.db import Base


class AuditLogEntry(Base):
    __tablename__ = "audit_log_entries"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(String(64), unique=True, nullable=False, index=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    user = Column(String(128), default="PM User", nullable=False, index=True)
    action = Column(String(64), nullable=False, index=True)
    details_json = Column(Text, default="{}", nullable=False)
    session_id = Column(String(128), default="", nullable=False)

    __table_args__ = (Index("ix_audit_log_entries_action_timestamp", "action", "timestamp"),)
