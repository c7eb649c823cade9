from __future__ import annotations

import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping


class AuditAction:
    DATA_IMPORTED = "DATA_IMPORTED"
    RECORDS_REJECTED = "RECORDS_REJECTED"
    RISK_ANALYSIS_STARTED = "RISK_ANALYSIS_STARTED"
    RISK_ANALYSIS_RUN = "RISK_ANALYSIS_RUN"
    AI_INSIGHT_REQUESTED = "AI_INSIGHT_REQUESTED"
    AI_INSIGHT_GENERATED = "AI_INSIGHT_GENERATED"
    MITIGATION_SIMULATED = "MITIGATION_SIMULATED"
    REPORT_EXPORTED = "REPORT_EXPORTED"
    AUDIT_LOG_EXPORTED = "AUDIT_LOG_EXPORTED"
    ERROR_OCCURRED = "ERROR_OCCURRED"


def new_session_id() -> str:
    return f"session_{int(time.time() * 1000)}_{secrets.token_hex(5)[:9]}"


def _new_event_id() -> str:
    return f"{int(time.time() * 1000)}{secrets.token_hex(5)[:9]}"


@dataclass(slots=True, frozen=True)
class AuditEvent:
    action: str
    details: Mapping[str, Any] = field(default_factory=dict)
    user: str = "PM User"
    session_id: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: str = field(default_factory=_new_event_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "user": self.user,
            "action": self.action,
            "details": dict(self.details),
            "sessionId": self.session_id,
        }
