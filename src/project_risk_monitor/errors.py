from __future__ import annotations


class RiskMonitorError(Exception):
    """Base class for every error raised by the risk engine."""


class ValidationError(RiskMonitorError, ValueError):
    """A raw activity record cannot be turned into an Activity."""

    def __init__(self, reason: str, *, record_index: int | None = None, record_id: str = "") -> None:
        self.reason = reason
        self.record_index = record_index
        self.record_id = record_id
        location = f"record {record_index}: " if record_index is not None else ""
        super().__init__(f"{location}{reason}")


class ComputationError(RiskMonitorError, RuntimeError):
    """An internal invariant was violated while scoring or aggregating."""


class CollaboratorError(RiskMonitorError, RuntimeError):
    """An external collaborator (narrative text, audit storage) failed."""


__all__ = ["CollaboratorError", "ComputationError", "RiskMonitorError", "ValidationError"]
