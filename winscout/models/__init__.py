"""Data models for winscout."""

from winscout.models.event import (
    CorrelationOutcome,
    CorrelationResult,
    DiagnosticEvent,
    EventKind,
    FailureReason,
)
from winscout.models.host import Credential, HostTask, Operation, Scope
from winscout.models.report import (
    BatchOutcome,
    Diagnostic,
    ErrorClass,
    ExecutionReport,
    RemoteArtifact,
)
from winscout.models.session import SessionHandle, SessionState

__all__ = [
    "BatchOutcome",
    "CorrelationOutcome",
    "CorrelationResult",
    "Credential",
    "Diagnostic",
    "DiagnosticEvent",
    "ErrorClass",
    "EventKind",
    "ExecutionReport",
    "FailureReason",
    "HostTask",
    "Operation",
    "RemoteArtifact",
    "Scope",
    "SessionHandle",
    "SessionState",
]
