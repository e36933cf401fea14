"""Event and correlation data models."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum

from winscout.models.report import Diagnostic, ErrorClass


class EventKind(IntEnum):
    """Security event kinds understood by the correlator."""

    ACCOUNT_LOCKOUT = 4740
    LOGON_FAILURE = 4625

    @property
    def log_name(self) -> str:
        """Event log the kind is recorded in."""
        return "Security"


@dataclass(frozen=True)
class DiagnosticEvent:
    """A decoded event record.

    ``fields`` holds the kind-specific attributes validated at ingestion;
    ``raw`` keeps the full event data for everything else.
    """

    kind: EventKind
    timestamp: datetime
    host: str
    subject_sid: str
    subject_name: str = ""
    fields: Mapping[str, str] = field(default_factory=dict)
    raw: Mapping[str, str] = field(default_factory=dict)
    record_id: int | None = None

    @property
    def origin_host(self) -> str | None:
        """Host the event points at (lockout caller computer)."""
        value = self.fields.get("origin_host", "").strip()
        return value or None


@dataclass(frozen=True)
class FailureReason:
    """Decoded reason a logon attempt failed."""

    status: str
    status_text: str
    sub_status: str | None = None
    sub_status_text: str | None = None
    logon_type: int | None = None
    logon_type_name: str | None = None
    workstation: str | None = None
    ip_address: str | None = None
    process_name: str | None = None


@dataclass
class CorrelationResult:
    """A lockout event with its enrichment, if any was found."""

    primary: DiagnosticEvent
    secondary: DiagnosticEvent | None = None
    reason: FailureReason | None = None
    miss: ErrorClass | None = None
    miss_detail: str = ""

    @property
    def enriched(self) -> bool:
        """Whether a secondary event was attached."""
        return self.secondary is not None

    @property
    def subject_sid(self) -> str:
        return self.primary.subject_sid

    @property
    def locked_at(self) -> datetime:
        return self.primary.timestamp

    @property
    def caller_computer(self) -> str | None:
        return self.primary.origin_host


@dataclass
class CorrelationOutcome:
    """Correlation results plus one diagnostic per degraded event."""

    results: list[CorrelationResult] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
