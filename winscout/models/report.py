"""Per-host execution outcomes."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from winscout.models.host import Scope


class ErrorClass(str, Enum):
    """Closed failure taxonomy."""

    UNREACHABLE_HOST = "UnreachableHost"
    TRANSPORT_AUTH_FAILURE = "TransportAuthFailure"
    REMOTE_EXECUTION_FAILURE = "RemoteExecutionFailure"
    ARTIFACT_TRANSFER_FAILURE = "ArtifactTransferFailure"
    TIMED_OUT = "TimedOut"
    CORRELATION_MISS = "CorrelationMiss"
    UNCLASSIFIED = "Unclassified"


@dataclass(frozen=True)
class RemoteArtifact:
    """A file produced remotely and copied to the local machine."""

    path: str
    size: int
    produced_at: datetime
    scope: Scope | None = None


@dataclass
class ExecutionReport:
    """Outcome of one host task."""

    host: str
    elapsed: float
    value: Any = None
    artifact: RemoteArtifact | None = None
    error: ErrorClass | None = None
    message: str = ""

    @property
    def succeeded(self) -> bool:
        """Whether the task produced a value or artifact."""
        return self.error is None


@dataclass(frozen=True)
class Diagnostic:
    """Non-terminating error tied to one host or event."""

    host: str
    error: ErrorClass
    message: str

    def __str__(self) -> str:
        return f"{self.host}: [{self.error.value}] {self.message}"


@dataclass
class BatchOutcome:
    """All reports of a batch, split for callers that filter at the edge."""

    reports: list[ExecutionReport] = field(default_factory=list)

    @property
    def succeeded(self) -> list[ExecutionReport]:
        """Reports for hosts that succeeded."""
        return [r for r in self.reports if r.succeeded]

    @property
    def diagnostics(self) -> list[Diagnostic]:
        """One diagnostic per failed host."""
        return [
            Diagnostic(host=r.host, error=r.error, message=r.message)
            for r in self.reports
            if r.error is not None
        ]
