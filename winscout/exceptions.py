"""Exception hierarchy for winscout.

Every per-host failure raised inside a task is one of these (or a transport
exception from asyncssh). They are caught at the task boundary and turned
into an ErrorClass by the classifier; none of them escapes the dispatcher.
"""

from typing import Any


class WinscoutError(Exception):
    """Base class for winscout errors."""


class NoHostsError(WinscoutError):
    """No hosts were supplied to a batch operation."""

    def __init__(self) -> None:
        super().__init__("At least one host is required")


class HostUnreachableError(WinscoutError):
    """Host failed the reachability probe."""

    def __init__(self, host: str, attempts: int | None = None):
        self.host = host
        self.attempts = attempts
        detail = f" after {attempts} probe(s)" if attempts else ""
        super().__init__(f"{host} did not answer reachability probe{detail}")


class SessionOpenError(WinscoutError):
    """Failed to establish a remote session."""

    def __init__(self, host: str, original_error: Exception):
        """Initialize session error.

        Args:
            host: Host the session was opened against
            original_error: Exception raised by the transport
        """
        self.host = host
        self.original_error = original_error
        super().__init__(f"Cannot open session to {host}: {original_error}")


class RemoteOperationError(WinscoutError):
    """A remote operation ran but reported failure.

    Carries the structured error category the remote side reported, so the
    classifier does not have to look at the message text.
    """

    def __init__(
        self,
        operation: str,
        message: str,
        category: str | None = None,
        error_id: str | None = None,
        exception_type: str | None = None,
        exit_status: int | None = None,
    ):
        self.operation = operation
        self.category = category
        self.error_id = error_id
        self.exception_type = exception_type
        self.exit_status = exit_status
        super().__init__(f"{operation} failed: {message}")

    @classmethod
    def from_envelope(cls, operation: str, error: dict[str, Any]) -> "RemoteOperationError":
        """Build from the ``error`` member of a failed response envelope."""
        return cls(
            operation,
            str(error.get("message") or "unknown error"),
            category=error.get("category"),
            error_id=error.get("error_id"),
            exception_type=error.get("exception"),
        )


class RemoteProtocolError(WinscoutError):
    """Remote side answered with something other than a response envelope."""

    def __init__(self, operation: str, detail: str, exit_status: int | None = None):
        self.operation = operation
        self.exit_status = exit_status
        super().__init__(f"{operation}: {detail}")


class ArtifactTransferError(WinscoutError):
    """Copying a remote artifact to the local machine failed."""

    def __init__(self, remote_path: str, local_path: str, reason: str):
        self.remote_path = remote_path
        self.local_path = local_path
        super().__init__(f"Transfer {remote_path} -> {local_path} failed: {reason}")


class EventDecodeError(WinscoutError):
    """An event record is missing fields its kind requires."""


class CorrelationAbortedError(WinscoutError):
    """Primary event query failed in a way that makes correlation pointless."""

    def __init__(self, host: str, reason: str):
        self.host = host
        super().__init__(f"Cannot read lockout events on {host}: {reason}")
