"""Remote session state."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import asyncssh


class SessionState(str, Enum):
    """Lifecycle state of a SessionHandle."""

    CREATED = "created"
    ACTIVE = "active"
    CLOSED = "closed"
    FAILED = "failed"


@dataclass
class SessionHandle:
    """A remote execution context bound to one host for one task."""

    host: str
    state: SessionState = SessionState.CREATED
    connection: "asyncssh.SSHClientConnection | None" = field(
        default=None, repr=False
    )
    opened_at: datetime | None = None
    close_count: int = 0

    def activate(self, connection: "asyncssh.SSHClientConnection") -> None:
        """Bind an open connection and mark the session active."""
        if self.state is not SessionState.CREATED:
            raise RuntimeError(f"Cannot activate session in state {self.state.value}")
        self.connection = connection
        self.opened_at = datetime.now()
        self.state = SessionState.ACTIVE

    def fail(self) -> None:
        """Mark a session whose open attempt failed."""
        self.state = SessionState.FAILED

    def close(self) -> bool:
        """Close the underlying connection.

        Only an active session transitions; closing a created, failed or
        already closed session is a no-op.

        Returns:
            True if this call performed the close.
        """
        if self.state is not SessionState.ACTIVE:
            return False
        self.state = SessionState.CLOSED
        self.close_count += 1
        conn, self.connection = self.connection, None
        if conn is not None:
            conn.close()
        return True

    @property
    def is_active(self) -> bool:
        """Whether the session can run commands."""
        return self.state is SessionState.ACTIVE
