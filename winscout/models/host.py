"""Host task data models."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any


class Scope(str, Enum):
    """Which facet of a remote report is requested."""

    COMPUTER = "computer"
    USER = "user"
    BOTH = "both"


@dataclass(frozen=True)
class Credential:
    """Account used to open a remote session."""

    username: str | None = None
    password: str | None = field(default=None, repr=False)
    identity_file: str | None = None


@dataclass(frozen=True)
class Operation:
    """A named remote operation with structured arguments.

    ``name`` selects a fixed script from the remote-operation registry;
    ``params`` are sent to it as data.
    """

    name: str
    params: Mapping[str, Any] = field(default_factory=dict)
    scope: Scope | None = None
    subject: str | None = None
    produces_artifact: bool = False
    artifact_prefix: str = "artifact"
    artifact_ext: str = "txt"

    def __post_init__(self) -> None:
        # Read-only snapshot; later changes to the caller's dict are not seen
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    def arguments(self) -> dict[str, Any]:
        """Return the argument document sent to the remote side."""
        args = dict(self.params)
        if self.scope is not None:
            args["scope"] = self.scope.value
        if self.subject is not None:
            args["subject"] = self.subject
        return args


@dataclass(frozen=True)
class HostTask:
    """Unit of work dispatched to one remote host."""

    host: str
    operation: Operation
    credential: Credential | None = None
    timeout: float | None = None
