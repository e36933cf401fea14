"""winscout: multi-host Windows administration over SSH."""

from winscout.config import Config
from winscout.dependencies import Dependencies
from winscout.models import (
    BatchOutcome,
    CorrelationOutcome,
    CorrelationResult,
    Credential,
    ErrorClass,
    ExecutionReport,
    Scope,
)
from winscout.services import collect_gp_reports, investigate_lockouts

__version__ = "0.1.0"

__all__ = [
    "BatchOutcome",
    "Config",
    "CorrelationOutcome",
    "CorrelationResult",
    "Credential",
    "Dependencies",
    "ErrorClass",
    "ExecutionReport",
    "Scope",
    "collect_gp_reports",
    "investigate_lockouts",
]
