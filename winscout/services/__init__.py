"""Services for winscout."""

from winscout.services.classifier import Classification, classify
from winscout.services.correlator import Correlator, CorrelatorState, select_secondary
from winscout.services.dispatcher import dispatch
from winscout.services.events import query_events, resolve_identity
from winscout.services.executors import (
    RemoteTaskRunner,
    execute_task,
    fetch_artifact,
    run_operation,
)
from winscout.services.gpreport import collect_gp_reports
from winscout.services.lockout import investigate_lockouts
from winscout.services.session import SessionManager, SessionSettings

__all__ = [
    "Classification",
    "Correlator",
    "CorrelatorState",
    "RemoteTaskRunner",
    "SessionManager",
    "SessionSettings",
    "classify",
    "collect_gp_reports",
    "dispatch",
    "execute_task",
    "fetch_artifact",
    "investigate_lockouts",
    "query_events",
    "resolve_identity",
    "run_operation",
    "select_secondary",
]
