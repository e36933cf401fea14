"""Security event queries and decoding.

Raw event records are validated once, here, and turned into
DiagnosticEvent values. Each EventKind has exactly one decoder; a record
whose id has no decoder, or that lacks a required field, is rejected.
"""

import logging
import re
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from winscout.exceptions import EventDecodeError, RemoteOperationError
from winscout.models import DiagnosticEvent, EventKind, FailureReason
from winscout.services.classifier import DEFAULT_LOCALE, is_no_events
from winscout.services.executors import run_operation

if TYPE_CHECKING:
    import asyncssh

logger = logging.getLogger(__name__)

DEFAULT_MAX_EVENTS = 1000

_SID = re.compile(r"^S-1-\d+(-\d+)*$", re.IGNORECASE)
_FRACTION = re.compile(r"\.(\d{6})\d+")

NULL_SID = "S-1-0-0"

NTSTATUS_TEXT = {
    "0xc000005e": "No logon servers available",
    "0xc0000064": "User name does not exist",
    "0xc000006a": "Wrong password",
    "0xc000006d": "Bad user name or authentication information",
    "0xc000006e": "Account restriction",
    "0xc000006f": "Logon outside authorized hours",
    "0xc0000070": "Logon from unauthorized workstation",
    "0xc0000071": "Password expired",
    "0xc0000072": "Account disabled",
    "0xc00000dc": "Server in wrong state",
    "0xc0000133": "Clock out of sync with domain controller",
    "0xc000015b": "Logon type not granted",
    "0xc000018c": "Trust relationship failed",
    "0xc0000192": "Netlogon service not started",
    "0xc0000193": "Account expired",
    "0xc0000224": "Password must change at next logon",
    "0xc0000225": "Windows bug (not a risk)",
    "0xc0000234": "Account locked out",
    "0xc00002ee": "Failure during logon",
    "0xc0000413": "Authentication firewall prohibits logon",
    "0x0": "Success",
}

LOGON_TYPES = {
    2: "Interactive",
    3: "Network",
    4: "Batch",
    5: "Service",
    7: "Unlock",
    8: "NetworkCleartext",
    9: "NewCredentials",
    10: "RemoteInteractive",
    11: "CachedInteractive",
    12: "CachedRemoteInteractive",
    13: "CachedUnlock",
}


def parse_timestamp(value: str) -> datetime:
    """Parse a round-trip ("o") timestamp into an aware UTC datetime.

    Raises:
        ValueError: If the value is not an ISO-8601 timestamp.
    """
    text = _FRACTION.sub(r".\1", value.strip())
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def is_sid(value: str | None) -> bool:
    """Whether ``value`` looks like a security identifier."""
    return bool(value) and bool(_SID.match(value.strip()))


def _clean(value: Any) -> str:
    text = "" if value is None else str(value).strip()
    return "" if text == "-" else text


def _require(data: Mapping[str, Any], keys: tuple[str, ...], kind: EventKind) -> None:
    missing = [key for key in keys if not _clean(data.get(key))]
    if missing:
        raise EventDecodeError(f"{kind.name} event missing {', '.join(missing)}")


def decode_lockout(record: Mapping[str, Any], data: Mapping[str, str], host: str) -> DiagnosticEvent:
    """Decode an account-lockout (4740) record."""
    _require(data, ("TargetSid", "TargetUserName"), EventKind.ACCOUNT_LOCKOUT)
    origin = _clean(data.get("TargetDomainName")).lstrip("\\")
    return DiagnosticEvent(
        kind=EventKind.ACCOUNT_LOCKOUT,
        timestamp=parse_timestamp(str(record["time"])),
        host=host,
        subject_sid=_clean(data["TargetSid"]).upper(),
        subject_name=_clean(data["TargetUserName"]),
        fields={
            "origin_host": origin,
            "reported_by": _clean(data.get("SubjectUserName")),
            "domain": _clean(data.get("SubjectDomainName")),
        },
        raw=dict(data),
        record_id=record.get("record_id"),
    )


def decode_logon_failure(
    record: Mapping[str, Any], data: Mapping[str, str], host: str
) -> DiagnosticEvent:
    """Decode a logon-failure (4625) record."""
    _require(data, ("TargetUserSid", "Status"), EventKind.LOGON_FAILURE)
    return DiagnosticEvent(
        kind=EventKind.LOGON_FAILURE,
        timestamp=parse_timestamp(str(record["time"])),
        host=host,
        subject_sid=_clean(data["TargetUserSid"]).upper(),
        subject_name=_clean(data.get("TargetUserName")),
        fields={
            "status": _clean(data["Status"]).lower(),
            "sub_status": _clean(data.get("SubStatus")).lower(),
            "logon_type": _clean(data.get("LogonType")),
            "workstation": _clean(data.get("WorkstationName")),
            "ip_address": _clean(data.get("IpAddress")),
            "process_name": _clean(data.get("ProcessName")),
            "target_domain": _clean(data.get("TargetDomainName")),
        },
        raw=dict(data),
        record_id=record.get("record_id"),
    )


DECODERS: dict[EventKind, Callable[[Mapping[str, Any], Mapping[str, str], str], DiagnosticEvent]] = {
    EventKind.ACCOUNT_LOCKOUT: decode_lockout,
    EventKind.LOGON_FAILURE: decode_logon_failure,
}


def decode_event(record: Mapping[str, Any], host: str) -> DiagnosticEvent:
    """Validate a raw record and decode it by kind.

    Raises:
        EventDecodeError: If the record is malformed or of an unknown kind.
    """
    try:
        kind = EventKind(int(record["id"]))
    except (KeyError, TypeError, ValueError) as e:
        raise EventDecodeError(f"unsupported event id {record.get('id')!r}") from e

    if "time" not in record:
        raise EventDecodeError(f"{kind.name} event has no timestamp")
    data = record.get("data") or {}
    if not isinstance(data, Mapping):
        raise EventDecodeError(f"{kind.name} event data is not a mapping")

    try:
        return DECODERS[kind](record, data, host)
    except ValueError as e:
        raise EventDecodeError(f"{kind.name} event has invalid timestamp: {e}") from e


def decode_failure_reason(event: DiagnosticEvent) -> FailureReason:
    """Explain why a logon-failure event failed."""
    status = event.fields.get("status", "")
    sub_status = event.fields.get("sub_status") or None
    logon_type: int | None
    try:
        logon_type = int(event.fields.get("logon_type", ""))
    except ValueError:
        logon_type = None
    return FailureReason(
        status=status,
        status_text=NTSTATUS_TEXT.get(status, f"Unknown status {status}"),
        sub_status=sub_status,
        sub_status_text=NTSTATUS_TEXT.get(sub_status) if sub_status else None,
        logon_type=logon_type,
        logon_type_name=LOGON_TYPES.get(logon_type) if logon_type is not None else None,
        workstation=event.fields.get("workstation") or None,
        ip_address=event.fields.get("ip_address") or None,
        process_name=event.fields.get("process_name") or None,
    )


def _as_records(data: Any) -> list[Mapping[str, Any]]:
    # ConvertTo-Json unwraps single-element arrays
    if data is None:
        return []
    if isinstance(data, Mapping):
        return [data]
    return [item for item in data if isinstance(item, Mapping)]


async def query_events(
    conn: "asyncssh.SSHClientConnection",
    host: str,
    kind: EventKind,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    max_events: int = DEFAULT_MAX_EVENTS,
    timeout: float | None = None,
    locale: str = DEFAULT_LOCALE,
) -> list[DiagnosticEvent]:
    """Read events of one kind from a host, newest first.

    A query that matches nothing returns an empty list. Records that fail
    validation are skipped and logged.

    Raises:
        RemoteOperationError: For any other remote failure.
    """
    args: dict[str, Any] = {
        "log": kind.log_name,
        "event_id": int(kind),
        "max_events": max_events,
    }
    if start is not None:
        args["start"] = start.astimezone(timezone.utc).isoformat()
    if end is not None:
        args["end"] = end.astimezone(timezone.utc).isoformat()

    try:
        data = await run_operation(conn, "get_events", args, timeout)
    except RemoteOperationError as e:
        if is_no_events(e, locale):
            logger.info("No %s events on %s", kind.name, host)
            return []
        raise

    events = []
    for record in _as_records(data):
        try:
            events.append(decode_event(record, host))
        except EventDecodeError as e:
            logger.warning("Skipping event from %s: %s", host, e)
    logger.debug("Read %d %s event(s) from %s", len(events), kind.name, host)
    return events


async def resolve_identity(
    conn: "asyncssh.SSHClientConnection",
    name: str,
    timeout: float | None = None,
) -> str:
    """Resolve an account name to its SID.

    A value that already is a SID is returned unchanged.

    Raises:
        RemoteOperationError: If the account cannot be resolved.
    """
    if is_sid(name):
        return name.strip().upper()

    data = await run_operation(conn, "resolve_identity", {"name": name}, timeout)
    sid = data.get("sid") if isinstance(data, Mapping) else None
    if not is_sid(sid):
        raise RemoteOperationError(
            "resolve_identity",
            f"no security identifier returned for {name}",
            category="ObjectNotFound",
        )
    logger.debug("Resolved %s to %s", name, sid)
    return sid.strip().upper()
