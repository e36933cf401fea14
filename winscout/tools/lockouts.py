"""lockouts tool: explain why accounts were locked out."""

from datetime import datetime, timedelta

from fastmcp.exceptions import ToolError

from winscout.exceptions import CorrelationAbortedError, NoHostsError
from winscout.services.lockout import investigate_lockouts
from winscout.state import get_deps
from winscout.tools.formatting import format_correlation


def _parse_time(value: str | None, name: str) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise ToolError(f"{name} must be an ISO-8601 timestamp, got {value!r}") from e


async def lockouts(
    pdc: str | None = None,
    subject: str | None = None,
    since_hours: float | None = None,
    start: str | None = None,
    end: str | None = None,
    concurrency: int | None = None,
) -> str:
    """Find account lockouts and the failed logons that caused them.

    Args:
        pdc: Domain controller holding the PDC emulator role.
        subject: Account name (DOMAIN\\user) or SID to investigate.
        since_hours: Only lockouts from the last N hours.
        start: Earliest lockout time (ISO-8601).
        end: Latest lockout time (ISO-8601).
        concurrency: Maximum caller computers queried at once.

    Returns:
        One block per lockout with the decoded cause when it was found.
    """
    since = timedelta(hours=since_hours) if since_hours else None
    try:
        outcome = await investigate_lockouts(
            get_deps(),
            pdc=pdc,
            subject=subject,
            start=_parse_time(start, "start"),
            end=_parse_time(end, "end"),
            since=since,
            concurrency=concurrency,
        )
    except NoHostsError as e:
        raise ToolError("No domain controller given and WINSCOUT_PDC is not set") from e
    except (CorrelationAbortedError, ValueError) as e:
        raise ToolError(str(e)) from e
    return format_correlation(outcome)
