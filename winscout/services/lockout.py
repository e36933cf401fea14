"""Account-lockout investigation."""

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from winscout.exceptions import NoHostsError
from winscout.models import CorrelationOutcome, Credential
from winscout.services.correlator import Correlator

if TYPE_CHECKING:
    from winscout.dependencies import Dependencies

logger = logging.getLogger(__name__)


async def investigate_lockouts(
    deps: "Dependencies",
    *,
    pdc: str | None = None,
    subject: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    since: timedelta | None = None,
    credential: Credential | None = None,
    concurrency: int | None = None,
) -> CorrelationOutcome:
    """Find account lockouts and the logon failures that caused them.

    Args:
        deps: Configuration and collaborators.
        pdc: Domain controller holding lockout events (defaults to config).
        subject: Account name or SID to investigate.
        start: Earliest lockout time.
        end: Latest lockout time.
        since: Shorthand for ``start = now - since``.
        credential: Credential for every session.
        concurrency: Bound on concurrent caller-computer queries.

    Raises:
        NoHostsError: If no domain controller is known.
        CorrelationAbortedError: If lockout events cannot be read for
            lack of privilege.
    """
    config = deps.config
    pdc = (pdc or config.pdc or "").strip()
    if not pdc:
        raise NoHostsError()

    if since is not None and start is None:
        start = datetime.now(timezone.utc) - since

    correlator = Correlator(
        deps.sessions,
        deps.probe,
        concurrency=concurrency or config.concurrency,
        lookback=timedelta(seconds=config.secondary_lookback),
        command_timeout=config.command_timeout,
        locale=config.error_locale,
    )
    logger.info(
        "Investigating lockouts on %s (subject=%s, start=%s, end=%s)",
        pdc,
        subject or "-",
        start.isoformat() if start else "-",
        end.isoformat() if end else "-",
    )
    return await correlator.run(
        pdc, subject=subject, start=start, end=end, credential=credential
    )
