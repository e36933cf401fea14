"""Two-hop lockout correlation.

Lockout events are read from one domain controller. Each lockout names the
computer the failed logons came from; that computer is probed and its
logon-failure events are read to find the failure that caused the lockout.

Matching is by SID only. A failure is attached when it belongs to the same
SID and is the latest one at or before the lockout, within the lookback
window. Any problem with one caller computer degrades only the lockouts
that point at it, and only to primary-only results.
"""

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from winscout.exceptions import CorrelationAbortedError, HostUnreachableError
from winscout.models import (
    CorrelationOutcome,
    CorrelationResult,
    Credential,
    Diagnostic,
    DiagnosticEvent,
    ErrorClass,
    EventKind,
)
from winscout.services.classifier import DEFAULT_LOCALE, classify, is_access_denied
from winscout.services.dispatcher import DEFAULT_CONCURRENCY, ProbeFn, is_reachable
from winscout.services.events import (
    DEFAULT_MAX_EVENTS,
    decode_failure_reason,
    query_events,
    resolve_identity,
)
from winscout.services.session import SessionManager

logger = logging.getLogger(__name__)

DEFAULT_LOOKBACK = timedelta(minutes=10)


class CorrelatorState(str, Enum):
    """Phases of one correlation run."""

    FETCHING_PRIMARY = "fetching_primary"
    FILTERING_BY_SUBJECT = "filtering_by_subject"
    PER_EVENT_PROBE = "per_event_probe"
    FETCHING_SECONDARY = "fetching_secondary"
    MERGING = "merging"
    DONE = "done"


@dataclass
class _SecondaryBatch:
    """Logon failures read from one caller computer, or why they are missing."""

    events: list[DiagnosticEvent]
    error: ErrorClass | None = None
    message: str = ""


def select_secondary(
    primary: DiagnosticEvent,
    candidates: list[DiagnosticEvent],
    lookback: timedelta = DEFAULT_LOOKBACK,
) -> DiagnosticEvent | None:
    """Pick the latest candidate at or before ``primary`` with the same SID."""
    earliest = primary.timestamp - lookback
    matching = [
        event
        for event in candidates
        if event.subject_sid == primary.subject_sid
        and earliest <= event.timestamp <= primary.timestamp
    ]
    return max(matching, key=lambda event: event.timestamp, default=None)


class Correlator:
    """Runs the lockout correlation state machine."""

    def __init__(
        self,
        sessions: SessionManager,
        probe: ProbeFn,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
        lookback: timedelta = DEFAULT_LOOKBACK,
        command_timeout: float | None = None,
        max_events: int = DEFAULT_MAX_EVENTS,
        locale: str = DEFAULT_LOCALE,
    ) -> None:
        if concurrency <= 0:
            raise ValueError(f"concurrency must be > 0, got {concurrency}")
        self.sessions = sessions
        self.probe = probe
        self.concurrency = concurrency
        self.lookback = lookback
        self.command_timeout = command_timeout
        self.max_events = max_events
        self.locale = locale
        self.state: CorrelatorState | None = None
        self.state_history: list[CorrelatorState] = []

    def _transition(self, state: CorrelatorState) -> None:
        logger.debug("Correlator %s -> %s", self.state.value if self.state else "start", state.value)
        self.state = state
        self.state_history.append(state)

    async def _fetch_primary(
        self,
        pdc: str,
        subject: str | None,
        start: datetime | None,
        end: datetime | None,
        credential: Credential | None,
    ) -> list[DiagnosticEvent]:
        async with self.sessions.open(pdc, credential) as handle:
            events = await query_events(
                handle.connection,
                pdc,
                EventKind.ACCOUNT_LOCKOUT,
                start=start,
                end=end,
                max_events=self.max_events,
                timeout=self.command_timeout,
                locale=self.locale,
            )
            logger.info("Found %d lockout event(s) on %s", len(events), pdc)
            if not subject or not events:
                return events

            self._transition(CorrelatorState.FILTERING_BY_SUBJECT)
            sid = await resolve_identity(handle.connection, subject, self.command_timeout)
            kept = [event for event in events if event.subject_sid == sid]
            logger.info("%d lockout event(s) for %s (%s)", len(kept), subject, sid)
            return kept

    async def _probe_origins(self, hosts: list[str]) -> dict[str, bool]:
        results = await asyncio.gather(*(is_reachable(self.probe, host) for host in hosts))
        return dict(zip(hosts, results))

    async def _fetch_secondary(
        self,
        host: str,
        primaries: list[DiagnosticEvent],
        credential: Credential | None,
        slots: asyncio.Semaphore,
    ) -> _SecondaryBatch:
        # max_events applies to each lockout's own window
        stamps = sorted({event.timestamp for event in primaries})
        events: list[DiagnosticEvent] = []
        try:
            async with slots:
                async with self.sessions.open(host, credential) as handle:
                    for stamp in stamps:
                        events.extend(
                            await query_events(
                                handle.connection,
                                host,
                                EventKind.LOGON_FAILURE,
                                start=stamp - self.lookback,
                                end=stamp + timedelta(seconds=1),
                                max_events=self.max_events,
                                timeout=self.command_timeout,
                                locale=self.locale,
                            )
                        )
        except Exception as e:
            classification = classify(e, self.locale)
            logger.warning(
                "%s: [%s] logon failures unavailable: %s",
                host,
                classification.error_class.value,
                classification.message,
            )
            return _SecondaryBatch([], classification.error_class, classification.message)
        return _SecondaryBatch(events)

    def _merge(
        self,
        primary: DiagnosticEvent,
        batches: dict[str, _SecondaryBatch],
    ) -> CorrelationResult:
        host = primary.origin_host
        if host is None:
            return CorrelationResult(
                primary=primary,
                miss=ErrorClass.CORRELATION_MISS,
                miss_detail="lockout does not name a caller computer",
            )

        batch = batches[host.casefold()]
        if batch.error is not None:
            return CorrelationResult(
                primary=primary,
                miss=ErrorClass.CORRELATION_MISS,
                miss_detail=f"{host}: [{batch.error.value}] {batch.message}",
            )

        secondary = select_secondary(primary, batch.events, self.lookback)
        if secondary is None:
            return CorrelationResult(
                primary=primary,
                miss=ErrorClass.CORRELATION_MISS,
                miss_detail=f"no matching logon failure on {host}",
            )
        return CorrelationResult(
            primary=primary,
            secondary=secondary,
            reason=decode_failure_reason(secondary),
        )

    async def run(
        self,
        pdc: str,
        *,
        subject: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        credential: Credential | None = None,
    ) -> CorrelationOutcome:
        """Correlate lockouts recorded on ``pdc``.

        Args:
            pdc: Domain controller holding the lockout events.
            subject: Account name or SID to restrict the lockouts to.
            start: Earliest lockout time.
            end: Latest lockout time.
            credential: Credential for every session of this run.

        Returns:
            One result per lockout event plus diagnostics.

        Raises:
            CorrelationAbortedError: If the caller may not read lockout events.
        """
        self.state = None
        self.state_history = []
        outcome = CorrelationOutcome()

        self._transition(CorrelatorState.FETCHING_PRIMARY)
        try:
            if not await is_reachable(self.probe, pdc):
                raise HostUnreachableError(pdc)
            primaries = await self._fetch_primary(pdc, subject, start, end, credential)
        except Exception as e:
            if is_access_denied(e, self.locale):
                self._transition(CorrelatorState.DONE)
                raise CorrelationAbortedError(pdc, str(e)) from e
            classification = classify(e, self.locale)
            logger.warning(
                "%s: [%s] %s", pdc, classification.error_class.value, classification.message
            )
            outcome.diagnostics.append(
                Diagnostic(pdc, classification.error_class, classification.message)
            )
            self._transition(CorrelatorState.DONE)
            return outcome

        if not primaries:
            self._transition(CorrelatorState.DONE)
            return outcome

        # One probe and one query per caller computer, shared by its lockouts
        self._transition(CorrelatorState.PER_EVENT_PROBE)
        by_host: dict[str, list[DiagnosticEvent]] = defaultdict(list)
        names: dict[str, str] = {}
        for event in primaries:
            if event.origin_host is not None:
                key = event.origin_host.casefold()
                by_host[key].append(event)
                names.setdefault(key, event.origin_host)

        reachable = await self._probe_origins([names[key] for key in by_host])
        batches: dict[str, _SecondaryBatch] = {}
        for key, name in names.items():
            if not reachable[name]:
                message = str(HostUnreachableError(name))
                logger.warning("%s: [%s] %s", name, ErrorClass.UNREACHABLE_HOST.value, message)
                batches[key] = _SecondaryBatch([], ErrorClass.UNREACHABLE_HOST, message)

        self._transition(CorrelatorState.FETCHING_SECONDARY)
        slots = asyncio.Semaphore(self.concurrency)
        pending = [key for key in by_host if key not in batches]
        fetched = await asyncio.gather(
            *(
                self._fetch_secondary(names[key], by_host[key], credential, slots)
                for key in pending
            )
        )
        batches.update(zip(pending, fetched))

        self._transition(CorrelatorState.MERGING)
        outcome.results = [self._merge(event, batches) for event in primaries]
        for key, batch in batches.items():
            if batch.error is not None:
                outcome.diagnostics.append(Diagnostic(names[key], batch.error, batch.message))

        enriched = sum(1 for result in outcome.results if result.enriched)
        logger.info(
            "Correlated %d lockout(s): %d enriched, %d primary-only",
            len(outcome.results),
            enriched,
            len(outcome.results) - enriched,
        )
        self._transition(CorrelatorState.DONE)
        return outcome
