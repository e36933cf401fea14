"""Tests for outcome rendering."""

from datetime import datetime, timezone

from winscout.models import (
    BatchOutcome,
    CorrelationOutcome,
    CorrelationResult,
    Diagnostic,
    DiagnosticEvent,
    ErrorClass,
    EventKind,
    ExecutionReport,
    FailureReason,
    RemoteArtifact,
)
from winscout.tools.formatting import format_batch, format_correlation

T0 = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def _lockout(origin: str = "WS07") -> DiagnosticEvent:
    return DiagnosticEvent(
        kind=EventKind.ACCOUNT_LOCKOUT,
        timestamp=T0,
        host="dc01",
        subject_sid="S-1-5-21-1-2-3-1104",
        subject_name="alice",
        fields={"origin_host": origin},
    )


def test_format_batch_lists_reports_then_errors():
    outcome = BatchOutcome(
        reports=[
            ExecutionReport(
                host="ws01",
                elapsed=1.25,
                artifact=RemoteArtifact(path="/tmp/GPReport_ws01.html", size=2048, produced_at=T0),
            ),
            ExecutionReport(
                host="ws02",
                elapsed=2.0,
                error=ErrorClass.UNREACHABLE_HOST,
                message="ws02 did not answer reachability probe",
            ),
        ]
    )

    text = format_batch(outcome)

    assert "═══ ws01" in text
    assert "Report: /tmp/GPReport_ws01.html (2048 bytes)" in text
    assert "  ws02: [UnreachableHost] ws02 did not answer reachability probe" in text
    assert text.endswith("─── 1/2 hosts succeeded ───")
    assert text.index("ws01") < text.index("Errors:")


def test_format_correlation_enriched():
    secondary = DiagnosticEvent(
        kind=EventKind.LOGON_FAILURE,
        timestamp=T0,
        host="WS07",
        subject_sid="S-1-5-21-1-2-3-1104",
    )
    result = CorrelationResult(
        primary=_lockout(),
        secondary=secondary,
        reason=FailureReason(
            status="0xc000006d",
            status_text="Bad user name or authentication information",
            sub_status="0xc000006a",
            sub_status_text="Wrong password",
            logon_type=3,
            logon_type_name="Network",
            process_name="C:\\Windows\\System32\\svchost.exe",
        ),
    )

    text = format_correlation(CorrelationOutcome(results=[result]))

    assert "alice (S-1-5-21-1-2-3-1104)" in text
    assert "Caller computer: WS07" in text
    assert "Sub status:      Wrong password (0xc000006a)" in text
    assert "Logon type:      3 (Network)" in text
    assert "svchost.exe" in text
    assert text.endswith("─── 1 lockout(s), 1 with cause ───")


def test_format_correlation_miss_and_diagnostics():
    result = CorrelationResult(
        primary=_lockout(),
        miss=ErrorClass.CORRELATION_MISS,
        miss_detail="WS07: [UnreachableHost] WS07 did not answer reachability probe",
    )
    outcome = CorrelationOutcome(
        results=[result],
        diagnostics=[Diagnostic("WS07", ErrorClass.UNREACHABLE_HOST, "WS07 did not answer")],
    )

    text = format_correlation(outcome)

    assert "Cause:           not found (WS07: [UnreachableHost]" in text
    assert "  WS07: [UnreachableHost] WS07 did not answer" in text
    assert "0 with cause" in text


def test_format_correlation_empty():
    assert format_correlation(CorrelationOutcome()) == "No lockout events found."
