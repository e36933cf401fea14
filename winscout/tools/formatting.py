"""Plain-text rendering of batch and correlation outcomes."""

from winscout.models import BatchOutcome, CorrelationOutcome, CorrelationResult


def _header(title: str, failed: bool = False) -> str:
    header = f"═══ {title} "
    if failed:
        header += "[FAILED] "
    return header + "═" * max(60 - len(header), 3)


def format_batch(outcome: BatchOutcome) -> str:
    """Render a batch: one block per succeeded host, then diagnostics."""
    lines = []
    for report in outcome.succeeded:
        lines.append(_header(report.host))
        if report.artifact is not None:
            artifact = report.artifact
            lines.append(f"Report: {artifact.path} ({artifact.size} bytes)")
        else:
            lines.append(str(report.value))
        lines.append(f"Elapsed: {report.elapsed:.1f}s")
        lines.append("")

    diagnostics = outcome.diagnostics
    if diagnostics:
        lines.append("Errors:")
        lines.extend(f"  {diagnostic}" for diagnostic in diagnostics)
        lines.append("")

    lines.append(
        f"─── {len(outcome.succeeded)}/{len(outcome.reports)} hosts succeeded ───"
    )
    return "\n".join(lines)


def _format_result(result: CorrelationResult) -> list[str]:
    primary = result.primary
    lines = [
        _header(f"{primary.subject_name or '?'} ({primary.subject_sid})"),
        f"Locked out:      {primary.timestamp.isoformat()} on {primary.host}",
        f"Caller computer: {primary.origin_host or 'unknown'}",
    ]
    if result.secondary is None or result.reason is None:
        lines.append(f"Cause:           not found ({result.miss_detail})")
        return lines

    reason = result.reason
    lines.append(f"Last failure:    {result.secondary.timestamp.isoformat()}")
    lines.append(f"Status:          {reason.status_text} ({reason.status})")
    if reason.sub_status and reason.sub_status != "0x0":
        lines.append(f"Sub status:      {reason.sub_status_text or '?'} ({reason.sub_status})")
    if reason.logon_type is not None:
        lines.append(f"Logon type:      {reason.logon_type} ({reason.logon_type_name or '?'})")
    if reason.process_name:
        lines.append(f"Process:         {reason.process_name}")
    if reason.workstation or reason.ip_address:
        lines.append(
            f"Source:          {reason.workstation or '-'} / {reason.ip_address or '-'}"
        )
    return lines


def format_correlation(outcome: CorrelationOutcome) -> str:
    """Render lockout results followed by diagnostics."""
    if not outcome.results and not outcome.diagnostics:
        return "No lockout events found."

    lines = []
    for result in outcome.results:
        lines.extend(_format_result(result))
        lines.append("")

    if outcome.diagnostics:
        lines.append("Errors:")
        lines.extend(f"  {diagnostic}" for diagnostic in outcome.diagnostics)
        lines.append("")

    enriched = sum(1 for result in outcome.results if result.enriched)
    lines.append(f"─── {len(outcome.results)} lockout(s), {enriched} with cause ───")
    return "\n".join(lines)
