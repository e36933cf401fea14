"""gpreport tool: collect Group Policy reports from many hosts."""

from fastmcp.exceptions import ToolError

from winscout.exceptions import NoHostsError
from winscout.services.gpreport import collect_gp_reports
from winscout.state import get_deps
from winscout.tools.formatting import format_batch


async def gpreport(
    hosts: list[str],
    scope: str = "both",
    subject: str | None = None,
    output: str | None = None,
    report_format: str | None = None,
    concurrency: int | None = None,
    timeout: float | None = None,
) -> str:
    """Collect Group Policy result reports (gpresult) from Windows hosts.

    Args:
        hosts: Host names to collect from.
        scope: "computer", "user" or "both".
        subject: Account whose user policy should be reported.
        output: Local directory or file path for the reports.
        report_format: "html" or "xml".
        concurrency: Maximum hosts processed at once.
        timeout: Per-host time budget in seconds.

    Returns:
        Report paths for hosts that succeeded and one error line per failed host.
    """
    try:
        outcome = await collect_gp_reports(
            get_deps(),
            hosts,
            scope=scope,
            subject=subject,
            output=output,
            fmt=report_format,
            concurrency=concurrency,
            timeout=timeout,
        )
    except (NoHostsError, ValueError) as e:
        raise ToolError(str(e)) from e
    return format_batch(outcome)
