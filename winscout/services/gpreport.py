"""Group Policy report collection across many hosts."""

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from winscout.exceptions import NoHostsError
from winscout.models import BatchOutcome, Credential, HostTask, Operation, Scope
from winscout.services.dispatcher import dispatch
from winscout.services.executors import RemoteTaskRunner
from winscout.utils.hostname import normalize_hosts
from winscout.utils.paths import make_run_stamp

if TYPE_CHECKING:
    from winscout.dependencies import Dependencies

logger = logging.getLogger(__name__)

GP_REPORT_PREFIX = "GPReport"


def gp_report_operation(scope: Scope, subject: str | None, fmt: str) -> Operation:
    """Describe a gpresult run."""
    return Operation(
        name="gpresult",
        params={"format": fmt},
        scope=scope,
        subject=subject or None,
        produces_artifact=True,
        artifact_prefix=GP_REPORT_PREFIX,
        artifact_ext=fmt,
    )


async def collect_gp_reports(
    deps: "Dependencies",
    hosts: Iterable[str],
    *,
    scope: Scope | str = Scope.BOTH,
    subject: str | None = None,
    output: str | None = None,
    fmt: str | None = None,
    credential: Credential | None = None,
    concurrency: int | None = None,
    parallel: bool | None = None,
    timeout: float | None = None,
) -> BatchOutcome:
    """Collect a Group Policy report from every host.

    Args:
        deps: Configuration and collaborators.
        hosts: Host identifiers; duplicates are collapsed.
        scope: computer, user or both.
        subject: Account whose user policy is reported.
        output: Directory or file path for the reports.
        fmt: "html" or "xml" (defaults to config).
        credential: Credential used for every host.
        concurrency: Worker bound (defaults to config).
        parallel: Run hosts concurrently (defaults to config).
        timeout: Per-host budget in seconds (defaults to config).

    Returns:
        BatchOutcome with one report per host.

    Raises:
        NoHostsError: If no host was given.
        ValueError: If scope or format is invalid.
    """
    config = deps.config
    names = normalize_hosts(hosts)
    if not names:
        raise NoHostsError()

    scope = Scope(scope)
    fmt = (fmt or config.report_format).lower()
    if fmt not in ("html", "xml"):
        raise ValueError(f"Unsupported report format: {fmt}")

    operation = gp_report_operation(scope, subject, fmt)
    task_timeout = timeout if timeout is not None else config.task_timeout
    tasks = [
        HostTask(host=name, operation=operation, credential=credential, timeout=task_timeout)
        for name in names
    ]
    runner = RemoteTaskRunner(
        deps.sessions,
        output=output or config.output_dir,
        run_stamp=make_run_stamp(),
        command_timeout=config.command_timeout,
        multi_host=len(names) > 1,
    )

    logger.info(
        "Collecting %s Group Policy report(s) (scope=%s, subject=%s) from %d host(s)",
        fmt,
        scope.value,
        subject or "-",
        len(names),
    )
    reports = await dispatch(
        tasks,
        runner,
        probe=deps.probe,
        concurrency=concurrency or config.concurrency,
        parallel=config.parallel if parallel is None else parallel,
        locale=config.error_locale,
    )
    return BatchOutcome(reports=reports)
