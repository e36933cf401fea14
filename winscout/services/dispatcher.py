"""Bounded fan-out of host tasks.

Each task is probed before it competes for a worker slot, so unreachable
hosts never hold a slot. A task that fails is classified and reported; it
never cancels or delays the others. Exactly one report is produced per task,
in input order.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from winscout.exceptions import HostUnreachableError, NoHostsError
from winscout.models import ExecutionReport, HostTask, RemoteArtifact
from winscout.services.classifier import DEFAULT_LOCALE, classify

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 5

ProbeFn = Callable[[str], Awaitable[bool]]
TaskRunner = Callable[[HostTask], Awaitable[Any]]


async def _run_task(runner: TaskRunner, task: HostTask) -> Any:
    if task.timeout is None:
        return await runner(task)
    try:
        return await asyncio.wait_for(runner(task), timeout=task.timeout)
    except TimeoutError as e:
        if str(e):
            raise
        raise TimeoutError(f"task exceeded {task.timeout:g}s timeout") from e


async def is_reachable(probe: ProbeFn, host: str) -> bool:
    """Run ``probe``; a probe that raises counts as unreachable."""
    try:
        return await probe(host)
    except Exception as e:
        logger.warning("Probe of %s raised %s: %s", host, type(e).__name__, e)
        return False


async def dispatch(
    tasks: Sequence[HostTask],
    runner: TaskRunner,
    *,
    probe: ProbeFn | None = None,
    concurrency: int = DEFAULT_CONCURRENCY,
    parallel: bool = True,
    locale: str = DEFAULT_LOCALE,
) -> list[ExecutionReport]:
    """Execute every task and report each outcome.

    Args:
        tasks: One task per host.
        runner: Coroutine function executing one task (session included).
        probe: Reachability check run before a slot is taken.
        concurrency: Maximum number of tasks running at once.
        parallel: Run concurrently; when False tasks run one after another
            and ``concurrency`` is ignored.
        locale: Locale for the message-text classification fallback.

    Returns:
        One ExecutionReport per task, in input order.

    Raises:
        NoHostsError: If ``tasks`` is empty.
        ValueError: If ``concurrency`` is not positive.
    """
    if not tasks:
        raise NoHostsError()
    if concurrency <= 0:
        raise ValueError(f"concurrency must be > 0, got {concurrency}")

    slots = asyncio.Semaphore(concurrency if parallel else 1)

    async def run_one(task: HostTask) -> ExecutionReport:
        start = time.perf_counter()
        try:
            if probe is not None and not await is_reachable(probe, task.host):
                raise HostUnreachableError(task.host)
            async with slots:
                result = await _run_task(runner, task)
        except Exception as e:
            classification = classify(e, locale)
            elapsed = time.perf_counter() - start
            logger.warning(
                "%s: [%s] %s (%.2fs)",
                task.host,
                classification.error_class.value,
                classification.message,
                elapsed,
            )
            return ExecutionReport(
                host=task.host,
                elapsed=elapsed,
                error=classification.error_class,
                message=classification.message,
            )

        elapsed = time.perf_counter() - start
        logger.info("%s: %s completed (%.2fs)", task.host, task.operation.name, elapsed)
        if isinstance(result, RemoteArtifact):
            return ExecutionReport(host=task.host, elapsed=elapsed, artifact=result)
        return ExecutionReport(host=task.host, elapsed=elapsed, value=result)

    logger.info(
        "Dispatching %d task(s) (%s, concurrency=%d)",
        len(tasks),
        "parallel" if parallel else "sequential",
        concurrency if parallel else 1,
    )

    if parallel:
        reports = list(await asyncio.gather(*(run_one(task) for task in tasks)))
    else:
        reports = []
        for task in tasks:
            reports.append(await run_one(task))

    succeeded = sum(1 for r in reports if r.succeeded)
    logger.info("%d/%d host(s) succeeded", succeeded, len(reports))
    return reports
