"""Host reachability probing."""

import asyncio
import logging

logger = logging.getLogger(__name__)

DEFAULT_ATTEMPTS = 2


async def check_host_online(hostname: str, port: int, timeout: float = 2.0) -> bool:
    """Check if a host accepts a TCP connection on ``port``.

    Args:
        hostname: Host to check.
        port: Port to connect to (the session port).
        timeout: Connection timeout in seconds.

    Returns:
        True if host is reachable, False otherwise. A name that cannot be
        resolved at all (e.g. an empty label) counts as unreachable.
    """
    try:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(hostname, port),
            timeout=timeout,
        )
        writer.close()
        await writer.wait_closed()
        return True
    except (TimeoutError, OSError, ValueError):
        return False


async def probe_host(
    hostname: str,
    port: int = 22,
    attempts: int = DEFAULT_ATTEMPTS,
    timeout: float = 2.0,
) -> bool:
    """Probe a host up to ``attempts`` times.

    Returns:
        True as soon as one attempt succeeds, False if all fail.
    """
    for attempt in range(1, max(attempts, 1) + 1):
        if await check_host_online(hostname, port, timeout):
            return True
        logger.debug("Probe %d/%d to %s:%d failed", attempt, attempts, hostname, port)
    logger.info("Host %s unreachable after %d probe(s)", hostname, attempts)
    return False


async def probe_hosts(
    hosts: list[str],
    port: int = 22,
    attempts: int = DEFAULT_ATTEMPTS,
    timeout: float = 2.0,
) -> dict[str, bool]:
    """Probe multiple hosts concurrently.

    Returns:
        Dict of {host: is_reachable}.
    """
    if not hosts:
        return {}

    results = await asyncio.gather(
        *(probe_host(host, port, attempts, timeout) for host in hosts)
    )
    return dict(zip(hosts, results))
