"""winscout FastMCP server.

Thin wiring of the MCP tools; all work happens in services/.
"""

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import PlainTextResponse

from winscout.middleware import ErrorHandlingMiddleware, LoggingMiddleware
from winscout.state import get_deps
from winscout.tools import gpreport, lockouts
from winscout.utils.console import configure_logging

configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """Load configuration before the first request."""
    logger.info("winscout server starting up")
    deps = get_deps()
    config = deps.config
    logger.info(
        "Configuration: concurrency=%d, parallel=%s, task_timeout=%s, locale=%s, pdc=%s",
        config.concurrency,
        config.parallel,
        config.task_timeout,
        config.error_locale,
        config.pdc or "-",
    )
    logger.info("winscout server ready to accept connections")
    try:
        yield {"pdc": config.pdc}
    finally:
        logger.info(
            "winscout server shutting down (sessions opened=%s, closed=%s)",
            deps.sessions.opened,
            deps.sessions.closed,
        )


def configure_middleware(server: FastMCP) -> None:
    """Add error handling and logging middleware.

    Environment variables:
        WINSCOUT_SLOW_THRESHOLD_MS: Threshold for slow call warnings
        WINSCOUT_INCLUDE_TRACEBACK: "true" to log tracebacks of errors
    """
    slow_threshold = float(os.getenv("WINSCOUT_SLOW_THRESHOLD_MS", "30000"))
    include_traceback = os.getenv("WINSCOUT_INCLUDE_TRACEBACK", "").lower() == "true"

    server.add_middleware(ErrorHandlingMiddleware(include_traceback=include_traceback))
    server.add_middleware(LoggingMiddleware(slow_threshold_ms=slow_threshold))


def create_server() -> FastMCP:
    """Create and configure the MCP server."""
    server = FastMCP("winscout", lifespan=app_lifespan)

    configure_middleware(server)

    server.tool()(gpreport)
    server.tool()(lockouts)

    @server.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> PlainTextResponse:
        """Health check endpoint."""
        client_host = request.client.host if request.client else "unknown"
        logger.debug("Health check from %s", client_host)
        return PlainTextResponse("OK")

    return server


mcp = create_server()
