"""Entry point for the winscout MCP server."""

import logging

from winscout.server import mcp
from winscout.state import get_deps

logger = logging.getLogger(__name__)


def run_server() -> None:
    """Run the MCP server with the configured transport."""
    config = get_deps().config

    if config.transport == "stdio":
        logger.info("Starting winscout server (transport=stdio)")
        mcp.run(transport="stdio")
    else:
        logger.info(
            "Starting winscout server (transport=http, host=%s, port=%d)",
            config.http_host,
            config.http_port,
        )
        mcp.run(transport="http", host=config.http_host, port=config.http_port)


if __name__ == "__main__":
    run_server()
