"""Base middleware for winscout."""

import logging

from fastmcp.server.middleware import Middleware


class WinscoutMiddleware(Middleware):
    """Middleware with a configurable logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger(__name__)
