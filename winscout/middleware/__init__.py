"""winscout middleware components."""

from winscout.middleware.base import WinscoutMiddleware
from winscout.middleware.errors import ErrorHandlingMiddleware
from winscout.middleware.logging import LoggingMiddleware

__all__ = [
    "ErrorHandlingMiddleware",
    "LoggingMiddleware",
    "WinscoutMiddleware",
]
