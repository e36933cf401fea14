"""Error handling middleware for consistent error logging."""

import logging
import traceback
from collections import Counter
from typing import Any

from fastmcp.exceptions import ToolError
from fastmcp.server.middleware import MiddlewareContext

from winscout.exceptions import WinscoutError
from winscout.middleware.base import WinscoutMiddleware


def _root_cause(error: BaseException) -> BaseException:
    """The winscout error a ToolError was raised from, if any."""
    if isinstance(error, ToolError) and isinstance(error.__cause__, WinscoutError):
        return error.__cause__
    return error


class ErrorHandlingMiddleware(WinscoutMiddleware):
    """Logs errors escaping a request and counts them by cause.

    Per-host failures never reach this layer; it only sees fatal errors such
    as an empty host list or a refused lockout query. Those are expected and
    logged as warnings. Anything else is a bug and logged as an error.
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        include_traceback: bool = False,
    ) -> None:
        super().__init__(logger=logger)
        self.include_traceback = include_traceback
        self._error_counts: Counter[str] = Counter()

    def get_error_stats(self) -> dict[str, int]:
        """Error counts keyed by the type name of the underlying cause."""
        return dict(self._error_counts)

    def reset_stats(self) -> None:
        self._error_counts.clear()

    async def on_message(self, context: MiddlewareContext, call_next: Any) -> Any:
        try:
            return await call_next(context)
        except Exception as e:
            cause = _root_cause(e)
            cause_type = type(cause).__name__
            self._error_counts[cause_type] += 1

            if isinstance(cause, (WinscoutError, ToolError)):
                self.logger.warning("Rejected %s: %s: %s", context.method, cause_type, cause)
            elif self.include_traceback:
                self.logger.error(
                    "Unexpected error in %s: %s: %s\n%s",
                    context.method,
                    cause_type,
                    e,
                    traceback.format_exc(),
                )
            else:
                self.logger.error("Unexpected error in %s: %s: %s", context.method, cause_type, e)
            raise
