"""Logging middleware for tool calls."""

import logging
import re
import time
from typing import Any

from fastmcp.server.middleware import MiddlewareContext

from winscout.middleware.base import WinscoutMiddleware

MAX_ARG_CHARS = 50
MAX_LISTED_HOSTS = 5

_BATCH_FOOTER = re.compile(r"(\d+)/(\d+) hosts succeeded")
_LOCKOUT_FOOTER = re.compile(r"(\d+) lockout\(s\)")


class LoggingMiddleware(WinscoutMiddleware):
    """Logs each tool call with its targets, outcome summary and duration."""

    def __init__(
        self,
        logger: logging.Logger | None = None,
        slow_threshold_ms: float = 30_000.0,
    ) -> None:
        """Initialize logging middleware.

        Args:
            logger: Optional custom logger.
            slow_threshold_ms: Duration above which a call is logged as slow.
                Batch tools routinely take seconds, so the default is high.
        """
        super().__init__(logger=logger)
        self.slow_threshold_ms = slow_threshold_ms

    def _format_value(self, value: Any) -> str:
        if isinstance(value, (list, tuple)) and len(value) > MAX_LISTED_HOSTS:
            shown = ", ".join(str(v) for v in value[:MAX_LISTED_HOSTS])
            return f"[{shown}, ... {len(value)} total]"
        if isinstance(value, str) and len(value) > MAX_ARG_CHARS:
            return repr(value[:MAX_ARG_CHARS] + "...")
        return repr(value)

    def _format_args(self, args: dict[str, Any] | None) -> str:
        if not args:
            return "()"
        parts = [
            f"{key}={self._format_value(value)}"
            for key, value in args.items()
            if value is not None
        ]
        return f"({', '.join(parts)})"

    def _summarize_result(self, result: Any) -> str:
        if result is None:
            return "null"
        if hasattr(result, "content") and not isinstance(result, str):
            content = result.content
            if isinstance(content, (list, tuple)):
                return f"{len(content)} content item(s)"
            return "content"
        if not isinstance(result, str):
            return type(result).__name__

        batch = _BATCH_FOOTER.search(result)
        if batch:
            return f"{batch.group(1)}/{batch.group(2)} hosts succeeded"
        lockouts = _LOCKOUT_FOOTER.search(result)
        if lockouts:
            return f"{lockouts.group(1)} lockout(s)"
        return f"{len(result)} chars, {result.count(chr(10)) + 1} lines"

    async def on_call_tool(self, context: MiddlewareContext, call_next: Any) -> Any:
        start = time.perf_counter()
        tool_name = getattr(context.message, "name", "unknown")
        args = getattr(context.message, "arguments", None)

        self.logger.info("Tool %s%s started", tool_name, self._format_args(args))
        try:
            result = await call_next(context)
        except Exception as e:
            elapsed_ms = (time.perf_counter() - start) * 1000
            self.logger.error(
                "Tool %s failed: %s: %s (%.1fms)",
                tool_name,
                type(e).__name__,
                e,
                elapsed_ms,
            )
            raise

        elapsed_ms = (time.perf_counter() - start) * 1000
        slow = elapsed_ms >= self.slow_threshold_ms
        self.logger.log(
            logging.WARNING if slow else logging.INFO,
            "Tool %s finished: %s (%.1fms%s)",
            tool_name,
            self._summarize_result(result),
            elapsed_ms,
            ", slow" if slow else "",
        )
        return result
