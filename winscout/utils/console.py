"""Colorful console logging for winscout."""

import logging
import os
import re
import sys
from datetime import datetime

COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "white": "\033[37m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "bright_black": "\033[90m",
    "bright_red": "\033[91m",
    "bright_green": "\033[92m",
    "bright_yellow": "\033[93m",
    "bright_blue": "\033[94m",
    "bright_magenta": "\033[95m",
    "bright_cyan": "\033[96m",
    "bg_red": "\033[41m",
}

LEVEL_COLORS = {
    "DEBUG": COLORS["bright_black"],
    "INFO": COLORS["bright_green"],
    "WARNING": COLORS["bright_yellow"],
    "ERROR": COLORS["bright_red"],
    "CRITICAL": COLORS["bg_red"] + COLORS["white"] + COLORS["bold"],
}

COMPONENT_COLORS = {
    "winscout.services.dispatcher": COLORS["bright_magenta"],
    "winscout.services.session": COLORS["bright_cyan"],
    "winscout.services.correlator": COLORS["bright_blue"],
    "winscout.middleware": COLORS["yellow"],
    "winscout.config": COLORS["green"],
    "default": COLORS["white"],
}

_ERROR_CLASS_PATTERN = re.compile(
    r"(\[(?:UnreachableHost|TransportAuthFailure|RemoteExecutionFailure|"
    r"ArtifactTransferFailure|TimedOut|CorrelationMiss|Unclassified)\])"
)
_DURATION_PATTERN = re.compile(r"(\d+\.?\d*(?:ms|s)\b)")


class ColorfulFormatter(logging.Formatter):
    """Log formatter with local timestamps and component highlighting."""

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors

    def _colorize(self, text: str, color: str) -> str:
        if not self.use_colors:
            return text
        return f"{color}{text}{COLORS['reset']}"

    def _get_component_color(self, name: str) -> str:
        for prefix, color in COMPONENT_COLORS.items():
            if prefix != "default" and name.startswith(prefix):
                return color
        return COMPONENT_COLORS["default"]

    def _format_timestamp(self, record: logging.LogRecord) -> str:
        dt = datetime.fromtimestamp(record.created)
        return f"{dt.strftime('%H:%M:%S')}.{int(record.msecs):03d} {dt.strftime('%m/%d')}"

    def _format_component(self, record: logging.LogRecord) -> str:
        name = record.name
        if name.startswith("winscout."):
            name = name[len("winscout.") :]
        color = self._get_component_color(record.name)
        return self._colorize(f"{name:<20}", color)

    def _highlight_message(self, message: str) -> str:
        """Highlight error classes and durations."""
        if not self.use_colors:
            return message
        message = _ERROR_CLASS_PATTERN.sub(
            f"{COLORS['bright_red']}\\1{COLORS['reset']}", message
        )
        return _DURATION_PATTERN.sub(
            f"{COLORS['bright_yellow']}\\1{COLORS['reset']}", message
        )

    def format(self, record: logging.LogRecord) -> str:
        timestamp = self._colorize(self._format_timestamp(record), COLORS["dim"])
        level = self._colorize(
            f"{record.levelname:<8}",
            LEVEL_COLORS.get(record.levelname, COLORS["white"]),
        )
        component = self._format_component(record)
        sep = self._colorize("|", COLORS["dim"])
        message = self._highlight_message(record.getMessage())
        line = f"{timestamp} {sep} {level} {sep} {component} {sep} {message}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def configure_logging(level: str | None = None) -> None:
    """Configure the winscout package logger once.

    Level comes from WINSCOUT_LOG_LEVEL unless given; colours are disabled
    by WINSCOUT_LOG_COLORS=false or when stderr is not a TTY.
    """
    log_level = (level or os.getenv("WINSCOUT_LOG_LEVEL", "INFO")).upper()
    use_colors = os.getenv("WINSCOUT_LOG_COLORS", "true").lower() != "false"
    if not sys.stderr.isatty():
        use_colors = False

    pkg_logger = logging.getLogger("winscout")
    pkg_logger.setLevel(getattr(logging, log_level, logging.INFO))

    if not pkg_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ColorfulFormatter(use_colors=use_colors))
        pkg_logger.addHandler(handler)
        pkg_logger.propagate = False

    for noisy_logger in [
        "asyncssh",
        "asyncssh.sftp",
        "fastmcp",
        "uvicorn",
        "uvicorn.access",
        "uvicorn.error",
        "starlette",
        "httpx",
        "httpcore",
        "anyio",
    ]:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)
