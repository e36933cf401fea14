"""Tests for console log formatting."""

import logging

from winscout.utils.console import ColorfulFormatter, configure_logging


def _record(name: str, msg: str, level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, msg, None, None)


def test_plain_format_strips_package_prefix() -> None:
    formatter = ColorfulFormatter(use_colors=False)

    line = formatter.format(_record("winscout.services.dispatcher", "ws01: done"))

    assert "services.dispatcher" in line
    assert "winscout.services" not in line
    assert line.endswith("ws01: done")
    assert "\033[" not in line


def test_colored_format_highlights_error_class() -> None:
    formatter = ColorfulFormatter(use_colors=True)

    line = formatter.format(_record("winscout.x", "ws01: [UnreachableHost] gone"))

    assert "\033[91m[UnreachableHost]" in line


def test_configure_logging_sets_level_once(monkeypatch) -> None:
    pkg_logger = logging.getLogger("winscout")
    monkeypatch.setattr(pkg_logger, "handlers", [])

    configure_logging("debug")
    configure_logging("debug")

    assert pkg_logger.level == logging.DEBUG
    assert len(pkg_logger.handlers) == 1
    assert logging.getLogger("asyncssh").level == logging.WARNING
