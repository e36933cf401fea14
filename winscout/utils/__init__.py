"""Utilities for winscout."""

from winscout.utils.console import ColorfulFormatter, configure_logging
from winscout.utils.paths import make_run_stamp, resolve_artifact_path
from winscout.utils.ping import check_host_online, probe_host, probe_hosts

__all__ = [
    "check_host_online",
    "ColorfulFormatter",
    "configure_logging",
    "make_run_stamp",
    "probe_host",
    "probe_hosts",
    "resolve_artifact_path",
]
