"""Dependency container for winscout.

Holds the configuration and the collaborators every orchestration needs.
Tests build one with fakes instead of patching module globals.
"""

from dataclasses import dataclass
from functools import partial

from winscout.config import Config
from winscout.services.dispatcher import ProbeFn
from winscout.services.session import SessionManager, SessionSettings
from winscout.utils.ping import probe_host


@dataclass
class Dependencies:
    """Configuration, session manager and reachability probe."""

    config: Config
    sessions: SessionManager
    probe: ProbeFn

    @classmethod
    def create(cls) -> "Dependencies":
        """Create dependencies from environment configuration."""
        return cls.from_config(Config())

    @classmethod
    def from_config(cls, config: Config) -> "Dependencies":
        """Create dependencies with a custom configuration."""
        sessions = SessionManager(SessionSettings.from_config(config))
        probe = partial(
            probe_host,
            port=config.ssh_port,
            attempts=config.probe_attempts,
            timeout=config.probe_timeout,
        )
        return cls(config=config, sessions=sessions, probe=probe)
