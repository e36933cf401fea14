"""Per-task remote sessions over SSH.

A session is opened for exactly one host task and released when the task
leaves the ``open()`` context, whatever the exit path. Sessions are never
pooled or shared between hosts.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import asyncssh

from winscout.config import Config
from winscout.exceptions import SessionOpenError
from winscout.models import Credential, SessionHandle

logger = logging.getLogger(__name__)


@dataclass
class SessionSettings:
    """Connection settings shared by every session."""

    port: int = 22
    known_hosts: str | None = None
    strict_host_key_checking: bool = True
    connect_timeout: float = 30.0
    default_user: str | None = None
    identity_file: str | None = None

    @classmethod
    def from_config(cls, config: Config) -> "SessionSettings":
        """Build settings from config (reads known_hosts, may raise)."""
        return cls(
            port=config.ssh_port,
            known_hosts=config.known_hosts_path,
            strict_host_key_checking=config.strict_host_key_checking,
            connect_timeout=float(config.command_timeout),
            default_user=config.default_user,
            identity_file=config.identity_file,
        )


class SessionManager:
    """Opens and releases per-task SSH sessions."""

    def __init__(self, settings: SessionSettings | None = None) -> None:
        self.settings = settings or SessionSettings()
        self._active = 0
        self.peak_active = 0
        self.opened = 0
        self.closed = 0

        if self.settings.known_hosts is None:
            logger.warning(
                "SSH host key verification DISABLED - vulnerable to MITM attacks. "
                "Set WINSCOUT_KNOWN_HOSTS to a valid known_hosts file path."
            )

    @property
    def active(self) -> int:
        """Number of sessions currently open."""
        return self._active

    async def _connect(
        self, host: str, credential: Credential | None
    ) -> asyncssh.SSHClientConnection:
        settings = self.settings
        username = (credential.username if credential else None) or settings.default_user
        password = credential.password if credential else None
        identity = (credential.identity_file if credential else None) or settings.identity_file
        client_keys = [identity] if identity else ()
        if not client_keys and password is None:
            # Fall back to the agent and default key locations
            client_keys = None

        logger.info(
            "Opening session to %s (%s@%s:%d)",
            host,
            username or "<local user>",
            host,
            settings.port,
        )

        kwargs = {
            "port": settings.port,
            "username": username,
            "password": password,
            "client_keys": client_keys,
            "connect_timeout": settings.connect_timeout,
        }
        try:
            return await asyncssh.connect(
                host, known_hosts=settings.known_hosts, **kwargs
            )
        except asyncssh.HostKeyNotVerifiable as e:
            if settings.strict_host_key_checking:
                logger.error(
                    "Host key verification failed for %s: %s. Add the host key to %s "
                    "or set WINSCOUT_STRICT_HOST_KEY_CHECKING=false",
                    host,
                    e,
                    settings.known_hosts,
                )
                raise
            logger.warning(
                "Host key not verified for %s (strict mode disabled): %s", host, e
            )
            return await asyncssh.connect(host, known_hosts=None, **kwargs)

    @asynccontextmanager
    async def open(
        self, host: str, credential: Credential | None = None
    ) -> AsyncIterator[SessionHandle]:
        """Open a session to ``host`` for the duration of the context.

        Raises:
            SessionOpenError: If the connection cannot be established.
        """
        handle = SessionHandle(host=host)
        try:
            conn = await self._connect(host, credential)
        except Exception as e:
            handle.fail()
            logger.warning("Session to %s failed to open: %s", host, e)
            raise SessionOpenError(host, e) from e

        handle.activate(conn)
        self.opened += 1
        self._active += 1
        self.peak_active = max(self.peak_active, self._active)
        logger.debug("Session to %s active (active=%d)", host, self._active)
        try:
            yield handle
        finally:
            if handle.close():
                self.closed += 1
                self._active -= 1
                logger.info("Closed session to %s (active=%d)", host, self._active)
