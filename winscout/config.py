"""Configuration management for winscout."""

import logging
import os
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

SUPPORTED_LOCALES = ("en", "de")
REPORT_FORMATS = ("html", "xml")


def _get_env_int(key: str) -> int | None:
    if val := os.getenv(key):
        with suppress(ValueError):
            return int(val)
    return None


def _get_env_float(key: str) -> float | None:
    if val := os.getenv(key):
        with suppress(ValueError):
            return float(val)
    return None


def _get_env_bool(key: str) -> bool | None:
    if val := os.getenv(key, "").lower():
        return val in ("true", "1", "yes", "on")
    return None


@dataclass
class Config:
    """winscout configuration."""

    # Session
    ssh_port: int = 22
    default_user: str | None = None
    identity_file: str | None = None
    command_timeout: int = 120
    # Dispatch
    concurrency: int = 5
    parallel: bool = True
    task_timeout: float | None = None  # No per-task budget unless configured
    probe_attempts: int = 2
    probe_timeout: float = 2.0
    # Classification
    error_locale: str = "en"
    # Lockout investigation
    pdc: str | None = None
    secondary_lookback: int = 600  # Seconds before a lockout to search
    # Artifacts
    output_dir: str | None = None
    report_format: str = "html"
    # Transport configuration
    transport: str = "stdio"  # "http" or "stdio"
    http_host: str = "127.0.0.1"
    http_port: int = 8000

    def __post_init__(self) -> None:
        """Apply WINSCOUT_* environment variable overrides."""
        val = _get_env_int("WINSCOUT_SSH_PORT")
        if val is not None:
            self.ssh_port = val

        if user := os.getenv("WINSCOUT_USER"):
            self.default_user = user

        if identity := os.getenv("WINSCOUT_IDENTITY_FILE"):
            self.identity_file = os.path.expanduser(identity)

        val = _get_env_int("WINSCOUT_COMMAND_TIMEOUT")
        if val is not None:
            self.command_timeout = val

        val = _get_env_int("WINSCOUT_CONCURRENCY")
        if val is not None:
            if val <= 0:
                logger.warning(
                    "WINSCOUT_CONCURRENCY must be > 0, got %d. Using default: %d",
                    val,
                    self.concurrency,
                )
            else:
                self.concurrency = val

        parallel = _get_env_bool("WINSCOUT_PARALLEL")
        if parallel is not None:
            self.parallel = parallel

        timeout = _get_env_float("WINSCOUT_TASK_TIMEOUT")
        if timeout is not None:
            self.task_timeout = timeout if timeout > 0 else None

        val = _get_env_int("WINSCOUT_PROBE_ATTEMPTS")
        if val is not None and val > 0:
            self.probe_attempts = val

        timeout = _get_env_float("WINSCOUT_PROBE_TIMEOUT")
        if timeout is not None and timeout > 0:
            self.probe_timeout = timeout

        locale = os.getenv("WINSCOUT_ERROR_LOCALE", "").lower()
        if locale:
            if locale in SUPPORTED_LOCALES:
                self.error_locale = locale
            else:
                logger.warning(
                    "Unsupported WINSCOUT_ERROR_LOCALE=%s (supported: %s), using %s",
                    locale,
                    ", ".join(SUPPORTED_LOCALES),
                    self.error_locale,
                )

        if pdc := os.getenv("WINSCOUT_PDC"):
            self.pdc = pdc

        val = _get_env_int("WINSCOUT_SECONDARY_LOOKBACK")
        if val is not None and val > 0:
            self.secondary_lookback = val

        if output_dir := os.getenv("WINSCOUT_OUTPUT_DIR"):
            self.output_dir = output_dir

        fmt = os.getenv("WINSCOUT_REPORT_FORMAT", "").lower()
        if fmt in REPORT_FORMATS:
            self.report_format = fmt

        transport = os.getenv("WINSCOUT_TRANSPORT", "").lower()
        if transport in ("http", "stdio"):
            self.transport = transport

        if http_host := os.getenv("WINSCOUT_HTTP_HOST"):
            self.http_host = http_host

        val = _get_env_int("WINSCOUT_HTTP_PORT")
        if val is not None:
            self.http_port = val

        logger.debug(
            "Config initialized: concurrency=%d, parallel=%s, task_timeout=%s, "
            "probe_attempts=%d, locale=%s, transport=%s",
            self.concurrency,
            self.parallel,
            self.task_timeout,
            self.probe_attempts,
            self.error_locale,
            self.transport,
        )

    @property
    def known_hosts_path(self) -> str | None:
        """Path to known_hosts file, or None to disable verification.

        Environment: WINSCOUT_KNOWN_HOSTS
        Default: ~/.ssh/known_hosts (must exist)
        Special value: "none" disables verification

        Raises:
            FileNotFoundError: If the known_hosts file doesn't exist
        """
        value = os.getenv("WINSCOUT_KNOWN_HOSTS", "").strip()

        if value.lower() == "none":
            logger.critical(
                "SSH host key verification DISABLED (WINSCOUT_KNOWN_HOSTS=none). "
                "Connections are vulnerable to man-in-the-middle attacks."
            )
            return None

        if value:
            custom_path = Path(os.path.expanduser(value))
            if not custom_path.exists():
                raise FileNotFoundError(
                    f"known_hosts file not found: {custom_path}\n"
                    f"Create it with: ssh-keyscan <hostname> >> {custom_path}\n"
                    f"Or disable verification: export WINSCOUT_KNOWN_HOSTS=none"
                )
            return str(custom_path)

        default = Path.home() / ".ssh" / "known_hosts"
        if not default.exists():
            raise FileNotFoundError(
                "~/.ssh/known_hosts not found.\n"
                "Add host keys with: ssh-keyscan <hostname> >> ~/.ssh/known_hosts\n"
                "Or disable verification: export WINSCOUT_KNOWN_HOSTS=none"
            )
        return str(default)

    @property
    def strict_host_key_checking(self) -> bool:
        """Whether to reject unknown host keys.

        Environment: WINSCOUT_STRICT_HOST_KEY_CHECKING
        """
        return (
            os.getenv("WINSCOUT_STRICT_HOST_KEY_CHECKING", "true").lower() != "false"
        )
