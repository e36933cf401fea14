"""Failure classification.

Failures are mapped to an ErrorClass by looking, in order, at:

1. the exception type (our own hierarchy, asyncssh, OSError),
2. the structured category the remote side reported,
3. known message fragments for one explicitly configured locale.

Step 3 is the only locale-sensitive logic in the package. It is a last
resort: the message tables are only consulted when neither the type nor
the remote category decided the class.
"""

import logging
from dataclasses import dataclass

import asyncssh

from winscout.exceptions import (
    ArtifactTransferError,
    HostUnreachableError,
    RemoteOperationError,
    RemoteProtocolError,
    SessionOpenError,
)
from winscout.models import ErrorClass

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en"

ACCESS_DENIED = "access_denied"
UNAVAILABLE = "unavailable"
NO_EVENTS = "no_events"

MESSAGE_MARKERS: dict[str, dict[str, tuple[str, ...]]] = {
    "en": {
        ACCESS_DENIED: (
            "access is denied",
            "access denied",
            "unauthorized operation",
            "permission denied",
            "logon failure",
            "requested registry access is not allowed",
        ),
        UNAVAILABLE: (
            "rpc server is unavailable",
            "server unavailable",
            "network path was not found",
            "no such host",
            "host is unreachable",
            "connection refused",
        ),
        NO_EVENTS: ("no events were found",),
    },
    "de": {
        ACCESS_DENIED: (
            "zugriff verweigert",
            "zugriff wurde verweigert",
            "nicht autorisierter vorgang",
            "anmeldung fehlgeschlagen",
        ),
        UNAVAILABLE: (
            "rpc-server ist nicht verfügbar",
            "server nicht verfügbar",
            "netzwerkpfad wurde nicht gefunden",
            "host nicht erreichbar",
        ),
        NO_EVENTS: (
            "es wurden keine ereignisse gefunden",
            "keine ereignisse gefunden",
        ),
    },
}

_MARKER_CLASSES = {
    ACCESS_DENIED: ErrorClass.TRANSPORT_AUTH_FAILURE,
    UNAVAILABLE: ErrorClass.UNREACHABLE_HOST,
    NO_EVENTS: ErrorClass.REMOTE_EXECUTION_FAILURE,
}


@dataclass(frozen=True)
class Classification:
    """Classified failure with the original message preserved."""

    error_class: ErrorClass
    message: str


def _markers(locale: str) -> dict[str, tuple[str, ...]]:
    if locale not in MESSAGE_MARKERS:
        logger.warning("No message markers for locale %s, using %s", locale, DEFAULT_LOCALE)
        return MESSAGE_MARKERS[DEFAULT_LOCALE]
    return MESSAGE_MARKERS[locale]


def match_message(message: str, locale: str = DEFAULT_LOCALE) -> str | None:
    """Return the marker kind found in ``message``, if any."""
    text = message.casefold()
    for kind, fragments in _markers(locale).items():
        if any(fragment in text for fragment in fragments):
            return kind
    return None


def _remote_marker(exc: RemoteOperationError) -> str | None:
    """Marker kind from the structured fields of a remote failure."""
    error_id = (exc.error_id or "").casefold()
    exception_type = (exc.exception_type or "").casefold()
    category = (exc.category or "").casefold()

    if error_id.startswith("nomatchingeventsfound"):
        return NO_EVENTS
    if (
        category in ("permissiondenied", "securityerror")
        or exception_type.endswith("unauthorizedaccessexception")
        or "unauthorizedaccess" in error_id
    ):
        return ACCESS_DENIED
    return None


def _remote_marker_or_text(exc: BaseException, locale: str) -> str | None:
    if isinstance(exc, RemoteOperationError):
        marker = _remote_marker(exc)
        if marker is not None:
            return marker
    return match_message(str(exc), locale)


def is_access_denied(exc: BaseException, locale: str = DEFAULT_LOCALE) -> bool:
    """Whether a failure means the caller lacks privilege."""
    if isinstance(exc, SessionOpenError):
        exc = exc.original_error
    if isinstance(exc, asyncssh.PermissionDenied):
        return True
    return _remote_marker_or_text(exc, locale) == ACCESS_DENIED


def is_no_events(exc: BaseException, locale: str = DEFAULT_LOCALE) -> bool:
    """Whether a failure only means an event query matched nothing."""
    return _remote_marker_or_text(exc, locale) == NO_EVENTS


def _classify_type(exc: BaseException, locale: str) -> ErrorClass | None:
    if isinstance(exc, TimeoutError):
        return ErrorClass.TIMED_OUT
    if isinstance(exc, HostUnreachableError):
        return ErrorClass.UNREACHABLE_HOST
    if isinstance(exc, SessionOpenError):
        return ErrorClass.TRANSPORT_AUTH_FAILURE
    if isinstance(exc, (ArtifactTransferError, asyncssh.SFTPError)):
        return ErrorClass.ARTIFACT_TRANSFER_FAILURE
    if isinstance(exc, RemoteOperationError):
        marker = _remote_marker_or_text(exc, locale)
        if marker is not None:
            return _MARKER_CLASSES[marker]
        return ErrorClass.REMOTE_EXECUTION_FAILURE
    if isinstance(exc, RemoteProtocolError):
        return ErrorClass.REMOTE_EXECUTION_FAILURE
    if isinstance(exc, (asyncssh.DisconnectError, asyncssh.ChannelOpenError, OSError)):
        return ErrorClass.TRANSPORT_AUTH_FAILURE
    return None


def classify(exc: BaseException, locale: str = DEFAULT_LOCALE) -> Classification:
    """Map a failure to the closed ErrorClass taxonomy.

    Never raises; unmatched failures are UNCLASSIFIED with the original
    message kept.
    """
    message = str(exc) or type(exc).__name__
    try:
        error_class = _classify_type(exc, locale)
        if error_class is None:
            marker = match_message(message, locale)
            error_class = (
                _MARKER_CLASSES[marker] if marker else ErrorClass.UNCLASSIFIED
            )
    except Exception as e:
        logger.error("Classifier failed on %r: %s", exc, e)
        error_class = ErrorClass.UNCLASSIFIED
    return Classification(error_class=error_class, message=message)
