"""Local destination paths for remote artifacts."""

from datetime import datetime
from pathlib import Path
from urllib.parse import quote

RUN_STAMP_FORMAT = "%Y%m%d_%H%M%S"


def make_run_stamp(now: datetime | None = None) -> str:
    """Second-resolution timestamp shared by every artifact of one run."""
    return (now or datetime.now()).strftime(RUN_STAMP_FORMAT)


def safe_host_component(host: str) -> str:
    """Make a host identifier safe to embed in a file name.

    Characters outside ``[A-Za-z0-9._~-]`` are percent-encoded, so distinct
    hosts always give distinct names (``ws:01`` and ``ws_01`` included).
    """
    return quote(host, safe="") or "_"


def artifact_filename(prefix: str, host: str, run_stamp: str, ext: str) -> str:
    """Build ``<prefix>_<host>_<stamp>.<ext>``."""
    return f"{prefix}_{safe_host_component(host)}_{run_stamp}.{ext.lstrip('.')}"


def _looks_like_directory(location: str) -> bool:
    if location.endswith(("/", "\\")):
        return True
    return Path(location).suffix == ""


def resolve_artifact_path(
    location: str | None,
    host: str,
    prefix: str,
    ext: str,
    run_stamp: str,
    cwd: Path | None = None,
    multi_host: bool = False,
) -> Path:
    """Resolve where a host's artifact is written locally.

    Rules, in order:
        1. No location: ``<cwd>/<prefix>_<host>_<stamp>.<ext>``.
        2. Existing directory: same file name inside it.
        3. Trailing separator or no extension: directory is created, then (2).
        4. Anything else: used as the full file path; parent is created.
           When one file path is shared by several hosts, the host and stamp
           are inserted before the extension so paths stay distinct.

    Args:
        location: Caller-supplied output location, or None.
        host: Host the artifact came from.
        prefix: File name prefix (e.g. "GPReport").
        ext: File extension without the dot.
        run_stamp: Timestamp of this run, see make_run_stamp().
        cwd: Base directory for rule 1 (defaults to the process cwd).
        multi_host: Whether the same location is resolved for several hosts.

    Returns:
        Absolute local path.
    """
    filename = artifact_filename(prefix, host, run_stamp, ext)

    if not location:
        return (cwd or Path.cwd()).resolve() / filename

    target = Path(location).expanduser()

    if target.is_dir():
        return target.resolve() / filename

    if _looks_like_directory(location):
        target.mkdir(parents=True, exist_ok=True)
        return target.resolve() / filename

    target.parent.mkdir(parents=True, exist_ok=True)
    if multi_host:
        target = target.with_name(
            artifact_filename(target.stem, host, run_stamp, target.suffix)
        )
    return target.resolve()
