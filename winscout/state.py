"""Process-wide dependency state for the server and CLI."""

from winscout.dependencies import Dependencies

_deps: Dependencies | None = None


def get_deps() -> Dependencies:
    """Get or create the dependency container."""
    global _deps
    if _deps is None:
        _deps = Dependencies.create()
    return _deps


def set_deps(deps: Dependencies) -> None:
    """Install a dependency container (tests inject fakes here)."""
    global _deps
    _deps = deps


def reset_state() -> None:
    """Drop the dependency container. Test fixtures only."""
    global _deps
    _deps = None
