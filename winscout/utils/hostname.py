"""Host identifier helpers."""

from collections.abc import Iterable


def normalize_hosts(hosts: Iterable[str]) -> list[str]:
    """Strip, drop blanks and remove duplicates, keeping first-seen order.

    Windows host names are case-insensitive, so ``DC01`` and ``dc01`` are
    the same host.
    """
    seen: set[str] = set()
    result = []
    for host in hosts:
        name = host.strip()
        if not name or name.casefold() in seen:
            continue
        seen.add(name.casefold())
        result.append(name)
    return result
