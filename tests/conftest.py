"""Shared fixtures for winscout tests."""

import asyncio
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from unittest.mock import MagicMock

import pytest

from winscout.config import Config
from winscout.dependencies import Dependencies
from winscout.exceptions import SessionOpenError
from winscout.models import Credential, SessionHandle
from winscout.state import reset_state


class FakeSessionManager:
    """Session manager that hands out MagicMock connections.

    Hosts listed in ``refuse`` fail to open. ``delay`` keeps sessions open
    for a while so concurrency can be observed.
    """

    def __init__(
        self,
        refuse: dict[str, Exception] | None = None,
        delay: float = 0.0,
    ) -> None:
        self.refuse = refuse or {}
        self.delay = delay
        self.opened: list[str] = []
        self.handles: list[SessionHandle] = []
        self.active = 0
        self.peak_active = 0
        self.credentials: list[Credential | None] = []

    @asynccontextmanager
    async def open(
        self, host: str, credential: Credential | None = None
    ) -> AsyncIterator[SessionHandle]:
        self.credentials.append(credential)
        handle = SessionHandle(host=host)
        if host in self.refuse:
            handle.fail()
            self.handles.append(handle)
            raise SessionOpenError(host, self.refuse[host])

        conn = MagicMock(name=f"conn-{host}")
        handle.activate(conn)
        self.handles.append(handle)
        self.opened.append(host)
        self.active += 1
        self.peak_active = max(self.peak_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            yield handle
        finally:
            if handle.close():
                self.active -= 1

    def handle_for(self, host: str) -> SessionHandle:
        return next(h for h in self.handles if h.host == host)


def make_probe(unreachable: set[str] | None = None) -> Any:
    """Probe coroutine that fails for the given hosts and records calls."""
    unreachable = unreachable or set()
    calls: list[str] = []

    async def probe(host: str) -> bool:
        calls.append(host)
        return host not in unreachable

    probe.calls = calls  # type: ignore[attr-defined]
    return probe


@pytest.fixture(autouse=True)
def clean_state(monkeypatch: pytest.MonkeyPatch) -> Any:
    """Start every test without env overrides or a cached container."""
    for key in list(os.environ):
        if key.startswith("WINSCOUT_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("WINSCOUT_KNOWN_HOSTS", "none")
    reset_state()
    yield
    reset_state()


@pytest.fixture(autouse=True)
def propagate_logs(monkeypatch: pytest.MonkeyPatch) -> None:
    """Route package records to caplog; drop handlers added during a test."""
    pkg_logger = logging.getLogger("winscout")
    monkeypatch.setattr(pkg_logger, "propagate", True)
    monkeypatch.setattr(pkg_logger, "handlers", [])


@pytest.fixture
def fake_sessions() -> FakeSessionManager:
    return FakeSessionManager()


@pytest.fixture
def config() -> Config:
    return Config()


@pytest.fixture
def deps(config: Config, fake_sessions: FakeSessionManager) -> Dependencies:
    """Dependencies wired to fake sessions and an always-reachable probe."""
    return Dependencies(config=config, sessions=fake_sessions, probe=make_probe())  # type: ignore[arg-type]


@pytest.fixture
def session_factory() -> type[FakeSessionManager]:
    return FakeSessionManager


@pytest.fixture
def probe_factory() -> Any:
    return make_probe
