"""Tests for host key verification settings."""

from pathlib import Path

import pytest

from winscout.config import Config


def test_known_hosts_disabled_with_none(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WINSCOUT_KNOWN_HOSTS", "none")
    assert Config().known_hosts_path is None


def test_known_hosts_custom_path(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    custom = tmp_path / "known_hosts"
    custom.touch()
    monkeypatch.setenv("WINSCOUT_KNOWN_HOSTS", str(custom))

    assert Config().known_hosts_path == str(custom)


def test_known_hosts_missing_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("WINSCOUT_KNOWN_HOSTS", str(tmp_path / "nonexistent"))

    with pytest.raises(FileNotFoundError, match="known_hosts file not found"):
        _ = Config().known_hosts_path


def test_default_known_hosts_missing(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("WINSCOUT_KNOWN_HOSTS")
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

    with pytest.raises(FileNotFoundError, match="ssh-keyscan"):
        _ = Config().known_hosts_path


def test_default_known_hosts(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("WINSCOUT_KNOWN_HOSTS")
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
    known_hosts = tmp_path / ".ssh" / "known_hosts"
    known_hosts.parent.mkdir()
    known_hosts.touch()

    assert Config().known_hosts_path == str(known_hosts)


def test_strict_checking_default_and_override(monkeypatch: pytest.MonkeyPatch) -> None:
    assert Config().strict_host_key_checking is True

    monkeypatch.setenv("WINSCOUT_STRICT_HOST_KEY_CHECKING", "false")
    assert Config().strict_host_key_checking is False
