"""Tests for artifact path resolution."""

from datetime import datetime
from pathlib import Path

from winscout.utils.paths import (
    artifact_filename,
    make_run_stamp,
    resolve_artifact_path,
)

STAMP = "20240501_101500"


def test_make_run_stamp_has_second_resolution() -> None:
    assert make_run_stamp(datetime(2024, 5, 1, 10, 15, 0)) == STAMP


def test_artifact_filename_sanitizes_host() -> None:
    assert (
        artifact_filename("GPReport", "corp\\ws01", STAMP, "html")
        == f"GPReport_corp%5Cws01_{STAMP}.html"
    )


def test_encoded_host_names_never_collide() -> None:
    hosts = ["ws:01", "ws_01", "ws%3A01", "ws 01"]

    names = {artifact_filename("GPReport", host, STAMP, "html") for host in hosts}

    assert len(names) == len(hosts)
    assert all("/" not in name and ":" not in name for name in names)


def test_no_location_uses_cwd(tmp_path: Path) -> None:
    path = resolve_artifact_path(None, "ws01", "GPReport", "html", STAMP, cwd=tmp_path)

    assert path == tmp_path.resolve() / f"GPReport_ws01_{STAMP}.html"


def test_existing_directory(tmp_path: Path) -> None:
    path = resolve_artifact_path(str(tmp_path), "ws01", "GPReport", "xml", STAMP)

    assert path.parent == tmp_path.resolve()
    assert path.name == f"GPReport_ws01_{STAMP}.xml"


def test_trailing_separator_creates_directory(tmp_path: Path) -> None:
    location = str(tmp_path / "reports") + "/"

    path = resolve_artifact_path(location, "ws01", "GPReport", "html", STAMP)

    assert (tmp_path / "reports").is_dir()
    assert path.parent == (tmp_path / "reports").resolve()


def test_no_extension_creates_directory(tmp_path: Path) -> None:
    location = tmp_path / "nested" / "reports"

    path = resolve_artifact_path(str(location), "ws01", "GPReport", "html", STAMP)

    assert location.is_dir()
    assert path.name == f"GPReport_ws01_{STAMP}.html"


def test_full_file_path_used_verbatim(tmp_path: Path) -> None:
    location = tmp_path / "out" / "policy.html"

    path = resolve_artifact_path(str(location), "ws01", "GPReport", "html", STAMP)

    assert path == location.resolve()
    assert location.parent.is_dir()


def test_full_file_path_shared_by_several_hosts(tmp_path: Path) -> None:
    location = str(tmp_path / "policy.html")

    first = resolve_artifact_path(location, "ws01", "GPReport", "html", STAMP, multi_host=True)
    second = resolve_artifact_path(location, "ws02", "GPReport", "html", STAMP, multi_host=True)

    assert first != second
    assert first.name == f"policy_ws01_{STAMP}.html"


def test_paths_distinct_for_hosts_sharing_prefix(tmp_path: Path) -> None:
    hosts = ["ws01", "ws010", "ws01a", "ws01-b", "ws01.corp"]

    paths = {
        resolve_artifact_path(str(tmp_path), host, "GPReport", "html", STAMP)
        for host in hosts
    }

    assert len(paths) == len(hosts)


def test_second_run_in_same_directory_does_not_overwrite(tmp_path: Path) -> None:
    first = resolve_artifact_path(str(tmp_path), "ws01", "GPReport", "html", STAMP)
    first.write_text("first run")

    second = resolve_artifact_path(
        str(tmp_path), "ws02", "GPReport", "html", "20240501_101501"
    )

    assert second != first
    assert first.read_text() == "first run"
