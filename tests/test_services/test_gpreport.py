"""Tests for Group Policy report collection."""

from pathlib import Path

import pytest

from winscout.dependencies import Dependencies
from winscout.exceptions import NoHostsError
from winscout.models import Credential, ErrorClass, RemoteArtifact, Scope
from winscout.services.gpreport import collect_gp_reports, gp_report_operation


@pytest.fixture
def remote(monkeypatch):
    """Fake gpresult runs: records arguments and writes a local report."""
    calls: list[dict] = []

    async def run_operation(conn, name, args, timeout=None):
        calls.append({"name": name, "args": args, "timeout": timeout})
        return {"path": "C:\\Windows\\Temp\\gpreport_1.html", "size": 12}

    async def fetch_artifact(conn, remote_path, local_path: Path, scope=None):
        local_path.write_text("<html></html>")
        return RemoteArtifact(path=str(local_path), size=13, produced_at=None, scope=scope)

    monkeypatch.setattr("winscout.services.executors.run_operation", run_operation)
    monkeypatch.setattr("winscout.services.executors.fetch_artifact", fetch_artifact)
    return calls


def test_gp_report_operation():
    op = gp_report_operation(Scope.USER, "CORP\\alice", "xml")

    assert op.arguments() == {"format": "xml", "scope": "user", "subject": "CORP\\alice"}
    assert op.produces_artifact
    assert op.artifact_ext == "xml"


@pytest.mark.asyncio
async def test_collects_one_report_per_host(deps, remote, tmp_path):
    outcome = await collect_gp_reports(
        deps, ["ws01", "ws02", "WS01"], scope="computer", output=str(tmp_path)
    )

    assert [r.host for r in outcome.reports] == ["ws01", "ws02"]
    paths = [r.artifact.path for r in outcome.succeeded]
    assert len(set(paths)) == 2
    assert all(Path(p).parent == tmp_path.resolve() for p in paths)
    assert all(c["args"] == {"format": "html", "scope": "computer"} for c in remote)


@pytest.mark.asyncio
async def test_shared_file_path_kept_distinct(deps, remote, tmp_path):
    target = str(tmp_path / "policy.html")

    outcome = await collect_gp_reports(deps, ["ws01", "ws02"], output=target)

    paths = {r.artifact.path for r in outcome.reports}
    assert len(paths) == 2


@pytest.mark.asyncio
async def test_single_host_file_path_used_verbatim(deps, remote, tmp_path):
    target = tmp_path / "policy.html"

    outcome = await collect_gp_reports(deps, ["ws01"], output=str(target))

    assert outcome.reports[0].artifact.path == str(target.resolve())


@pytest.mark.asyncio
async def test_unreachable_host_reported(config, session_factory, probe_factory, remote, tmp_path):
    sessions = session_factory()
    deps = Dependencies(config=config, sessions=sessions, probe=probe_factory({"ws02"}))

    outcome = await collect_gp_reports(deps, ["ws01", "ws02", "ws03"], output=str(tmp_path))

    assert [r.host for r in outcome.succeeded] == ["ws01", "ws03"]
    assert outcome.diagnostics[0].host == "ws02"
    assert outcome.diagnostics[0].error is ErrorClass.UNREACHABLE_HOST
    assert "ws02" not in sessions.opened


@pytest.mark.asyncio
async def test_credential_reaches_every_session(deps, remote, fake_sessions, tmp_path):
    credential = Credential(username="CORP\\admin", password="pw")

    await collect_gp_reports(deps, ["ws01", "ws02"], output=str(tmp_path), credential=credential)

    assert fake_sessions.credentials == [credential, credential]


@pytest.mark.asyncio
async def test_config_defaults_applied(deps, remote, tmp_path):
    deps.config.report_format = "xml"
    deps.config.output_dir = str(tmp_path)
    deps.config.command_timeout = 42

    outcome = await collect_gp_reports(deps, ["ws01"])

    assert outcome.reports[0].artifact.path.endswith(".xml")
    assert remote[0]["timeout"] == 42


@pytest.mark.asyncio
async def test_no_hosts(deps):
    with pytest.raises(NoHostsError):
        await collect_gp_reports(deps, ["", "  "])


@pytest.mark.asyncio
async def test_invalid_scope(deps):
    with pytest.raises(ValueError):
        await collect_gp_reports(deps, ["ws01"], scope="forest")


@pytest.mark.asyncio
async def test_invalid_format(deps):
    with pytest.raises(ValueError, match="format"):
        await collect_gp_reports(deps, ["ws01"], fmt="pdf")
