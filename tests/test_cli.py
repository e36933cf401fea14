"""Tests for the command line interface."""

import io
from datetime import datetime
from unittest.mock import patch

import pytest

from winscout.cli import EXIT_ALL_FAILED, EXIT_FATAL, EXIT_OK, build_parser, main
from winscout.exceptions import CorrelationAbortedError
from winscout.models import (
    BatchOutcome,
    CorrelationOutcome,
    Diagnostic,
    ErrorClass,
    ExecutionReport,
)


def _batch(*ok: bool) -> BatchOutcome:
    return BatchOutcome(
        reports=[
            ExecutionReport(host=f"ws{i:02d}", elapsed=0.1, value="ok")
            if success
            else ExecutionReport(
                host=f"ws{i:02d}", elapsed=0.1, error=ErrorClass.UNREACHABLE_HOST, message="down"
            )
            for i, success in enumerate(ok, 1)
        ]
    )


class TestParser:
    def test_gpreport_arguments(self):
        args = build_parser().parse_args(
            ["-j", "3", "gpreport", "ws01", "ws02", "--scope", "user", "--format", "xml"]
        )
        assert args.command == "gpreport"
        assert args.hosts == ["ws01", "ws02"]
        assert args.scope == "user"
        assert args.fmt == "xml"
        assert args.concurrency == 3

    def test_lockouts_timestamps(self):
        args = build_parser().parse_args(["lockouts", "--start", "2024-05-01T08:00:00"])
        assert args.start == datetime(2024, 5, 1, 8, 0)

    def test_bad_timestamp_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["lockouts", "--start", "yesterday"])


class TestMain:
    def test_gpreport_success(self, deps, capsys):
        with patch("winscout.cli.collect_gp_reports", return_value=_batch(True, False)) as collect:
            code = main(["gpreport", "ws01", "ws02"], deps=deps)

        assert code == EXIT_OK
        assert "1/2 hosts succeeded" in capsys.readouterr().out
        assert collect.call_args.args[1] == ["ws01", "ws02"]

    def test_gpreport_all_failed(self, deps):
        with patch("winscout.cli.collect_gp_reports", return_value=_batch(False, False)):
            assert main(["gpreport", "ws01", "ws02"], deps=deps) == EXIT_ALL_FAILED

    def test_hosts_from_stdin(self, deps, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO("ws01\n\nws02\n"))

        with patch("winscout.cli.collect_gp_reports", return_value=_batch(True)) as collect:
            main(["gpreport", "-", "ws03"], deps=deps)

        assert collect.call_args.args[1] == ["ws01", "ws02", "ws03"]

    def test_sequential_flag(self, deps):
        with patch("winscout.cli.collect_gp_reports", return_value=_batch(True)) as collect:
            main(["gpreport", "ws01", "--sequential"], deps=deps)

        assert collect.call_args.kwargs["parallel"] is False

    def test_credential_from_flags(self, deps, monkeypatch):
        monkeypatch.setattr("winscout.cli.getpass.getpass", lambda prompt: "s3cret")

        with patch("winscout.cli.collect_gp_reports", return_value=_batch(True)) as collect:
            main(["--user", "CORP\\admin", "--ask-password", "gpreport", "ws01"], deps=deps)

        credential = collect.call_args.kwargs["credential"]
        assert credential.username == "CORP\\admin"
        assert credential.password == "s3cret"

    def test_identity_file_without_user_is_kept(self, deps):
        deps.config.default_user = "svc_winscout"

        with patch("winscout.cli.collect_gp_reports", return_value=_batch(True)) as collect:
            main(["--identity-file", "/tmp/k", "gpreport", "ws01"], deps=deps)

        credential = collect.call_args.kwargs["credential"]
        assert credential.identity_file == "/tmp/k"
        assert credential.username == "svc_winscout"
        assert credential.password is None

    def test_no_credential_flags(self, deps):
        with patch("winscout.cli.collect_gp_reports", return_value=_batch(True)) as collect:
            main(["gpreport", "ws01"], deps=deps)

        assert collect.call_args.kwargs["credential"] is None

    def test_lockouts_with_results(self, deps, capsys):
        outcome = CorrelationOutcome()
        with patch("winscout.cli.investigate_lockouts", return_value=outcome) as investigate:
            code = main(["lockouts", "--pdc", "dc01", "--since-hours", "4"], deps=deps)

        assert code == EXIT_OK
        assert "No lockout events found." in capsys.readouterr().out
        assert investigate.call_args.kwargs["since"].total_seconds() == 4 * 3600

    def test_lockouts_only_diagnostics(self, deps):
        outcome = CorrelationOutcome(
            diagnostics=[Diagnostic("dc01", ErrorClass.UNREACHABLE_HOST, "down")]
        )
        with patch("winscout.cli.investigate_lockouts", return_value=outcome):
            assert main(["lockouts", "--pdc", "dc01"], deps=deps) == EXIT_ALL_FAILED

    def test_lockouts_aborted_is_fatal(self, deps, capsys):
        with patch(
            "winscout.cli.investigate_lockouts",
            side_effect=CorrelationAbortedError("dc01", "Access is denied"),
        ):
            code = main(["lockouts", "--pdc", "dc01"], deps=deps)

        assert code == EXIT_FATAL
        assert "Access is denied" in capsys.readouterr().err

    def test_no_pdc_is_fatal(self, deps):
        assert main(["lockouts"], deps=deps) == EXIT_FATAL

    def test_missing_known_hosts_is_fatal(self, monkeypatch, tmp_path, capsys):
        monkeypatch.setenv("WINSCOUT_KNOWN_HOSTS", str(tmp_path / "missing"))

        assert main(["gpreport", "ws01"]) == EXIT_FATAL
        assert "Configuration error" in capsys.readouterr().err
