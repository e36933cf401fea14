"""Command line entry point for winscout."""

import argparse
import asyncio
import getpass
import sys
from datetime import datetime, timedelta

from winscout.config import Config
from winscout.dependencies import Dependencies
from winscout.exceptions import CorrelationAbortedError, NoHostsError
from winscout.models import Credential, Scope
from winscout.services.gpreport import collect_gp_reports
from winscout.services.lockout import investigate_lockouts
from winscout.tools.formatting import format_batch, format_correlation
from winscout.utils.console import configure_logging

EXIT_OK = 0
EXIT_ALL_FAILED = 1
EXIT_FATAL = 2


def _read_hosts(values: list[str]) -> list[str]:
    """Hosts from arguments; ``-`` reads one host per line from stdin."""
    hosts: list[str] = []
    for value in values:
        if value == "-":
            hosts.extend(line.strip() for line in sys.stdin if line.strip())
        else:
            hosts.append(value)
    return hosts


def _credential(args: argparse.Namespace, config: Config) -> Credential | None:
    """Credential from the command line; unset parts fall back to config."""
    if not (args.user or args.identity_file or args.ask_password):
        return None
    username = args.user or config.default_user
    password = None
    if args.ask_password:
        password = getpass.getpass(f"Password for {username or 'current user'}: ")
    return Credential(username=username, password=password, identity_file=args.identity_file)


def _timestamp(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"not an ISO-8601 timestamp: {value}") from e


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="winscout",
        description="Run administration operations against many Windows hosts over SSH",
    )
    parser.add_argument("--user", help="Account for remote sessions")
    parser.add_argument("--identity-file", help="Private key for remote sessions")
    parser.add_argument(
        "--ask-password", action="store_true", help="Prompt for the account password"
    )
    parser.add_argument(
        "-j", "--concurrency", type=int, help="Maximum hosts processed at once"
    )
    parser.add_argument("--log-level", help="Log level (default: WINSCOUT_LOG_LEVEL or INFO)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    gp = subparsers.add_parser("gpreport", help="Collect Group Policy reports")
    gp.add_argument("hosts", nargs="+", help="Host names ('-' reads them from stdin)")
    gp.add_argument(
        "--scope", choices=[s.value for s in Scope], default=Scope.BOTH.value
    )
    gp.add_argument("--subject", help="Account whose user policy is reported")
    gp.add_argument("-o", "--output", help="Output directory or file path")
    gp.add_argument("--format", dest="fmt", choices=["html", "xml"])
    gp.add_argument("--timeout", type=float, help="Per-host time budget in seconds")
    gp.add_argument(
        "--sequential", action="store_true", help="Process hosts one at a time"
    )

    lock = subparsers.add_parser("lockouts", help="Explain account lockouts")
    lock.add_argument("--pdc", help="Domain controller with the PDC emulator role")
    lock.add_argument("--subject", help="Account name or SID to investigate")
    lock.add_argument("--since-hours", type=float, help="Only the last N hours")
    lock.add_argument("--start", type=_timestamp, help="Earliest lockout (ISO-8601)")
    lock.add_argument("--end", type=_timestamp, help="Latest lockout (ISO-8601)")
    return parser


async def _run(args: argparse.Namespace, deps: Dependencies) -> int:
    credential = _credential(args, deps.config)

    if args.command == "gpreport":
        outcome = await collect_gp_reports(
            deps,
            _read_hosts(args.hosts),
            scope=args.scope,
            subject=args.subject,
            output=args.output,
            fmt=args.fmt,
            credential=credential,
            concurrency=args.concurrency,
            parallel=False if args.sequential else None,
            timeout=args.timeout,
        )
        print(format_batch(outcome))
        return EXIT_OK if outcome.succeeded else EXIT_ALL_FAILED

    since = timedelta(hours=args.since_hours) if args.since_hours else None
    result = await investigate_lockouts(
        deps,
        pdc=args.pdc,
        subject=args.subject,
        start=args.start,
        end=args.end,
        since=since,
        credential=credential,
        concurrency=args.concurrency,
    )
    print(format_correlation(result))
    return EXIT_ALL_FAILED if result.diagnostics and not result.results else EXIT_OK


def main(argv: list[str] | None = None, deps: Dependencies | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        deps = deps or Dependencies.from_config(Config())
    except FileNotFoundError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_FATAL

    try:
        return asyncio.run(_run(args, deps))
    except (NoHostsError, CorrelationAbortedError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FATAL


if __name__ == "__main__":
    sys.exit(main())
