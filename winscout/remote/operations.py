"""Versioned remote-operation protocol.

Each operation is a fixed PowerShell script. The SSH command line for an
operation never changes; its arguments travel as a JSON request on stdin and
the script answers with exactly one JSON envelope on stdout:

    {"v": 1, "ok": true, "data": ...}
    {"v": 1, "ok": false, "error": {"category": ..., "error_id": ...,
                                    "exception": ..., "message": ...}}
"""

import base64
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from winscout.exceptions import RemoteOperationError, RemoteProtocolError

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = 1

_PROLOGUE = """$ErrorActionPreference = 'Stop'
$ProgressPreference = 'SilentlyContinue'
function Out-Envelope($obj) { $obj | ConvertTo-Json -Depth 8 -Compress }
try {
  $envelope = [Console]::In.ReadToEnd() | ConvertFrom-Json
  if ($envelope.v -ne %(version)d) { throw "protocol version $($envelope.v) not supported" }
  $req = $envelope.args
  $data = & {
%(body)s
  }
  Out-Envelope ([pscustomobject]@{ v = %(version)d; ok = $true; data = $data })
  exit 0
} catch {
  $e = $_
  Out-Envelope ([pscustomobject]@{ v = %(version)d; ok = $false; error = [pscustomobject]@{
    category = [string]$e.CategoryInfo.Category
    error_id = [string]$e.FullyQualifiedErrorId
    exception = $e.Exception.GetType().FullName
    message = $e.Exception.Message
  } })
  exit 1
}
"""

_GPRESULT = """
    if ($req.format -notin @('html', 'xml')) { throw "unsupported format $($req.format)" }
    if ($req.scope -notin @('computer', 'user', 'both')) { throw "unsupported scope $($req.scope)" }
    $switch = if ($req.format -eq 'xml') { '/X' } else { '/H' }
    $path = Join-Path $env:TEMP ('gpreport_{0}.{1}' -f [guid]::NewGuid().ToString('N'), $req.format)
    $gpArgs = @($switch, $path, '/F')
    if ($req.scope -ne 'both') { $gpArgs += @('/SCOPE', $req.scope) }
    if ($req.subject) { $gpArgs += @('/USER', [string]$req.subject) }
    $out = & gpresult.exe @gpArgs 2>&1
    if ($LASTEXITCODE -ne 0) { throw "gpresult exited with code ${LASTEXITCODE}: $($out -join ' ')" }
    [pscustomobject]@{ path = $path; size = (Get-Item -LiteralPath $path).Length }
"""

_GET_EVENTS = """
    $filter = @{ LogName = [string]$req.log; Id = [int]$req.event_id }
    if ($req.start) { $filter.StartTime = [datetime]::Parse($req.start, $null, 'RoundtripKind') }
    if ($req.end) { $filter.EndTime = [datetime]::Parse($req.end, $null, 'RoundtripKind') }
    $found = Get-WinEvent -FilterHashtable $filter -MaxEvents ([int]$req.max_events)
    $records = foreach ($ev in $found) {
      $xml = [xml]$ev.ToXml()
      $fields = @{}
      foreach ($d in $xml.Event.EventData.Data) { $fields[[string]$d.Name] = [string]$d.InnerText }
      [pscustomobject]@{
        id = $ev.Id
        record_id = $ev.RecordId
        machine = $ev.MachineName
        time = $ev.TimeCreated.ToUniversalTime().ToString('o')
        data = $fields
      }
    }
    ,@($records)
"""

_RESOLVE_IDENTITY = """
    $account = New-Object System.Security.Principal.NTAccount([string]$req.name)
    $sid = $account.Translate([System.Security.Principal.SecurityIdentifier])
    [pscustomobject]@{ name = [string]$req.name; sid = $sid.Value }
"""

_REMOVE_FILE = """
    $item = Get-Item -LiteralPath ([string]$req.path)
    $temp = [IO.Path]::GetFullPath($env:TEMP).TrimEnd('\\')
    if ($item.DirectoryName -ne $temp) { throw "refusing to remove $($item.FullName) outside $temp" }
    Remove-Item -LiteralPath $item.FullName -Force
    [pscustomobject]@{ path = $item.FullName; removed = $true }
"""


@dataclass(frozen=True)
class RemoteOperation:
    """A registered remote operation."""

    name: str
    body: str
    required: tuple[str, ...] = ()
    choices: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    version: int = PROTOCOL_VERSION

    @property
    def script(self) -> str:
        """Complete PowerShell script for this operation."""
        return _PROLOGUE % {"version": self.version, "body": self.body.rstrip()}


OPERATIONS: dict[str, RemoteOperation] = {
    op.name: op
    for op in (
        RemoteOperation(
            name="gpresult",
            body=_GPRESULT,
            required=("scope", "format"),
            choices={"scope": ("computer", "user", "both"), "format": ("html", "xml")},
        ),
        RemoteOperation(
            name="get_events",
            body=_GET_EVENTS,
            required=("log", "event_id", "max_events"),
        ),
        RemoteOperation(
            name="resolve_identity",
            body=_RESOLVE_IDENTITY,
            required=("name",),
        ),
        RemoteOperation(
            name="remove_file",
            body=_REMOVE_FILE,
            required=("path",),
        ),
    )
}


def get_operation(name: str) -> RemoteOperation:
    """Look up a registered operation.

    Raises:
        KeyError: If no operation has that name.
    """
    try:
        return OPERATIONS[name]
    except KeyError:
        raise KeyError(f"Unknown remote operation: {name}") from None


@lru_cache(maxsize=None)
def build_command(name: str) -> str:
    """Constant SSH command line for an operation."""
    script = get_operation(name).script
    encoded = base64.b64encode(script.encode("utf-16-le")).decode("ascii")
    return (
        "powershell.exe -NoLogo -NoProfile -NonInteractive "
        f"-ExecutionPolicy Bypass -EncodedCommand {encoded}"
    )


def validate_arguments(name: str, args: Mapping[str, Any]) -> None:
    """Check required arguments and enumerated values.

    Raises:
        ValueError: If an argument is missing or out of range.
    """
    op = get_operation(name)
    missing = [key for key in op.required if args.get(key) in (None, "")]
    if missing:
        raise ValueError(f"{name}: missing argument(s) {', '.join(missing)}")
    for key, allowed in op.choices.items():
        if key in args and args[key] not in allowed:
            raise ValueError(
                f"{name}: {key}={args[key]!r} not in {', '.join(allowed)}"
            )


def encode_request(name: str, args: Mapping[str, Any]) -> str:
    """Serialize the stdin request for an operation."""
    validate_arguments(name, args)
    op = get_operation(name)
    return json.dumps({"v": op.version, "op": name, "args": dict(args)}) + "\n"


def _last_json_line(stdout: str) -> str | None:
    for line in reversed(stdout.splitlines()):
        line = line.strip()
        if line.startswith("{"):
            return line
    return None


def decode_response(name: str, stdout: str, exit_status: int | None) -> Any:
    """Decode a response envelope.

    Returns:
        The ``data`` member of a successful envelope.

    Raises:
        RemoteOperationError: If the remote side reported a failure.
        RemoteProtocolError: If no valid envelope was returned.
    """
    line = _last_json_line(stdout)
    if line is None:
        raise RemoteProtocolError(
            name, f"no response envelope (exit status {exit_status})", exit_status
        )

    try:
        envelope = json.loads(line)
    except json.JSONDecodeError as e:
        raise RemoteProtocolError(name, f"invalid response envelope: {e}", exit_status) from e

    if not isinstance(envelope, dict) or envelope.get("v") != get_operation(name).version:
        raise RemoteProtocolError(name, "unsupported response envelope version", exit_status)

    if envelope.get("ok"):
        return envelope.get("data")

    error = envelope.get("error") or {}
    if not isinstance(error, dict):
        error = {"message": str(error)}
    exc = RemoteOperationError.from_envelope(name, error)
    exc.exit_status = exit_status
    logger.debug(
        "%s reported failure: category=%s error_id=%s",
        name,
        exc.category,
        exc.error_id,
    )
    raise exc
