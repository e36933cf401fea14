"""Remote operation execution and artifact retrieval."""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import asyncssh

from winscout.exceptions import ArtifactTransferError, RemoteProtocolError, WinscoutError
from winscout.models import HostTask, RemoteArtifact, Scope, SessionHandle
from winscout.remote import build_command, decode_response, encode_request
from winscout.utils.paths import make_run_stamp, resolve_artifact_path

if TYPE_CHECKING:
    from winscout.services.session import SessionManager

logger = logging.getLogger(__name__)

_DRIVE_PATH = re.compile(r"^[A-Za-z]:/")


def _decode(stream: str | bytes | None) -> str:
    if stream is None:
        return ""
    if isinstance(stream, bytes):
        return stream.decode("utf-8", errors="replace")
    return stream


def to_sftp_path(remote_path: str) -> str:
    r"""Convert a Windows path to the form Windows OpenSSH SFTP expects.

    ``C:\Windows\Temp\x.html`` becomes ``/C:/Windows/Temp/x.html``.
    """
    path = remote_path.replace("\\", "/")
    if _DRIVE_PATH.match(path):
        path = "/" + path
    return path


async def run_operation(
    conn: "asyncssh.SSHClientConnection",
    name: str,
    args: dict[str, Any],
    timeout: float | None = None,
) -> Any:
    """Run a registered remote operation and decode its response.

    Returns:
        The ``data`` member of the response envelope.

    Raises:
        RemoteOperationError: If the operation reported a failure.
        RemoteProtocolError: If the response was not a valid envelope.
        ValueError: If the arguments are invalid for the operation.
    """
    request = encode_request(name, args)
    result = await conn.run(build_command(name), input=request, check=False, timeout=timeout)

    stdout = _decode(result.stdout)
    returncode = result.returncode
    if returncode not in (0, 1) and not stdout.strip():
        stderr = _decode(result.stderr).strip()
        raise RemoteProtocolError(
            name, f"exited with code {returncode}: {stderr or 'no output'}", returncode
        )
    return decode_response(name, stdout, returncode)


async def _remove_remote(
    conn: "asyncssh.SSHClientConnection",
    sftp: "asyncssh.SFTPClient",
    sftp_path: str,
    remote_path: str,
) -> None:
    try:
        await sftp.remove(sftp_path)
        logger.debug("Removed remote artifact %s", remote_path)
        return
    except (asyncssh.SFTPError, OSError) as e:
        logger.debug("SFTP removal of %s failed (%s), retrying remotely", remote_path, e)

    try:
        await run_operation(conn, "remove_file", {"path": remote_path})
        logger.debug("Removed remote artifact %s", remote_path)
    except (WinscoutError, asyncssh.Error, OSError) as e:
        logger.warning("Could not remove remote artifact %s: %s", remote_path, e)


async def fetch_artifact(
    conn: "asyncssh.SSHClientConnection",
    remote_path: str,
    local_path: Path,
    scope: Scope | None = None,
) -> RemoteArtifact:
    """Download a remote file, then delete the remote copy.

    Remote deletion is best-effort: SFTP first, then the remove_file
    operation; a failure of both is logged only.

    Raises:
        ArtifactTransferError: If the copy fails or the local file is empty.
    """
    sftp_path = to_sftp_path(remote_path)
    try:
        async with conn.start_sftp_client() as sftp:
            try:
                await sftp.get(sftp_path, str(local_path))
            finally:
                await _remove_remote(conn, sftp, sftp_path, remote_path)
    except (asyncssh.Error, OSError) as e:
        raise ArtifactTransferError(remote_path, str(local_path), str(e)) from e

    size = local_path.stat().st_size if local_path.exists() else 0
    if size == 0:
        raise ArtifactTransferError(remote_path, str(local_path), "local copy is empty")

    logger.info("Downloaded %s -> %s (%d bytes)", remote_path, local_path, size)
    return RemoteArtifact(
        path=str(local_path),
        size=size,
        produced_at=datetime.now(),
        scope=scope,
    )


async def execute_task(
    handle: SessionHandle,
    task: HostTask,
    *,
    output: str | None = None,
    run_stamp: str | None = None,
    command_timeout: float | None = None,
    multi_host: bool = False,
) -> RemoteArtifact | Any:
    """Run a task's operation inside an open session.

    Returns:
        A RemoteArtifact when the operation produces a file, otherwise the
        operation's decoded data.
    """
    if not handle.is_active or handle.connection is None:
        raise RuntimeError(f"Session to {handle.host} is not active")

    operation = task.operation
    if not operation.produces_artifact:
        return await run_operation(
            handle.connection, operation.name, operation.arguments(), command_timeout
        )

    # Nothing is created remotely until the local destination exists
    try:
        local_path = resolve_artifact_path(
            output,
            task.host,
            operation.artifact_prefix,
            operation.artifact_ext,
            run_stamp or make_run_stamp(),
            multi_host=multi_host,
        )
    except OSError as e:
        raise ArtifactTransferError(
            f"{operation.name} report", str(output), f"cannot prepare local destination: {e}"
        ) from e

    data = await run_operation(
        handle.connection, operation.name, operation.arguments(), command_timeout
    )
    remote_path = data.get("path") if isinstance(data, dict) else None
    if not remote_path:
        raise RemoteProtocolError(operation.name, "response did not name an artifact path")
    return await fetch_artifact(handle.connection, remote_path, local_path, operation.scope)


class RemoteTaskRunner:
    """Opens a session per task and executes the task inside it."""

    def __init__(
        self,
        sessions: "SessionManager",
        *,
        output: str | None = None,
        run_stamp: str | None = None,
        command_timeout: float | None = None,
        multi_host: bool = False,
    ) -> None:
        self.sessions = sessions
        self.output = output
        self.run_stamp = run_stamp or make_run_stamp()
        self.command_timeout = command_timeout
        self.multi_host = multi_host

    async def __call__(self, task: HostTask) -> RemoteArtifact | Any:
        async with self.sessions.open(task.host, task.credential) as handle:
            return await execute_task(
                handle,
                task,
                output=self.output,
                run_stamp=self.run_stamp,
                command_timeout=self.command_timeout,
                multi_host=self.multi_host,
            )
