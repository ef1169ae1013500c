"""Remote transport: run review server commands over ssh, copy files with
scp."""

import logging
import subprocess
from pathlib import Path

from gerritflow.config import TransportConfig
from gerritflow.errors import RemoteError, TransportError
from gerritflow.gerrit.commands import GerritCommand
from gerritflow.models import ServerAddress

LOG = logging.getLogger("gerritflow.services.ssh")

# ssh exits with 255 when the connection itself fails
SSH_CONNECTION_FAILED = 255


def _exec(cmd: list[str], timeout: int) -> subprocess.CompletedProcess:
    LOG.debug("Running %s", cmd)
    try:
        return subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError as e:
        raise TransportError(f"{cmd[0]} not found", command=cmd) from e
    except subprocess.TimeoutExpired as e:
        raise TransportError(f"{cmd[0]} timed out after {timeout}s", command=cmd) from e


def ssh_command(command: GerritCommand, address: ServerAddress, settings: TransportConfig) -> list[str]:
    """Build the ssh argv for a server command."""
    cmd = [settings.ssh_command, address.destination]
    if address.port:
        cmd += ["-p", str(address.port)]
    return cmd + ["--", f"{settings.command_prefix} {command.to_wire()}"]


def run(
    command: GerritCommand,
    address: ServerAddress,
    settings: TransportConfig | None = None,
) -> str:
    """Run a command on the review server and return its stdout.

    Raises:
        TransportError: ssh could not be started, timed out or could not
            connect.
        RemoteError: the server rejected the command.
    """
    settings = settings or TransportConfig()
    cmd = ssh_command(command, address, settings)
    result = _exec(cmd, settings.timeout)
    if result.returncode == 0:
        return result.stdout
    err = (result.stderr or result.stdout or "").strip()
    if result.returncode == SSH_CONNECTION_FAILED:
        raise TransportError(f"ssh to {address.destination} failed: {err}", command=cmd)
    raise RemoteError(f"{cmd[-1]}: {err}", command=cmd, returncode=result.returncode)


def scp(
    source: str,
    destination: Path,
    address: ServerAddress,
    settings: TransportConfig | None = None,
) -> None:
    """Copy a file from the server (source is a server path) to destination."""
    settings = settings or TransportConfig()
    # -O: the review server speaks the legacy scp protocol, not SFTP
    cmd = [settings.scp_command, "-O", "-p"]
    if address.port:
        cmd += ["-P", str(address.port)]
    cmd += [f"{address.destination}:{source}", str(destination)]
    result = _exec(cmd, settings.timeout)
    if result.returncode != 0:
        err = (result.stderr or result.stdout or "").strip()
        raise TransportError(f"scp {source} failed: {err}", command=cmd)
    LOG.debug("Copied %s to %s", source, destination)
