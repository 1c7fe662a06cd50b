"""Delegated remote execution and relay-host artifact copy"""

import asyncio
import logging
import shlex
from dataclasses import dataclass
from functools import partial
from typing import Callable, Optional

import paramiko

from ..constants import ACCESS_DENIED_PATTERN, CREDENTIAL_HINT
from ..exceptions import RemoteExecutionError
from ..models.config import RemoteConfig

logger = logging.getLogger(__name__)


@dataclass
class Credential:
    """Delegated credential, forwarded to the channel without inspection"""
    username: Optional[str] = None
    password: Optional[str] = None
    key_filename: Optional[str] = None

    @classmethod
    def from_config(cls, config: RemoteConfig) -> 'Credential':
        return cls(config.username, config.password, config.key_filename)

    def __repr__(self) -> str:
        return f"Credential(username={self.username!r})"


@dataclass
class RemoteCommandResult:
    """Completed remote command"""
    server: str
    command: str
    exit_status: int
    stdout: str
    stderr: str


class RemoteDispatcher:
    """Run commands on named hosts over SSH and wait for them to finish"""

    def __init__(self, config: RemoteConfig,
                 client_factory: Callable[[], paramiko.SSHClient] = paramiko.SSHClient):
        self.config = config
        self.client_factory = client_factory

    def _connect(self, server: str, credential: Credential) -> paramiko.SSHClient:
        client = self.client_factory()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            client.connect(
                server,
                port=self.config.port,
                username=credential.username,
                password=credential.password,
                key_filename=credential.key_filename,
                timeout=self.config.connect_timeout,
            )
        except paramiko.AuthenticationException as e:
            client.close()
            raise RemoteExecutionError(server, "", f"Authentication failed: {e}", hint=CREDENTIAL_HINT)
        except (paramiko.SSHException, OSError) as e:
            client.close()
            raise RemoteExecutionError(server, "", f"Could not connect: {e}")
        return client

    def run_remote_sync(self, server: str, command: str, credential: Credential) -> RemoteCommandResult:
        """Run a command on a server and block until it exits

        Raises:
            RemoteExecutionError: Connection failure or non-zero exit status
        """
        logger.info("[%s] Running: %s", server, command)
        client = self._connect(server, credential)
        try:
            try:
                _, stdout, stderr = client.exec_command(command)
                exit_status = stdout.channel.recv_exit_status()
                out = stdout.read().decode(errors="replace").strip()
                err = stderr.read().decode(errors="replace").strip()
            except (paramiko.SSHException, OSError) as e:
                raise RemoteExecutionError(server, command, f"Remote execution failed: {e}")
        finally:
            client.close()

        for line in out.splitlines():
            logger.info("[%s] %s", server, line)

        if exit_status != 0:
            hint = CREDENTIAL_HINT if ACCESS_DENIED_PATTERN.search(err or out) else None
            raise RemoteExecutionError(
                server,
                command,
                err or out or f"exit status {exit_status}",
                exit_status=exit_status,
                stderr=err,
                command_started=True,
                hint=hint,
            )

        return RemoteCommandResult(server, command, exit_status, out, err)

    async def run_remote(self, server: str, command: str, credential: Credential) -> RemoteCommandResult:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(self.run_remote_sync, server, command, credential))

    def copy_command(self, source: str, server: str, destination: str) -> str:
        return self.config.copy_command.format(
            source=shlex.quote(source),
            server=server,
            destination=shlex.quote(destination),
        )

    async def relay_copy(self,
                         source: str,
                         server: str,
                         destination: str,
                         credential: Credential) -> RemoteCommandResult:
        """Copy a folder to a target server by running the copy on the relay host

        Without a relay host the copy runs on the target itself (pulling).

        Raises:
            RemoteExecutionError: The remote copy failed; the verbatim error is kept
        """
        relay = self.config.relay_host or server
        command = self.copy_command(source, server, destination)
        logger.info("Copying %s to %s:%s via %s", source, server, destination, relay)
        return await self.run_remote(relay, command, credential)
