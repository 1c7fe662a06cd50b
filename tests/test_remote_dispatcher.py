"""Tests for remote execution over SSH."""

from unittest.mock import MagicMock

import paramiko
import pytest

from release_engine.exceptions import RemoteExecutionError
from release_engine.models.config import RemoteConfig
from release_engine.services.remote_dispatcher import Credential, RemoteDispatcher


def _client(exit_status=0, stdout=b"", stderr=b""):
    client = MagicMock()
    out, err = MagicMock(), MagicMock()
    out.channel.recv_exit_status.return_value = exit_status
    out.read.return_value = stdout
    err.read.return_value = stderr
    client.exec_command.return_value = (MagicMock(), out, err)
    return client


def _dispatcher(client, **config):
    return RemoteDispatcher(RemoteConfig(**config), client_factory=lambda: client)


CREDENTIAL = Credential("svc_deploy", "secret")


class TestCredential:
    """Test credential handling."""

    def test_repr_hides_password(self):
        assert "secret" not in repr(CREDENTIAL)

    def test_from_config(self):
        credential = Credential.from_config(RemoteConfig(username="svc", key_filename="/keys/id"))
        assert (credential.username, credential.password, credential.key_filename) == ("svc", None, "/keys/id")


class TestRunRemote:
    """Test command execution and error mapping."""

    def test_success(self):
        client = _client(stdout=b"line one\nline two\n")

        result = _dispatcher(client).run_remote_sync("qa-web01", "hostname", CREDENTIAL)

        assert result.exit_status == 0
        assert result.stdout == "line one\nline two"
        client.connect.assert_called_once()
        assert client.connect.call_args[0][0] == "qa-web01"
        assert client.connect.call_args[1]["password"] == "secret"
        client.close.assert_called_once()

    def test_non_zero_exit(self):
        client = _client(exit_status=2, stderr=b"deploy failed")

        with pytest.raises(RemoteExecutionError) as exc_info:
            _dispatcher(client).run_remote_sync("qa-web01", "release-engine deploy-local x QA", CREDENTIAL)

        error = exc_info.value
        assert error.exit_status == 2
        assert error.command_started is True
        assert error.hint is None
        assert "deploy failed" in str(error)
        client.close.assert_called_once()

    def test_access_denied_adds_hint(self):
        client = _client(exit_status=1, stderr=b"rsync: Permission denied (13)")

        with pytest.raises(RemoteExecutionError) as exc_info:
            _dispatcher(client).run_remote_sync("relay01", "rsync", CREDENTIAL)

        assert exc_info.value.hint

    def test_authentication_failure(self):
        client = _client()
        client.connect.side_effect = paramiko.AuthenticationException("bad password")

        with pytest.raises(RemoteExecutionError) as exc_info:
            _dispatcher(client).run_remote_sync("qa-web01", "hostname", CREDENTIAL)

        assert exc_info.value.command_started is False
        assert exc_info.value.hint
        client.exec_command.assert_not_called()

    def test_unreachable_host(self):
        client = _client()
        client.connect.side_effect = OSError("No route to host")

        with pytest.raises(RemoteExecutionError, match="Could not connect"):
            _dispatcher(client).run_remote_sync("qa-web01", "hostname", CREDENTIAL)


class TestRelayCopy:
    """Test the relay-host copy."""

    def test_copy_command_quotes_paths(self):
        dispatcher = _dispatcher(_client())
        command = dispatcher.copy_command("/srv/Releases/WIDGETS 480", "qa-web01", "/var/lib/pkg")
        assert command == "rsync -a --delete --mkpath '/srv/Releases/WIDGETS 480'/ qa-web01:/var/lib/pkg/"

    @pytest.mark.asyncio
    async def test_runs_on_relay_host(self):
        client = _client()
        dispatcher = _dispatcher(client, relay_host="relay01")

        await dispatcher.relay_copy("/srv/Releases/WIDGETS_480", "qa-web01", "/var/lib/pkg", CREDENTIAL)

        assert client.connect.call_args[0][0] == "relay01"

    @pytest.mark.asyncio
    async def test_without_relay_runs_on_target(self):
        client = _client()
        dispatcher = _dispatcher(client)

        await dispatcher.relay_copy("/srv/Releases/WIDGETS_480", "qa-web01", "/var/lib/pkg", CREDENTIAL)

        assert client.connect.call_args[0][0] == "qa-web01"
