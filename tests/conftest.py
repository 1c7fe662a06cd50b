"""Shared fixtures for release-engine tests."""

from pathlib import Path
from typing import Dict, List, Optional

import pytest

from release_engine.models.config import EngineConfig
from release_engine.services.database_deploy import DatabaseGateway
from release_engine.exceptions import DatabaseScriptError
from release_engine.services.notification_service import NotificationService


def descriptor_xml(name: str = "WIDGETS",
                   emails: Optional[List[str]] = None,
                   targets: Optional[Dict[str, str]] = None,
                   build_tasks: str = "",
                   deploy_tasks: str = "",
                   database: str = "",
                   source_path: Optional[str] = None) -> str:
    """Render an application descriptor document."""
    emails = ["team@example.com"] if emails is None else emails
    targets = {"QA": "qa-web01", "PROD": "prod-web01"} if targets is None else targets

    email_xml = "".join(f"<Email>{e}</Email>" for e in emails)
    target_xml = "".join(
        f'<Target Name="{server}" NickName="{nick}"/>' for nick, server in targets.items()
    )
    source_xml = f"<SourcePath>{source_path}</SourcePath>" if source_path else ""
    return f"""<?xml version="1.0" encoding="utf-8"?>
<Application>
  <General>
    <Name>{name}</Name>
    {source_xml}
    <NotificationEmails>{email_xml}</NotificationEmails>
  </General>
  <BuildSettings>
    <BuildTasks><TaskProcess>{build_tasks}</TaskProcess></BuildTasks>
  </BuildSettings>
  <DeploySettings>
    <DeployTargets>{target_xml}</DeployTargets>
    {database}
    <DeployTasks><TaskProcess>{deploy_tasks}</TaskProcess></DeployTasks>
  </DeploySettings>
</Application>
"""


class FakeSourceControl:
    """In-memory repository: a HEAD revision and a descriptor set."""

    def __init__(self, head: int = 500, descriptors: Optional[Dict[str, str]] = None):
        self.head = head
        self.descriptors = descriptors if descriptors is not None else {"WIDGETS": descriptor_xml()}
        self.head_calls = 0
        self.exports = []
        self.log_calls = []

    def head_revision(self, repository_path: str = "") -> int:
        self.head_calls += 1
        return self.head

    def export(self, repository_path, destination, revision=None):
        destination = Path(destination)
        destination.mkdir(parents=True, exist_ok=True)
        self.exports.append((repository_path, destination, revision))
        if repository_path == "AppConfigs":
            for name, xml in self.descriptors.items():
                (destination / f"{name}.xml").write_text(xml, encoding="utf-8")
        return destination

    def log(self, repository_path, start, end):
        self.log_calls.append((repository_path, start, end))
        return []


class RecordingNotifier(NotificationService):
    """Notification service that records messages instead of sending them."""

    def __init__(self, config):
        super().__init__(config)
        self.sent = []

    def send(self, notification) -> bool:
        self.sent.append(notification)
        return True


class FakeGateway(DatabaseGateway):
    """Scriptable database pair."""

    def __init__(self, online=None, mirroring=None, fail_on: Optional[str] = None):
        self.online = online or {}
        self.mirroring = mirroring or {}
        self.fail_on = fail_on
        self.executed = []
        self.calls = []

    def is_online(self, server, database):
        self.calls.append(("is_online", server))
        return self.online.get(server, False)

    def mirroring_state(self, server, database):
        return self.mirroring.get(server)

    def suspend_mirroring(self, server, database):
        self.calls.append(("suspend", server))
        self.mirroring[server] = "SUSPENDED"

    def resume_mirroring(self, server, database):
        self.calls.append(("resume", server))
        self.mirroring[server] = "SYNCHRONIZED"

    def execute_script(self, server, database, name, batches):
        if self.fail_on and name.endswith(self.fail_on):
            raise DatabaseScriptError(name, "Invalid object name 'dbo.Missing'")
        self.executed.append((server, name, batches))


@pytest.fixture
def engine_config(tmp_path):
    """Engine configuration rooted in a temporary folder."""
    config_dir = tmp_path / "AppConfigs"
    config_dir.mkdir()
    (config_dir / "WIDGETS.xml").write_text(descriptor_xml(), encoding="utf-8")

    return EngineConfig.from_dict({
        "paths": {
            "releases_root": str(tmp_path / "Releases"),
            "config_dir": str(config_dir),
            "build_root": str(tmp_path / "build"),
            "state_root": str(tmp_path / "state"),
        },
        "repository": {"url": "svn://repo.example.com/main"},
        "notifications": {"admin_emails": ["admin@example.com"]},
        "remote": {"relay_host": "relay01", "username": "svc_deploy"},
        "database": {"poll_interval": 0.01, "max_wait": 1},
    })


@pytest.fixture
def source_control():
    return FakeSourceControl()


@pytest.fixture
def notifier(engine_config):
    return RecordingNotifier(engine_config.notifications)
