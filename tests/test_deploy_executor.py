"""Tests for the target-side deploy executor."""

import logging
import zipfile
from unittest.mock import AsyncMock, patch

import pytest

from release_engine.core.release_registry import write_version_file
from release_engine.exceptions import DeployIOError
from release_engine.models.result import OperationStatus
from release_engine.services.build_service import BuildService
from release_engine.services.deploy_executor import DeployExecutor, expand_package

from .conftest import FakeGateway, FakeSourceControl, descriptor_xml


def _package(tmp_path, version=480, xml=None, files=None):
    folder = tmp_path / "state" / "Packages" / f"WIDGETS_{version}"
    folder.mkdir(parents=True)
    (folder / "WIDGETS.xml").write_text(xml or descriptor_xml(), encoding="utf-8")
    write_version_file(folder, "WIDGETS", version)
    if files:
        with zipfile.ZipFile(folder / "CodeReleasePackage.zip", "w") as zf:
            for name, content in files.items():
                zf.writestr(name, content)
    return folder / "WIDGETS.xml"


@pytest.fixture
def executor(engine_config, notifier):
    return DeployExecutor(engine_config, notifier=notifier, database_gateway=FakeGateway())


def test_expand_package_cleans_deploy_root(tmp_path):
    archive = tmp_path / "pkg.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("bin/app.dll", "x")
    root = tmp_path / "root"
    root.mkdir()
    (root / "stale.txt").write_text("old")

    assert expand_package(archive, root) == 1
    assert (root / "bin" / "app.dll").exists()
    assert not (root / "stale.txt").exists()


class TestDeployExecutor:
    """Test deploy outcomes, history and notifications."""

    @pytest.mark.asyncio
    async def test_successful_deploy(self, tmp_path, executor, notifier):
        descriptor = _package(tmp_path, files={"bin/app.dll": "binary"})

        result = await executor.deploy(descriptor, "qa", launch_user="alice")

        assert result.status == OperationStatus.SUCCESS
        assert result.server == "qa-web01"
        assert (descriptor.parent / "_DeployRoot" / "bin" / "app.dll").exists()
        assert executor.registry.read_current_version("WIDGETS", "QA") == 480

        history = executor.registry.read_history()
        assert len(history) == 1
        assert (history[0].application, history[0].environment_nickname, history[0].success) == \
            ("WIDGETS", "QA", True)
        assert history[0].user == "alice"

        assert len(notifier.sent) == 1
        assert notifier.sent[0].recipients == ["team@example.com"]
        assert "succeeded" in notifier.sent[0].subject
        archived = executor.registry.logs_archive_dir("WIDGETS", 480)
        assert list(archived.glob("*_Deploy.log"))

    @pytest.mark.asyncio
    async def test_unknown_nickname(self, tmp_path, executor, notifier):
        descriptor = _package(tmp_path)

        result = await executor.deploy(descriptor, "DEVWEB", launch_user="alice")

        assert result.is_failed
        history = executor.registry.read_history()
        assert len(history) == 1
        assert history[0].success is False
        assert history[0].server == "-"
        assert executor.registry.read_current_version("WIDGETS", "DEVWEB") is None
        assert len(notifier.sent) == 1
        assert "QA" in notifier.sent[0].body

    @pytest.mark.asyncio
    async def test_invalid_descriptor_emails_admins(self, tmp_path, executor, notifier):
        descriptor = _package(tmp_path, xml=descriptor_xml(emails=[]))

        result = await executor.deploy(descriptor, "QA")

        assert result.is_failed
        assert executor.registry.read_history() == []
        assert len(notifier.sent) == 1
        assert notifier.sent[0].recipients == ["admin@example.com"]

    @pytest.mark.asyncio
    async def test_unreadable_version_file(self, tmp_path, executor, notifier):
        descriptor = _package(tmp_path)
        (descriptor.parent / "WIDGETS_version.txt").write_text("not a number")

        result = await executor.deploy(descriptor, "QA")

        assert result.is_failed
        history = executor.registry.read_history()
        assert len(history) == 1
        assert history[0].version is None
        assert len(notifier.sent) == 1

    @pytest.mark.asyncio
    async def test_task_failure_keeps_previous_pointer(self, tmp_path, executor, notifier):
        version_file = write_version_file(tmp_path, "WIDGETS", 470)
        executor.registry.update_current_version(version_file, "WIDGETS", "QA")
        tasks = '<Task Type="Copy" Name="Configs" Source="missing" Destination="out"/>'
        descriptor = _package(tmp_path, xml=descriptor_xml(deploy_tasks=tasks))

        result = await executor.deploy(descriptor, "QA")

        assert result.is_failed
        assert "Configs" in result.error or "Source not found" in result.error
        assert executor.registry.read_current_version("WIDGETS", "QA") == 470
        assert [r.success for r in executor.registry.read_history()] == [False]
        assert "FAILED" in notifier.sent[0].subject
        assert notifier.sent[0].attachments

    @pytest.mark.asyncio
    async def test_database_deploy_task(self, tmp_path, engine_config, notifier):
        gateway = FakeGateway(online={"sql-b": True})
        xml = descriptor_xml(
            database='<Database Name="WidgetsDb" PrimaryServer="sql-a" SecondaryServer="sql-b"/>',
            deploy_tasks='<Task Type="DatabaseDeploy" Name="Schema"/>',
        )
        descriptor = _package(
            tmp_path, xml=xml, files={"Database/Views/010_view.sql": "CREATE VIEW v AS SELECT 1"}
        )
        executor = DeployExecutor(engine_config, notifier=notifier, database_gateway=gateway)

        result = await executor.deploy(descriptor, "PROD")

        assert result.status == OperationStatus.SUCCESS
        assert result.database_server == "sql-b"
        assert gateway.executed == [("sql-b", "Views/010_view.sql", ["CREATE VIEW v AS SELECT 1"])]

    @pytest.mark.asyncio
    async def test_undecodable_script_is_recorded_once(self, tmp_path, engine_config, notifier):
        gateway = FakeGateway(online={"sql-a": True}, mirroring={"sql-a": "SYNCHRONIZED"})
        xml = descriptor_xml(
            database='<Database Name="WidgetsDb" PrimaryServer="sql-a"/>',
            deploy_tasks='<Task Type="DatabaseDeploy" Name="Schema"/>',
        )
        descriptor = _package(
            tmp_path, xml=xml, files={"Database/StoredProcedures/001.sql": "SELECT 1".encode("utf-16")}
        )
        executor = DeployExecutor(engine_config, notifier=notifier, database_gateway=gateway)

        result = await executor.deploy(descriptor, "QA")

        assert result.is_failed
        assert "StoredProcedures/001.sql" in result.error
        assert [r.success for r in executor.registry.read_history()] == [False]
        assert len(notifier.sent) == 1
        assert ("resume", "sql-a") in gateway.calls
        file_handlers = [
            h for h in logging.getLogger("release_engine").handlers if isinstance(h, logging.FileHandler)
        ]
        assert file_handlers == []

    @pytest.mark.asyncio
    async def test_history_failure_restores_pointer(self, tmp_path, executor, notifier):
        version_file = write_version_file(tmp_path, "WIDGETS", 470)
        executor.registry.update_current_version(version_file, "WIDGETS", "QA")
        descriptor = _package(tmp_path)
        append = AsyncMock(side_effect=[DeployIOError("disk full"), None])

        with patch.object(executor.registry, "append_history", append):
            result = await executor.deploy(descriptor, "QA")

        assert result.is_failed
        assert "disk full" in result.error
        assert executor.registry.read_current_version("WIDGETS", "QA") == 470
        assert [call.args[0].success for call in append.await_args_list] == [True, False]
        assert "FAILED" in notifier.sent[0].subject

    @pytest.mark.asyncio
    async def test_history_failure_removes_first_pointer(self, tmp_path, executor):
        descriptor = _package(tmp_path)
        append = AsyncMock(side_effect=[DeployIOError("disk full"), None])

        with patch.object(executor.registry, "append_history", append):
            result = await executor.deploy(descriptor, "QA")

        assert result.is_failed
        assert not executor.registry.pointer_file("WIDGETS", "QA").exists()


class TestBuildThenDeploy:
    """Test a published release deploying with the version it was built at."""

    @pytest.mark.asyncio
    async def test_round_trip(self, tmp_path, engine_config, notifier):
        built = await BuildService(
            engine_config, source_control=FakeSourceControl(), notifier=notifier
        ).build("WIDGETS", 480)
        assert built.status == OperationStatus.SUCCESS

        executor = DeployExecutor(engine_config, notifier=notifier, database_gateway=FakeGateway())
        result = await executor.deploy(tmp_path / "Releases" / "WIDGETS_480" / "WIDGETS.xml", "QA")

        assert result.status == OperationStatus.SUCCESS
        assert result.version == 480
        assert executor.registry.read_current_version("WIDGETS", "QA") == 480
        history = executor.registry.read_history("WIDGETS", "QA")
        assert [(r.version, r.success) for r in history] == [(480, True)]
