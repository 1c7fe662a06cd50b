"""Tests for the synchronous API facades."""

from unittest.mock import AsyncMock, MagicMock

from release_engine.api import Builder, Deployer
from release_engine.api.query import QueryInterface
from release_engine.core.release_registry import write_version_file
from release_engine.models.history import DeployRecord
from release_engine.models.result import BuildResult, DeployResult, OperationStatus

from .conftest import FakeSourceControl


class TestBuilder:
    """Test the Builder facade."""

    def test_build_runs_service(self, tmp_path, engine_config, notifier):
        from release_engine.services.build_service import BuildService

        service = BuildService(engine_config, source_control=FakeSourceControl(), notifier=notifier)
        builder = Builder(service=service)

        results = builder.build_many(["WIDGETS", "WIDGETS"], launch_user="alice")

        assert [r.status for r in results] == [OperationStatus.SUCCESS, OperationStatus.SKIPPED]
        assert builder.application_names() == ["WIDGETS"]

    def test_build_forwards_arguments(self):
        service = MagicMock()
        service.build = AsyncMock(return_value=BuildResult(status=OperationStatus.SUCCESS))

        Builder(service=service).build("WIDGETS", "480", "alice", True)

        service.build.assert_awaited_once_with("WIDGETS", "480", "alice", True)


class TestDeployer:
    """Test the Deployer facade."""

    def test_routes_to_service_and_executor(self):
        service, executor = MagicMock(), MagicMock()
        service.deploy = AsyncMock(return_value=DeployResult(status=OperationStatus.SUCCESS))
        service.self_deploy = AsyncMock(return_value=DeployResult(status=OperationStatus.SUCCESS))
        executor.deploy = AsyncMock(return_value=DeployResult(status=OperationStatus.FAILED))
        deployer = Deployer(service=service, executor=executor)

        deployer.deploy("WIDGETS", 480, "QA", "alice")
        deployer.self_deploy(7, "PROD")
        result = deployer.deploy_local("/pkg/WIDGETS.xml", "QA")

        service.deploy.assert_awaited_once_with("WIDGETS", 480, "QA", "alice")
        service.self_deploy.assert_awaited_once_with(7, "PROD", None)
        executor.deploy.assert_awaited_once_with("/pkg/WIDGETS.xml", "QA", None)
        assert result.is_failed


class TestQueryInterface:
    """Test read-only queries."""

    def test_releases_limit(self, engine_config):
        for version in (1, 2, 3):
            (engine_config.paths.releases_path / f"WIDGETS_{version}").mkdir(parents=True)

        releases = QueryInterface(config=engine_config).releases("WIDGETS", limit=2)

        assert [r.version for r in releases] == [3, 2]

    def test_history_most_recent_first(self, engine_config):
        history_file = engine_config.paths.state_path / "DeployHistory.log"
        history_file.parent.mkdir(parents=True)
        lines = [
            DeployRecord("WIDGETS", "QA", "qa-web01", version, "alice", True).to_line()
            for version in (1, 2, 3)
        ]
        history_file.write_text("\n".join(lines) + "\n")

        records = QueryInterface(config=engine_config).history("WIDGETS", limit=2)

        assert [r.version for r in records] == [3, 2]

    def test_current_versions(self, tmp_path, engine_config):
        pointer_dir = engine_config.paths.state_path / "CurrentVersions" / "PROD"
        pointer_dir.mkdir(parents=True)
        write_version_file(pointer_dir, "WIDGETS", 470)

        assert QueryInterface(config=engine_config).current_versions("WIDGETS") == {"PROD": 470}
