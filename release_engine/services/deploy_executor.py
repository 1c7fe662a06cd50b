"""Target-side deploy executor"""

import asyncio
import getpass
import logging
import shutil
import zipfile
from functools import partial
from pathlib import Path
from typing import List, Optional, Union

from ..constants import (
    DEPLOY_LOGS_DIR,
    DEPLOY_ROOT_DIR,
    ErrorCode,
    MSG_DEPLOY_SUCCESS,
    PACKAGE_ZIP_NAME,
)
from ..core.attempt_log import AttemptLog, make_log_prefix
from ..core.release_registry import ReleaseRegistry, read_version_file, version_file_name
from ..core.task_process import TaskProcess, TaskRegistry
from ..exceptions import DeployIOError, ReleaseEngineError
from ..models.config import EngineConfig
from ..models.context import DeployContext
from ..models.descriptor import ApplicationDescriptor, DeployTarget
from ..models.history import DeployRecord
from ..models.result import DeployResult, OperationStatus
from .database_deploy import DatabaseDeployer, DatabaseDeployTask, DatabaseGateway, SqlAlchemyGateway
from .notification_service import NotificationService, compose_deploy

logger = logging.getLogger(__name__)


def deploy_task_registry() -> TaskRegistry:
    """Built-in task types plus the database deploy task"""
    registry = TaskRegistry.default()
    registry.register(DatabaseDeployTask)
    return registry


def expand_package(archive: Path, deploy_root: Path) -> int:
    """Expand a package zip into a clean deploy root; returns the file count"""
    if deploy_root.exists():
        shutil.rmtree(deploy_root)
    deploy_root.mkdir(parents=True)
    with zipfile.ZipFile(archive) as zf:
        zf.extractall(deploy_root)
        return sum(1 for info in zf.infolist() if not info.is_dir())


class DeployExecutor:
    """Apply a delivered package on this host.

    Every terminal outcome after the descriptor parses appends exactly one
    history record and sends exactly one notification.
    """

    def __init__(self,
                 config: EngineConfig,
                 notifier: Optional[NotificationService] = None,
                 registry: Optional[ReleaseRegistry] = None,
                 database_gateway: Optional[DatabaseGateway] = None,
                 task_registry: Optional[TaskRegistry] = None):
        self.config = config
        self.notifier = notifier or NotificationService(config.notifications)
        self.registry = registry or ReleaseRegistry(config.paths.releases_path, config.paths.state_path)
        self.database_gateway = database_gateway
        self.task_registry = task_registry or deploy_task_registry()

    async def _blocking(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args))

    async def deploy(self,
                     descriptor_path: Union[str, Path],
                     nickname: str,
                     launch_user: Optional[str] = None) -> DeployResult:
        """
        Deploy the package whose descriptor is given

        Args:
            descriptor_path: Descriptor inside the delivered package folder
            nickname: Environment nickname to deploy to
            launch_user: User recorded in history

        Returns:
            DeployResult
        """
        launch_user = launch_user or getpass.getuser()
        descriptor_path = Path(descriptor_path)
        nickname = (nickname or "").strip().upper()
        result = DeployResult(status=OperationStatus.IN_PROGRESS, environment_nickname=nickname)

        # Validate inputs and read the descriptor
        try:
            descriptor = ApplicationDescriptor.from_file(descriptor_path)
        except ReleaseEngineError as e:
            return await self._fail_unparsed(result, e, descriptor_path, launch_user)

        result.application = descriptor.name
        package_folder = descriptor_path.parent
        attempt_log: Optional[AttemptLog] = None
        target: Optional[DeployTarget] = None
        gateway: Optional[DatabaseGateway] = None

        try:
            result.version = read_version_file(package_folder / version_file_name(descriptor.name))

            attempt_log = AttemptLog(
                package_folder / DEPLOY_LOGS_DIR,
                make_log_prefix(descriptor.name, result.version, nickname, "Deploy"),
            )
            attempt_log.open()
            logger.info("Deploy of %s version %d to %s started by %s",
                        descriptor.name, result.version, nickname, launch_user)

            # Resolve target
            target = descriptor.resolve_target(nickname)
            result.server = target.server

            # Persisted folders
            self.registry.ensure_structure(descriptor.name, result.version, nickname)

            # Unpack
            deploy_root = package_folder / DEPLOY_ROOT_DIR
            archive = package_folder / PACKAGE_ZIP_NAME
            if archive.is_file():
                try:
                    count = await self._blocking(expand_package, archive, deploy_root)
                except (OSError, zipfile.BadZipFile) as e:
                    raise DeployIOError(f"Failed to expand {archive}: {e}")
                logger.info("Expanded %d files into %s", count, deploy_root)
            else:
                deploy_root.mkdir(exist_ok=True)
                logger.info("No package archive, nothing to expand")

            # Deploy task process
            gateway = self.database_gateway or SqlAlchemyGateway(self.config.database)
            context = DeployContext(
                application=descriptor.name,
                version=result.version,
                root_folder=deploy_root,
                log_dir=attempt_log.log_dir,
                log_prefix=attempt_log.prefix,
                launch_user=launch_user,
                descriptor=descriptor,
                environment_nickname=nickname,
                server=target.server,
                package_folder=package_folder,
            )
            process = TaskProcess(
                self.task_registry,
                database_deployer=DatabaseDeployer(gateway, self.config.database),
            )
            process.initialize(descriptor.deploy_tasks)
            await process.invoke(context)
            result.database_server = context.outputs.get("database_server")

            # Current-version pointer, then history; the pointer goes back to
            # its previous value when the success line cannot be written
            previous = self.registry.read_current_version(descriptor.name, nickname)
            self.registry.update_current_version(
                package_folder / version_file_name(descriptor.name), descriptor.name, nickname
            )
            try:
                await self.registry.append_history(self._record(result, launch_user, True))
            except DeployIOError:
                self.registry.restore_current_version(descriptor.name, nickname, previous)
                raise
            result.history_recorded = True

            result.message = MSG_DEPLOY_SUCCESS.format(
                application=descriptor.name, version=result.version, nickname=nickname, server=target.server
            )
            logger.info(result.message)

        except (ReleaseEngineError, OSError) as e:
            return await self._fail(result, e, descriptor, attempt_log, launch_user)
        finally:
            if gateway is not None and gateway is not self.database_gateway:
                gateway.close()
            if attempt_log is not None:
                attempt_log.close()

        # Notify, archive
        result.log_files = attempt_log.files()
        result.complete(OperationStatus.SUCCESS)
        result.notified = await self.notifier.send_async(compose_deploy(
            descriptor.name, result.version, nickname, target.server, launch_user, True,
            descriptor.notification_emails, attachments=result.log_files,
        ))
        self._archive_logs(result, attempt_log)
        return result

    def _record(self, result: DeployResult, launch_user: str, success: bool) -> DeployRecord:
        return DeployRecord(
            application=result.application,
            environment_nickname=result.environment_nickname,
            server=result.server or "-",
            version=result.version,
            user=launch_user,
            success=success,
        )

    def _archive_logs(self, result: DeployResult, attempt_log: Optional[AttemptLog]) -> List[Path]:
        """Copy this attempt's logs into the logs archive (best effort)"""
        if attempt_log is None:
            return []
        archive_dir = self.registry.logs_archive_dir(result.application, result.version)
        archived = []
        for path in attempt_log.files():
            try:
                archive_dir.mkdir(parents=True, exist_ok=True)
                archived.append(Path(shutil.copy2(path, archive_dir / path.name)))
            except OSError as e:
                logger.warning("Could not archive log %s: %s", path, e)
        return archived

    async def _fail(self,
                    result: DeployResult,
                    error: Exception,
                    descriptor: ApplicationDescriptor,
                    attempt_log: Optional[AttemptLog],
                    launch_user: str) -> DeployResult:
        code = getattr(error, "error_code", None) or ErrorCode.DEPLOY_IO
        logger.error("Deploy of %s to %s failed: %s", descriptor.name, result.environment_nickname, error)

        if attempt_log is not None:
            attempt_log.close()
            result.log_files = attempt_log.files()
        self._archive_logs(result, attempt_log)

        try:
            await self.registry.append_history(self._record(result, launch_user, False))
            result.history_recorded = True
        except DeployIOError as e:
            logger.error("Could not record deploy history: %s", e)

        result.add_error(code, str(error))
        result.message = f"Deploy of {descriptor.name} to {result.environment_nickname} failed"
        result.complete(OperationStatus.FAILED)
        result.notified = await self.notifier.send_async(compose_deploy(
            descriptor.name, result.version, result.environment_nickname, result.server, launch_user, False,
            descriptor.notification_emails, attachments=result.log_files, errors=[str(error)],
        ))
        return result

    async def _fail_unparsed(self,
                             result: DeployResult,
                             error: ReleaseEngineError,
                             descriptor_path: Path,
                             launch_user: str) -> DeployResult:
        """Descriptor missing or invalid: no history, notify the administrators"""
        logger.error("Cannot deploy %s: %s", descriptor_path, error)
        result.add_error(error.error_code or ErrorCode.DESCRIPTOR_INVALID, str(error))
        result.message = f"Deploy from {descriptor_path} failed"
        result.complete(OperationStatus.FAILED)
        result.notified = await self.notifier.send_async(compose_deploy(
            descriptor_path.stem.upper(), None, result.environment_nickname, None, launch_user, False,
            self.notifier.recipients_or_admins(None), errors=[str(error)], context=str(descriptor_path),
        ))
        return result
