"""Artifact builder: build-root, zip and release-folder lifecycle"""

import asyncio
import getpass
import logging
import shutil
import zipfile
from functools import partial
from pathlib import Path
from typing import List, Optional, Union

from ..constants import (
    BUILD_LOGS_DIR,
    ErrorCode,
    MSG_BUILD_NOTHING_TO_DO,
    MSG_BUILD_SUCCESS,
    PACKAGE_ZIP_NAME,
)
from ..core.attempt_log import AttemptLog, make_log_prefix
from ..core.release_notes import ReleaseNotesGenerator
from ..core.release_registry import ReleaseRegistry, write_version_file
from ..core.source_control import SubversionClient
from ..core.task_process import TaskProcess
from ..core.version_resolver import VersionResolver
from ..core.workspace import BuildWorkspace
from ..exceptions import (
    AlreadyBuiltError,
    DescriptorInvalidError,
    InvalidApplicationNameError,
    MissingArgumentError,
    ReleaseEngineError,
    UsageError,
    WorkspaceIOError,
)
from ..models.config import EngineConfig
from ..models.context import BuildContext
from ..models.descriptor import (
    ApplicationDescriptor,
    find_descriptor_file,
    list_application_names,
)
from ..models.result import BuildResult, OperationStatus
from .notification_service import NotificationService, compose_build

logger = logging.getLogger(__name__)


def validate_application(application: Optional[str], valid_names: List[str]) -> str:
    """Normalize an application name and check it against the known set

    Raises:
        MissingArgumentError: No name given
        InvalidApplicationNameError: Name not in the set
    """
    name = (application or "").strip().upper()
    if not name:
        raise MissingArgumentError("application", valid_names)
    if name not in valid_names:
        raise InvalidApplicationNameError(name, valid_names)
    return name


def zip_folder(folder: Path, archive: Path) -> int:
    """Compress a folder's files into a zip archive; returns the file count"""
    count = 0
    with zipfile.ZipFile(archive, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for path in sorted(folder.rglob("*")):
            if path.is_file():
                zf.write(path, path.relative_to(folder).as_posix())
                count += 1
    return count


class BuildService:
    """Build one application version into a published release"""

    def __init__(self,
                 config: EngineConfig,
                 source_control=None,
                 notifier: Optional[NotificationService] = None,
                 registry: Optional[ReleaseRegistry] = None):
        """
        Initialize build service

        Args:
            config: Engine configuration
            source_control: Client with head_revision/export/log (Subversion by default)
            notifier: Notification service
            registry: Release registry
        """
        self.config = config
        self.source_control = source_control or SubversionClient(config.repository)
        self.notifier = notifier or NotificationService(config.notifications)
        self.registry = registry or ReleaseRegistry(config.paths.releases_path, config.paths.state_path)
        self.resolver = VersionResolver(self.source_control)

    def application_names(self) -> List[str]:
        return list_application_names(self.config.paths.config_path)

    async def _blocking(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args))

    async def build(self,
                    application: str,
                    version: Optional[Union[int, str]] = None,
                    launch_user: Optional[str] = None,
                    test_build: bool = False) -> BuildResult:
        """
        Execute the build workflow

        Args:
            application: Application name
            version: Requested version; None or HEAD builds the repository HEAD
            launch_user: User recorded in logs and notifications
            test_build: Build without publishing to the Releases root

        Returns:
            BuildResult: SUCCESS, SKIPPED (already built) or FAILED

        Raises:
            UsageError: Bad application name or version (never emailed)
        """
        launch_user = launch_user or getpass.getuser()

        # 1. Validate application name against the known set
        app = validate_application(application, self.application_names())
        result = BuildResult(status=OperationStatus.IN_PROGRESS, application=app)

        workspace: Optional[BuildWorkspace] = None
        descriptor: Optional[ApplicationDescriptor] = None
        attempt_log: Optional[AttemptLog] = None

        try:
            # 2. Resolve version
            resolved = await self._blocking(self.resolver.resolve, version, app)
            result.version = resolved

            # 3. Idempotency gate
            if self.registry.is_built(app, resolved):
                result.release_path = self.registry.release_path(app, resolved)
                result.message = MSG_BUILD_NOTHING_TO_DO.format(application=app, version=resolved)
                logger.info(result.message)
                result.complete(OperationStatus.SKIPPED)
                return result

            # 4. Workspace and descriptor set
            workspace = BuildWorkspace(self.config.paths.build_path, app, resolved)
            workspace.create()
            result.workspace = workspace.root
            logger.info("Building %s version %d in %s", app, resolved, workspace.root)
            await self._blocking(
                self.source_control.export, self.config.repository.config_path, workspace.descriptor_dir
            )

            # 5. Re-validate against the fetched set and parse the descriptor
            fetched = list_application_names(workspace.descriptor_dir)
            if app not in fetched:
                workspace.cleanup()
                raise InvalidApplicationNameError(app, fetched)
            parsed = ApplicationDescriptor.from_file(find_descriptor_file(workspace.descriptor_dir, app))
            if parsed.name != app:
                raise DescriptorInvalidError(
                    f"Descriptor declares application {parsed.name}, expected {app}", str(parsed.path)
                )
            descriptor = parsed

            # 6. Zip folder and build-log folder
            workspace.prepare_folders()

            # 7. Attempt log
            attempt_log = AttemptLog(workspace.log_dir, make_log_prefix(app, resolved, "Build"))
            attempt_log.open()
            logger.info("Build of %s version %d started by %s%s",
                        app, resolved, launch_user, " (test build)" if test_build else "")

            # 8. Build task process
            context = BuildContext(
                application=app,
                version=resolved,
                root_folder=workspace.root,
                log_dir=workspace.log_dir,
                log_prefix=attempt_log.prefix,
                launch_user=launch_user,
                descriptor=descriptor,
                zip_folder=workspace.zip_folder,
                release_folder=workspace.release_folder,
            )
            process = TaskProcess(source_control=self.source_control)
            process.initialize(descriptor.build_tasks)
            await process.invoke(context)

            # 9-10. Package contents
            self._package(workspace, descriptor, resolved, result)

            # 11. Close the log, keep it with the release, publish
            attempt_log.close()
            result.log_files = self._collect_logs(attempt_log, workspace.build_logs)

            if test_build:
                result.release_path = workspace.release_folder
                logger.info("Test build, not publishing %s", workspace.release_folder)
            else:
                try:
                    result.release_path = await self._blocking(
                        self.registry.publish, workspace.release_folder, app, resolved
                    )
                except AlreadyBuiltError:
                    result.release_path = self.registry.release_path(app, resolved)
                    result.add_warning(
                        f"{app} version {resolved} was published concurrently by another build; "
                        "the existing release was kept"
                    )
                    logger.warning(result.warnings[-1])
                else:
                    # The workspace copies go away with cleanup
                    if result.package_zip is not None:
                        result.package_zip = result.release_path / PACKAGE_ZIP_NAME
                    result.log_files = [result.release_path / BUILD_LOGS_DIR / p.name for p in result.log_files]

        except UsageError:
            raise
        except (ReleaseEngineError, OSError) as e:
            return await self._fail(result, e, descriptor, attempt_log, launch_user, test_build)
        finally:
            if attempt_log is not None:
                attempt_log.close()

        # 12. Notify and clean up
        result.message = MSG_BUILD_SUCCESS.format(application=app, version=resolved)
        result.complete(OperationStatus.SUCCESS)
        result.notified = await self.notifier.send_async(compose_build(
            app, resolved, launch_user, True,
            self.notifier.recipients_or_admins(descriptor.notification_emails),
            attachments=result.log_files,
            release_path=result.release_path,
            test_build=test_build,
        ))
        if not test_build:
            workspace.cleanup()
        return result

    def _package(self,
                 workspace: BuildWorkspace,
                 descriptor: ApplicationDescriptor,
                 version: int,
                 result: BuildResult) -> None:
        release_folder = workspace.release_folder

        if workspace.has_zip_content():
            archive = release_folder / PACKAGE_ZIP_NAME
            count = zip_folder(workspace.zip_folder, archive)
            result.package_zip = archive
            logger.info("Packaged %d files into %s", count, archive.name)
        else:
            logger.info("Zip folder is empty, no package archive created")

        shutil.copy2(descriptor.path, release_folder / f"{descriptor.name}.xml")
        write_version_file(release_folder, descriptor.name, version)

        if self.config.release_notes.enabled:
            generator = ReleaseNotesGenerator(
                self.source_control, self.registry, self.config.release_notes.baseline_environment
            )
            try:
                generator.generate(descriptor, version, release_folder)
            except (ReleaseEngineError, OSError) as e:
                logger.warning("Release notes not generated: %s", e)
                result.add_warning(f"Release notes not generated: {e}")

    def _collect_logs(self, attempt_log: AttemptLog, destination: Path) -> List[Path]:
        copied = []
        for path in attempt_log.files():
            try:
                destination.mkdir(parents=True, exist_ok=True)
                copied.append(Path(shutil.copy2(path, destination / path.name)))
            except OSError as e:
                raise WorkspaceIOError(f"Failed to copy build log {path}: {e}")
        return copied

    async def _fail(self,
                    result: BuildResult,
                    error: Exception,
                    descriptor: Optional[ApplicationDescriptor],
                    attempt_log: Optional[AttemptLog],
                    launch_user: str,
                    test_build: bool) -> BuildResult:
        code = getattr(error, "error_code", None) or ErrorCode.WORKSPACE_IO
        logger.error("Build of %s failed: %s", result.application, error)

        attachments: List[Path] = []
        if attempt_log is not None:
            attempt_log.close()
            attachments = attempt_log.files()

        result.add_error(code, str(error))
        result.log_files = attachments
        result.message = f"Build of {result.application} failed"
        result.complete(OperationStatus.FAILED)

        if result.workspace:
            logger.info("Workspace kept for inspection: %s", result.workspace)

        recipients = descriptor.notification_emails if descriptor else None
        result.notified = await self.notifier.send_async(compose_build(
            result.application, result.version, launch_user, False,
            self.notifier.recipients_or_admins(recipients),
            attachments=attachments,
            errors=[str(error)],
            test_build=test_build,
        ))
        return result
