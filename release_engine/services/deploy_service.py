"""Initiator-side deploy orchestration"""

import getpass
import logging
import shlex
from typing import List, Optional, Union

from ..constants import MSG_DEPLOY_SUCCESS, PACKAGE_ZIP_NAME, ErrorCode
from ..core.release_registry import ReleaseRegistry
from ..core.version_resolver import parse_version
from ..exceptions import (
    InvalidApplicationNameError,
    MissingArgumentError,
    ReleaseEngineError,
    ReleaseNotFoundError,
    RemoteExecutionError,
    UsageError,
)
from ..models.config import EngineConfig
from ..models.descriptor import ApplicationDescriptor, list_application_names
from ..models.history import DeployRecord
from ..models.result import DeployResult, OperationStatus
from .build_service import validate_application
from .notification_service import NotificationService, compose_deploy
from .remote_dispatcher import Credential, RemoteDispatcher

logger = logging.getLogger(__name__)


class DeployService:
    """Ship a published release to a target host and run the deploy there.

    The artifact is copied from the Releases root by the relay host; the
    target then runs ``deploy-local``, which records history and notifies on
    its own. Failures before the remote command starts are recorded and
    notified here.
    """

    def __init__(self,
                 config: EngineConfig,
                 dispatcher: Optional[RemoteDispatcher] = None,
                 notifier: Optional[NotificationService] = None,
                 registry: Optional[ReleaseRegistry] = None,
                 credential: Optional[Credential] = None):
        self.config = config
        self.dispatcher = dispatcher or RemoteDispatcher(config.remote)
        self.notifier = notifier or NotificationService(config.notifications)
        self.registry = registry or ReleaseRegistry(config.paths.releases_path, config.paths.state_path)
        self.credential = credential or Credential.from_config(config.remote)

    def application_names(self) -> List[str]:
        return list_application_names(self.config.paths.config_path)

    def resolve_release(self, application: str, version: Optional[Union[int, str]]) -> int:
        """Pick a published release: the newest one, or a requested one that must exist

        Raises:
            InvalidVersionError: Malformed version
            ReleaseNotFoundError: Nothing published for the request
        """
        requested = parse_version(version)
        available = [str(r.version) for r in self.registry.list_releases(application)]

        if requested is None:
            latest = self.registry.latest_release(application)
            if latest is None:
                raise ReleaseNotFoundError(application)
            return latest

        if not self.registry.is_built(application, requested):
            raise ReleaseNotFoundError(application, requested, available)
        return requested

    def load_descriptor(self, application: str, version: int) -> ApplicationDescriptor:
        return ApplicationDescriptor.from_file(self.registry.descriptor_path(application, version))

    def remote_deploy_command(self, descriptor_path: str, nickname: str, launch_user: str) -> str:
        return (
            f"{self.config.remote.engine_command} deploy-local "
            f"{shlex.quote(descriptor_path)} {shlex.quote(nickname)} --user {shlex.quote(launch_user)}"
        )

    async def deploy(self,
                     application: str,
                     version: Optional[Union[int, str]] = None,
                     nickname: Optional[str] = None,
                     launch_user: Optional[str] = None) -> DeployResult:
        """
        Deploy a published release to an environment

        Args:
            application: Application name
            version: Release version; None deploys the newest published release
            nickname: Environment nickname declared by the release's descriptor
            launch_user: User recorded in history

        Returns:
            DeployResult

        Raises:
            UsageError: Bad application, version or missing nickname
        """
        launch_user = launch_user or getpass.getuser()
        app = validate_application(application, self.application_names())
        resolved = self.resolve_release(app, version)

        result = DeployResult(status=OperationStatus.IN_PROGRESS, application=app, version=resolved)
        descriptor: Optional[ApplicationDescriptor] = None

        try:
            descriptor = self.load_descriptor(app, resolved)

            if not (nickname or "").strip():
                raise MissingArgumentError("environment nickname", descriptor.nicknames)
            result.environment_nickname = nickname.strip().upper()

            target = descriptor.resolve_target(result.environment_nickname)
            result.server = target.server

            remote_package = self.registry.package_path(app, resolved)
            await self.dispatcher.relay_copy(
                str(self.registry.release_path(app, resolved)), target.server, str(remote_package), self.credential
            )

            remote_descriptor = remote_package / self.registry.descriptor_path(app, resolved).name
            output = await self.dispatcher.run_remote(
                target.server,
                self.remote_deploy_command(str(remote_descriptor), target.nickname, launch_user),
                self.credential,
            )
            result.metadata["remote_output"] = output.stdout

        except UsageError:
            raise
        except RemoteExecutionError as e:
            if e.command_started and e.command.startswith(self.config.remote.engine_command):
                # The target recorded history and notified
                return self._remote_failure(result, e)
            return await self._fail(result, e, descriptor, launch_user)
        except ReleaseEngineError as e:
            return await self._fail(result, e, descriptor, launch_user)

        result.history_recorded = True
        result.notified = True
        result.message = MSG_DEPLOY_SUCCESS.format(
            application=app, version=resolved, nickname=result.environment_nickname, server=result.server
        )
        result.complete(OperationStatus.SUCCESS)
        return result

    async def self_deploy(self,
                          version: Optional[Union[int, str]] = None,
                          nickname: Optional[str] = None,
                          launch_user: Optional[str] = None) -> DeployResult:
        """
        Deploy the engine itself to an environment

        A running engine cannot replace its own files, so the release is
        first staged next to the install folder (phase 1) and then swapped
        into place by the staged copy (phase 2).
        """
        launch_user = launch_user or getpass.getuser()
        settings = self.config.self_deploy
        app = settings.application.upper()
        if app not in self.application_names():
            raise InvalidApplicationNameError(app, self.application_names())
        resolved = self.resolve_release(app, version)

        result = DeployResult(status=OperationStatus.IN_PROGRESS, application=app, version=resolved)
        descriptor: Optional[ApplicationDescriptor] = None

        try:
            descriptor = self.load_descriptor(app, resolved)
            if not (nickname or "").strip():
                raise MissingArgumentError("environment nickname", descriptor.nicknames)
            result.environment_nickname = nickname.strip().upper()
            target = descriptor.resolve_target(result.environment_nickname)
            result.server = target.server

            staging = settings.staging_dir
            release_path = self.registry.release_path(app, resolved)

            # Phase 1: stage
            await self.dispatcher.relay_copy(str(release_path), target.server, staging, self.credential)
            if (release_path / PACKAGE_ZIP_NAME).is_file():
                await self.dispatcher.run_remote(
                    target.server,
                    f"cd {shlex.quote(staging)} && {settings.python} -m zipfile -e {PACKAGE_ZIP_NAME} .",
                    self.credential,
                )

            # Phase 2: swap, running from the staged copy
            await self.dispatcher.run_remote(
                target.server,
                f"cd {shlex.quote(staging)} && {settings.python} -m release_engine self-update "
                f"{shlex.quote(staging)} {shlex.quote(settings.install_dir)}",
                self.credential,
            )

        except UsageError:
            raise
        except ReleaseEngineError as e:
            return await self._fail(result, e, descriptor, launch_user)

        await self._record(result, launch_user, True)
        result.message = MSG_DEPLOY_SUCCESS.format(
            application=app, version=resolved, nickname=result.environment_nickname, server=result.server
        )
        result.complete(OperationStatus.SUCCESS)
        result.notified = await self.notifier.send_async(compose_deploy(
            app, resolved, result.environment_nickname, result.server, launch_user, True,
            descriptor.notification_emails,
        ))
        return result

    async def _record(self, result: DeployResult, launch_user: str, success: bool) -> None:
        record = DeployRecord(
            application=result.application,
            environment_nickname=result.environment_nickname or "-",
            server=result.server or "-",
            version=result.version,
            user=launch_user,
            success=success,
        )
        try:
            await self.registry.append_history(record)
            result.history_recorded = True
        except ReleaseEngineError as e:
            logger.error("Could not record deploy history: %s", e)

    def _remote_failure(self, result: DeployResult, error: RemoteExecutionError) -> DeployResult:
        logger.error("Deploy failed on %s: %s", error.server, error)
        if error.hint:
            logger.error(error.hint)
        result.add_error(error.error_code, str(error), exit_status=error.exit_status)
        result.history_recorded = True
        result.notified = True
        result.message = f"Deploy of {result.application} to {result.environment_nickname} failed"
        result.complete(OperationStatus.FAILED)
        return result

    async def _fail(self,
                    result: DeployResult,
                    error: ReleaseEngineError,
                    descriptor: Optional[ApplicationDescriptor],
                    launch_user: str) -> DeployResult:
        logger.error("Deploy of %s failed: %s", result.application, error)
        hint = getattr(error, "hint", None)
        if hint:
            logger.error(hint)

        if descriptor is not None:
            await self._record(result, launch_user, False)

        errors = [str(error)] + ([hint] if hint else [])
        result.add_error(error.error_code or ErrorCode.REMOTE_EXECUTION, str(error))
        result.message = f"Deploy of {result.application} failed"
        result.complete(OperationStatus.FAILED)
        recipients = descriptor.notification_emails if descriptor else None
        result.notified = await self.notifier.send_async(compose_deploy(
            result.application, result.version, result.environment_nickname or "-", result.server,
            launch_user, False, self.notifier.recipients_or_admins(recipients), errors=errors,
        ))
        return result
